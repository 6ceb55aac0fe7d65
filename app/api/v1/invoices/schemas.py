"""Invoice schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.enums import InvoiceStatus


class InvoiceLineItemCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(1, gt=0)
    unit_price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)


class InvoiceCreate(BaseModel):
    student_id: UUID
    due_date: date
    line_items: List[InvoiceLineItemCreate] = Field(..., min_length=1)
    fee_plan_id: Optional[UUID] = None
    tax: Decimal = Field(Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    notes: Optional[str] = None
    status: Literal["DRAFT", "SENT"] = "DRAFT"


class InvoiceUpdate(BaseModel):
    due_date: Optional[date] = None
    notes: Optional[str] = None
    status: Optional[Literal["SENT", "CANCELLED"]] = Field(
        None, description="DRAFT -> SENT, or cancel an invoice with nothing paid"
    )


class InvoiceLineItemResponse(BaseModel):
    id: UUID
    description: str
    quantity: int
    unit_price: Decimal
    amount: Decimal
    position: int

    class Config:
        from_attributes = True


class InvoiceResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    invoice_number: str
    student_id: UUID
    student_account_id: UUID
    fee_plan_id: Optional[UUID] = None
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    paid_amount: Decimal
    balance: Decimal
    status: InvoiceStatus
    due_date: date
    notes: Optional[str] = None
    created_by: Optional[UUID] = None
    line_items: List[InvoiceLineItemResponse] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
