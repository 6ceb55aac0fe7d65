"""Payment schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.enums import InvoiceStatus, PaymentMethod


class PaymentCreate(BaseModel):
    invoice_id: UUID
    # Positivity and the balance limit are business rules, checked by the service
    amount: Decimal = Field(..., max_digits=12, decimal_places=2)
    method: PaymentMethod
    payment_date: date
    reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class PaymentResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    invoice_id: UUID
    student_id: UUID
    amount: Decimal
    method: PaymentMethod
    payment_date: date
    reference: Optional[str] = None
    notes: Optional[str] = None
    recorded_by: UUID
    created_at: datetime
    refunded_amount: Optional[Decimal] = None

    class Config:
        from_attributes = True


class PaymentRecordedResponse(PaymentResponse):
    invoice_status: InvoiceStatus
    invoice_paid_amount: Decimal
    invoice_balance: Decimal
