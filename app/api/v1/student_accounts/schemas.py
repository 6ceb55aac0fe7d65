"""Student account schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel


class StudentAccountResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    student_id: UUID
    total_billed: Decimal
    total_paid: Decimal
    total_refunded: Decimal
    balance: Decimal
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AccountTotals(BaseModel):
    total_billed: Decimal
    total_paid: Decimal
    total_refunded: Decimal
    balance: Decimal


class ReconciliationResponse(BaseModel):
    tenant_id: UUID
    student_id: UUID
    stored: AccountTotals
    replayed: AccountTotals
    in_balance: bool
