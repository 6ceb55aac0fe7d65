"""Refund schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.enums import RefundMethod, RefundStatus


class RefundCreate(BaseModel):
    payment_id: UUID
    amount: Decimal = Field(..., max_digits=12, decimal_places=2)
    reason: str = Field(..., min_length=1)
    refund_method: Optional[RefundMethod] = None


class RefundDecision(BaseModel):
    reason: Optional[str] = Field(None, description="Required when rejecting")


class RefundResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    refund_number: str
    payment_id: UUID
    student_id: UUID
    amount: Decimal
    reason: str
    refund_method: Optional[RefundMethod] = None
    status: RefundStatus
    requested_by: UUID
    approved_by: Optional[UUID] = None
    approved_at: Optional[datetime] = None
    decision_reason: Optional[str] = None
    approval_request_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
