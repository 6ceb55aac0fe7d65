"""Fee plan schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.enums import FeeFrequency, FeePlanStatus


class FeePlanCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    currency: Optional[str] = Field(None, pattern=r"^[A-Z]{3}$", description="ISO 4217; defaults to the configured currency")
    frequency: FeeFrequency
    applicable_courses: Optional[List[str]] = None
    applicable_classes: Optional[List[str]] = None
    status: FeePlanStatus = FeePlanStatus.ACTIVE


class FeePlanUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = None
    amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    currency: Optional[str] = Field(None, pattern=r"^[A-Z]{3}$")
    frequency: Optional[FeeFrequency] = None
    applicable_courses: Optional[List[str]] = None
    applicable_classes: Optional[List[str]] = None
    status: Optional[FeePlanStatus] = None


class FeePlanResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    name: str
    description: Optional[str] = None
    amount: Decimal
    currency: str
    frequency: FeeFrequency
    applicable_courses: Optional[List[str]] = None
    applicable_classes: Optional[List[str]] = None
    status: FeePlanStatus
    invoice_count: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    message: str
