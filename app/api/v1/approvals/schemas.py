"""Approval request schemas."""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.enums import ApprovalStatus, ApprovalType


class ApprovalCreate(BaseModel):
    type: ApprovalType
    resource_type: str = Field(..., min_length=1, max_length=50)
    resource_id: Optional[UUID] = None
    comments: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class ApprovalDecision(BaseModel):
    comments: Optional[str] = Field(None, description="Required when rejecting")


class ApprovalResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    type: ApprovalType
    status: ApprovalStatus
    resource_type: str
    resource_id: Optional[UUID] = None
    requested_by: UUID
    requested_by_name: Optional[str] = None
    approved_by: Optional[UUID] = None
    decided_at: Optional[datetime] = None
    comments: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="request_metadata")
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
