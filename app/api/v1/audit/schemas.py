"""Audit schemas."""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.enums import AuditAction


class AuditEventResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    actor_id: UUID
    actor_name: Optional[str] = None
    actor_role: Optional[str] = None
    action: AuditAction
    resource_type: str
    resource_id: UUID
    before_state: Optional[Any] = None
    after_state: Optional[Any] = None
    origin: Optional[str] = None
    metadata: Optional[Any] = Field(None, validation_alias="event_metadata")
    created_at: datetime

    class Config:
        from_attributes = True


class AuditEventPage(BaseModel):
    items: List[AuditEventResponse]
    page: int
    per_page: int
    total: int
    total_pages: int
