"""Audit router: read-only view of the audit trail."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.rbac import check_permission
from app.auth.schemas import CurrentUser
from app.core.enums import AuditAction
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import AuditEventPage
from . import service

router = APIRouter(prefix="/api/v1/audit", tags=["audit"])


@router.get(
    "",
    response_model=AuditEventPage,
    dependencies=[Depends(check_permission("audit", "read"))],
)
async def list_audit_events(
    actor_id: Optional[UUID] = Query(None),
    action: Optional[AuditAction] = Query(None),
    resource_type: Optional[str] = Query(None),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1),
    tenant_id: Optional[UUID] = Query(None, description="Cross-tenant callers only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> AuditEventPage:
    try:
        return await service.list_audit_events(
            db,
            current_user,
            requested_tenant_id=tenant_id,
            actor_id=actor_id,
            action=action,
            resource_type=resource_type,
            start=start,
            end=end,
            page=page,
            per_page=per_page,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
