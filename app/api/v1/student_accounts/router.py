"""Student accounts router: read side of the per-student aggregate."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.rbac import check_any_permission
from app.auth.schemas import CurrentUser
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import ReconciliationResponse, StudentAccountResponse
from . import service

router = APIRouter(prefix="/api/v1/student-accounts", tags=["student-accounts"])


@router.get(
    "/{student_id}",
    response_model=StudentAccountResponse,
    dependencies=[Depends(check_any_permission("student_accounts", "read", "read_own"))],
)
async def get_student_account(
    student_id: UUID,
    tenant_id: Optional[UUID] = Query(None, description="Cross-tenant callers only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> StudentAccountResponse:
    try:
        return await service.get_student_account(db, current_user, student_id, requested_tenant_id=tenant_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/{student_id}/reconciliation",
    response_model=ReconciliationResponse,
    dependencies=[Depends(check_any_permission("student_accounts", "read", "read_own"))],
)
async def reconcile_student_account(
    student_id: UUID,
    tenant_id: Optional[UUID] = Query(None, description="Cross-tenant callers only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ReconciliationResponse:
    try:
        return await service.reconcile_student_account(db, current_user, student_id, requested_tenant_id=tenant_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
