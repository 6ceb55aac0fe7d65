"""Approvals router: generic privileged-action requests and their decisions."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user, get_origin, reject_tenant_injection
from app.auth.rbac import check_permission
from app.auth.schemas import CurrentUser
from app.core.enums import ApprovalStatus, ApprovalType
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import ApprovalCreate, ApprovalDecision, ApprovalResponse
from . import service

router = APIRouter(prefix="/api/v1/approvals", tags=["approvals"])


@router.get(
    "",
    response_model=List[ApprovalResponse],
    dependencies=[Depends(check_permission("approvals", "read"))],
)
async def list_approvals(
    approval_status: Optional[ApprovalStatus] = Query(None, alias="status"),
    approval_type: Optional[ApprovalType] = Query(None, alias="type"),
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    tenant_id: Optional[UUID] = Query(None, description="Cross-tenant callers only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[ApprovalResponse]:
    try:
        return await service.list_approvals(
            db,
            current_user,
            requested_tenant_id=tenant_id,
            status_filter=approval_status.value if approval_status else None,
            type_filter=approval_type.value if approval_type else None,
            limit=limit,
            offset=offset,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "",
    response_model=ApprovalResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[
        Depends(check_permission("approvals", "create")),
        Depends(reject_tenant_injection),
    ],
)
async def create_approval(
    payload: ApprovalCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApprovalResponse:
    try:
        return await service.create_approval(db, current_user, payload, origin=get_origin(request))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/{approval_id}",
    response_model=ApprovalResponse,
    dependencies=[Depends(check_permission("approvals", "read"))],
)
async def get_approval(
    approval_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApprovalResponse:
    try:
        return await service.get_approval(db, current_user, approval_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/{approval_id}/approve",
    response_model=ApprovalResponse,
    dependencies=[
        Depends(check_permission("approvals", "approve")),
        Depends(reject_tenant_injection),
    ],
)
async def approve_request(
    approval_id: UUID,
    request: Request,
    payload: Optional[ApprovalDecision] = None,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApprovalResponse:
    try:
        return await service.decide_approval(
            db,
            current_user,
            approval_id,
            approve=True,
            comments=payload.comments if payload else None,
            origin=get_origin(request),
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/{approval_id}/reject",
    response_model=ApprovalResponse,
    dependencies=[
        Depends(check_permission("approvals", "approve")),
        Depends(reject_tenant_injection),
    ],
)
async def reject_request(
    approval_id: UUID,
    payload: ApprovalDecision,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApprovalResponse:
    try:
        return await service.decide_approval(
            db,
            current_user,
            approval_id,
            approve=False,
            comments=payload.comments,
            origin=get_origin(request),
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
