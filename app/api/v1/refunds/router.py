"""Refunds router: request against a payment, then approve or reject."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user, get_origin, reject_tenant_injection
from app.auth.rbac import check_permission
from app.auth.schemas import CurrentUser
from app.core.enums import RefundStatus
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import RefundCreate, RefundDecision, RefundResponse
from . import service

router = APIRouter(prefix="/api/v1/refunds", tags=["refunds"])


@router.post(
    "",
    response_model=RefundResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[
        Depends(check_permission("refunds", "request")),
        Depends(reject_tenant_injection),
    ],
)
async def request_refund(
    payload: RefundCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> RefundResponse:
    try:
        return await service.request_refund(db, current_user, payload, origin=get_origin(request))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "",
    response_model=List[RefundResponse],
    dependencies=[Depends(check_permission("refunds", "read"))],
)
async def list_refunds(
    refund_status: Optional[RefundStatus] = Query(None, alias="status"),
    payment_id: Optional[UUID] = Query(None),
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    tenant_id: Optional[UUID] = Query(None, description="Cross-tenant callers only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[RefundResponse]:
    try:
        return await service.list_refunds(
            db,
            current_user,
            requested_tenant_id=tenant_id,
            status_filter=refund_status.value if refund_status else None,
            payment_id=payment_id,
            limit=limit,
            offset=offset,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/{refund_id}",
    response_model=RefundResponse,
    dependencies=[Depends(check_permission("refunds", "read"))],
)
async def get_refund(
    refund_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> RefundResponse:
    try:
        return await service.get_refund(db, current_user, refund_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/{refund_id}/approve",
    response_model=RefundResponse,
    dependencies=[
        Depends(check_permission("refunds", "approve")),
        Depends(reject_tenant_injection),
    ],
)
async def approve_refund(
    refund_id: UUID,
    request: Request,
    payload: Optional[RefundDecision] = None,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> RefundResponse:
    try:
        return await service.decide_refund(
            db,
            current_user,
            refund_id,
            approve=True,
            reason=payload.reason if payload else None,
            origin=get_origin(request),
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/{refund_id}/reject",
    response_model=RefundResponse,
    dependencies=[
        Depends(check_permission("refunds", "approve")),
        Depends(reject_tenant_injection),
    ],
)
async def reject_refund(
    refund_id: UUID,
    payload: RefundDecision,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> RefundResponse:
    try:
        return await service.decide_refund(
            db,
            current_user,
            refund_id,
            approve=False,
            reason=payload.reason,
            origin=get_origin(request),
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
