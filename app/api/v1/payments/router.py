"""Payments router: ledger entries recorded against invoices."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user, get_origin, reject_tenant_injection
from app.auth.rbac import check_permission
from app.auth.schemas import CurrentUser
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import PaymentCreate, PaymentRecordedResponse, PaymentResponse
from . import service

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


@router.post(
    "",
    response_model=PaymentRecordedResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[
        Depends(check_permission("payments", "create")),
        Depends(reject_tenant_injection),
    ],
)
async def record_payment(
    payload: PaymentCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> PaymentRecordedResponse:
    try:
        return await service.record_payment(db, current_user, payload, origin=get_origin(request))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "",
    response_model=List[PaymentResponse],
    dependencies=[Depends(check_permission("payments", "read"))],
)
async def list_payments(
    invoice_id: Optional[UUID] = Query(None),
    student_id: Optional[UUID] = Query(None),
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    tenant_id: Optional[UUID] = Query(None, description="Cross-tenant callers only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[PaymentResponse]:
    try:
        return await service.list_payments(
            db,
            current_user,
            requested_tenant_id=tenant_id,
            invoice_id=invoice_id,
            student_id=student_id,
            limit=limit,
            offset=offset,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/{payment_id}",
    response_model=PaymentResponse,
    dependencies=[Depends(check_permission("payments", "read"))],
)
async def get_payment(
    payment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> PaymentResponse:
    try:
        return await service.get_payment(db, current_user, payment_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
