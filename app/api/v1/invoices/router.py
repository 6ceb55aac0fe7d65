"""Invoices router."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user, get_origin, reject_tenant_injection
from app.auth.rbac import check_any_permission, check_permission
from app.auth.schemas import CurrentUser
from app.core.enums import InvoiceStatus
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import InvoiceCreate, InvoiceResponse, InvoiceUpdate
from . import service

router = APIRouter(prefix="/api/v1/invoices", tags=["invoices"])


@router.post(
    "",
    response_model=InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[
        Depends(check_permission("invoices", "create")),
        Depends(reject_tenant_injection),
    ],
)
async def create_invoice(
    payload: InvoiceCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> InvoiceResponse:
    try:
        return await service.create_invoice(db, current_user, payload, origin=get_origin(request))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "",
    response_model=List[InvoiceResponse],
    dependencies=[Depends(check_any_permission("invoices", "read", "read_own"))],
)
async def list_invoices(
    student_id: Optional[UUID] = Query(None),
    invoice_status: Optional[InvoiceStatus] = Query(None, alias="status"),
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    tenant_id: Optional[UUID] = Query(None, description="Cross-tenant callers only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[InvoiceResponse]:
    """Newest first. Callers limited to their own records only ever see their own invoices."""
    try:
        return await service.list_invoices(
            db,
            current_user,
            requested_tenant_id=tenant_id,
            student_id=student_id,
            status_filter=invoice_status.value if invoice_status else None,
            limit=limit,
            offset=offset,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    dependencies=[Depends(check_any_permission("invoices", "read", "read_own"))],
)
async def get_invoice(
    invoice_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> InvoiceResponse:
    try:
        return await service.get_invoice(db, current_user, invoice_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    dependencies=[
        Depends(check_permission("invoices", "update")),
        Depends(reject_tenant_injection),
    ],
)
async def update_invoice(
    invoice_id: UUID,
    payload: InvoiceUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> InvoiceResponse:
    try:
        return await service.update_invoice(db, current_user, invoice_id, payload, origin=get_origin(request))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
