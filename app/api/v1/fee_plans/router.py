"""Fee plans router: billing template catalog."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user, get_origin, reject_tenant_injection
from app.auth.rbac import check_permission
from app.auth.schemas import CurrentUser
from app.core.enums import FeePlanStatus
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import FeePlanCreate, FeePlanResponse, FeePlanUpdate, MessageResponse
from . import service

router = APIRouter(prefix="/api/v1/fee-plans", tags=["fee-plans"])


@router.post(
    "",
    response_model=FeePlanResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[
        Depends(check_permission("fee_plans", "create")),
        Depends(reject_tenant_injection),
    ],
)
async def create_fee_plan(
    payload: FeePlanCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> FeePlanResponse:
    try:
        return await service.create_fee_plan(db, current_user, payload, origin=get_origin(request))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "",
    response_model=List[FeePlanResponse],
    dependencies=[Depends(check_permission("fee_plans", "read"))],
)
async def list_fee_plans(
    fee_plan_status: Optional[FeePlanStatus] = Query(None, alias="status"),
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    tenant_id: Optional[UUID] = Query(None, description="Cross-tenant callers only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[FeePlanResponse]:
    try:
        return await service.list_fee_plans(
            db,
            current_user,
            requested_tenant_id=tenant_id,
            status_filter=fee_plan_status.value if fee_plan_status else None,
            limit=limit,
            offset=offset,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/{fee_plan_id}",
    response_model=FeePlanResponse,
    dependencies=[Depends(check_permission("fee_plans", "read"))],
)
async def get_fee_plan(
    fee_plan_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> FeePlanResponse:
    try:
        return await service.get_fee_plan(db, current_user, fee_plan_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put(
    "/{fee_plan_id}",
    response_model=FeePlanResponse,
    dependencies=[
        Depends(check_permission("fee_plans", "update")),
        Depends(reject_tenant_injection),
    ],
)
async def update_fee_plan(
    fee_plan_id: UUID,
    payload: FeePlanUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> FeePlanResponse:
    try:
        return await service.update_fee_plan(db, current_user, fee_plan_id, payload, origin=get_origin(request))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete(
    "/{fee_plan_id}",
    response_model=MessageResponse,
    dependencies=[Depends(check_permission("fee_plans", "delete"))],
)
async def delete_fee_plan(
    fee_plan_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> MessageResponse:
    try:
        return await service.delete_fee_plan(db, current_user, fee_plan_id, origin=get_origin(request))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
