"""Fee plan catalog: tenant-scoped CRUD over billing templates, audited."""

from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.audit.service import record_audit_event
from app.auth.schemas import CurrentUser
from app.core.config import settings
from app.core.enums import AuditAction, InvoiceStatus
from app.core.exceptions import ConflictError, NotFoundError
from app.core.models import FeePlan, Invoice
from app.core.money import to_money
from app.core.query_specs import TenantListSpec
from app.core.tenancy import assert_access, require_caller_tenant
from app.db.session import transaction

from .schemas import FeePlanCreate, FeePlanResponse, FeePlanUpdate, MessageResponse

RESOURCE_TYPE = "FeePlan"


def _fee_plan_state(fp: FeePlan) -> Dict:
    return {
        "name": fp.name,
        "amount": str(to_money(fp.amount)),
        "currency": fp.currency,
        "frequency": fp.frequency,
        "status": fp.status,
    }


def _fp_to_response(fp: FeePlan, invoice_count: int = 0) -> FeePlanResponse:
    return FeePlanResponse(
        id=fp.id,
        tenant_id=fp.tenant_id,
        name=fp.name,
        description=fp.description,
        amount=to_money(fp.amount),
        currency=fp.currency,
        frequency=fp.frequency,
        applicable_courses=fp.applicable_courses,
        applicable_classes=fp.applicable_classes,
        status=fp.status,
        invoice_count=invoice_count,
        created_at=fp.created_at,
        updated_at=fp.updated_at,
    )


async def _invoice_count(db: AsyncSession, fee_plan_id: UUID, active_only: bool = False) -> int:
    stmt = select(func.count(Invoice.id)).where(Invoice.fee_plan_id == fee_plan_id)
    if active_only:
        stmt = stmt.where(Invoice.status != InvoiceStatus.CANCELLED.value)
    return (await db.execute(stmt)).scalar() or 0


async def _get_fee_plan(db: AsyncSession, caller: CurrentUser, fee_plan_id: UUID, for_update: bool = False) -> FeePlan:
    stmt = select(FeePlan).where(FeePlan.id == fee_plan_id)
    if for_update:
        stmt = stmt.with_for_update()
    fp = (await db.execute(stmt)).scalar_one_or_none()
    if not fp:
        raise NotFoundError("Fee plan not found")
    assert_access(caller, fp.tenant_id)
    return fp


async def create_fee_plan(
    db: AsyncSession,
    caller: CurrentUser,
    payload: FeePlanCreate,
    origin: Optional[str] = None,
) -> FeePlanResponse:
    tenant_id = require_caller_tenant(caller)
    try:
        async with transaction(db):
            fp = FeePlan(
                tenant_id=tenant_id,
                name=payload.name.strip(),
                description=(payload.description or "").strip() or None,
                amount=to_money(payload.amount),
                currency=payload.currency or settings.default_currency,
                frequency=payload.frequency.value,
                applicable_courses=payload.applicable_courses,
                applicable_classes=payload.applicable_classes,
                status=payload.status.value,
            )
            db.add(fp)
            await db.flush()
    except IntegrityError:
        raise ConflictError("A fee plan with this name already exists")
    response = _fp_to_response(fp)
    await record_audit_event(
        db, caller, AuditAction.CREATE, RESOURCE_TYPE, fp.id,
        tenant_id=tenant_id, after_state=_fee_plan_state(fp), origin=origin,
    )
    return response


async def list_fee_plans(
    db: AsyncSession,
    caller: CurrentUser,
    *,
    requested_tenant_id: Optional[UUID] = None,
    status_filter: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> List[FeePlanResponse]:
    spec = TenantListSpec.for_caller(
        caller, requested_tenant_id=requested_tenant_id, status=status_filter, limit=limit, offset=offset
    )
    count_subq = (
        select(Invoice.fee_plan_id, func.count(Invoice.id).label("invoice_count"))
        .where(Invoice.fee_plan_id.is_not(None))
        .group_by(Invoice.fee_plan_id)
    ).subquery()
    stmt = select(FeePlan, func.coalesce(count_subq.c.invoice_count, 0)).outerjoin(
        count_subq, FeePlan.id == count_subq.c.fee_plan_id
    )
    stmt = spec.apply(stmt, FeePlan).order_by(FeePlan.created_at.desc(), FeePlan.name)
    rows = (await db.execute(stmt)).all()
    return [_fp_to_response(fp, count) for fp, count in rows]


async def get_fee_plan(db: AsyncSession, caller: CurrentUser, fee_plan_id: UUID) -> FeePlanResponse:
    fp = await _get_fee_plan(db, caller, fee_plan_id)
    return _fp_to_response(fp, await _invoice_count(db, fp.id))


async def update_fee_plan(
    db: AsyncSession,
    caller: CurrentUser,
    fee_plan_id: UUID,
    payload: FeePlanUpdate,
    origin: Optional[str] = None,
) -> FeePlanResponse:
    try:
        async with transaction(db):
            fp = await _get_fee_plan(db, caller, fee_plan_id, for_update=True)
            before = _fee_plan_state(fp)
            changes = payload.model_dump(exclude_unset=True)
            if "name" in changes and changes["name"] is not None:
                fp.name = changes["name"].strip()
            if "description" in changes:
                fp.description = (changes["description"] or "").strip() or None
            if changes.get("amount") is not None:
                fp.amount = to_money(changes["amount"])
            if changes.get("currency") is not None:
                fp.currency = changes["currency"]
            if changes.get("frequency") is not None:
                fp.frequency = payload.frequency.value
            if "applicable_courses" in changes:
                fp.applicable_courses = changes["applicable_courses"]
            if "applicable_classes" in changes:
                fp.applicable_classes = changes["applicable_classes"]
            if changes.get("status") is not None:
                fp.status = payload.status.value
            await db.flush()
            invoice_count = await _invoice_count(db, fp.id)
    except IntegrityError:
        raise ConflictError("A fee plan with this name already exists")
    response = _fp_to_response(fp, invoice_count)
    await record_audit_event(
        db, caller, AuditAction.UPDATE, RESOURCE_TYPE, fp.id,
        tenant_id=fp.tenant_id, before_state=before, after_state=_fee_plan_state(fp), origin=origin,
    )
    return response


async def delete_fee_plan(
    db: AsyncSession,
    caller: CurrentUser,
    fee_plan_id: UUID,
    origin: Optional[str] = None,
) -> MessageResponse:
    async with transaction(db):
        fp = await _get_fee_plan(db, caller, fee_plan_id, for_update=True)
        if await _invoice_count(db, fp.id, active_only=True) > 0:
            raise ConflictError("Cannot delete fee plan with active invoices")
        before = _fee_plan_state(fp)
        tenant_id, plan_id = fp.tenant_id, fp.id
        await db.delete(fp)
    await record_audit_event(
        db, caller, AuditAction.DELETE, RESOURCE_TYPE, plan_id,
        tenant_id=tenant_id, before_state=before, origin=origin,
    )
    return MessageResponse(message="Fee plan deleted successfully")
