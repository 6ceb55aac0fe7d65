"""
Refund workflow: request, then approve or reject.

The Refund row is authoritative. Its REFUND-typed ApprovalRequest is a projection
written in the same transaction on request and on every decision, through
``apply_refund_decision`` whichever endpoint the decision arrives from.
"""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.audit.service import record_audit_event
from app.api.v1.payments.service import refunded_total
from app.api.v1.student_accounts.service import lock_account, post_refund
from app.auth.schemas import CurrentUser
from app.core.enums import ApprovalStatus, ApprovalType, AuditAction, RefundStatus, SequenceKind
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.logging_config import get_logger
from app.core.models import ApprovalRequest, Payment, Refund
from app.core.money import ZERO, to_money
from app.core.query_specs import TenantListSpec
from app.core.sequences import allocate_number
from app.core.tenancy import assert_access
from app.db.session import transaction

from .schemas import RefundCreate, RefundResponse

logger = get_logger(__name__)

RESOURCE_TYPE = "Refund"


def refund_state(refund: Refund) -> Dict:
    return {
        "refund_number": refund.refund_number,
        "payment_id": refund.payment_id,
        "student_id": refund.student_id,
        "amount": str(to_money(refund.amount)),
        "reason": refund.reason,
        "refund_method": refund.refund_method,
        "status": refund.status,
        "approved_by": refund.approved_by,
        "approved_at": refund.approved_at,
        "decision_reason": refund.decision_reason,
    }


async def load_refund(
    db: AsyncSession,
    caller: CurrentUser,
    refund_id: UUID,
    for_update: bool = False,
) -> Refund:
    stmt = select(Refund).where(Refund.id == refund_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    refund = (await db.execute(stmt)).scalar_one_or_none()
    if not refund:
        raise NotFoundError("Refund not found")
    assert_access(caller, refund.tenant_id)
    return refund


async def request_refund(
    db: AsyncSession,
    caller: CurrentUser,
    payload: RefundCreate,
    origin: Optional[str] = None,
) -> RefundResponse:
    amount = to_money(payload.amount)
    if amount <= ZERO:
        raise ValidationError("Refund amount must be greater than zero")
    reason = payload.reason.strip()
    if not reason:
        raise ValidationError("A reason is required to request a refund")

    async with transaction(db):
        payment = (
            await db.execute(
                select(Payment)
                .where(Payment.id == payload.payment_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()
        if not payment:
            raise NotFoundError("Payment not found")
        assert_access(caller, payment.tenant_id)

        already_refunded = await refunded_total(
            db, payment.id, [RefundStatus.PENDING.value, RefundStatus.APPROVED.value]
        )
        remaining = to_money(payment.amount) - already_refunded
        if amount > remaining:
            raise ConflictError(f"Refund amount exceeds the refundable remainder of {remaining}")

        refund_number = await allocate_number(db, payment.tenant_id, SequenceKind.REFUND)
        approval = ApprovalRequest(
            tenant_id=payment.tenant_id,
            type=ApprovalType.REFUND.value,
            status=ApprovalStatus.PENDING.value,
            resource_type=RESOURCE_TYPE,
            requested_by=caller.id,
            requested_by_name=caller.name,
            request_metadata={
                "refund_number": refund_number,
                "payment_id": str(payment.id),
                "amount": str(amount),
                "reason": reason,
            },
        )
        db.add(approval)
        await db.flush()

        refund = Refund(
            tenant_id=payment.tenant_id,
            refund_number=refund_number,
            payment_id=payment.id,
            student_id=payment.student_id,
            amount=amount,
            reason=reason,
            refund_method=payload.refund_method.value if payload.refund_method else None,
            status=RefundStatus.PENDING.value,
            requested_by=caller.id,
            approval_request_id=approval.id,
        )
        db.add(refund)
        await db.flush()
        approval.resource_id = refund.id
        await db.flush()

    logger.info("refund_requested", tenant_id=str(refund.tenant_id), refund_number=refund_number, amount=str(amount))
    response = RefundResponse.model_validate(refund)
    await record_audit_event(
        db, caller, AuditAction.CREATE, RESOURCE_TYPE, refund.id,
        tenant_id=refund.tenant_id, after_state=refund_state(refund), origin=origin,
    )
    return response


async def apply_refund_decision(
    db: AsyncSession,
    caller: CurrentUser,
    refund: Refund,
    approval: Optional[ApprovalRequest],
    approve: bool,
    reason: Optional[str] = None,
) -> None:
    """Move a locked PENDING refund and its approval mirror to the decided state.

    On approval the student account is charged back with the refund amount. Must run
    inside the caller's transaction. Never commits.
    """
    if refund.status != RefundStatus.PENDING.value:
        raise ConflictError(f"Refund is already {refund.status.lower()}")
    reason = (reason or "").strip() or None
    if not approve and not reason:
        raise ValidationError("A reason is required to reject a refund")

    decided = RefundStatus.APPROVED if approve else RefundStatus.REJECTED
    now = datetime.utcnow()
    refund.status = decided.value
    refund.approved_by = caller.id
    refund.approved_at = now
    refund.decision_reason = reason
    if approval is not None:
        approval.status = decided.value
        approval.approved_by = caller.id
        approval.decided_at = now
        if reason:
            approval.comments = reason

    if approve:
        account = await lock_account(db, refund.tenant_id, refund.student_id)
        post_refund(account, to_money(refund.amount))
    await db.flush()


async def load_mirror(db: AsyncSession, refund: Refund) -> Optional[ApprovalRequest]:
    if refund.approval_request_id is None:
        return None
    return (
        await db.execute(
            select(ApprovalRequest)
            .where(ApprovalRequest.id == refund.approval_request_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()


async def decide_refund(
    db: AsyncSession,
    caller: CurrentUser,
    refund_id: UUID,
    approve: bool,
    reason: Optional[str] = None,
    origin: Optional[str] = None,
) -> RefundResponse:
    async with transaction(db):
        # Lock order is approval, refund, account on both decision paths
        refund = await load_refund(db, caller, refund_id)
        approval = await load_mirror(db, refund)
        refund = await load_refund(db, caller, refund_id, for_update=True)
        before = refund_state(refund)
        await apply_refund_decision(db, caller, refund, approval, approve, reason)

    logger.info(
        "refund_decided",
        tenant_id=str(refund.tenant_id),
        refund_number=refund.refund_number,
        status=refund.status,
    )
    response = RefundResponse.model_validate(refund)
    await record_audit_event(
        db, caller, AuditAction.APPROVE if approve else AuditAction.REJECT, RESOURCE_TYPE, refund.id,
        tenant_id=refund.tenant_id, before_state=before, after_state=refund_state(refund), origin=origin,
    )
    return response


async def list_refunds(
    db: AsyncSession,
    caller: CurrentUser,
    *,
    requested_tenant_id: Optional[UUID] = None,
    status_filter: Optional[str] = None,
    payment_id: Optional[UUID] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> List[RefundResponse]:
    spec = TenantListSpec.for_caller(
        caller,
        requested_tenant_id=requested_tenant_id,
        status=status_filter,
        limit=limit,
        offset=offset,
        payment_id=payment_id,
    )
    stmt = spec.apply(select(Refund), Refund).order_by(Refund.created_at.desc(), Refund.id)
    result = await db.execute(stmt)
    return [RefundResponse.model_validate(r) for r in result.scalars().all()]


async def get_refund(db: AsyncSession, caller: CurrentUser, refund_id: UUID) -> RefundResponse:
    return RefundResponse.model_validate(await load_refund(db, caller, refund_id))
