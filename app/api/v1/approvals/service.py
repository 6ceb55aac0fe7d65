"""
Approval router: PENDING -> APPROVED | REJECTED for privileged actions.

Side effects of a decision dispatch on the request's type. REFUND requests are the
projection of a Refund and are decided through the refund workflow's own routine;
every other type only records the decision.
"""

from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import case, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.audit.service import record_audit_event
from app.api.v1.refunds.service import RESOURCE_TYPE as REFUND_RESOURCE_TYPE
from app.api.v1.refunds.service import apply_refund_decision, refund_state
from app.auth.rbac import has_permission
from app.auth.schemas import CurrentUser
from app.core.enums import ApprovalStatus, ApprovalType, AuditAction
from app.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from app.core.logging_config import get_logger
from app.core.models import ApprovalRequest, Refund
from app.core.query_specs import TenantListSpec
from app.core.tenancy import assert_access, require_caller_tenant
from app.db.session import transaction

from .schemas import ApprovalCreate, ApprovalResponse

logger = get_logger(__name__)

RESOURCE_TYPE = "ApprovalRequest"


def _approval_state(approval: ApprovalRequest) -> Dict:
    return {
        "type": approval.type,
        "status": approval.status,
        "resource_type": approval.resource_type,
        "resource_id": approval.resource_id,
        "approved_by": approval.approved_by,
        "decided_at": approval.decided_at,
        "comments": approval.comments,
    }


async def _load_approval(
    db: AsyncSession,
    caller: CurrentUser,
    approval_id: UUID,
    for_update: bool = False,
) -> ApprovalRequest:
    stmt = select(ApprovalRequest).where(ApprovalRequest.id == approval_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    approval = (await db.execute(stmt)).scalar_one_or_none()
    if not approval:
        raise NotFoundError("Approval request not found")
    assert_access(caller, approval.tenant_id)
    return approval


async def create_approval(
    db: AsyncSession,
    caller: CurrentUser,
    payload: ApprovalCreate,
    origin: Optional[str] = None,
) -> ApprovalResponse:
    tenant_id = require_caller_tenant(caller)
    if payload.type == ApprovalType.REFUND:
        raise ValidationError("Refund approvals are created by requesting a refund")
    async with transaction(db):
        approval = ApprovalRequest(
            tenant_id=tenant_id,
            type=payload.type.value,
            status=ApprovalStatus.PENDING.value,
            resource_type=payload.resource_type.strip(),
            resource_id=payload.resource_id,
            requested_by=caller.id,
            requested_by_name=caller.name,
            comments=payload.comments,
            request_metadata=payload.metadata,
        )
        db.add(approval)
        await db.flush()
    response = ApprovalResponse.model_validate(approval)
    await record_audit_event(
        db, caller, AuditAction.CREATE, RESOURCE_TYPE, approval.id,
        tenant_id=tenant_id, after_state=_approval_state(approval), origin=origin,
    )
    return response


async def list_approvals(
    db: AsyncSession,
    caller: CurrentUser,
    *,
    requested_tenant_id: Optional[UUID] = None,
    status_filter: Optional[str] = None,
    type_filter: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> List[ApprovalResponse]:
    """Pending requests first, then newest first."""
    spec = TenantListSpec.for_caller(
        caller,
        requested_tenant_id=requested_tenant_id,
        status=status_filter,
        limit=limit,
        offset=offset,
        type=type_filter,
    )
    pending_first = case((ApprovalRequest.status == ApprovalStatus.PENDING.value, 0), else_=1)
    stmt = spec.apply(select(ApprovalRequest), ApprovalRequest).order_by(
        pending_first, ApprovalRequest.created_at.desc(), ApprovalRequest.id
    )
    result = await db.execute(stmt)
    return [ApprovalResponse.model_validate(a) for a in result.scalars().all()]


async def get_approval(db: AsyncSession, caller: CurrentUser, approval_id: UUID) -> ApprovalResponse:
    return ApprovalResponse.model_validate(await _load_approval(db, caller, approval_id))


# Returns the decided Refund and its prior state when the decision reached one
DecisionHandler = Callable[
    [AsyncSession, CurrentUser, ApprovalRequest, bool, Optional[str]],
    Awaitable[Optional[Tuple[Refund, Dict]]],
]


async def _decide_generic(
    db: AsyncSession,
    caller: CurrentUser,
    approval: ApprovalRequest,
    approve: bool,
    comments: Optional[str],
) -> None:
    approval.status = (ApprovalStatus.APPROVED if approve else ApprovalStatus.REJECTED).value
    approval.approved_by = caller.id
    approval.decided_at = datetime.utcnow()
    if comments:
        approval.comments = comments
    await db.flush()


async def _decide_refund(
    db: AsyncSession,
    caller: CurrentUser,
    approval: ApprovalRequest,
    approve: bool,
    comments: Optional[str],
) -> Tuple[Refund, Dict]:
    refund = (
        await db.execute(
            select(Refund)
            .where(Refund.approval_request_id == approval.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()
    if not refund:
        raise NotFoundError("Refund not found")
    before = refund_state(refund)
    await apply_refund_decision(db, caller, refund, approval, approve, comments)
    return refund, before


_DECISION_HANDLERS: Dict[str, DecisionHandler] = {
    ApprovalType.REFUND.value: _decide_refund,
}

# Capability a decider needs on top of approvals.approve, by request type
_DECISION_PERMISSIONS: Dict[str, Tuple[str, str]] = {
    ApprovalType.REFUND.value: ("refunds", "approve"),
}


def _assert_can_decide(caller: CurrentUser, approval: ApprovalRequest) -> None:
    required = _DECISION_PERMISSIONS.get(approval.type)
    if required and not has_permission(caller, *required):
        raise AuthorizationError("Insufficient permissions")


async def decide_approval(
    db: AsyncSession,
    caller: CurrentUser,
    approval_id: UUID,
    approve: bool,
    comments: Optional[str] = None,
    origin: Optional[str] = None,
) -> ApprovalResponse:
    comments = (comments or "").strip() or None
    async with transaction(db):
        approval = await _load_approval(db, caller, approval_id, for_update=True)
        _assert_can_decide(caller, approval)
        if approval.status != ApprovalStatus.PENDING.value:
            raise ConflictError(f"Approval request is already {approval.status.lower()}")
        if not approve and not comments:
            raise ValidationError("Comments are required to reject a request")
        before = _approval_state(approval)
        handler = _DECISION_HANDLERS.get(approval.type, _decide_generic)
        decided_refund = await handler(db, caller, approval, approve, comments)

    logger.info(
        "approval_decided",
        tenant_id=str(approval.tenant_id),
        approval_id=str(approval.id),
        type=approval.type,
        status=approval.status,
    )
    action = AuditAction.APPROVE if approve else AuditAction.REJECT
    response = ApprovalResponse.model_validate(approval)
    after = _approval_state(approval)
    refund_audit = None
    if decided_refund is not None:
        refund, refund_before = decided_refund
        refund_audit = (refund.id, refund.tenant_id, refund_before, refund_state(refund))

    await record_audit_event(
        db, caller, action, RESOURCE_TYPE, approval_id,
        tenant_id=response.tenant_id, before_state=before, after_state=after, origin=origin,
        metadata={"refund_id": str(refund_audit[0])} if refund_audit else None,
    )
    if refund_audit:
        refund_id, tenant_id, refund_before, refund_after = refund_audit
        await record_audit_event(
            db, caller, action, REFUND_RESOURCE_TYPE, refund_id,
            tenant_id=tenant_id, before_state=refund_before, after_state=refund_after, origin=origin,
            metadata={"approval_request_id": str(approval_id)},
        )
    return response
