"""
Audit recorder: append-only before/after records of privileged mutations.

Recording is best-effort relative to the ledger. It runs after the business
transaction has committed, in its own commit; a failure is written to the
``app.audit`` operational log and never reaches the caller.
"""

import math
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from fastapi.encoders import jsonable_encoder
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.schemas import CurrentUser
from app.core.enums import AuditAction
from app.core.logging_config import get_logger
from app.core.models import AuditEvent
from app.core.query_specs import PageSpec
from app.core.tenancy import resolve_query_tenant

from .schemas import AuditEventPage, AuditEventResponse

logger = get_logger("app.audit")

REDACTED = "[REDACTED]"

# Compared against keys lowercased with "_" and "-" removed
_SENSITIVE_KEYS = frozenset(
    {"password", "passwordhash", "token", "secret", "apikey", "privatekey", "cardnumber", "cvv"}
)


def _is_sensitive(key: Any) -> bool:
    if not isinstance(key, str):
        return False
    return key.replace("_", "").replace("-", "").lower() in _SENSITIVE_KEYS


def redact(state: Any) -> Any:
    """Return a copy of state with secret-shaped fields replaced, at any depth."""
    if isinstance(state, dict):
        return {k: (REDACTED if _is_sensitive(k) else redact(v)) for k, v in state.items()}
    if isinstance(state, (list, tuple)):
        return [redact(v) for v in state]
    return state


def _snapshot(state: Optional[Any]) -> Optional[Any]:
    if state is None:
        return None
    return redact(jsonable_encoder(state))


def build_audit_event(
    actor: CurrentUser,
    action: AuditAction,
    resource_type: str,
    resource_id: UUID,
    *,
    tenant_id: UUID,
    before_state: Optional[Any] = None,
    after_state: Optional[Any] = None,
    origin: Optional[str] = None,
    metadata: Optional[Any] = None,
) -> AuditEvent:
    return AuditEvent(
        tenant_id=tenant_id,
        actor_id=actor.id,
        actor_name=actor.name or "Unknown",
        actor_role=actor.role,
        action=action.value,
        resource_type=resource_type,
        resource_id=resource_id,
        before_state=_snapshot(before_state),
        after_state=_snapshot(after_state),
        origin=origin,
        event_metadata=_snapshot(metadata),
        created_at=datetime.utcnow(),
    )


async def record_audit_event(
    db: AsyncSession,
    actor: CurrentUser,
    action: AuditAction,
    resource_type: str,
    resource_id: UUID,
    *,
    tenant_id: UUID,
    before_state: Optional[Any] = None,
    after_state: Optional[Any] = None,
    origin: Optional[str] = None,
    metadata: Optional[Any] = None,
) -> Optional[AuditEvent]:
    """Append one audit event and commit it. Call only after the business commit.

    Returns None when the write failed; the failure is logged, not raised.
    """
    try:
        entry = build_audit_event(
            actor,
            action,
            resource_type,
            resource_id,
            tenant_id=tenant_id,
            before_state=before_state,
            after_state=after_state,
            origin=origin,
            metadata=metadata,
        )
        db.add(entry)
        await db.commit()
        return entry
    except Exception:
        logger.exception(
            "audit_write_failed",
            action=action.value,
            resource_type=resource_type,
            resource_id=str(resource_id),
            tenant_id=str(tenant_id),
            actor_id=str(actor.id),
        )
        try:
            await db.rollback()
        except Exception:
            logger.exception("audit_rollback_failed", resource_id=str(resource_id))
        return None


async def list_audit_events(
    db: AsyncSession,
    caller: CurrentUser,
    *,
    requested_tenant_id: Optional[UUID] = None,
    actor_id: Optional[UUID] = None,
    action: Optional[AuditAction] = None,
    resource_type: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    page: int = 1,
    per_page: Optional[int] = None,
) -> AuditEventPage:
    tenant_id = resolve_query_tenant(caller, requested_tenant_id)
    page = max(1, page)
    window = PageSpec.of(per_page, 0)

    conditions = [AuditEvent.tenant_id == tenant_id]
    if actor_id is not None:
        conditions.append(AuditEvent.actor_id == actor_id)
    if action is not None:
        conditions.append(AuditEvent.action == action.value)
    if resource_type:
        conditions.append(AuditEvent.resource_type == resource_type)
    if start is not None:
        conditions.append(AuditEvent.created_at >= start)
    if end is not None:
        conditions.append(AuditEvent.created_at <= end)

    total = (await db.execute(select(func.count(AuditEvent.id)).where(*conditions))).scalar() or 0
    rows = (
        await db.execute(
            select(AuditEvent)
            .where(*conditions)
            .order_by(AuditEvent.created_at.desc(), AuditEvent.id)
            .limit(window.limit)
            .offset((page - 1) * window.limit)
        )
    ).scalars().all()
    return AuditEventPage(
        items=[AuditEventResponse.model_validate(r) for r in rows],
        page=page,
        per_page=window.limit,
        total=total,
        total_pages=math.ceil(total / window.limit) if total else 0,
    )
