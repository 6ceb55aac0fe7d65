"""Audit event: append-only record of a privileged mutation."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Uuid, event

from app.core.exceptions import ImmutableRecordError
from app.db.session import Base


class AuditEvent(Base):
    """Immutable audit trail. Rows are inserted once and never updated or deleted."""

    __tablename__ = "audit_events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    actor_id = Column(Uuid, nullable=False, index=True)
    actor_name = Column(String(255), nullable=True)
    actor_role = Column(String(50), nullable=True)
    action = Column(String(20), nullable=False)  # CREATE, UPDATE, DELETE, APPROVE, REJECT, ESCALATE
    resource_type = Column(String(50), nullable=False, index=True)
    resource_id = Column(Uuid, nullable=False)
    before_state = Column(JSON, nullable=True)
    after_state = Column(JSON, nullable=True)
    origin = Column(String(255), nullable=True)  # forwarded client address
    event_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False, index=True)


@event.listens_for(AuditEvent, "before_update")
def prevent_audit_update(mapper, connection, target):
    raise ImmutableRecordError("AuditEvent", str(target.id), "audit events are immutable -- cannot modify")


@event.listens_for(AuditEvent, "before_delete")
def prevent_audit_delete(mapper, connection, target):
    raise ImmutableRecordError("AuditEvent", str(target.id), "audit events are immutable -- cannot delete")
