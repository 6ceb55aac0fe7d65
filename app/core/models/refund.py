"""Refund: two-phase (request, then approve/reject) reversal against a payment."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Numeric, String, Text, UniqueConstraint, Uuid

from app.db.session import Base


class Refund(Base):
    """
    Authoritative refund state. The REFUND-typed ApprovalRequest is a projection of
    this row and is always written in the same transaction.
    """

    __tablename__ = "refunds"
    __table_args__ = (
        UniqueConstraint("tenant_id", "refund_number", name="uq_refund_tenant_number"),
        CheckConstraint("status IN ('PENDING','APPROVED','REJECTED')", name="chk_refund_status"),
        CheckConstraint("amount > 0", name="chk_refund_amount_positive"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    refund_number = Column(String(30), nullable=False)
    payment_id = Column(Uuid, ForeignKey("payments.id", ondelete="RESTRICT"), nullable=False, index=True)
    student_id = Column(Uuid, nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    reason = Column(Text, nullable=False)
    refund_method = Column(String(30), nullable=True)
    status = Column(String(20), nullable=False, default="PENDING")
    requested_by = Column(Uuid, nullable=False)
    approved_by = Column(Uuid, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    decision_reason = Column(Text, nullable=True)
    approval_request_id = Column(Uuid, ForeignKey("approval_requests.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
