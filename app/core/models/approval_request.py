"""Generic approval request: PENDING -> APPROVED | REJECTED, both terminal."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, ForeignKey, String, Text, Uuid

from app.db.session import Base


class ApprovalRequest(Base):
    __tablename__ = "approval_requests"
    __table_args__ = (
        CheckConstraint("status IN ('PENDING','APPROVED','REJECTED')", name="chk_approval_status"),
        CheckConstraint(
            "type IN ('REFUND','FEE_WAIVER','INVOICE_ADJUSTMENT','OTHER')",
            name="chk_approval_type",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    # Dispatch tag for type-specific side effects
    type = Column(String(30), nullable=False)
    status = Column(String(20), nullable=False, default="PENDING")
    resource_type = Column(String(50), nullable=False)
    resource_id = Column(Uuid, nullable=True)
    requested_by = Column(Uuid, nullable=False)
    requested_by_name = Column(String(255), nullable=True)
    approved_by = Column(Uuid, nullable=True)
    decided_at = Column(DateTime(timezone=True), nullable=True)
    comments = Column(Text, nullable=True)
    request_metadata = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
