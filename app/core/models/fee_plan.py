"""Fee plan: tenant-scoped billing template (Weekly Tuition, Term Fee, ...)."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, ForeignKey, Numeric, String, Text, UniqueConstraint, Uuid

from app.db.session import Base


class FeePlan(Base):
    """Billing template. Deletable only while no non-cancelled invoice references it."""

    __tablename__ = "fee_plans"
    __table_args__ = (
        UniqueConstraint("tenant_id", "name", name="uq_fee_plan_tenant_name"),
        CheckConstraint(
            "frequency IN ('ONE_TIME','WEEKLY','MONTHLY','TERM','ANNUAL')",
            name="chk_fee_plan_frequency",
        ),
        CheckConstraint("status IN ('ACTIVE','INACTIVE','ARCHIVED')", name="chk_fee_plan_status"),
        CheckConstraint("amount >= 0", name="chk_fee_plan_amount"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    frequency = Column(String(20), nullable=False)
    # Applicability filters: lists of course / class ids the plan is offered for
    applicable_courses = Column(JSON, nullable=True)
    applicable_classes = Column(JSON, nullable=True)
    status = Column(String(20), nullable=False, default="ACTIVE")
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
