"""Student account: running billed/paid/refunded/balance aggregate per (tenant, student)."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, UniqueConstraint, Uuid

from app.db.session import Base


class StudentAccount(Base):
    """
    Denormalized aggregate. Must always equal the replay of the student's invoices,
    payments and approved refunds; only mutated inside the same transaction as the
    ledger row that caused the change.
    """

    __tablename__ = "student_accounts"
    __table_args__ = (
        UniqueConstraint("tenant_id", "student_id", name="uq_student_account_tenant_student"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    # Identity comes from the external identity provider; no local users table
    student_id = Column(Uuid, nullable=False, index=True)
    total_billed = Column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    total_paid = Column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    total_refunded = Column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    balance = Column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
