"""Invoice and its line items. Created atomically; never deleted."""

import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from app.db.session import Base


class Invoice(Base):
    """
    Invariants: total = subtotal + tax; subtotal = sum(line_items.amount);
    0 <= paid_amount <= total; balance = total - paid_amount.
    """

    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("tenant_id", "invoice_number", name="uq_invoice_tenant_number"),
        CheckConstraint(
            "status IN ('DRAFT','SENT','PARTIAL','PAID','CANCELLED')",
            name="chk_invoice_status",
        ),
        CheckConstraint("paid_amount >= 0 AND paid_amount <= total", name="chk_invoice_paid_amount"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    invoice_number = Column(String(30), nullable=False)
    student_account_id = Column(Uuid, ForeignKey("student_accounts.id", ondelete="RESTRICT"), nullable=False)
    student_id = Column(Uuid, nullable=False, index=True)
    fee_plan_id = Column(Uuid, ForeignKey("fee_plans.id", ondelete="SET NULL"), nullable=True, index=True)
    subtotal = Column(Numeric(12, 2), nullable=False)
    tax = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)
    paid_amount = Column(Numeric(12, 2), nullable=False)
    balance = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), nullable=False, default="DRAFT")
    due_date = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)
    created_by = Column(Uuid, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    line_items = relationship(
        "InvoiceLineItem",
        back_populates="invoice",
        order_by="InvoiceLineItem.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class InvoiceLineItem(Base):
    """amount = quantity * unit_price, fixed at creation."""

    __tablename__ = "invoice_line_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_invoice_line_quantity"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    invoice_id = Column(Uuid, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(12, 2), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    invoice = relationship("Invoice", back_populates="line_items")
