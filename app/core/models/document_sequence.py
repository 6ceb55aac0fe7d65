"""Per-tenant, per-year counters behind invoice and refund numbers."""

import uuid

from sqlalchemy import Column, Integer, String, UniqueConstraint, Uuid

from app.db.session import Base


class DocumentSequence(Base):
    """One row per (tenant, kind, year). last_value is only advanced under a row lock."""

    __tablename__ = "document_sequences"
    __table_args__ = (
        UniqueConstraint("tenant_id", "kind", "year", name="uq_document_sequence_scope"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, nullable=False)
    kind = Column(String(10), nullable=False)  # INV, REF
    year = Column(Integer, nullable=False)
    last_value = Column(Integer, nullable=False, default=0)
