import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, String, Uuid

from app.db.session import Base


class Tenant(Base):
    """
    Tenant (learning centre) in the multi-tenant platform.

    - id: Internal primary key. Every ledger row carries it as tenant_id, always taken
      from the authenticated caller, never from request input.
    - organization_code: External human-readable identifier (e.g. CTR-A3K9). Never used as a FK.
    """

    __tablename__ = "tenants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_code = Column(String(20), unique=True, nullable=False, index=True)
    organization_name = Column(String(255), nullable=False)
    timezone = Column(String(100), nullable=False, default="UTC")
    status = Column(String(20), nullable=False, default="ACTIVE")
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
