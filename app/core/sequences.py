"""
Human-readable document numbers (INV-2026-0001, REF-2026-0001).

Numbers come from a locked counter row per (tenant, kind, year) instead of
counting existing rows, so two concurrent creations in the same tenant and year
can never draw the same value. The increment joins the caller's transaction:
a rollback returns the value.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import SequenceKind
from app.core.logging_config import get_logger
from app.core.models import DocumentSequence
from app.db.session import dialect_insert

logger = get_logger(__name__)


async def next_value(db: AsyncSession, tenant_id: UUID, kind: SequenceKind, year: int) -> int:
    """Advance and return the counter for (tenant, kind, year). Never commits."""
    insert = dialect_insert(db)
    # Create the counter row if absent; a concurrent creator wins silently
    await db.execute(
        insert(DocumentSequence)
        .values(tenant_id=tenant_id, kind=kind.value, year=year, last_value=0)
        .on_conflict_do_nothing(index_elements=["tenant_id", "kind", "year"])
    )
    counter = (
        await db.execute(
            select(DocumentSequence)
            .where(
                DocumentSequence.tenant_id == tenant_id,
                DocumentSequence.kind == kind.value,
                DocumentSequence.year == year,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
    ).scalar_one()
    counter.last_value += 1
    await db.flush()
    logger.debug("sequence_allocated", tenant_id=str(tenant_id), kind=kind.value, year=year, value=counter.last_value)
    return counter.last_value


async def allocate_number(db: AsyncSession, tenant_id: UUID, kind: SequenceKind, now: Optional[datetime] = None) -> str:
    year = (now or datetime.utcnow()).year
    value = await next_value(db, tenant_id, kind, year)
    return f"{kind.value}-{year}-{value:04d}"
