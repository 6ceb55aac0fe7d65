from datetime import datetime

import pytest

from app.core.enums import SequenceKind
from app.core.sequences import allocate_number


@pytest.mark.asyncio
async def test_numbers_are_sequential_per_tenant_kind_and_year(db_session, tenants) -> None:
    jan = datetime(2026, 1, 10)
    assert await allocate_number(db_session, tenants["A"], SequenceKind.INVOICE, jan) == "INV-2026-0001"
    assert await allocate_number(db_session, tenants["A"], SequenceKind.INVOICE, jan) == "INV-2026-0002"
    # Independent counters
    assert await allocate_number(db_session, tenants["B"], SequenceKind.INVOICE, jan) == "INV-2026-0001"
    assert await allocate_number(db_session, tenants["A"], SequenceKind.REFUND, jan) == "REF-2026-0001"
    assert await allocate_number(db_session, tenants["A"], SequenceKind.INVOICE, datetime(2027, 2, 1)) == "INV-2027-0001"
    await db_session.commit()


@pytest.mark.asyncio
async def test_rolled_back_allocation_is_reused(db_session, tenants) -> None:
    jan = datetime(2026, 1, 10)
    assert await allocate_number(db_session, tenants["A"], SequenceKind.REFUND, jan) == "REF-2026-0001"
    await db_session.rollback()
    assert await allocate_number(db_session, tenants["A"], SequenceKind.REFUND, jan) == "REF-2026-0001"
