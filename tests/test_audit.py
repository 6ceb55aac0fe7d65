import uuid
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.api.v1.audit import service as audit_service
from app.api.v1.audit.service import REDACTED, redact
from app.core.exceptions import ImmutableRecordError
from app.core.models import AuditEvent, Invoice


def test_redact_replaces_secret_fields_at_any_depth() -> None:
    state = {
        "name": "x",
        "password": "hunter2",
        "Api-Key": "k",
        "nested": {"access_token": "still visible", "token": "t", "items": [{"secret": 1, "ok": 2}]},
        "card_number": "4111111111111111",
    }
    assert redact(state) == {
        "name": "x",
        "password": REDACTED,
        "Api-Key": REDACTED,
        "nested": {"access_token": "still visible", "token": REDACTED, "items": [{"secret": REDACTED, "ok": 2}]},
        "card_number": REDACTED,
    }
    # Input is left alone
    assert state["password"] == "hunter2"


def test_redact_passes_scalars_through() -> None:
    assert redact("password") == "password"
    assert redact(None) is None
    assert redact([1, {"privateKey": "p"}]) == [1, {"privateKey": REDACTED}]


@pytest.mark.asyncio
async def test_audit_failure_never_reaches_the_caller(
    client: AsyncClient, admin_a, student_id, monkeypatch, session_factory, caplog
) -> None:
    def _boom(*args, **kwargs):
        raise RuntimeError("audit store unavailable")

    monkeypatch.setattr(audit_service, "build_audit_event", _boom)

    response = await client.post(
        "/api/v1/invoices",
        json={
            "student_id": str(student_id),
            "due_date": "2026-01-31",
            "line_items": [{"description": "Term Fee", "unit_price": "500.00"}],
            "tax": "50.00",
        },
        headers=admin_a,
    )
    assert response.status_code == 201, response.text
    assert Decimal(response.json()["total"]) == Decimal("550.00")

    async with session_factory() as session:
        invoices = (await session.execute(select(Invoice))).scalars().all()
        events = (await session.execute(select(AuditEvent))).scalars().all()
    assert len(invoices) == 1
    assert events == []

    failures = [r for r in caplog.records if r.name == "app.audit"]
    assert [r.msg["event"] for r in failures] == ["audit_write_failed"]
    assert failures[0].msg["resource_type"] == "Invoice"


@pytest.mark.asyncio
async def test_audit_events_are_immutable(db_session, tenants) -> None:
    event = AuditEvent(
        tenant_id=tenants["A"],
        actor_id=uuid.uuid4(),
        action="CREATE",
        resource_type="Invoice",
        resource_id=uuid.uuid4(),
    )
    db_session.add(event)
    await db_session.commit()

    event.action = "DELETE"
    with pytest.raises(ImmutableRecordError):
        await db_session.flush()
    await db_session.rollback()

    await db_session.delete(event)
    with pytest.raises(ImmutableRecordError):
        await db_session.flush()


@pytest.mark.asyncio
async def test_audit_list_is_tenant_scoped_and_paginated(
    client: AsyncClient, admin_a, admin_b, auth_headers, tenants, create_invoice
) -> None:
    for _ in range(3):
        await create_invoice(admin_a, uuid.uuid4())
    await create_invoice(admin_b, uuid.uuid4())

    page = (await client.get("/api/v1/audit", params={"per_page": 2}, headers=admin_a)).json()
    assert page["total"] == 3
    assert page["total_pages"] == 2
    assert page["per_page"] == 2
    assert len(page["items"]) == 2
    first = page["items"][0]
    assert first["actor_name"] == "Finance Admin A"
    assert first["actor_role"] == "FINANCE_ADMIN"
    assert first["tenant_id"] == str(tenants["A"])
    assert first["metadata"] == {"line_item_count": 1}

    second = (await client.get("/api/v1/audit", params={"per_page": 2, "page": 2}, headers=admin_a)).json()
    assert len(second["items"]) == 1

    assert (await client.get("/api/v1/audit", params={"tenant_id": str(tenants["A"])}, headers=admin_b)).json()[
        "total"
    ] == 1

    parent = auth_headers("PARENT", tenants["A"])
    assert (await client.get("/api/v1/audit", headers=parent)).status_code == 403
