import uuid
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.core.models import StudentAccount


@pytest.mark.asyncio
async def test_reconciliation_matches_replay_after_mixed_history(
    client: AsyncClient, admin_a, student_id, create_invoice, record_payment
) -> None:
    first = await create_invoice(admin_a, student_id)
    second = await create_invoice(
        admin_a, student_id, line_items=[{"description": "Lab", "quantity": 4, "unit_price": "12.35"}], tax="1.20"
    )
    await create_invoice(admin_a, student_id, tax="0")
    payment = await record_payment(admin_a, first["id"], "300.00")
    await record_payment(admin_a, second["id"], "10.00")
    refund = (
        await client.post(
            "/api/v1/refunds",
            json={"payment_id": payment["id"], "amount": "40.00", "reason": "discount"},
            headers=admin_a,
        )
    ).json()
    await client.post(f"/api/v1/refunds/{refund['id']}/approve", headers=admin_a)

    data = (await client.get(f"/api/v1/student-accounts/{student_id}/reconciliation", headers=admin_a)).json()
    assert data["in_balance"] is True
    assert data["stored"] == data["replayed"]
    # 550.00 + 50.60 + 500.00 billed, 310.00 paid, 40.00 refunded
    assert Decimal(data["replayed"]["total_billed"]) == Decimal("1100.60")
    assert Decimal(data["replayed"]["balance"]) == Decimal("830.60")


@pytest.mark.asyncio
async def test_reconciliation_reports_drift(
    client: AsyncClient, admin_a, student_id, create_invoice, session_factory
) -> None:
    await create_invoice(admin_a, student_id)
    async with session_factory() as session:
        account = (
            await session.execute(select(StudentAccount).where(StudentAccount.student_id == student_id))
        ).scalar_one()
        account.balance = Decimal("1.00")
        await session.commit()

    data = (await client.get(f"/api/v1/student-accounts/{student_id}/reconciliation", headers=admin_a)).json()
    assert data["in_balance"] is False
    assert Decimal(data["stored"]["balance"]) == Decimal("1.00")
    assert Decimal(data["replayed"]["balance"]) == Decimal("550.00")


@pytest.mark.asyncio
async def test_account_visibility(client: AsyncClient, admin_a, admin_b, auth_headers, tenants, create_invoice) -> None:
    student = uuid.uuid4()
    await create_invoice(admin_a, student)

    own = auth_headers("STUDENT", tenants["A"], user_id=student)
    assert (await client.get(f"/api/v1/student-accounts/{student}", headers=own)).status_code == 200
    other = auth_headers("STUDENT", tenants["A"])
    assert (await client.get(f"/api/v1/student-accounts/{student}", headers=other)).status_code == 403

    # Another tenant's staff find no such account in their own tenant
    assert (await client.get(f"/api/v1/student-accounts/{student}", headers=admin_b)).status_code == 404
    super_admin = auth_headers("SUPER_ADMIN", tenants["B"])
    response = await client.get(
        f"/api/v1/student-accounts/{student}", params={"tenant_id": str(tenants["A"])}, headers=super_admin
    )
    assert response.status_code == 200
    assert response.json()["tenant_id"] == str(tenants["A"])

    teacher = auth_headers("TEACHER", tenants["A"])
    assert (await client.get(f"/api/v1/student-accounts/{student}", headers=teacher)).status_code == 403
