from datetime import date
from decimal import Decimal

import pytest
from httpx import AsyncClient


@pytest.fixture()
async def tenant_a_history(client: AsyncClient, admin_a, student_id, create_invoice, record_payment):
    """An invoice in centre A with one payment and a pending refund on it."""
    invoice = await create_invoice(admin_a, student_id)
    payment = await record_payment(admin_a, invoice["id"], "100.00")
    response = await client.post(
        "/api/v1/refunds",
        json={"payment_id": payment["id"], "amount": "20.00", "reason": "overcharge"},
        headers=admin_a,
    )
    assert response.status_code == 201, response.text
    return invoice, payment, response.json()


async def _snapshot(client: AsyncClient, headers, invoice_id: str, student_id) -> tuple:
    invoice = (await client.get(f"/api/v1/invoices/{invoice_id}", headers=headers)).json()
    account = (await client.get(f"/api/v1/student-accounts/{student_id}", headers=headers)).json()
    return (
        invoice["status"],
        Decimal(invoice["paid_amount"]),
        Decimal(invoice["balance"]),
        invoice["due_date"],
        Decimal(account["total_billed"]),
        Decimal(account["total_paid"]),
        Decimal(account["total_refunded"]),
        Decimal(account["balance"]),
    )


@pytest.mark.asyncio
async def test_other_tenant_cannot_pay_or_edit_an_invoice(
    client: AsyncClient, admin_a, admin_b, student_id, tenant_a_history
) -> None:
    invoice, _, _ = tenant_a_history
    before = await _snapshot(client, admin_a, invoice["id"], student_id)

    response = await client.post(
        "/api/v1/payments",
        json={
            "invoice_id": invoice["id"],
            "amount": "50.00",
            "method": "CASH",
            "payment_date": date(2026, 1, 20).isoformat(),
        },
        headers=admin_b,
    )
    assert response.status_code == 403

    response = await client.patch(
        f"/api/v1/invoices/{invoice['id']}", json={"due_date": "2026-03-01"}, headers=admin_b
    )
    assert response.status_code == 403
    response = await client.patch(
        f"/api/v1/invoices/{invoice['id']}", json={"status": "CANCELLED"}, headers=admin_b
    )
    assert response.status_code == 403

    assert await _snapshot(client, admin_a, invoice["id"], student_id) == before
    assert len((await client.get("/api/v1/payments", headers=admin_a)).json()) == 1


@pytest.mark.asyncio
async def test_other_tenant_cannot_decide_a_refund(
    client: AsyncClient, admin_a, admin_b, student_id, tenant_a_history
) -> None:
    invoice, _, refund = tenant_a_history
    before = await _snapshot(client, admin_a, invoice["id"], student_id)

    assert (await client.post(f"/api/v1/refunds/{refund['id']}/approve", headers=admin_b)).status_code == 403
    response = await client.post(
        f"/api/v1/refunds/{refund['id']}/reject", json={"reason": "not ours"}, headers=admin_b
    )
    assert response.status_code == 403

    approval_id = refund["approval_request_id"]
    assert (await client.post(f"/api/v1/approvals/{approval_id}/approve", headers=admin_b)).status_code == 403
    response = await client.post(
        f"/api/v1/approvals/{approval_id}/reject", json={"comments": "not ours"}, headers=admin_b
    )
    assert response.status_code == 403

    stored = (await client.get(f"/api/v1/refunds/{refund['id']}", headers=admin_a)).json()
    assert stored["status"] == "PENDING"
    assert stored["approved_by"] is None
    approval = (await client.get(f"/api/v1/approvals/{approval_id}", headers=admin_a)).json()
    assert approval["status"] == "PENDING"
    assert await _snapshot(client, admin_a, invoice["id"], student_id) == before

    # Nothing was audited on the forbidden attempts
    audit = (await client.get("/api/v1/audit", params={"action": "APPROVE"}, headers=admin_a)).json()
    assert audit["total"] == 0
