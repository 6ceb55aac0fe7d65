from decimal import Decimal

import pytest
from httpx import AsyncClient


FEE_PLAN = {
    "name": "Monthly Tuition",
    "description": "Grade 5 tuition",
    "amount": "250.00",
    "frequency": "MONTHLY",
    "applicable_classes": ["grade-5"],
}


async def _create_plan(client: AsyncClient, headers, **overrides) -> dict:
    response = await client.post("/api/v1/fee-plans", json={**FEE_PLAN, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_fee_plan_crud(client: AsyncClient, admin_a, tenants) -> None:
    plan = await _create_plan(client, admin_a)
    assert plan["tenant_id"] == str(tenants["A"])
    assert plan["currency"] == "USD"
    assert plan["status"] == "ACTIVE"
    assert Decimal(plan["amount"]) == Decimal("250.00")

    listed = (await client.get("/api/v1/fee-plans", headers=admin_a)).json()
    assert [p["id"] for p in listed] == [plan["id"]]

    response = await client.put(
        f"/api/v1/fee-plans/{plan['id']}", json={"amount": "275.50", "status": "INACTIVE"}, headers=admin_a
    )
    assert response.status_code == 200, response.text
    assert Decimal(response.json()["amount"]) == Decimal("275.50")
    assert response.json()["name"] == "Monthly Tuition"

    inactive = (await client.get("/api/v1/fee-plans", params={"status": "INACTIVE"}, headers=admin_a)).json()
    assert len(inactive) == 1

    response = await client.delete(f"/api/v1/fee-plans/{plan['id']}", headers=admin_a)
    assert response.status_code == 200
    assert (await client.get(f"/api/v1/fee-plans/{plan['id']}", headers=admin_a)).status_code == 404

    audit = (await client.get("/api/v1/audit", params={"resource_type": "FeePlan"}, headers=admin_a)).json()
    assert [e["action"] for e in audit["items"]] == ["DELETE", "UPDATE", "CREATE"]
    update_event = audit["items"][1]
    assert update_event["before_state"]["amount"] == "250.00"
    assert update_event["after_state"]["amount"] == "275.50"


@pytest.mark.asyncio
async def test_duplicate_name_conflicts(client: AsyncClient, admin_a, admin_b) -> None:
    await _create_plan(client, admin_a)
    response = await client.post("/api/v1/fee-plans", json=FEE_PLAN, headers=admin_a)
    assert response.status_code == 409
    # Names are unique per tenant only
    await _create_plan(client, admin_b)


@pytest.mark.asyncio
async def test_delete_refused_while_active_invoice_references_plan(
    client: AsyncClient, admin_a, student_id, create_invoice
) -> None:
    plan = await _create_plan(client, admin_a)
    invoice = await create_invoice(admin_a, student_id, fee_plan_id=plan["id"])

    fetched = (await client.get(f"/api/v1/fee-plans/{plan['id']}", headers=admin_a)).json()
    assert fetched["invoice_count"] == 1

    response = await client.delete(f"/api/v1/fee-plans/{plan['id']}", headers=admin_a)
    assert response.status_code == 409
    assert response.json()["detail"] == "Cannot delete fee plan with active invoices"

    response = await client.patch(f"/api/v1/invoices/{invoice['id']}", json={"status": "CANCELLED"}, headers=admin_a)
    assert response.status_code == 200
    response = await client.delete(f"/api/v1/fee-plans/{plan['id']}", headers=admin_a)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_fee_plans_are_tenant_isolated(client: AsyncClient, admin_a, admin_b, auth_headers, tenants) -> None:
    plan = await _create_plan(client, admin_a)

    assert (await client.get(f"/api/v1/fee-plans/{plan['id']}", headers=admin_b)).status_code == 403
    assert (await client.put(f"/api/v1/fee-plans/{plan['id']}", json={"name": "x"}, headers=admin_b)).status_code == 403
    assert (await client.delete(f"/api/v1/fee-plans/{plan['id']}", headers=admin_b)).status_code == 403
    # Asking for another tenant's list silently yields one's own
    listed = (await client.get("/api/v1/fee-plans", params={"tenant_id": str(tenants["A"])}, headers=admin_b)).json()
    assert listed == []

    super_admin = auth_headers("SUPER_ADMIN", tenants["B"])
    listed = (await client.get("/api/v1/fee-plans", params={"tenant_id": str(tenants["A"])}, headers=super_admin)).json()
    assert [p["id"] for p in listed] == [plan["id"]]


@pytest.mark.asyncio
async def test_tenant_id_in_body_is_a_security_violation(client: AsyncClient, admin_a, tenants) -> None:
    # Even the caller's own tenant id, and even when the rest of the body is invalid
    for body in ({**FEE_PLAN, "tenant_id": str(tenants["A"])}, {"tenantId": str(tenants["B"])}):
        response = await client.post("/api/v1/fee-plans", json=body, headers=admin_a)
        assert response.status_code == 403
        assert response.json()["detail"].startswith("SECURITY_VIOLATION")
    listed = (await client.get("/api/v1/fee-plans", headers=admin_a)).json()
    assert listed == []


@pytest.mark.asyncio
async def test_fee_plan_permissions(client: AsyncClient, auth_headers, tenants) -> None:
    parent = auth_headers("PARENT", tenants["A"])
    assert (await client.post("/api/v1/fee-plans", json=FEE_PLAN, headers=parent)).status_code == 403
    assert (await client.get("/api/v1/fee-plans", headers=parent)).status_code == 403
    assert (await client.get("/api/v1/fee-plans")).status_code == 401
    assert (await client.get("/api/v1/fee-plans", headers={"Authorization": "Bearer nope"})).status_code == 401
