import os
import uuid
from datetime import date
from typing import AsyncGenerator, Callable, Dict, Optional

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.main import app
from app.auth.security import create_access_token
from app.core.models import Tenant
from app.db.session import Base, get_db


TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture()
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh in-memory database per test; every request gets its own session."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield factory
    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture()
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture()
async def tenants(session_factory: async_sessionmaker) -> Dict[str, uuid.UUID]:
    """Two learning centres, A and B."""
    tenant_a = Tenant(organization_code="CTR-A001", organization_name="Centre A")
    tenant_b = Tenant(organization_code="CTR-B001", organization_name="Centre B")
    async with session_factory() as session:
        session.add_all([tenant_a, tenant_b])
        await session.commit()
    return {"A": tenant_a.id, "B": tenant_b.id}


@pytest.fixture()
async def client(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def auth_headers() -> Callable[..., Dict[str, str]]:
    """Bearer headers for a caller of the given role and tenant."""

    def _make(
        role: str,
        tenant_id: Optional[uuid.UUID],
        user_id: Optional[uuid.UUID] = None,
        name: str = "Test User",
    ) -> Dict[str, str]:
        claims = {
            "sub": str(user_id or uuid.uuid4()),
            "role": role,
            "tenant_id": str(tenant_id) if tenant_id else None,
            "name": name,
        }
        token = create_access_token(subject=claims)
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture()
def admin_a(auth_headers, tenants) -> Dict[str, str]:
    return auth_headers("FINANCE_ADMIN", tenants["A"], name="Finance Admin A")


@pytest.fixture()
def admin_b(auth_headers, tenants) -> Dict[str, str]:
    return auth_headers("FINANCE_ADMIN", tenants["B"], name="Finance Admin B")


@pytest.fixture()
def student_id() -> uuid.UUID:
    return uuid.uuid4()


def invoice_payload(student_id: uuid.UUID, **overrides) -> Dict:
    payload = {
        "student_id": str(student_id),
        "due_date": date(2026, 1, 31).isoformat(),
        "line_items": [{"description": "Term Fee", "quantity": 1, "unit_price": "500.00"}],
        "tax": "50.00",
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def create_invoice(client: AsyncClient) -> Callable:
    async def _create(headers: Dict[str, str], student_id: uuid.UUID, **overrides) -> Dict:
        response = await client.post("/api/v1/invoices", json=invoice_payload(student_id, **overrides), headers=headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create


@pytest.fixture()
def record_payment(client: AsyncClient) -> Callable:
    async def _record(headers: Dict[str, str], invoice_id: str, amount: str, method: str = "CASH") -> Dict:
        response = await client.post(
            "/api/v1/payments",
            json={
                "invoice_id": invoice_id,
                "amount": amount,
                "method": method,
                "payment_date": date(2026, 1, 15).isoformat(),
            },
            headers=headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _record
