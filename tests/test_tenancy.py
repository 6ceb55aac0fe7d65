import uuid

import pytest

from app.auth.schemas import CurrentUser
from app.core.exceptions import AuthenticationError, AuthorizationError, SecurityViolationError
from app.core.tenancy import (
    assert_access,
    can_access_tenant,
    reject_foreign_tenant_field,
    require_caller_tenant,
    resolve_query_tenant,
)


TENANT_A = uuid.uuid4()
TENANT_B = uuid.uuid4()


def _caller(role: str = "CENTER_ADMIN", tenant_id=TENANT_A) -> CurrentUser:
    return CurrentUser(id=uuid.uuid4(), tenant_id=tenant_id, role=role, name="Caller")


def test_resolve_query_tenant_pins_regular_caller_to_own_tenant() -> None:
    assert resolve_query_tenant(_caller(), TENANT_B) == TENANT_A
    assert resolve_query_tenant(_caller()) == TENANT_A


def test_resolve_query_tenant_honours_request_for_super_admin() -> None:
    admin = _caller(role="SUPER_ADMIN")
    assert resolve_query_tenant(admin, TENANT_B) == TENANT_B
    assert resolve_query_tenant(admin) == TENANT_A


def test_resolve_query_tenant_without_tenant_is_unauthenticated() -> None:
    with pytest.raises(AuthenticationError):
        resolve_query_tenant(_caller(tenant_id=None))
    with pytest.raises(AuthenticationError):
        require_caller_tenant(None)


def test_assert_access() -> None:
    assert_access(_caller(), TENANT_A)
    assert_access(_caller(role="SUPER_ADMIN"), TENANT_B)
    with pytest.raises(AuthorizationError):
        assert_access(_caller(), TENANT_B)
    assert can_access_tenant(_caller(), TENANT_B) is False


@pytest.mark.parametrize(
    "payload",
    [
        {"tenant_id": str(TENANT_A)},
        {"tenantId": "whatever"},
        {"centre_id": None},
        {"Center-Id": 1},
        {"line_items": [{"description": "x", "tenant_id": str(TENANT_B)}]},
        [{"nested": {"deeper": {"TENANTID": "x"}}}],
    ],
)
def test_reject_foreign_tenant_field_rejects_any_spelling_at_any_depth(payload) -> None:
    with pytest.raises(SecurityViolationError) as exc_info:
        reject_foreign_tenant_field(payload)
    assert exc_info.value.status_code == 403
    assert exc_info.value.message.startswith("SECURITY_VIOLATION")


def test_reject_foreign_tenant_field_accepts_clean_payload() -> None:
    reject_foreign_tenant_field({"student_id": str(uuid.uuid4()), "tenant_name": "x", "items": [1, "a"]})
    reject_foreign_tenant_field(None)
