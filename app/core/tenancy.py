"""
Tenancy guard: decides which tenant's data a caller may touch.

The tenant id always comes from the authenticated caller context, passed explicitly
to every operation. Only SUPER_ADMIN holds the cross-tenant capability.
"""

from typing import Any, Optional
from uuid import UUID

from app.auth.schemas import CurrentUser
from app.core.exceptions import AuthenticationError, AuthorizationError, SecurityViolationError


SUPER_ADMIN = "SUPER_ADMIN"

# Roles that may read and mutate data of any tenant
CROSS_TENANT_ROLES = (SUPER_ADMIN,)

# Any spelling of a tenant id a client might send. Compared after lowercasing and
# stripping "_" / "-".
_TENANT_FIELD_KEYS = frozenset({"tenantid", "centreid", "centerid"})


def _normalize_key(key: str) -> str:
    return key.replace("_", "").replace("-", "").lower()


def has_cross_tenant_access(caller: Optional[CurrentUser]) -> bool:
    return caller is not None and caller.role in CROSS_TENANT_ROLES


def require_caller_tenant(caller: Optional[CurrentUser]) -> UUID:
    """Tenant id new rows are stamped with."""
    if caller is None or caller.tenant_id is None:
        raise AuthenticationError()
    return caller.tenant_id


def resolve_query_tenant(caller: Optional[CurrentUser], requested_tenant_id: Optional[UUID] = None) -> UUID:
    """Tenant to filter a read by.

    A cross-tenant caller may name another tenant; everyone else is pinned to their own,
    whatever they asked for.
    """
    own_tenant_id = require_caller_tenant(caller)
    if requested_tenant_id is not None and has_cross_tenant_access(caller):
        return requested_tenant_id
    return own_tenant_id


def can_access_tenant(caller: Optional[CurrentUser], resource_tenant_id: UUID) -> bool:
    if caller is None or caller.tenant_id is None:
        return False
    if has_cross_tenant_access(caller):
        return True
    return caller.tenant_id == resource_tenant_id


def assert_access(caller: Optional[CurrentUser], resource_tenant_id: UUID) -> None:
    require_caller_tenant(caller)
    if not can_access_tenant(caller, resource_tenant_id):
        raise AuthorizationError()


def reject_foreign_tenant_field(payload: Any) -> None:
    """Fail if the payload names a tenant id anywhere, even the caller's own."""
    if isinstance(payload, dict):
        for key, value in payload.items():
            if isinstance(key, str) and _normalize_key(key) in _TENANT_FIELD_KEYS:
                raise SecurityViolationError(f"{key} cannot be provided in request body")
            reject_foreign_tenant_field(value)
    elif isinstance(payload, list):
        for item in payload:
            reject_foreign_tenant_field(item)
