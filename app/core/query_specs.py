"""
List filters as explicit values.

Each list operation builds one frozen spec from the caller and the requested filters.
The spec is the whole legal filter set: role restrictions (own-records-only callers,
tenant pinning) are applied when it is built, never by editing a filter afterwards.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple
from uuid import UUID

from sqlalchemy import Select

from app.auth.rbac import has_permission
from app.auth.schemas import CurrentUser
from app.core.config import settings
from app.core.exceptions import AuthorizationError
from app.core.tenancy import resolve_query_tenant


class ListScope(str, Enum):
    ALL = "ALL"
    OWN = "OWN"


@dataclass(frozen=True)
class PageSpec:
    limit: int
    offset: int = 0

    @classmethod
    def of(cls, limit: Optional[int] = None, offset: Optional[int] = None) -> "PageSpec":
        if limit is None:
            limit = settings.default_page_size
        limit = max(1, min(limit, settings.max_page_size))
        return cls(limit=limit, offset=max(0, offset or 0))


def student_scope(caller: CurrentUser, module: str, requested_student_id: Optional[UUID]) -> tuple[ListScope, Optional[UUID]]:
    """ALL callers keep the requested student filter; OWN callers are pinned to themselves."""
    if has_permission(caller, module, "read"):
        return ListScope.ALL, requested_student_id
    if has_permission(caller, module, "read_own"):
        return ListScope.OWN, caller.id
    raise AuthorizationError("Insufficient permissions")


def assert_student_visible(caller: CurrentUser, module: str, student_id: UUID) -> None:
    scope, pinned = student_scope(caller, module, student_id)
    if scope is ListScope.OWN and pinned != student_id:
        raise AuthorizationError()


@dataclass(frozen=True)
class InvoiceQuerySpec:
    tenant_id: UUID
    scope: ListScope
    student_id: Optional[UUID]
    status: Optional[str]
    page: PageSpec

    @classmethod
    def for_caller(
        cls,
        caller: CurrentUser,
        *,
        requested_tenant_id: Optional[UUID] = None,
        student_id: Optional[UUID] = None,
        status: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> "InvoiceQuerySpec":
        scope, student_id = student_scope(caller, "invoices", student_id)
        return cls(
            tenant_id=resolve_query_tenant(caller, requested_tenant_id),
            scope=scope,
            student_id=student_id,
            status=status,
            page=PageSpec.of(limit, offset),
        )

    def apply(self, stmt: Select, model) -> Select:
        stmt = stmt.where(model.tenant_id == self.tenant_id)
        if self.student_id is not None:
            stmt = stmt.where(model.student_id == self.student_id)
        if self.status is not None:
            stmt = stmt.where(model.status == self.status)
        return stmt.order_by(model.created_at.desc(), model.id).limit(self.page.limit).offset(self.page.offset)


@dataclass(frozen=True)
class TenantListSpec:
    """Tenant-pinned list with a status filter and exact-match column filters.

    Ordering is left to the caller. ``equals`` holds (column, value) pairs sorted by
    column name.
    """

    tenant_id: UUID
    status: Optional[str]
    page: PageSpec
    equals: Tuple[Tuple[str, Any], ...] = ()

    @classmethod
    def for_caller(
        cls,
        caller: CurrentUser,
        *,
        requested_tenant_id: Optional[UUID] = None,
        status: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        **equals: Any,
    ) -> "TenantListSpec":
        return cls(
            tenant_id=resolve_query_tenant(caller, requested_tenant_id),
            status=status,
            page=PageSpec.of(limit, offset),
            equals=tuple(sorted((k, v) for k, v in equals.items() if v is not None)),
        )

    def apply(self, stmt: Select, model) -> Select:
        stmt = stmt.where(model.tenant_id == self.tenant_id)
        if self.status is not None:
            stmt = stmt.where(model.status == self.status)
        for column, value in self.equals:
            stmt = stmt.where(getattr(model, column) == value)
        return stmt.limit(self.page.limit).offset(self.page.offset)
