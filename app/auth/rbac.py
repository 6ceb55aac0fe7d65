from typing import Dict

from fastapi import Depends, HTTPException, status

from app.auth.dependencies import get_current_user
from app.auth.schemas import CurrentUser
from app.core.tenancy import SUPER_ADMIN


_FINANCE_STAFF: Dict[str, Dict[str, bool]] = {
    "fee_plans": {"create": True, "read": True, "update": True, "delete": True},
    "invoices": {"create": True, "read": True, "update": True},
    "payments": {"create": True, "read": True},
    "refunds": {"request": True, "read": True},
    "approvals": {"read": True, "create": True, "approve": True},
    "student_accounts": {"read": True},
    "audit": {"read": True},
}

# Static role matrix. Shape mirrors tenant role permissions: {module: {action: allowed}}
ROLE_PERMISSIONS: Dict[str, Dict[str, Dict[str, bool]]] = {
    "CENTER_ADMIN": _FINANCE_STAFF,
    "FINANCE_ADMIN": {
        **_FINANCE_STAFF,
        # Refund approval is a separate capability from requesting one
        "refunds": {"request": True, "read": True, "approve": True},
    },
    "CENTER_SUPERVISOR": {
        "approvals": {"read": True, "approve": True},
        "audit": {"read": True},
    },
    "TEACHER": {},
    "PARENT": {
        "invoices": {"read_own": True},
        "student_accounts": {"read_own": True},
    },
    "STUDENT": {
        "invoices": {"read_own": True},
        "student_accounts": {"read_own": True},
    },
}


def has_permission(current_user: CurrentUser, module: str, action: str) -> bool:
    if current_user.role == SUPER_ADMIN:
        return True
    module_perms = ROLE_PERMISSIONS.get(current_user.role, {}).get(module, {})
    return bool(module_perms.get(action, False))


def check_permission(module: str, action: str):
    """
    Dependency factory to enforce a specific permission.

    Example:
        Depends(check_permission("invoices", "create"))
    """

    async def _checker(current_user: CurrentUser = Depends(get_current_user)) -> None:
        if not has_permission(current_user, module, action):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )

    return _checker


def check_any_permission(module: str, *actions: str):
    """Like check_permission, but any one of the actions suffices (e.g. read / read_own)."""

    async def _checker(current_user: CurrentUser = Depends(get_current_user)) -> None:
        if not any(has_permission(current_user, module, a) for a in actions):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )

    return _checker
