# Overview: Role-based gating of admin-only operations.

"""
Permission Service

Two roles exist: admin and cashier. Cashiers can sell, browse inventory
(without cost and supplier columns) and see the dashboard. Everything in
ADMIN_OPERATIONS needs the admin role.

The routes enforce this on every request; it is the authorization boundary
of the API, not just a hint for the UI.
"""

from __future__ import annotations

ADMIN_OPERATIONS = frozenset({
    "MANAGE_EXPENSES",
    "VIEW_REPORTS",
    "EXPORT_REPORTS",
    "MANAGE_SUPPLIERS",
    "MANAGE_DELIVERIES",
    "MANAGE_PRODUCTS",
    "MANAGE_SETTINGS",
    "MANAGE_USERS",
    "EXPORT_BACKUP",
    "RUN_MIGRATION",
    "VIEW_COST_COLUMNS",
    "DELETE_SALES",
})

CASHIER_OPERATIONS = frozenset({
    "VIEW_DASHBOARD",
    "VIEW_INVENTORY",
    "CREATE_SALE",
    "VIEW_SALES",
})


class PermissionDeniedError(Exception):
    """Raised when the user's role does not allow an operation."""


def role_of(user) -> str:
    role = getattr(user, "role", None)
    return role if role in ("admin", "cashier") else "cashier"


def is_admin(user) -> bool:
    return user is not None and role_of(user) == "admin"


def can(user, operation: str) -> bool:
    if user is None:
        return False
    if operation in CASHIER_OPERATIONS:
        return True
    if operation in ADMIN_OPERATIONS:
        return is_admin(user)
    raise ValueError(f"Unknown operation: {operation}")


def require(user, operation: str) -> None:
    if not can(user, operation):
        raise PermissionDeniedError(f"{operation} requires the admin role")


def get_user_permissions(user) -> list[str]:
    allowed = set(CASHIER_OPERATIONS)
    if is_admin(user):
        allowed |= ADMIN_OPERATIONS
    return sorted(allowed)
