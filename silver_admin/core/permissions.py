"""
Permission system for RBAC

Permission string format: "resource.action", "resource.*" for every action on
a resource, or "*" for everything. Role grants come from a fixed table built
once at import time and exposed read-only.
"""
import logging
from enum import Enum
from types import MappingProxyType
from typing import Iterable, List, Mapping, Tuple

from fastapi import Depends

from silver_admin.core.exceptions import ForbiddenError
from silver_admin.models.admin import Admin

logger = logging.getLogger(__name__)

GLOBAL_WILDCARD = "*"
SEPARATOR = "."


class AdminRole(str, Enum):
    SUPER_ADMIN = "super-admin"
    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"


DEFAULT_ROLE = AdminRole.STAFF


class Permission:
    """Permission strings used by route guards."""

    PRODUCTS_VIEW = "products.view"
    PRODUCTS_EDIT = "products.edit"
    PRODUCTS_ALL = "products.*"

    ORDERS_VIEW = "orders.view"
    ORDERS_CREATE = "orders.create"
    ORDERS_EDIT = "orders.edit"
    ORDERS_ALL = "orders.*"

    USERS_VIEW = "users.view"
    USERS_EDIT = "users.edit"

    COUPONS_ALL = "coupons.*"

    CATEGORIES_VIEW = "categories.view"
    CATEGORIES_ALL = "categories.*"

    ALL = GLOBAL_WILDCARD


ROLE_PERMISSIONS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    AdminRole.SUPER_ADMIN.value: (Permission.ALL,),
    AdminRole.ADMIN.value: (
        Permission.PRODUCTS_ALL,
        Permission.ORDERS_ALL,
        Permission.USERS_VIEW,
        Permission.USERS_EDIT,
        Permission.COUPONS_ALL,
        Permission.CATEGORIES_ALL,
    ),
    AdminRole.MANAGER.value: (
        Permission.PRODUCTS_VIEW,
        Permission.PRODUCTS_EDIT,
        Permission.ORDERS_VIEW,
        Permission.ORDERS_EDIT,
        Permission.CATEGORIES_VIEW,
    ),
    AdminRole.STAFF.value: (
        Permission.PRODUCTS_VIEW,
        Permission.ORDERS_VIEW,
    ),
})


def permissions_for(role) -> List[str]:
    """
    Ordered permission list granted to a role.

    Raises:
        ValueError: if the role is not one of AdminRole
    """
    key = role.value if isinstance(role, AdminRole) else role
    if key not in ROLE_PERMISSIONS:
        raise ValueError(f"Unknown role: {role}")
    return list(ROLE_PERMISSIONS[key])


def has_permission(held_permissions: Iterable[str], required: str) -> bool:
    """
    Check if a held permission set satisfies a required permission.

    Supports wildcards:
    - "*" grants all permissions
    - "resource.*" grants all actions on resource
    """
    held = set(held_permissions or ())

    if GLOBAL_WILDCARD in held:
        return True

    if required in held:
        return True

    if SEPARATOR in required:
        resource = required.split(SEPARATOR, 1)[0]
        if f"{resource}{SEPARATOR}*" in held:
            return True

    return False


def has_all_permissions(held_permissions: Iterable[str], required: Iterable[str]) -> bool:
    """Check if every required permission is satisfied."""
    held = list(held_permissions or ())
    return all(has_permission(held, perm) for perm in required)


def require_permission(*permissions: str):
    """
    Dependency that requires specific permissions.

    Usage:
        @router.get("/orders/{order_id}")
        async def get_order(
            admin: Admin = Depends(require_permission(Permission.ORDERS_VIEW))
        ):
            ...
    """
    from silver_admin.api.deps import get_current_admin

    async def permission_checker(current_admin: Admin = Depends(get_current_admin)) -> Admin:
        if not has_all_permissions(current_admin.permissions, permissions):
            logger.warning(
                "Permission check failed: admin %s lacks %s",
                current_admin.email,
                ", ".join(permissions),
            )
            raise ForbiddenError("You do not have permission to perform this action")
        return current_admin

    return permission_checker


def require_role(*roles: AdminRole):
    """Dependency that requires the admin to hold one of the given roles."""
    from silver_admin.api.deps import get_current_admin

    allowed = {r.value if isinstance(r, AdminRole) else r for r in roles}

    async def role_checker(current_admin: Admin = Depends(get_current_admin)) -> Admin:
        if current_admin.role not in allowed:
            logger.warning(
                "Role check failed: admin %s (%s) attempted route requiring %s",
                current_admin.email,
                current_admin.role,
                ", ".join(sorted(allowed)),
            )
            raise ForbiddenError("You do not have permission to access this resource")
        return current_admin

    return role_checker
