"""Role-Based Access Control helpers."""
from __future__ import annotations
from typing import Union

from erp_api.core.models import UserRole

# Higher number = more privilege
ROLE_HIERARCHY = {
    UserRole.USER: 1,
    UserRole.MANAGER: 2,
    UserRole.ADMIN: 3,
}


def normalize_role(role: Union[UserRole, str, None]) -> UserRole | None:
    """Coerce a claim value into a UserRole (None when unknown)."""
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole(str(role).strip().lower())
    except ValueError:
        return None


def has_permission(actual: Union[UserRole, str, None], required: Union[UserRole, str]) -> bool:
    """True iff ``actual`` ranks at or above ``required``.

    An unknown ``actual`` role never has permission.
    """
    actual_role = normalize_role(actual)
    required_role = normalize_role(required)
    if actual_role is None or required_role is None:
        return False
    return ROLE_HIERARCHY[actual_role] >= ROLE_HIERARCHY[required_role]
