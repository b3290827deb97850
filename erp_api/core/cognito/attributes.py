"""Translation of Cognito attribute lists into flat records."""
from __future__ import annotations
from typing import Any, Mapping, Optional

from erp_api.core.models import UserRole

ROLE_ATTRIBUTE = "custom:role"


def to_attribute_list(attributes: Mapping[str, str]) -> list[dict[str, str]]:
    """``{"name": "Ana"}`` -> ``[{"Name": "name", "Value": "Ana"}]``."""
    return [{"Name": name, "Value": value} for name, value in attributes.items()]


def extract_attributes(raw_account: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Fold ``UserAttributes`` into ``{sub, email, email_verified, name, role}``.

    Total over its input: a missing or empty attribute list yields every field
    with its default.
    """
    values: dict[str, str] = {}
    for attr in (raw_account or {}).get("UserAttributes") or []:
        name = attr.get("Name")
        if name:
            values[name] = attr.get("Value", "")

    try:
        role = UserRole(values.get(ROLE_ATTRIBUTE) or UserRole.USER.value)
    except ValueError:
        role = UserRole.USER

    return {
        "sub": values.get("sub", ""),
        "email": values.get("email", ""),
        "email_verified": values.get("email_verified") == "true",
        "name": values.get("name", ""),
        "role": role,
    }
