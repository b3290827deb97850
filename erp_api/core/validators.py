"""Input validation for request bodies and query strings.

Each ``validate_*`` function takes the raw decoded JSON (or query mapping),
returns a cleaned dict and raises ValidationError with the first problem found.
"""
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, Iterable, Mapping

from erp_api.core.errors import ValidationError
from erp_api.core.models import IntegrationStatus, MarketplaceType, UserRole

MIN_PASSWORD_LENGTH = 6
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def validate_email(email: Any) -> str:
    """Validate email address.

    Args:
        email: Email address to validate

    Returns:
        Normalized (trimmed, lower-cased) email address

    Raises:
        ValidationError: If email is invalid
    """
    if not isinstance(email, str):
        raise ValidationError("email is required")
    email = email.strip().lower()
    if not email or "@" not in email:
        raise ValidationError("Invalid email format")

    local, domain = email.rsplit("@", 1)
    if not local or not domain or "." not in domain or " " in email:
        raise ValidationError("Invalid email format")
    if len(email) > 254:
        raise ValidationError("Email exceeds maximum length")

    return email


def validate_name(name: Any) -> str:
    """Trimmed display name of 2 to 100 characters."""
    if not isinstance(name, str):
        raise ValidationError("name must be a string")
    name = name.strip()
    if not 2 <= len(name) <= 100:
        raise ValidationError("name must be between 2 and 100 characters")
    return name


def _enum(enum_cls, value: Any, field: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"{field} must be one of [{allowed}]") from None


def _string(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} must be a non-empty string")
    return value


def _object(body: Any) -> Mapping[str, Any]:
    if not isinstance(body, Mapping):
        raise ValidationError("Request body must be a JSON object")
    return body


def _reject_unknown(body: Mapping[str, Any], allowed: Iterable[str]) -> None:
    allowed = set(allowed)
    for key in body:
        if key not in allowed:
            raise ValidationError(f"{key} is not allowed")


def _require(body: Mapping[str, Any], fields: Iterable[str]) -> None:
    for field in fields:
        if body.get(field) is None:
            raise ValidationError(f"{field} is required")


# ─────────────────────────────────────────────────────────────────────────────
# Users
# ─────────────────────────────────────────────────────────────────────────────

def validate_create_user(body: Any) -> Dict[str, Any]:
    body = _object(body)
    _reject_unknown(body, ("email", "name", "role", "password"))
    _require(body, ("email", "name", "role", "password"))

    password = body["password"]
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"password must be at least {MIN_PASSWORD_LENGTH} characters")

    return {
        "email": validate_email(body["email"]),
        "name": validate_name(body["name"]),
        "role": _enum(UserRole, body["role"], "role"),
        "password": password,
    }


def validate_update_user(body: Any) -> Dict[str, Any]:
    """Any subset of ``{name, role, isActive}``."""
    body = _object(body)
    _reject_unknown(body, ("name", "role", "isActive"))

    cleaned: Dict[str, Any] = {}
    if body.get("name") is not None:
        cleaned["name"] = validate_name(body["name"])
    if body.get("role") is not None:
        cleaned["role"] = _enum(UserRole, body["role"], "role")
    if body.get("isActive") is not None:
        if not isinstance(body["isActive"], bool):
            raise ValidationError("isActive must be a boolean")
        cleaned["isActive"] = body["isActive"]
    return cleaned


def validate_login(body: Any) -> Dict[str, Any]:
    body = _object(body)
    _require(body, ("email", "password"))
    return {
        "email": validate_email(body["email"]),
        "password": _string(body["password"], "password"),
    }


# ─────────────────────────────────────────────────────────────────────────────
# Marketplace integrations
# ─────────────────────────────────────────────────────────────────────────────

UPDATABLE_INTEGRATION_FIELDS = (
    "accessToken",
    "refreshToken",
    "sellerId",
    "storeName",
    "status",
    "lastSyncAt",
    "errorMessage",
)


def validate_create_integration(body: Any) -> Dict[str, Any]:
    """``{marketplaceType, code}``; other keys are ignored."""
    body = _object(body)
    _require(body, ("marketplaceType", "code"))
    return {
        "marketplaceType": _enum(MarketplaceType, body["marketplaceType"], "marketplaceType"),
        "code": _string(body["code"], "code"),
    }


def validate_update_integration(body: Any) -> Dict[str, Any]:
    body = _object(body)
    _reject_unknown(body, UPDATABLE_INTEGRATION_FIELDS)

    cleaned: Dict[str, Any] = {}
    for field in ("accessToken", "refreshToken", "sellerId", "storeName", "errorMessage"):
        if body.get(field) is not None:
            cleaned[field] = _string(body[field], field)
    if body.get("status") is not None:
        cleaned["status"] = _enum(IntegrationStatus, body["status"], "status")
    if body.get("lastSyncAt") is not None:
        cleaned["lastSyncAt"] = validate_iso_date(body["lastSyncAt"], "lastSyncAt")
    return cleaned


def validate_status_update(body: Any) -> Dict[str, Any]:
    body = _object(body)
    _require(body, ("status",))
    cleaned: Dict[str, Any] = {"status": _enum(IntegrationStatus, body["status"], "status")}
    if body.get("errorMessage") is not None:
        cleaned["errorMessage"] = _string(body["errorMessage"], "errorMessage")
    return cleaned


def validate_token_refresh(body: Any) -> Dict[str, Any]:
    body = _object(body)
    _require(body, ("accessToken",))
    cleaned: Dict[str, Any] = {"accessToken": _string(body["accessToken"], "accessToken")}
    if body.get("refreshToken") is not None:
        cleaned["refreshToken"] = _string(body["refreshToken"], "refreshToken")
    return cleaned


def validate_iso_date(value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be an ISO 8601 date")
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"{field} must be an ISO 8601 date") from None
    return value


# ─────────────────────────────────────────────────────────────────────────────
# Query strings
# ─────────────────────────────────────────────────────────────────────────────

def _positive_int(raw: Any, field: str, default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer") from None


def validate_pagination(args: Mapping[str, Any]) -> Dict[str, int]:
    """``page`` >= 1 (default 1), ``limit`` in 1..100 (default 10)."""
    page = _positive_int(args.get("page"), "page", 1)
    limit = _positive_int(args.get("limit"), "limit", DEFAULT_PAGE_SIZE)
    if page < 1:
        raise ValidationError("page must be greater than or equal to 1")
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
    return {"page": page, "limit": limit}
