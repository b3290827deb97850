"""Domain types: roles, marketplace enums, and the two stored entities."""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(moment: datetime) -> str:
    """``2024-05-01T12:00:00.000Z`` style UTC timestamp."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class UserRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"


class MarketplaceType(str, Enum):
    MERCADOLIVRE = "mercadolivre"
    SHOPEE = "shopee"
    AMAZON = "amazon"
    MAGAZINE_LUIZA = "magazine_luiza"
    B2W = "b2w"


class IntegrationStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"
    ERROR = "error"


@dataclass
class User:
    """Public user shape (never includes the password or key attributes)."""
    id: str
    email: str
    name: str
    role: UserRole
    is_active: bool
    created_at: str
    updated_at: str

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> "User":
        return cls(
            id=item["id"],
            email=item["email"],
            name=item["name"],
            role=UserRole(item["role"]),
            is_active=bool(item.get("isActive", True)),
            created_at=item["createdAt"],
            updated_at=item["updatedAt"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role.value,
            "isActive": self.is_active,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


# Optional integration attributes: (dataclass field, item attribute)
_OPTIONAL_INTEGRATION_FIELDS = (
    ("refresh_token", "refreshToken"),
    ("seller_id", "sellerId"),
    ("store_name", "storeName"),
    ("last_sync_at", "lastSyncAt"),
    ("error_message", "errorMessage"),
)


@dataclass
class MarketplaceIntegration:
    """Public marketplace integration shape."""
    id: str
    user_id: str
    marketplace_type: MarketplaceType
    access_token: str
    status: IntegrationStatus
    created_at: str
    updated_at: str
    refresh_token: Optional[str] = None
    seller_id: Optional[str] = None
    store_name: Optional[str] = None
    last_sync_at: Optional[str] = None
    error_message: Optional[str] = None

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> "MarketplaceIntegration":
        optional = {attr: item.get(key) for attr, key in _OPTIONAL_INTEGRATION_FIELDS}
        if optional["seller_id"] is not None:
            optional["seller_id"] = str(optional["seller_id"])
        return cls(
            id=item["id"],
            user_id=item["userId"],
            marketplace_type=MarketplaceType(item["marketplaceType"]),
            access_token=item["accessToken"],
            status=IntegrationStatus(item["status"]),
            created_at=item["createdAt"],
            updated_at=item["updatedAt"],
            **optional,
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "userId": self.user_id,
            "marketplaceType": self.marketplace_type.value,
            "accessToken": self.access_token,
            "status": self.status.value,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        for attr, key in _OPTIONAL_INTEGRATION_FIELDS:
            value = getattr(self, attr)
            if value is not None:
                payload[key] = value
        return payload


@dataclass
class Page:
    """One fetched page of a listing.

    ``total`` and ``total_pages`` describe the fetched page only.
    ``next_cursor`` is set when the store has more items to scan.
    """
    items: list
    total: int
    page: int
    limit: int
    total_pages: int = field(default=0)
    next_cursor: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        payload = {
            "items": [item.to_dict() for item in self.items],
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "totalPages": self.total_pages,
        }
        if self.next_cursor:
            payload["nextCursor"] = self.next_cursor
        return payload
