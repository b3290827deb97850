"""Request builders for MarketplaceIntegration items.

Key design:
    PK = USER#<userId>                 SK = MARKETPLACE#<type>#<id>
    GSI1PK = MARKETPLACE#<type>        GSI1SK = USER#<userId>#<id>
    GSI2PK = STATUS#<status>           GSI2SK = USER#<userId>#<type>#<id>
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from erp_api.core.errors import ValidationError
from erp_api.core.models import IntegrationStatus, MarketplaceType
from .expressions import build_scan, build_update_expression
from .users import USER_PREFIX

MARKETPLACE_PREFIX = "MARKETPLACE#"
STATUS_PREFIX = "STATUS#"
TYPE_INDEX = "GSI1"
STATUS_INDEX = "GSI2"


def _value(enum_or_str) -> str:
    return enum_or_str.value if hasattr(enum_or_str, "value") else str(enum_or_str)


@dataclass(frozen=True)
class IntegrationRef:
    """Everything needed to address one integration item."""
    user_id: str
    marketplace_type: MarketplaceType
    id: str

    @classmethod
    def parse(cls, raw: str) -> "IntegrationRef":
        """Parse ``USER#<userId>#MARKETPLACE#<type>#<id>``.

        Raises:
            ValidationError: If the reference is malformed
        """
        parts = (raw or "").split("#")
        if len(parts) != 5 or parts[0] != "USER" or parts[2] != "MARKETPLACE" or not all(parts):
            raise ValidationError(
                "Invalid marketplace integration reference. "
                "Expected 'USER#<userId>#MARKETPLACE#<marketplaceType>#<id>'"
            )
        try:
            marketplace_type = MarketplaceType(parts[3])
        except ValueError as exc:
            raise ValidationError(f"Unknown marketplace type: {parts[3]}") from exc
        return cls(user_id=parts[1], marketplace_type=marketplace_type, id=parts[4])

    def __str__(self) -> str:
        return f"{USER_PREFIX}{self.user_id}#{MARKETPLACE_PREFIX}{self.marketplace_type.value}#{self.id}"


def integration_key(user_id: str, marketplace_type, integration_id: str) -> dict[str, str]:
    """Primary key of an integration item."""
    return {
        "PK": f"{USER_PREFIX}{user_id}",
        "SK": f"{MARKETPLACE_PREFIX}{_value(marketplace_type)}#{integration_id}",
    }


def type_index_key(user_id: str, marketplace_type, integration_id: str) -> dict[str, str]:
    """GSI1 key attributes of an integration item."""
    return {
        "GSI1PK": f"{MARKETPLACE_PREFIX}{_value(marketplace_type)}",
        "GSI1SK": f"{USER_PREFIX}{user_id}#{integration_id}",
    }


def status_partition(status) -> str:
    """GSI2 partition value for a status; recomputed on every status change."""
    return f"{STATUS_PREFIX}{_value(status)}"


def status_index_key(user_id: str, marketplace_type, integration_id: str,
                     status: IntegrationStatus) -> dict[str, str]:
    """GSI2 key attributes of an integration item."""
    return {
        "GSI2PK": status_partition(status),
        "GSI2SK": f"{USER_PREFIX}{user_id}#{_value(marketplace_type)}#{integration_id}",
    }


class IntegrationRequests:
    """Pure builders for DynamoDB requests against the integrations table."""

    def __init__(self, table_name: str):
        self.table_name = table_name

    def put(self, item: Mapping[str, Any]) -> dict[str, Any]:
        return {"TableName": self.table_name, "Item": dict(item)}

    def get_by_ref(self, ref: IntegrationRef) -> dict[str, Any]:
        return {
            "TableName": self.table_name,
            "Key": integration_key(ref.user_id, ref.marketplace_type, ref.id),
        }

    def get_by_user(self, user_id: str) -> dict[str, Any]:
        return {
            "TableName": self.table_name,
            "KeyConditionExpression": "PK = :pk",
            "ExpressionAttributeValues": {":pk": f"{USER_PREFIX}{user_id}"},
        }

    def get_by_user_and_type(self, user_id: str, marketplace_type) -> dict[str, Any]:
        return {
            "TableName": self.table_name,
            "KeyConditionExpression": "PK = :pk AND begins_with(SK, :sk)",
            "ExpressionAttributeValues": {
                ":pk": f"{USER_PREFIX}{user_id}",
                ":sk": f"{MARKETPLACE_PREFIX}{_value(marketplace_type)}#",
            },
        }

    def get_by_type(self, marketplace_type) -> dict[str, Any]:
        return {
            "TableName": self.table_name,
            "IndexName": TYPE_INDEX,
            "KeyConditionExpression": "GSI1PK = :marketplaceType",
            "ExpressionAttributeValues": {":marketplaceType": f"{MARKETPLACE_PREFIX}{_value(marketplace_type)}"},
        }

    def get_by_status(self, status) -> dict[str, Any]:
        return {
            "TableName": self.table_name,
            "IndexName": STATUS_INDEX,
            "KeyConditionExpression": "GSI2PK = :status",
            "ExpressionAttributeValues": {":status": status_partition(status)},
        }

    def update(self, ref: IntegrationRef, fields: Mapping[str, Any],
               remove: Iterable[str] = ()) -> dict[str, Any]:
        return {
            "TableName": self.table_name,
            "Key": integration_key(ref.user_id, ref.marketplace_type, ref.id),
            **build_update_expression(fields, remove),
            "ConditionExpression": "attribute_exists(PK)",
            "ReturnValues": "ALL_NEW",
        }

    def delete(self, user_id: str, marketplace_type, integration_id: str) -> dict[str, Any]:
        return {
            "TableName": self.table_name,
            "Key": integration_key(user_id, marketplace_type, integration_id),
        }

    def scan(self, limit: int = 100, start_key: Optional[dict] = None) -> dict[str, Any]:
        return build_scan(self.table_name, USER_PREFIX, MARKETPLACE_PREFIX, limit, start_key)
