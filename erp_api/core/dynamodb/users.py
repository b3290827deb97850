"""Request builders for User items.

Key design:
    PK = USER#<id>        SK = USER#<id>
    GSI1PK = EMAIL#<email> GSI1SK = USER#<id>
"""
from __future__ import annotations
from typing import Any, Mapping, Optional

from .expressions import build_scan, build_update_expression

USER_PREFIX = "USER#"
EMAIL_PREFIX = "EMAIL#"
EMAIL_INDEX = "GSI1"


def user_key(user_id: str) -> dict[str, str]:
    """Primary key of a user item."""
    return {"PK": f"{USER_PREFIX}{user_id}", "SK": f"{USER_PREFIX}{user_id}"}


def email_index_key(email: str, user_id: str) -> dict[str, str]:
    """GSI1 key attributes of a user item."""
    return {"GSI1PK": f"{EMAIL_PREFIX}{email}", "GSI1SK": f"{USER_PREFIX}{user_id}"}


class UserRequests:
    """Pure builders for DynamoDB requests against the users table."""

    def __init__(self, table_name: str):
        self.table_name = table_name

    def put(self, item: Mapping[str, Any]) -> dict[str, Any]:
        return {"TableName": self.table_name, "Item": dict(item)}

    def get_by_id(self, user_id: str) -> dict[str, Any]:
        return {"TableName": self.table_name, "Key": user_key(user_id)}

    def get_by_email(self, email: str) -> dict[str, Any]:
        return {
            "TableName": self.table_name,
            "IndexName": EMAIL_INDEX,
            "KeyConditionExpression": "GSI1PK = :email",
            "ExpressionAttributeValues": {":email": f"{EMAIL_PREFIX}{email}"},
        }

    def update(self, user_id: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "TableName": self.table_name,
            "Key": user_key(user_id),
            **build_update_expression(fields),
            "ConditionExpression": "attribute_exists(PK)",
            "ReturnValues": "ALL_NEW",
        }

    def delete(self, user_id: str) -> dict[str, Any]:
        return {"TableName": self.table_name, "Key": user_key(user_id)}

    def scan(self, limit: int = 100, start_key: Optional[dict] = None) -> dict[str, Any]:
        return build_scan(self.table_name, USER_PREFIX, USER_PREFIX, limit, start_key)
