"""DynamoDB access layer.

Architecture:
- users.py: request builders and key helpers for User items
- integrations.py: request builders and key helpers for MarketplaceIntegration items
- expressions.py: update-expression, scan and continuation-token helpers
- client.py: DynamoStore, the only module that performs I/O

Usage:
    from erp_api.core.dynamodb import DynamoStore, UserRequests

    requests = UserRequests("users")
    store = DynamoStore.from_config(cfg)
    item = store.get(requests.get_by_id("42")).get("Item")
"""
from .client import ConditionalCheckFailedError, DynamoStore
from .expressions import build_update_expression, decode_cursor, encode_cursor
from .integrations import (
    IntegrationRef,
    IntegrationRequests,
    integration_key,
    status_index_key,
    status_partition,
    type_index_key,
)
from .users import UserRequests, email_index_key, user_key

__all__ = [
    "ConditionalCheckFailedError",
    "DynamoStore",
    "IntegrationRef",
    "IntegrationRequests",
    "UserRequests",
    "build_update_expression",
    "decode_cursor",
    "email_index_key",
    "encode_cursor",
    "integration_key",
    "status_index_key",
    "status_partition",
    "type_index_key",
    "user_key",
]
