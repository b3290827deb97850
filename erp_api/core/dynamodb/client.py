"""Executor that runs request descriptors against DynamoDB.

The builders in ``users.py``/``integrations.py`` never touch the network; this
class is the only place that does.
"""
from __future__ import annotations
import logging
import os
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


class ConditionalCheckFailedError(Exception):
    """A write's ConditionExpression evaluated to false."""

    def __init__(self, table_name: str, key: Optional[dict]):
        self.table_name = table_name
        self.key = key
        super().__init__(f"Condition check failed on {table_name}: {key}")


class DynamoStore:
    """Thin wrapper around a boto3 DynamoDB resource.

    Usage:
        store = DynamoStore.from_config(cfg)
        store.put(UserRequests("users").put(item))
    """

    def __init__(self, resource):
        self.resource = resource
        self._tables: Dict[str, Any] = {}

    @classmethod
    def from_config(cls, cfg) -> "DynamoStore":
        """Build a store from AppConfig (LocalStack endpoint in local mode)."""
        kwargs: Dict[str, Any] = {"region_name": cfg.aws_region}
        if cfg.dynamodb_endpoint_url:
            kwargs["endpoint_url"] = cfg.dynamodb_endpoint_url
        if cfg.local_mode and not os.environ.get("AWS_ACCESS_KEY_ID"):
            # LocalStack accepts any credentials
            kwargs["aws_access_key_id"] = "test"
            kwargs["aws_secret_access_key"] = "test"
        logger.info("DynamoDB region=%s endpoint=%s", cfg.aws_region, cfg.dynamodb_endpoint_url or "default")
        return cls(boto3.resource("dynamodb", **kwargs))

    def _table(self, name: str):
        table = self._tables.get(name)
        if table is None:
            table = self.resource.Table(name)
            self._tables[name] = table
        return table

    def _call(self, method: str, request: Dict[str, Any]) -> Dict[str, Any]:
        params = dict(request)
        table_name = params.pop("TableName")
        try:
            return getattr(self._table(table_name), method)(**params)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            if code == "ConditionalCheckFailedException":
                raise ConditionalCheckFailedError(table_name, params.get("Key")) from exc
            logger.error("DynamoDB %s on %s failed: %s", method, table_name, code or exc)
            raise

    def put(self, request: Dict[str, Any]) -> Dict[str, Any]:
        return self._call("put_item", request)

    def get(self, request: Dict[str, Any]) -> Dict[str, Any]:
        return self._call("get_item", request)

    def query(self, request: Dict[str, Any]) -> Dict[str, Any]:
        return self._call("query", request)

    def update(self, request: Dict[str, Any]) -> Dict[str, Any]:
        return self._call("update_item", request)

    def delete(self, request: Dict[str, Any]) -> Dict[str, Any]:
        return self._call("delete_item", request)

    def scan(self, request: Dict[str, Any]) -> Dict[str, Any]:
        return self._call("scan", request)
