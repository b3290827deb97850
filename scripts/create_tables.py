"""Create the users and marketplace-integrations tables (LocalStack or AWS).

Usage:
    python scripts/create_tables.py                # LocalStack defaults
    python scripts/create_tables.py --endpoint-url "" --region sa-east-1
"""
from __future__ import annotations
import argparse
import logging
import os
import sys
from pathlib import Path

import boto3
from botocore.exceptions import ClientError, EndpointConnectionError

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from erp_api.config.settings import LOCALSTACK_ENDPOINT
from erp_api.core.dynamodb.integrations import STATUS_INDEX, TYPE_INDEX
from erp_api.core.dynamodb.users import EMAIL_INDEX

logger = logging.getLogger("create_tables")

THROUGHPUT = {"ReadCapacityUnits": 5, "WriteCapacityUnits": 5}


def _index(name: str, pk: str, sk: str) -> dict:
    return {
        "IndexName": name,
        "KeySchema": [
            {"AttributeName": pk, "KeyType": "HASH"},
            {"AttributeName": sk, "KeyType": "RANGE"},
        ],
        "Projection": {"ProjectionType": "ALL"},
        "ProvisionedThroughput": THROUGHPUT,
    }


def _attributes(*names: str) -> list[dict]:
    return [{"AttributeName": name, "AttributeType": "S"} for name in names]


def table_definitions(users_table: str, integrations_table: str) -> list[dict]:
    """CreateTable parameters matching the key design in erp_api.core.dynamodb."""
    primary_key = [
        {"AttributeName": "PK", "KeyType": "HASH"},
        {"AttributeName": "SK", "KeyType": "RANGE"},
    ]
    return [
        {
            "TableName": users_table,
            "KeySchema": primary_key,
            "AttributeDefinitions": _attributes("PK", "SK", "GSI1PK", "GSI1SK"),
            "GlobalSecondaryIndexes": [_index(EMAIL_INDEX, "GSI1PK", "GSI1SK")],
            "ProvisionedThroughput": THROUGHPUT,
        },
        {
            "TableName": integrations_table,
            "KeySchema": primary_key,
            "AttributeDefinitions": _attributes("PK", "SK", "GSI1PK", "GSI1SK", "GSI2PK", "GSI2SK"),
            "GlobalSecondaryIndexes": [
                _index(TYPE_INDEX, "GSI1PK", "GSI1SK"),
                _index(STATUS_INDEX, "GSI2PK", "GSI2SK"),
            ],
            "ProvisionedThroughput": THROUGHPUT,
        },
    ]


def create_tables(client, definitions: list[dict]) -> list[str]:
    """Create each table; existing tables are left as they are.

    Returns:
        Names of the tables created by this call
    """
    created = []
    for definition in definitions:
        name = definition["TableName"]
        try:
            client.create_table(**definition)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == "ResourceInUseException":
                logger.info("Table %s already exists", name)
                continue
            raise
        logger.info("Created table %s", name)
        created.append(name)
    return created


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Create ERP DynamoDB tables")
    parser.add_argument("--endpoint-url", default=os.environ.get("DYNAMODB_ENDPOINT_URL", LOCALSTACK_ENDPOINT),
                        help="DynamoDB endpoint (empty string for AWS)")
    parser.add_argument("--region", default=os.environ.get("AWS_REGION", "us-east-1"))
    parser.add_argument("--users-table", default=os.environ.get("USERS_TABLE", "users"))
    parser.add_argument("--integrations-table",
                        default=os.environ.get("MARKETPLACE_INTEGRATIONS_TABLE", "marketplace_integrations"))
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    kwargs = {"region_name": args.region}
    if args.endpoint_url:
        kwargs["endpoint_url"] = args.endpoint_url
        kwargs.setdefault("aws_access_key_id", os.environ.get("AWS_ACCESS_KEY_ID", "test"))
        kwargs.setdefault("aws_secret_access_key", os.environ.get("AWS_SECRET_ACCESS_KEY", "test"))
    client = boto3.client("dynamodb", **kwargs)

    try:
        create_tables(client, table_definitions(args.users_table, args.integrations_table))
    except EndpointConnectionError as exc:
        logger.error("Could not reach DynamoDB at %s: %s", args.endpoint_url or "AWS", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
