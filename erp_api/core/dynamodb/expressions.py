"""Shared expression helpers for the DynamoDB request builders."""
from __future__ import annotations
import base64
import binascii
import json
from typing import Any, Iterable, Mapping, Optional

from erp_api.core.errors import ValidationError

CURSOR_KEYS = {"PK", "SK"}


def build_update_expression(fields: Mapping[str, Any], remove: Iterable[str] = ()) -> dict[str, Any]:
    """Build an update expression with one ``SET`` clause per field.

    Every attribute name is aliased through ``#<name>`` and every value through
    ``:<name>``, reserved word or not. Attributes named in ``remove`` go into a
    trailing ``REMOVE`` clause.

    Raises:
        ValidationError: If there is nothing to set or remove
    """
    remove = [key for key in remove if key not in fields]
    if not fields and not remove:
        raise ValidationError("No fields to update")

    clauses = []
    names: dict[str, str] = {}
    values: dict[str, Any] = {}
    for key, value in fields.items():
        name_placeholder = f"#{key}"
        value_placeholder = f":{key}"
        clauses.append(f"{name_placeholder} = {value_placeholder}")
        names[name_placeholder] = key
        values[value_placeholder] = value

    sections = []
    if clauses:
        sections.append(f"SET {', '.join(clauses)}")
    if remove:
        for key in remove:
            names[f"#{key}"] = key
        sections.append(f"REMOVE {', '.join(f'#{key}' for key in remove)}")

    expression: dict[str, Any] = {
        "UpdateExpression": " ".join(sections),
        "ExpressionAttributeNames": names,
    }
    if values:
        expression["ExpressionAttributeValues"] = values
    return expression


def build_scan(table_name: str, pk_prefix: str, sk_prefix: str, limit: int,
               start_key: Optional[dict] = None) -> dict[str, Any]:
    """Build a prefix-filtered scan limited to ``limit`` evaluated items.

    Raises:
        ValidationError: ``start_key`` is outside the ``pk_prefix`` partitions
    """
    params: dict[str, Any] = {
        "TableName": table_name,
        "FilterExpression": "begins_with(PK, :pk) AND begins_with(SK, :sk)",
        "ExpressionAttributeValues": {
            ":pk": pk_prefix,
            ":sk": sk_prefix,
        },
        "Limit": limit,
    }
    if start_key:
        if not str(start_key.get("PK", "")).startswith(pk_prefix):
            raise ValidationError("Invalid continuation token")
        params["ExclusiveStartKey"] = start_key
    return params


def encode_cursor(last_evaluated_key: Optional[dict]) -> Optional[str]:
    """Encode a LastEvaluatedKey as an opaque continuation token."""
    if not last_evaluated_key:
        return None
    raw = json.dumps(last_evaluated_key, sort_keys=True, separators=(",", ":"))
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii")


def decode_cursor(cursor: Optional[str]) -> Optional[dict]:
    """Decode a continuation token produced by :func:`encode_cursor`.

    Only a ``{"PK": str, "SK": str}`` primary key is accepted.
    """
    if not cursor:
        return None
    try:
        decoded = json.loads(base64.urlsafe_b64decode(cursor.encode("ascii")).decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError) as exc:
        raise ValidationError("Invalid continuation token") from exc
    if not isinstance(decoded, dict) or set(decoded) != CURSOR_KEYS:
        raise ValidationError("Invalid continuation token")
    if not all(isinstance(value, str) and value for value in decoded.values()):
        raise ValidationError("Invalid continuation token")
    return decoded
