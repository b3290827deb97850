"""Pytest shared fixtures: in-memory DynamoDB, fake identity provider, Flask client."""
import pathlib
import re
import sys
from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Optional

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from erp_api.config import AppConfig
from erp_api.core.dynamodb import ConditionalCheckFailedError, IntegrationRequests, UserRequests
from erp_api.core.integration_service import IntegrationService
from erp_api.core.marketplaces import MarketplaceAuthInfo, MarketplaceRegistry
from erp_api.core.models import MarketplaceType
from erp_api.core.tokens import claims_for_user, generate_token
from erp_api.core.user_service import UserService
from erp_api.flask_app import create_app

JWT_SECRET = "test-jwt-secret-with-enough-bytes-for-hs256"

_EQUALS = re.compile(r"(\w+) = (:\w+)")
_BEGINS_WITH = re.compile(r"begins_with\((\w+), (:\w+)\)")
_ASSIGNMENT = re.compile(r"(#\w+) = (:\w+)")
_REMOVAL = re.compile(r"#\w+")


# ─────────────────────────────────────────────────────────────────────────────
# In-memory DynamoDB
# ─────────────────────────────────────────────────────────────────────────────
class FakeDynamoStore:
    """Interprets the request descriptors built by erp_api.core.dynamodb.

    Supports exactly the expression shapes the request builders emit.
    ``calls`` records ``(method, request)`` in order.
    """

    def __init__(self):
        self.tables = {}
        self.calls = []

    def _table(self, name):
        return self.tables.setdefault(name, {})

    @staticmethod
    def _key(key):
        return (key["PK"], key["SK"])

    def calls_to(self, method):
        return [request for name, request in self.calls if name == method]

    def put(self, request):
        self.calls.append(("put", request))
        item = dict(request["Item"])
        self._table(request["TableName"])[self._key(item)] = item
        return {}

    def get(self, request):
        self.calls.append(("get", request))
        item = self._table(request["TableName"]).get(self._key(request["Key"]))
        return {"Item": dict(item)} if item else {}

    def query(self, request):
        self.calls.append(("query", request))
        expression = request["KeyConditionExpression"]
        values = request["ExpressionAttributeValues"]
        equals = _EQUALS.findall(expression)
        prefixes = _BEGINS_WITH.findall(expression)

        items = []
        for item in self._table(request["TableName"]).values():
            if any(item.get(attr) != values[placeholder] for attr, placeholder in equals):
                continue
            if any(not str(item.get(attr, "")).startswith(values[placeholder]) for attr, placeholder in prefixes):
                continue
            items.append(dict(item))
        return {"Items": items, "Count": len(items)}

    def update(self, request):
        self.calls.append(("update", request))
        table = self._table(request["TableName"])
        key = self._key(request["Key"])
        if request.get("ConditionExpression") == "attribute_exists(PK)" and key not in table:
            raise ConditionalCheckFailedError(request["TableName"], request["Key"])

        item = table.setdefault(key, dict(request["Key"]))
        names = request["ExpressionAttributeNames"]
        values = request.get("ExpressionAttributeValues", {})
        set_part, _, remove_part = request["UpdateExpression"].partition("REMOVE ")
        for name_placeholder, value_placeholder in _ASSIGNMENT.findall(set_part):
            item[names[name_placeholder]] = values[value_placeholder]
        for name_placeholder in _REMOVAL.findall(remove_part):
            item.pop(names[name_placeholder], None)
        return {"Attributes": dict(item)}

    def delete(self, request):
        self.calls.append(("delete", request))
        self._table(request["TableName"]).pop(self._key(request["Key"]), None)
        return {}

    def scan(self, request):
        self.calls.append(("scan", request))
        values = request["ExpressionAttributeValues"]
        prefixes = _BEGINS_WITH.findall(request["FilterExpression"])
        keys = sorted(self._table(request["TableName"]))

        start = request.get("ExclusiveStartKey")
        if start:
            keys = [key for key in keys if key > self._key(start)]

        evaluated = keys[:request["Limit"]]
        items = []
        for key in evaluated:
            item = self.tables[request["TableName"]][key]
            if all(str(item.get(attr, "")).startswith(values[placeholder]) for attr, placeholder in prefixes):
                items.append(dict(item))

        result = {"Items": items, "Count": len(items), "ScannedCount": len(evaluated)}
        if len(keys) > len(evaluated) and evaluated:
            last = evaluated[-1]
            result["LastEvaluatedKey"] = {"PK": last[0], "SK": last[1]}
        return result


class FakeIdentityProvider:
    """Records every call; ``fail_on`` maps a method name to the exception it raises."""

    def __init__(self):
        self.calls = []
        self.fail_on = {}

    def _record(self, method, *args):
        self.calls.append((method, args))
        if method in self.fail_on:
            raise self.fail_on[method]
        return {}

    def calls_to(self, method):
        return [args for name, args in self.calls if name == method]

    def create_account(self, email, password, attributes):
        return self._record("create_account", email, password, dict(attributes))

    def authenticate(self, email, password):
        return self._record("authenticate", email, password)

    def set_password(self, email, password, permanent=True):
        return self._record("set_password", email, password, permanent)

    def get_account(self, email):
        return self._record("get_account", email)

    def update_attributes(self, email, attributes):
        return self._record("update_attributes", email, dict(attributes))

    def delete_account(self, email):
        return self._record("delete_account", email)


class FakeMarketplaceAdapter:
    def __init__(self):
        self.codes = []
        self.error: Optional[Exception] = None

    def exchange_code(self, code):
        self.codes.append(code)
        if self.error:
            raise self.error
        return MarketplaceAuthInfo(
            marketplace_type=MarketplaceType.MERCADOLIVRE,
            access_token=f"access-{code}",
            refresh_token=f"refresh-{code}",
            seller_id="123456",
            store_name="Loja Teste",
        )


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def cfg():
    return AppConfig(
        jwt_secret=JWT_SECRET,
        jwt_expires_in=3600,
        cognito_user_pool_id="us-east-1_test",
        cognito_client_id="client-id",
    )


@pytest.fixture()
def store():
    return FakeDynamoStore()


@pytest.fixture()
def identity():
    return FakeIdentityProvider()


@pytest.fixture()
def clock():
    return FakeClock(datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture()
def id_factory():
    counter = count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture()
def marketplace_adapter():
    return FakeMarketplaceAdapter()


@pytest.fixture()
def user_service(cfg, store, identity, clock, id_factory):
    def issue_token(user):
        return generate_token(claims_for_user(user), cfg.jwt_secret, cfg.jwt_expires_in)

    return UserService(store, identity, UserRequests(cfg.users_table),
                       clock=clock, id_factory=id_factory, token_issuer=issue_token)


@pytest.fixture()
def integration_service(cfg, store, clock, id_factory, marketplace_adapter):
    registry = MarketplaceRegistry({MarketplaceType.MERCADOLIVRE: marketplace_adapter})
    return IntegrationService(store, IntegrationRequests(cfg.integrations_table), registry,
                              clock=clock, id_factory=id_factory)


@pytest.fixture()
def app(cfg, user_service, integration_service):
    flask_app = create_app(cfg, services={"users": user_service, "integrations": integration_service})
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def auth_header():
    """Build an Authorization header for a role: ``auth_header("admin")``."""
    def _build(role="user", sub="caller-1", secret=JWT_SECRET, expires_in=3600):
        token = generate_token(
            {"sub": sub, "email": f"{sub}@example.com", "name": "Caller", "role": role},
            secret,
            expires_in,
        )
        return {"Authorization": f"Bearer {token}"}
    return _build
