"""Cognito user-pool adapter.

Each method builds the admin API parameters and makes exactly one call.
Errors from botocore propagate unchanged.
"""
from __future__ import annotations
import base64
import hashlib
import hmac
import logging
from typing import Any, Dict, Mapping, Optional

import boto3

from .attributes import to_attribute_list

logger = logging.getLogger(__name__)


class CognitoIdentityProvider:
    """Identity provider backed by a Cognito user pool.

    Usage:
        identity = CognitoIdentityProvider(cfg)
        identity.create_account("ana@example.com", "S3cret!", {"name": "Ana"})
        identity.set_password("ana@example.com", "S3cret!")
    """

    def __init__(self, cfg, client=None):
        self.user_pool_id = cfg.cognito_user_pool_id
        self.client_id = cfg.cognito_client_id
        self.client_secret = cfg.cognito_client_secret
        self.client = client or boto3.client("cognito-idp", region_name=cfg.aws_region)

    def _secret_hash(self, username: str) -> str:
        """SECRET_HASH required by app clients that have a secret."""
        digest = hmac.new(
            self.client_secret.encode("utf-8"),
            (username + self.client_id).encode("utf-8"),
            hashlib.sha256,
        ).digest()
        return base64.b64encode(digest).decode("ascii")

    def create_account(self, email: str, password: str, attributes: Mapping[str, str]) -> Dict[str, Any]:
        """Create an account with a temporary password and no welcome email."""
        logger.info("Creating Cognito account for %s", email)
        return self.client.admin_create_user(
            UserPoolId=self.user_pool_id,
            Username=email,
            TemporaryPassword=password,
            UserAttributes=to_attribute_list(attributes),
            MessageAction="SUPPRESS",
        )

    def authenticate(self, email: str, password: str) -> Dict[str, Any]:
        """Exchange username/password for Cognito tokens."""
        auth_parameters = {"USERNAME": email, "PASSWORD": password}
        if self.client_secret:
            auth_parameters["SECRET_HASH"] = self._secret_hash(email)
        return self.client.admin_initiate_auth(
            AuthFlow="ADMIN_NO_SRP_AUTH",
            UserPoolId=self.user_pool_id,
            ClientId=self.client_id,
            AuthParameters=auth_parameters,
        )

    def set_password(self, email: str, password: str, permanent: bool = True) -> Dict[str, Any]:
        return self.client.admin_set_user_password(
            UserPoolId=self.user_pool_id,
            Username=email,
            Password=password,
            Permanent=permanent,
        )

    def get_account(self, email: str) -> Dict[str, Any]:
        return self.client.admin_get_user(UserPoolId=self.user_pool_id, Username=email)

    def update_attributes(self, email: str, attributes: Mapping[str, str]) -> Dict[str, Any]:
        logger.info("Updating Cognito attributes %s for %s", sorted(attributes), email)
        return self.client.admin_update_user_attributes(
            UserPoolId=self.user_pool_id,
            Username=email,
            UserAttributes=to_attribute_list(attributes),
        )

    def delete_account(self, email: str) -> Dict[str, Any]:
        logger.info("Deleting Cognito account for %s", email)
        return self.client.admin_delete_user(UserPoolId=self.user_pool_id, Username=email)


class LocalIdentityProvider:
    """No-op identity provider for LOCAL_MODE (LocalStack has no Cognito).

    Local mode is password-less: ``authenticate`` accepts any password, so
    login succeeds for every user stored in the configured table.
    """

    def create_account(self, email: str, password: str, attributes: Mapping[str, str]) -> Dict[str, Any]:
        logger.debug("[local-mode] Skipping Cognito account creation for %s", email)
        return {"User": {"Username": email, "Attributes": to_attribute_list(attributes)}}

    def authenticate(self, email: str, password: str) -> Dict[str, Any]:
        logger.warning("[local-mode] Password not checked for %s (no Cognito)", email)
        return {"AuthenticationResult": {}}

    def set_password(self, email: str, password: str, permanent: bool = True) -> Dict[str, Any]:
        return {}

    def get_account(self, email: str) -> Dict[str, Any]:
        return {"Username": email, "UserAttributes": [{"Name": "email", "Value": email}]}

    def update_attributes(self, email: str, attributes: Mapping[str, str]) -> Dict[str, Any]:
        logger.debug("[local-mode] Skipping Cognito attribute update for %s", email)
        return {}

    def delete_account(self, email: str) -> Dict[str, Any]:
        logger.debug("[local-mode] Skipping Cognito account deletion for %s", email)
        return {}


def build_identity_provider(cfg, client: Optional[Any] = None):
    """Select the identity provider once at start-up."""
    if cfg.local_mode:
        logger.warning("[local-mode] Cognito calls disabled")
        return LocalIdentityProvider()
    return CognitoIdentityProvider(cfg, client=client)
