"""Cognito identity provider adapter.

- client.py: CognitoIdentityProvider (boto3) and LocalIdentityProvider (no-op)
- attributes.py: attribute-list <-> flat record translation
"""
from .attributes import ROLE_ATTRIBUTE, extract_attributes, to_attribute_list
from .client import CognitoIdentityProvider, LocalIdentityProvider, build_identity_provider

__all__ = [
    "ROLE_ATTRIBUTE",
    "CognitoIdentityProvider",
    "LocalIdentityProvider",
    "build_identity_provider",
    "extract_attributes",
    "to_attribute_list",
]
