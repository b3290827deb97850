"""HS256 bearer tokens issued and verified by this API.

Claims carried: ``sub`` (user id), ``email``, ``name``, ``role`` plus the
registered ``iat``/``exp``.
"""
from __future__ import annotations
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Optional

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
BEARER_PREFIX = "Bearer "


class TokenValidationError(Exception):
    """Exception raised when a bearer token or header is rejected."""
    pass


def generate_token(claims: Mapping[str, Any], secret: str, expires_in: int,
                   now: Optional[datetime] = None) -> str:
    """Sign ``claims`` with ``iat``/``exp`` set from ``now`` and ``expires_in`` seconds."""
    issued_at = now or datetime.now(timezone.utc)
    payload = dict(claims)
    payload["iat"] = issued_at
    payload["exp"] = issued_at + timedelta(seconds=expires_in)
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def verify_token(token: str, secret: str) -> Dict[str, Any]:
    """Verify signature and expiry and return the claims.

    Raises:
        TokenValidationError: Bad signature, malformed token, or expired
    """
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            options={"require": ["exp", "iat"]},
            leeway=5,
        )
    except ExpiredSignatureError as exc:
        raise TokenValidationError("Token expired (exp claim)") from exc
    except InvalidTokenError as exc:
        raise TokenValidationError(f"Token rejected: {exc}") from exc


def extract_token_from_header(header: Optional[str]) -> str:
    """Return the token from a literal ``Bearer <token>`` header.

    Raises:
        TokenValidationError: Any other header shape
    """
    if not header or not header.startswith(BEARER_PREFIX):
        raise TokenValidationError("Invalid authorization header format")
    token = header[len(BEARER_PREFIX):].strip()
    if not token or " " in token:
        raise TokenValidationError("Invalid authorization header format")
    return token


def claims_for_user(user) -> Dict[str, Any]:
    """Token claims for a public User."""
    return {
        "sub": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role.value,
    }
