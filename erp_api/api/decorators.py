"""
Flask decorators for authentication and authorization.

Bearer tokens are HS256 JWTs issued by ``POST /auth/login`` (see
``erp_api.core.tokens``). ``authenticate_token`` runs as a blueprint
``before_request`` hook and stores the decoded claims in ``g.current_user``;
``require_role`` and its three specializations gate individual routes.

Failures raise typed errors; the app-wide error handler renders them:
- 401 "Authentication token not provided": no Authorization header
- 401 "Invalid authorization header format": anything but ``Bearer <token>``
- 401 "Invalid or expired token": bad signature, malformed or expired JWT
- 401 "Authentication required": gated route reached without an identity
- 403: role below the route's requirement
"""

import logging
from functools import wraps
from typing import Callable, Dict, Optional

from flask import current_app, g, request

from erp_api.core.errors import AuthenticationError, AuthorizationError, ValidationError
from erp_api.core.models import UserRole
from erp_api.core.rbac import has_permission
from erp_api.core.tokens import TokenValidationError, extract_token_from_header, verify_token

logger = logging.getLogger(__name__)

_FORBIDDEN_MESSAGES = {
    UserRole.USER: "User access required",
    UserRole.MANAGER: "Manager or Admin access required",
    UserRole.ADMIN: "Admin access required",
}


def bypass_identity(role: str) -> Dict[str, str]:
    """Synthetic identity injected when AUTH_BYPASS is enabled."""
    return {
        "sub": "dev-user-id",
        "email": "dev@example.com",
        "name": "Development User",
        "role": role,
    }


# ============================================================================
# Bearer Token Authentication
# ============================================================================

def authenticate_token() -> None:
    """Validate the bearer token of the current request.

    Registered with ``bp.before_request``. Only the AUTH_BYPASS flag skips
    validation.

    Raises:
        AuthenticationError: Missing, malformed, invalid or expired token
    """
    cfg = current_app.config["APP_CONFIG"]

    if cfg.auth_bypass:
        g.current_user = bypass_identity(cfg.auth_bypass_role)
        return

    auth_header = request.headers.get("Authorization")
    if not auth_header:
        logger.warning(f"Request to {request.path} missing Authorization header")
        raise AuthenticationError("Authentication token not provided")

    try:
        token = extract_token_from_header(auth_header)
    except TokenValidationError:
        logger.warning(f"Request to {request.path} with invalid Authorization format")
        raise AuthenticationError("Invalid authorization header format") from None

    try:
        claims = verify_token(token, cfg.jwt_secret)
    except TokenValidationError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise AuthenticationError("Invalid or expired token") from None

    g.current_user = claims


def get_current_user() -> Optional[dict]:
    """Decoded claims of the current request, or None.

    Must be called after ``authenticate_token`` ran.
    """
    return g.get("current_user")


# ============================================================================
# Role Gates
# ============================================================================

def require_role(role: UserRole):
    """
    Decorator requiring an identity whose role ranks at or above ``role``.

    Example:
        @bp.route("/users", methods=["POST"])
        @require_role(UserRole.ADMIN)
        def create_user():
            ...
    """
    role = UserRole(role)

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = get_current_user()
            if not user:
                raise AuthenticationError("Authentication required")
            if not has_permission(user.get("role"), role):
                logger.warning(
                    f"User {user.get('sub')} with role {user.get('role')} denied "
                    f"{request.method} {request.path} (requires {role.value})"
                )
                raise AuthorizationError(_FORBIDDEN_MESSAGES[role])
            return fn(*args, **kwargs)
        return wrapper
    return decorator


require_user = require_role(UserRole.USER)
require_manager = require_role(UserRole.MANAGER)
require_admin = require_role(UserRole.ADMIN)


# ============================================================================
# Body Validation
# ============================================================================

def validate_body(validator: Callable[[object], dict]):
    """
    Decorator validating the JSON body with ``validator``.

    The cleaned body is passed to the route as the ``payload`` keyword.

    Example:
        @bp.route("/users", methods=["POST"])
        @validate_body(validate_create_user)
        def create_user(payload):
            ...
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            body = request.get_json(silent=True)
            if body is None:
                raise ValidationError("Request body must be a JSON object")
            kwargs["payload"] = validator(body)
            return fn(*args, **kwargs)
        return wrapper
    return decorator
