"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
import re
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

LOCALSTACK_ENDPOINT = "http://localhost:4566"

_DURATION_PATTERN = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def _load_secret_from_file(secret_name: str, env_var: str | None = None,
                           environ: Optional[Mapping[str, str]] = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback
        environ: Mapping to read the fallback from (defaults to os.environ)

    Returns:
        Secret value or None if not found
    """
    environ = os.environ if environ is None else environ
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.info("Loaded %s from /run/secrets", secret_name)
                return secret_value
        except OSError as exc:
            logger.warning("Failed to read /run/secrets/%s: %s", secret_name, exc)

    if env_var:
        secret_value = environ.get(env_var)
        if secret_value:
            return secret_value

    return None


def _flag(environ: Mapping[str, str], name: str, default: str = "false") -> bool:
    return environ.get(name, default).strip().lower() == "true"


def parse_duration(raw: str) -> int:
    """Parse a lifetime such as ``24h``, ``30m``, ``15s`` or ``3600`` into seconds."""
    match = _DURATION_PATTERN.match(raw or "")
    if not match:
        raise ValueError(f"Invalid duration: {raw!r}")
    amount, unit = match.groups()
    return int(amount) * _DURATION_UNITS[unit]


@dataclass(frozen=True)
class AppConfig:
    """Application configuration container (immutable, injected at start-up)."""
    # Mode
    local_mode: bool = False
    auth_bypass: bool = False
    auth_bypass_role: str = "admin"

    # API
    api_version: str = "v1"
    log_level: str = "INFO"

    # DynamoDB
    aws_region: str = "us-east-1"
    dynamodb_endpoint_url: str = ""
    users_table: str = "users"
    integrations_table: str = "marketplace_integrations"

    # Cognito
    cognito_user_pool_id: str = ""
    cognito_client_id: str = ""
    cognito_client_secret: str = ""

    # Bearer tokens
    jwt_secret: str = ""
    jwt_expires_in: int = 86400

    # Mercado Livre OAuth
    ml_client_id: str = ""
    ml_client_secret: str = ""
    ml_redirect_uri: str = ""
    ml_code_verifier: str = ""

    @property
    def api_prefix(self) -> str:
        return f"/api/{self.api_version}"


def _require(environ: Mapping[str, str], var_name: str, local_mode: bool) -> str:
    """Get a variable that is mandatory outside local mode."""
    value = environ.get(var_name, "")
    if value or local_mode:
        return value
    raise RuntimeError(f"Environment variable {var_name} is required when LOCAL_MODE is false.")


def load_settings(environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Load application settings from the environment and /run/secrets."""
    environ = os.environ if environ is None else environ

    local_mode = _flag(environ, "LOCAL_MODE")
    auth_bypass = _flag(environ, "AUTH_BYPASS")
    auth_bypass_role = environ.get("AUTH_BYPASS_ROLE", "admin").strip().lower()
    if auth_bypass_role not in {"admin", "manager", "user"}:
        raise RuntimeError(f"AUTH_BYPASS_ROLE must be admin, manager or user (got {auth_bypass_role!r})")

    # Bearer token secret
    jwt_secret = _load_secret_from_file("jwt_secret", "JWT_SECRET", environ)
    if not jwt_secret:
        if not local_mode:
            raise RuntimeError("JWT_SECRET not found in /run/secrets or environment")
        jwt_secret = secrets.token_urlsafe(48)
        logger.warning("[local-mode] Generated temporary JWT_SECRET; issued tokens will not survive a restart")

    try:
        jwt_expires_in = parse_duration(environ.get("JWT_EXPIRES_IN", "24h"))
    except ValueError as exc:
        raise RuntimeError(f"JWT_EXPIRES_IN is invalid: {exc}") from exc

    # DynamoDB
    endpoint_url = environ.get("DYNAMODB_ENDPOINT_URL", "")
    if not endpoint_url and local_mode:
        endpoint_url = LOCALSTACK_ENDPOINT

    # Cognito (not contacted in local mode)
    cognito_user_pool_id = _require(environ, "COGNITO_USER_POOL_ID", local_mode)
    cognito_client_id = _require(environ, "COGNITO_CLIENT_ID", local_mode)
    cognito_client_secret = _load_secret_from_file("cognito_client_secret", "COGNITO_CLIENT_SECRET", environ) or ""

    cfg = AppConfig(
        local_mode=local_mode,
        auth_bypass=auth_bypass,
        auth_bypass_role=auth_bypass_role,
        api_version=environ.get("API_VERSION", "v1").strip() or "v1",
        log_level=environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        aws_region=environ.get("AWS_REGION", "us-east-1"),
        dynamodb_endpoint_url=endpoint_url,
        users_table=environ.get("USERS_TABLE", "users"),
        integrations_table=environ.get("MARKETPLACE_INTEGRATIONS_TABLE", "marketplace_integrations"),
        cognito_user_pool_id=cognito_user_pool_id,
        cognito_client_id=cognito_client_id,
        cognito_client_secret=cognito_client_secret,
        jwt_secret=jwt_secret,
        jwt_expires_in=jwt_expires_in,
        ml_client_id=environ.get("ML_CLIENT_ID", ""),
        ml_client_secret=_load_secret_from_file("ml_client_secret", "ML_CLIENT_SECRET", environ) or "",
        ml_redirect_uri=environ.get("ML_REDIRECT_URI", ""),
        ml_code_verifier=environ.get("ML_CODE_VERIFIER", ""),
    )

    mode_label = "LOCAL" if local_mode else "PRODUCTION"
    logger.info(
        "Mode=%s; region=%s; users_table=%s; integrations_table=%s",
        mode_label, cfg.aws_region, cfg.users_table, cfg.integrations_table,
    )
    if auth_bypass:
        logger.warning("AUTH_BYPASS enabled: every request runs as a synthetic %s", auth_bypass_role)

    return cfg
