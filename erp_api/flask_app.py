"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the Flask application with all blueprints, services, and configuration.
"""
from __future__ import annotations
import logging
from typing import Mapping, Optional

from flask import Flask

from erp_api.api import EXTENSION_KEY
from erp_api.config import AppConfig, load_settings
from erp_api.core.cognito import build_identity_provider
from erp_api.core.dynamodb import DynamoStore, IntegrationRequests, UserRequests
from erp_api.core.integration_service import IntegrationService
from erp_api.core.marketplaces import MarketplaceRegistry
from erp_api.core.tokens import claims_for_user, generate_token
from erp_api.core.user_service import UserService

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(cfg: Optional[AppConfig] = None, services: Optional[Mapping[str, object]] = None) -> Flask:
    """Create and configure Flask application.

    Args:
        cfg: Settings; loaded from the environment when omitted
        services: Prebuilt ``{"users": ..., "integrations": ...}``; built from
            ``cfg`` when omitted (tests pass fakes here)
    """
    # Load configuration
    cfg = cfg or load_settings()
    _configure_logging(cfg)

    # Create Flask app
    app = Flask(__name__)

    # Store config for easy access in routes
    app.config["APP_CONFIG"] = cfg
    app.json.sort_keys = False

    app.extensions[EXTENSION_KEY] = dict(services) if services is not None else build_services(cfg)

    # Register blueprints
    from erp_api.api import auth, errors, health, marketplace_integrations, users

    prefix = cfg.api_prefix
    app.register_blueprint(health.bp, url_prefix=prefix)
    app.register_blueprint(auth.bp, url_prefix=f"{prefix}/auth")
    app.register_blueprint(users.bp, url_prefix=f"{prefix}/users")
    app.register_blueprint(marketplace_integrations.bp, url_prefix=f"{prefix}/marketplace-integrations")

    # Register error handlers
    errors.register_error_handlers(app)

    # Log startup info
    mode_label = "LOCAL" if cfg.local_mode else "PRODUCTION"
    app.logger.info(f"Mode={mode_label}; API registered at {prefix}")
    if cfg.auth_bypass:
        app.logger.warning("AUTH_BYPASS active - do not deploy with bypass enabled")

    return app


def build_services(cfg: AppConfig) -> dict:
    """Build the stateless services shared by every request."""
    store = DynamoStore.from_config(cfg)

    def issue_token(user) -> str:
        return generate_token(claims_for_user(user), cfg.jwt_secret, cfg.jwt_expires_in)

    return {
        "users": UserService(
            store,
            build_identity_provider(cfg),
            UserRequests(cfg.users_table),
            token_issuer=issue_token,
        ),
        "integrations": IntegrationService(
            store,
            IntegrationRequests(cfg.integrations_table),
            MarketplaceRegistry.from_config(cfg),
        ),
    }


def _configure_logging(cfg: AppConfig) -> None:
    level = getattr(logging, cfg.log_level, logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    root.setLevel(level)
    # boto noise
    logging.getLogger("botocore").setLevel(max(level, logging.WARNING))


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000, debug=True)
