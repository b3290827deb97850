"""Marketplace integration routes (mounted at ``<api_prefix>/marketplace-integrations``).

Item routes take an integration reference,
``USER#<userId>#MARKETPLACE#<marketplaceType>#<id>``, percent-encoded in the
URL (``USER%23...``).
"""
from flask import Blueprint, request

from erp_api.api import get_service
from erp_api.api.decorators import (
    authenticate_token,
    get_current_user,
    require_manager,
    require_user,
    validate_body,
)
from erp_api.api.responses import api_response
from erp_api.core.dynamodb import IntegrationRef
from erp_api.core.errors import AuthenticationError, NotFoundError, ValidationError
from erp_api.core.models import IntegrationStatus, MarketplaceType
from erp_api.core.validators import (
    validate_create_integration,
    validate_pagination,
    validate_status_update,
    validate_token_refresh,
    validate_update_integration,
)

bp = Blueprint("marketplace_integrations", __name__)
bp.before_request(authenticate_token)


def _marketplace_type(raw: str) -> MarketplaceType:
    try:
        return MarketplaceType(raw)
    except ValueError:
        raise ValidationError(f"Unknown marketplace type: {raw}") from None


# ─────────────────────────────────────────────────────────────────────────────
# Collection queries
# ─────────────────────────────────────────────────────────────────────────────
@bp.route("", methods=["GET"])
@require_manager
def list_integrations():
    params = validate_pagination(request.args)
    page = get_service("integrations").list_integrations(
        params["page"], params["limit"], request.args.get("cursor"),
    )
    return api_response(page, "Marketplace integrations listed successfully")


@bp.route("/user/<user_id>", methods=["GET"])
@require_user
def list_by_user(user_id: str):
    integrations = get_service("integrations").list_integrations_by_user(user_id)
    return api_response(integrations, "User marketplace integrations found successfully")


@bp.route("/type/<marketplace_type>", methods=["GET"])
@require_manager
def list_by_type(marketplace_type: str):
    integrations = get_service("integrations").list_integrations_by_type(_marketplace_type(marketplace_type))
    return api_response(integrations, "Marketplace integrations by type found successfully")


@bp.route("/status/<status>", methods=["GET"])
@require_manager
def list_by_status(status: str):
    try:
        status_value = IntegrationStatus(status)
    except ValueError:
        raise ValidationError(f"Unknown integration status: {status}") from None
    integrations = get_service("integrations").list_integrations_by_status(status_value)
    return api_response(integrations, "Marketplace integrations by status found successfully")


# ─────────────────────────────────────────────────────────────────────────────
# Create
# ─────────────────────────────────────────────────────────────────────────────
@bp.route("", methods=["POST"])
@require_user
@validate_body(validate_create_integration)
def create_integration(payload: dict):
    """Exchange ``code`` with the marketplace and store the integration for the caller."""
    owner_id = (get_current_user() or {}).get("sub")
    if not owner_id:
        raise AuthenticationError("Authentication required")
    integration = get_service("integrations").create_integration(payload, owner_id)
    return api_response(integration, "Marketplace integration created successfully", 201)


# ─────────────────────────────────────────────────────────────────────────────
# Single integration
# ─────────────────────────────────────────────────────────────────────────────
@bp.route("/<ref>", methods=["GET"])
@require_user
def get_integration(ref: str):
    integration = get_service("integrations").get_integration(IntegrationRef.parse(ref))
    if integration is None:
        raise NotFoundError("Marketplace integration not found")
    return api_response(integration, "Marketplace integration found successfully")


@bp.route("/<ref>", methods=["PUT"])
@require_user
@validate_body(validate_update_integration)
def update_integration(ref: str, payload: dict):
    integration = get_service("integrations").update_integration(IntegrationRef.parse(ref), payload)
    return api_response(integration, "Marketplace integration updated successfully")


@bp.route("/<ref>/status", methods=["PATCH"])
@require_user
@validate_body(validate_status_update)
def update_status(ref: str, payload: dict):
    integration = get_service("integrations").update_status(
        IntegrationRef.parse(ref), payload["status"], payload.get("errorMessage"),
    )
    return api_response(integration, "Integration status updated successfully")


@bp.route("/<ref>/refresh-token", methods=["PATCH"])
@require_user
@validate_body(validate_token_refresh)
def refresh_token(ref: str, payload: dict):
    integration = get_service("integrations").refresh_access_token(
        IntegrationRef.parse(ref), payload["accessToken"], payload.get("refreshToken"),
    )
    return api_response(integration, "Access token refreshed successfully")


@bp.route("/<user_id>/<marketplace_type>/<integration_id>", methods=["DELETE"])
@require_user
def delete_integration(user_id: str, marketplace_type: str, integration_id: str):
    get_service("integrations").delete_integration(user_id, _marketplace_type(marketplace_type), integration_id)
    return api_response(message="Marketplace integration deleted successfully")
