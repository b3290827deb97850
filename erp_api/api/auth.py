"""Login route: credentials in, bearer token out (mounted at ``<api_prefix>/auth``)."""
import logging

from flask import Blueprint

from erp_api.api import get_service
from erp_api.api.decorators import validate_body
from erp_api.api.responses import api_response
from erp_api.core.validators import validate_login

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)


@bp.route("/login", methods=["POST"])
@validate_body(validate_login)
def login(payload: dict):
    """Public. Returns ``{"user": ..., "token": ...}``."""
    result = get_service("users").authenticate(payload["email"], payload["password"])
    logger.info(f"Issued bearer token for user {result['user'].id}")
    return api_response(result, "Login successful")
