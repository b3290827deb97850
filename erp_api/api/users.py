"""User management routes (mounted at ``<api_prefix>/users``)."""
from flask import Blueprint, request

from erp_api.api import get_service
from erp_api.api.decorators import (
    authenticate_token,
    require_admin,
    require_manager,
    require_user,
    validate_body,
)
from erp_api.api.responses import api_response
from erp_api.core.errors import NotFoundError
from erp_api.core.validators import validate_create_user, validate_pagination, validate_update_user

bp = Blueprint("users", __name__)
bp.before_request(authenticate_token)


@bp.route("", methods=["GET"])
@require_manager
def list_users():
    """GET /users?page=&limit=&cursor= (manager+)."""
    params = validate_pagination(request.args)
    page = get_service("users").list_users(params["page"], params["limit"], request.args.get("cursor"))
    return api_response(page, "Users listed successfully")


@bp.route("/<user_id>", methods=["GET"])
@require_user
def get_user(user_id: str):
    user = get_service("users").get_user_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return api_response(user, "User found successfully")


@bp.route("", methods=["POST"])
@require_admin
@validate_body(validate_create_user)
def create_user(payload: dict):
    """POST /users (admin); the password is never echoed back."""
    user = get_service("users").create_user(payload)
    return api_response(user, "User created successfully", 201)


@bp.route("/<user_id>", methods=["PUT"])
@require_admin
@validate_body(validate_update_user)
def update_user(user_id: str, payload: dict):
    user = get_service("users").update_user(user_id, payload)
    return api_response(user, "User updated successfully")


@bp.route("/<user_id>", methods=["DELETE"])
@require_admin
def delete_user(user_id: str):
    get_service("users").delete_user(user_id)
    return api_response(message="User deleted successfully")
