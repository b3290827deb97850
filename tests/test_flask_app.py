import dataclasses

from erp_api.api import EXTENSION_KEY
from erp_api.flask_app import create_app


def test_services_and_config_are_attached(app, cfg, user_service, integration_service):
    assert app.config["APP_CONFIG"] is cfg
    assert app.extensions[EXTENSION_KEY] == {"users": user_service, "integrations": integration_service}


def test_blueprints_mount_under_api_prefix(app):
    rules = {rule.rule for rule in app.url_map.iter_rules()}
    assert "/api/v1/health" in rules
    assert "/api/v1/auth/login" in rules
    assert "/api/v1/users" in rules
    assert "/api/v1/users/<user_id>" in rules
    assert "/api/v1/marketplace-integrations" in rules
    assert "/api/v1/marketplace-integrations/<ref>/status" in rules
    assert "/api/v1/marketplace-integrations/<user_id>/<marketplace_type>/<integration_id>" in rules


def test_api_version_changes_prefix(cfg, user_service, integration_service):
    v2 = dataclasses.replace(cfg, api_version="v2")
    app = create_app(v2, services={"users": user_service, "integrations": integration_service})
    client = app.test_client()

    assert client.get("/api/v2/health").status_code == 200
    assert client.get("/api/v1/health").status_code == 404


def test_unknown_route_uses_envelope(client):
    response = client.get("/api/v1/nope")
    assert response.status_code == 404
    assert response.get_json() == {"success": False, "error": "Route not found"}


def test_unexpected_service_failure_is_500(client, auth_header, user_service, monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("dynamodb unreachable")

    monkeypatch.setattr(user_service, "get_user_by_id", explode)
    response = client.get("/api/v1/users/x", headers=auth_header("user"))

    assert response.status_code == 500
    assert response.get_json() == {"success": False, "error": "Internal server error"}
