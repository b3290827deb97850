import base64
import json

USERS = "/api/v1/users"

NEW_USER = {"email": "ana@example.com", "name": "Ana", "role": "manager", "password": "secret1"}


def _create(client, auth_header, body=None):
    return client.post(USERS, json=body or NEW_USER, headers=auth_header("admin"))


def test_create_user(client, auth_header):
    response = _create(client, auth_header)

    assert response.status_code == 201
    body = response.get_json()
    assert body["success"] is True
    assert body["message"] == "User created successfully"
    assert body["data"]["email"] == "ana@example.com"
    assert body["data"]["role"] == "manager"
    assert body["data"]["isActive"] is True
    assert "password" not in body["data"]
    assert "PK" not in body["data"]


def test_create_duplicate_user_is_conflict(client, auth_header):
    _create(client, auth_header)
    response = _create(client, auth_header)
    assert response.status_code == 409
    assert response.get_json() == {"success": False, "error": "User with this email already exists"}


def test_create_user_validation_error(client, auth_header):
    response = _create(client, auth_header, {**NEW_USER, "password": "123"})
    assert response.status_code == 400
    assert response.get_json()["success"] is False


def test_create_user_without_json_body(client, auth_header):
    response = client.post(USERS, data="plain text", headers=auth_header("admin"))
    assert response.status_code == 400
    assert response.get_json()["error"] == "Request body must be a JSON object"


def test_get_user(client, auth_header):
    user_id = _create(client, auth_header).get_json()["data"]["id"]

    response = client.get(f"{USERS}/{user_id}", headers=auth_header("user"))

    assert response.status_code == 200
    assert response.get_json()["data"]["id"] == user_id
    assert response.get_json()["message"] == "User found successfully"


def test_get_missing_user_is_404(client, auth_header):
    response = client.get(f"{USERS}/missing", headers=auth_header("user"))
    assert response.status_code == 404
    assert response.get_json() == {"success": False, "error": "User not found"}


def test_list_users(client, auth_header):
    _create(client, auth_header)
    _create(client, auth_header, {**NEW_USER, "email": "bia@example.com"})

    response = client.get(f"{USERS}?page=1&limit=10", headers=auth_header("manager"))

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["total"] == 2
    assert data["page"] == 1
    assert data["limit"] == 10
    assert data["totalPages"] == 1
    assert {item["email"] for item in data["items"]} == {"ana@example.com", "bia@example.com"}


def test_list_users_rejects_bad_limit(client, auth_header):
    response = client.get(f"{USERS}?limit=500", headers=auth_header("manager"))
    assert response.status_code == 400


def test_update_user(client, auth_header):
    user_id = _create(client, auth_header).get_json()["data"]["id"]

    response = client.put(f"{USERS}/{user_id}", json={"role": "admin", "isActive": False},
                          headers=auth_header("admin"))

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["role"] == "admin"
    assert data["isActive"] is False


def test_update_missing_user_is_404(client, auth_header):
    response = client.put(f"{USERS}/missing", json={"name": "Bia"}, headers=auth_header("admin"))
    assert response.status_code == 404


def test_update_rejects_unknown_fields(client, auth_header):
    user_id = _create(client, auth_header).get_json()["data"]["id"]
    response = client.put(f"{USERS}/{user_id}", json={"email": "x@y.com"}, headers=auth_header("admin"))
    assert response.status_code == 400


def test_delete_user(client, auth_header):
    user_id = _create(client, auth_header).get_json()["data"]["id"]

    response = client.delete(f"{USERS}/{user_id}", headers=auth_header("admin"))

    assert response.status_code == 200
    assert response.get_json() == {"success": True, "message": "User deleted successfully"}
    assert client.get(f"{USERS}/{user_id}", headers=auth_header("user")).status_code == 404


def test_delete_missing_user_is_404(client, auth_header, identity):
    response = client.delete(f"{USERS}/nonexistent-id", headers=auth_header("admin"))
    assert response.status_code == 404
    assert identity.calls_to("delete_account") == []


def test_user_role_cannot_mutate(client, auth_header):
    assert client.post(USERS, json=NEW_USER, headers=auth_header("user")).status_code == 403
    assert client.put(f"{USERS}/x", json={}, headers=auth_header("manager")).status_code == 403
    assert client.delete(f"{USERS}/x", headers=auth_header("manager")).status_code == 403


def test_list_users_rejects_forged_cursor(client, auth_header, store):
    forged = base64.urlsafe_b64encode(json.dumps({"foo": "bar"}).encode()).decode()

    response = client.get(f"{USERS}?cursor={forged}", headers=auth_header("manager"))

    assert response.status_code == 400
    assert response.get_json() == {"success": False, "error": "Invalid continuation token"}
    assert store.calls_to("scan") == []


def test_list_users_follows_next_cursor(client, auth_header):
    _create(client, auth_header)
    _create(client, auth_header, {**NEW_USER, "email": "bia@example.com"})

    first = client.get(f"{USERS}?limit=1", headers=auth_header("manager")).get_json()["data"]
    second = client.get(f"{USERS}?limit=1&cursor={first['nextCursor']}",
                        headers=auth_header("manager")).get_json()["data"]

    assert len(first["items"]) == len(second["items"]) == 1
    assert first["items"][0]["id"] != second["items"][0]["id"]
