from urllib.parse import quote

BASE = "/api/v1/marketplace-integrations"


def _create(client, auth_header, sub="caller-1", code="TG-1"):
    response = client.post(BASE, json={"marketplaceType": "mercadolivre", "code": code},
                           headers=auth_header("user", sub=sub))
    assert response.status_code == 201
    return response.get_json()["data"]


def _ref(data):
    return quote(f"USER#{data['userId']}#MARKETPLACE#{data['marketplaceType']}#{data['id']}", safe="")


def test_create_integration_for_caller(client, auth_header, marketplace_adapter):
    data = _create(client, auth_header)

    assert marketplace_adapter.codes == ["TG-1"]
    assert data["userId"] == "caller-1"
    assert data["status"] == "active"
    assert data["accessToken"] == "access-TG-1"
    assert data["storeName"] == "Loja Teste"
    assert "GSI2PK" not in data
    assert "lastSyncAt" not in data


def test_create_integration_requires_code(client, auth_header):
    response = client.post(BASE, json={"marketplaceType": "mercadolivre"}, headers=auth_header("user"))
    assert response.status_code == 400
    assert response.get_json()["error"] == "code is required"


def test_create_unsupported_marketplace(client, auth_header):
    response = client.post(BASE, json={"marketplaceType": "amazon", "code": "x"}, headers=auth_header("user"))
    assert response.status_code == 400
    assert response.get_json()["error"] == "Marketplace type not supported"


def test_create_when_marketplace_fails(client, auth_header, marketplace_adapter):
    marketplace_adapter.error = RuntimeError("invalid_grant")
    response = client.post(BASE, json={"marketplaceType": "mercadolivre", "code": "x"}, headers=auth_header("user"))
    assert response.status_code == 500
    assert response.get_json() == {"success": False, "error": "Error getting marketplace info"}


def test_get_integration_by_reference(client, auth_header):
    data = _create(client, auth_header)

    response = client.get(f"{BASE}/{_ref(data)}", headers=auth_header("user"))

    assert response.status_code == 200
    assert response.get_json()["data"]["id"] == data["id"]


def test_get_missing_integration_is_404(client, auth_header):
    ref = quote("USER#u1#MARKETPLACE#mercadolivre#nope", safe="")
    response = client.get(f"{BASE}/{ref}", headers=auth_header("user"))
    assert response.status_code == 404
    assert response.get_json()["error"] == "Marketplace integration not found"


def test_malformed_reference_is_400(client, auth_header):
    response = client.get(f"{BASE}/some-uuid", headers=auth_header("user"))
    assert response.status_code == 400


def test_list_by_user(client, auth_header):
    _create(client, auth_header, sub="caller-1")
    _create(client, auth_header, sub="caller-2")

    response = client.get(f"{BASE}/user/caller-1", headers=auth_header("user"))

    assert response.status_code == 200
    assert [item["userId"] for item in response.get_json()["data"]] == ["caller-1"]


def test_list_by_type_requires_manager(client, auth_header):
    _create(client, auth_header)
    assert client.get(f"{BASE}/type/mercadolivre", headers=auth_header("user")).status_code == 403

    response = client.get(f"{BASE}/type/mercadolivre", headers=auth_header("manager"))
    assert response.status_code == 200
    assert len(response.get_json()["data"]) == 1

    assert client.get(f"{BASE}/type/ebay", headers=auth_header("manager")).status_code == 400


def test_list_by_status(client, auth_header):
    data = _create(client, auth_header)
    client.patch(f"{BASE}/{_ref(data)}/status", json={"status": "pending"}, headers=auth_header("user"))

    pending = client.get(f"{BASE}/status/pending", headers=auth_header("manager")).get_json()["data"]
    active = client.get(f"{BASE}/status/active", headers=auth_header("manager")).get_json()["data"]

    assert [item["id"] for item in pending] == [data["id"]]
    assert active == []


def test_paginated_list(client, auth_header):
    _create(client, auth_header)
    response = client.get(f"{BASE}?page=1&limit=5", headers=auth_header("admin"))
    assert response.status_code == 200
    assert response.get_json()["data"]["total"] == 1


def test_update_integration(client, auth_header):
    data = _create(client, auth_header)

    response = client.put(f"{BASE}/{_ref(data)}", json={"storeName": "Nova Loja", "status": "inactive"},
                          headers=auth_header("user"))

    assert response.status_code == 200
    assert response.get_json()["data"]["storeName"] == "Nova Loja"
    assert response.get_json()["data"]["status"] == "inactive"


def test_update_missing_integration_is_404(client, auth_header):
    ref = quote("USER#u1#MARKETPLACE#mercadolivre#nope", safe="")
    response = client.put(f"{BASE}/{ref}", json={"storeName": "x"}, headers=auth_header("user"))
    assert response.status_code == 404


def test_update_status_scenario(client, auth_header, clock):
    data = _create(client, auth_header)
    url = f"{BASE}/{_ref(data)}/status"

    clock.advance(minutes=1)
    active = client.patch(url, json={"status": "active"}, headers=auth_header("user")).get_json()["data"]
    clock.advance(minutes=1)
    failed = client.patch(url, json={"status": "error", "errorMessage": "boom"},
                          headers=auth_header("user")).get_json()["data"]

    assert active["lastSyncAt"] == "2024-05-01T12:01:00.000Z"
    assert failed["lastSyncAt"] == "2024-05-01T12:01:00.000Z"
    assert failed["errorMessage"] == "boom"
    assert failed["status"] == "error"


def test_update_status_requires_status(client, auth_header):
    data = _create(client, auth_header)
    response = client.patch(f"{BASE}/{_ref(data)}/status", json={}, headers=auth_header("user"))
    assert response.status_code == 400
    assert response.get_json()["error"] == "status is required"


def test_refresh_token(client, auth_header):
    data = _create(client, auth_header)

    response = client.patch(f"{BASE}/{_ref(data)}/refresh-token", json={"accessToken": "new"},
                            headers=auth_header("user"))

    assert response.status_code == 200
    assert response.get_json()["data"]["accessToken"] == "new"
    assert response.get_json()["data"]["refreshToken"] == "refresh-TG-1"
    assert response.get_json()["message"] == "Access token refreshed successfully"


def test_refresh_token_requires_access_token(client, auth_header):
    data = _create(client, auth_header)
    response = client.patch(f"{BASE}/{_ref(data)}/refresh-token", json={}, headers=auth_header("user"))
    assert response.status_code == 400


def test_delete_integration(client, auth_header):
    data = _create(client, auth_header)

    response = client.delete(f"{BASE}/{data['userId']}/mercadolivre/{data['id']}", headers=auth_header("user"))

    assert response.status_code == 200
    assert response.get_json()["message"] == "Marketplace integration deleted successfully"
    assert client.get(f"{BASE}/{_ref(data)}", headers=auth_header("user")).status_code == 404


def test_delete_missing_integration_succeeds(client, auth_header):
    response = client.delete(f"{BASE}/u1/shopee/nope", headers=auth_header("user"))
    assert response.status_code == 200


def test_delete_with_unknown_type_is_400(client, auth_header):
    response = client.delete(f"{BASE}/u1/ebay/nope", headers=auth_header("user"))
    assert response.status_code == 400


def test_recovering_status_clears_error_message(client, auth_header):
    data = _create(client, auth_header)
    url = f"{BASE}/{_ref(data)}/status"
    client.patch(url, json={"status": "error", "errorMessage": "token revoked"}, headers=auth_header("user"))

    recovered = client.patch(url, json={"status": "active"}, headers=auth_header("user")).get_json()["data"]

    assert recovered["status"] == "active"
    assert "errorMessage" not in recovered
