def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def _admin_token(client):
    response = client.post("/api/v1/auth/login", json={"email": "admin@example.com", "password": "admin-password"})
    return response.json()["access_token"]


def _provision(client, token, device_id="sensor-001", name="Sensor"):
    return client.post(
        "/api/v1/admin/devices",
        json={"device_id": device_id, "name": name},
        headers=_bearer(token),
    )


def test_provision_and_authenticate(client, make_admin):
    make_admin()
    response = _provision(client, _admin_token(client))
    assert response.status_code == 201
    body = response.json()
    assert body["device"]["status"] == "inactive"
    assert len(body["api_key"]) == 64

    auth = client.post("/api/v1/auth/device", json={"device_id": "sensor-001", "api_key": body["api_key"]})
    assert auth.status_code == 200
    assert auth.json()["principal_id"] == body["device"]["id"]


def test_duplicate_device_id(client, make_admin):
    make_admin()
    token = _admin_token(client)
    _provision(client, token)
    response = _provision(client, token)
    assert response.status_code == 409


def test_list_get_rename(client, make_admin):
    make_admin()
    token = _admin_token(client)
    device = _provision(client, token).json()["device"]
    _provision(client, token, device_id="sensor-002")

    listing = client.get("/api/v1/admin/devices", headers=_bearer(token)).json()
    assert listing["total"] == 2
    assert all("api_key" not in d and "api_key_hash" not in d for d in listing["items"])

    renamed = client.put(f"/api/v1/admin/devices/{device['id']}", json={"name": "Boiler"}, headers=_bearer(token))
    assert renamed.status_code == 200
    assert renamed.json()["name"] == "Boiler"
    assert client.get(f"/api/v1/admin/devices/{device['id']}", headers=_bearer(token)).json()["name"] == "Boiler"


def test_reset_key_invalidates_device_tokens(client, make_admin):
    make_admin()
    token = _admin_token(client)
    created = _provision(client, token).json()
    device_tokens = client.post(
        "/api/v1/auth/device", json={"device_id": "sensor-001", "api_key": created["api_key"]}
    ).json()

    reset = client.post(f"/api/v1/admin/devices/{created['device']['id']}/reset-key", headers=_bearer(token))
    assert reset.status_code == 200
    new_key = reset.json()["api_key"]
    assert new_key != created["api_key"]

    logout = client.post("/api/v1/auth/logout", headers=_bearer(device_tokens["access_token"]))
    assert logout.status_code == 401
    assert logout.json()["code"] == "TOKEN_REVOKED"

    old = client.post("/api/v1/auth/device", json={"device_id": "sensor-001", "api_key": created["api_key"]})
    assert old.status_code == 401
    new = client.post("/api/v1/auth/device", json={"device_id": "sensor-001", "api_key": new_key})
    assert new.status_code == 200


def test_delete_device_revokes_its_refresh_tokens(client, make_admin):
    make_admin()
    token = _admin_token(client)
    created = _provision(client, token).json()
    device_tokens = client.post(
        "/api/v1/auth/device", json={"device_id": "sensor-001", "api_key": created["api_key"]}
    ).json()

    assert client.delete(f"/api/v1/admin/devices/{created['device']['id']}", headers=_bearer(token)).status_code == 200
    refreshed = client.post("/api/v1/auth/refresh", json={"refresh_token": device_tokens["refresh_token"]})
    assert refreshed.status_code == 401
    assert client.get(f"/api/v1/admin/devices/{created['device']['id']}", headers=_bearer(token)).status_code == 404
