from dashboard_api.models.security import RefreshToken


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def _register(client, email="bob@example.com", password="bob-password", name="Bob"):
    return client.post(
        "/api/v1/user/auth/register",
        json={"name": name, "email": email, "password": password},
    )


def test_register_then_profile(client):
    response = _register(client)
    assert response.status_code == 201
    tokens = response.json()
    assert tokens["principal_type"] == "user"

    profile = client.get("/api/v1/user/auth/profile", headers=_bearer(tokens["access_token"]))
    assert profile.status_code == 200
    assert profile.json()["email"] == "bob@example.com"
    assert profile.json()["admin_id"] is None


def test_register_duplicate_email(client):
    _register(client)
    response = _register(client)
    assert response.status_code == 409
    assert response.json()["code"] == "ALREADY_EXISTS"


def test_register_validates_input(client):
    response = _register(client, email="not-an-email", password="short")
    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_user_login_refresh_logout(client, make_user):
    make_user()
    login = client.post("/api/v1/user/auth/login", json={"email": "alice@example.com", "password": "alice-password"})
    assert login.status_code == 200
    tokens = login.json()

    logout = client.post("/api/v1/user/auth/logout", headers=_bearer(tokens["access_token"]))
    assert logout.status_code == 200
    assert client.get("/api/v1/user/auth/profile", headers=_bearer(tokens["access_token"])).status_code == 401

    refreshed = client.post("/api/v1/user/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 200
    profile = client.get("/api/v1/user/auth/profile", headers=_bearer(refreshed.json()["access_token"]))
    assert profile.status_code == 200


def test_admin_token_rejected_on_user_routes(client, make_admin):
    make_admin()
    tokens = client.post(
        "/api/v1/auth/login", json={"email": "admin@example.com", "password": "admin-password"}
    ).json()
    response = client.get("/api/v1/user/auth/profile", headers=_bearer(tokens["access_token"]))
    assert response.status_code == 403


def test_change_password(client):
    tokens = _register(client).json()
    response = client.post(
        "/api/v1/user/auth/change-password",
        json={"current_password": "bob-password", "new_password": "bob-new-password"},
        headers=_bearer(tokens["access_token"]),
    )
    assert response.status_code == 200
    assert response.json()["data"]["token_version"] == 2

    assert client.get("/api/v1/user/auth/profile", headers=_bearer(tokens["access_token"])).status_code == 401
    old = client.post("/api/v1/user/auth/login", json={"email": "bob@example.com", "password": "bob-password"})
    assert old.status_code == 401
    new = client.post("/api/v1/user/auth/login", json={"email": "bob@example.com", "password": "bob-new-password"})
    assert new.status_code == 200


def test_change_password_wrong_current(client):
    tokens = _register(client).json()
    response = client.post(
        "/api/v1/user/auth/change-password",
        json={"current_password": "wrong-password", "new_password": "bob-new-password"},
        headers=_bearer(tokens["access_token"]),
    )
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_CREDENTIALS"


def test_change_password_must_differ(client):
    tokens = _register(client).json()
    response = client.post(
        "/api/v1/user/auth/change-password",
        json={"current_password": "bob-password", "new_password": "bob-password"},
        headers=_bearer(tokens["access_token"]),
    )
    assert response.status_code == 422


def test_user_reads_and_updates_own_profile(client):
    tokens = _register(client).json()
    user_id = tokens["principal_id"]

    read = client.get(f"/api/v1/users/{user_id}", headers=_bearer(tokens["access_token"]))
    assert read.status_code == 200

    update = client.put(
        f"/api/v1/users/{user_id}",
        json={"name": "Robert"},
        headers=_bearer(tokens["access_token"]),
    )
    assert update.status_code == 200
    assert update.json()["name"] == "Robert"
    assert update.json()["email"] == "bob@example.com"


def test_user_cannot_read_other_user(client):
    bob = _register(client).json()
    carol = _register(client, email="carol@example.com", name="Carol").json()
    response = client.get(f"/api/v1/users/{carol['principal_id']}", headers=_bearer(bob["access_token"]))
    assert response.status_code == 403
    assert response.json()["code"] == "PERMISSION_DENIED"


def test_self_check_does_not_coerce_ids(client):
    tokens = _register(client).json()
    user_id = tokens["principal_id"]
    for raw in (f"0{user_id}", f"+{user_id}", f" {user_id}"):
        response = client.get(f"/api/v1/users/{raw}", headers=_bearer(tokens["access_token"]))
        assert response.status_code in (403, 422), raw


def test_admin_reads_any_user(client, make_admin):
    make_admin()
    bob = _register(client).json()
    admin_tokens = client.post(
        "/api/v1/auth/login", json={"email": "admin@example.com", "password": "admin-password"}
    ).json()
    response = client.get(f"/api/v1/users/{bob['principal_id']}", headers=_bearer(admin_tokens["access_token"]))
    assert response.status_code == 200


def test_oversized_profile_id_is_rejected_not_500(client, make_admin):
    make_admin()
    admin_tokens = client.post(
        "/api/v1/auth/login", json={"email": "admin@example.com", "password": "admin-password"}
    ).json()
    response = client.get("/api/v1/users/99999999999999999999", headers=_bearer(admin_tokens["access_token"]))
    assert response.status_code == 422


def test_register_persists_refresh_token(client, db):
    tokens = _register(client).json()
    assert db.query(RefreshToken).filter(RefreshToken.token == tokens["refresh_token"]).count() == 1
