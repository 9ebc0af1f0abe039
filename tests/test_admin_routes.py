from dashboard_api.core.tokens import PrincipalType
from dashboard_api.models.security import RefreshToken
from dashboard_api.models.user import User
from dashboard_api.services.token_service import refresh_token_ledger


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def _admin_token(client, email="admin@example.com", password="admin-password"):
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()["access_token"]


def test_dashboard(client, make_admin, make_user):
    make_admin()
    make_user()
    response = client.get("/api/v1/admin/dashboard", headers=_bearer(_admin_token(client)))
    assert response.status_code == 200
    body = response.json()
    assert body["admins"] == 1
    assert body["users"] == 1
    assert body["active_refresh_tokens"] == 1


def test_admin_routes_reject_users(client, make_user):
    make_user()
    tokens = client.post(
        "/api/v1/user/auth/login", json={"email": "alice@example.com", "password": "alice-password"}
    ).json()
    response = client.get("/api/v1/admin/users", headers=_bearer(tokens["access_token"]))
    assert response.status_code == 403


def test_create_user_returns_generated_password_once(client, make_admin):
    admin = make_admin()
    token = _admin_token(client)
    response = client.post(
        "/api/v1/admin/users",
        json={"name": "Dana", "email": "dana@example.com"},
        headers=_bearer(token),
    )
    assert response.status_code == 201
    body = response.json()
    assert body["user"]["admin_id"] == admin.id
    assert len(body["password"]) >= 16

    login = client.post(
        "/api/v1/user/auth/login", json={"email": "dana@example.com", "password": body["password"]}
    )
    assert login.status_code == 200
    assert "password" not in client.get(
        f"/api/v1/admin/users/{body['user']['id']}", headers=_bearer(token)
    ).json()


def test_list_users_paginates_and_searches(client, make_admin, make_user):
    make_admin()
    for i in range(5):
        make_user(email=f"user{i}@example.com", name=f"User {i}")
    make_user(email="zed@example.com", name="Zed")
    token = _admin_token(client)

    page = client.get("/api/v1/admin/users?page=2&limit=2", headers=_bearer(token)).json()
    assert page["total"] == 6
    assert page["pages"] == 3
    assert len(page["items"]) == 2

    found = client.get("/api/v1/admin/users?search=zed", headers=_bearer(token)).json()
    assert [u["email"] for u in found["items"]] == ["zed@example.com"]

    assert client.get("/api/v1/admin/users?limit=101", headers=_bearer(token)).status_code == 422


def test_admin_cannot_manage_other_admins_users(client, make_admin, make_user):
    owner = make_admin(email="owner@example.com")
    make_admin(email="other@example.com")
    user = make_user(admin_id=owner.id)
    token = _admin_token(client, email="other@example.com")

    assert client.delete(f"/api/v1/admin/users/{user.id}", headers=_bearer(token)).status_code == 403
    assert client.put(
        f"/api/v1/admin/users/{user.id}", json={"name": "X"}, headers=_bearer(token)
    ).status_code == 403
    assert client.post(
        f"/api/v1/admin/users/{user.id}/reset-password", headers=_bearer(token)
    ).status_code == 403
    # Reading is allowed
    assert client.get(f"/api/v1/admin/users/{user.id}", headers=_bearer(token)).status_code == 200


def test_reset_password_invalidates_user_sessions(client, make_admin, make_user):
    make_admin()
    user = make_user()
    user_tokens = client.post(
        "/api/v1/user/auth/login", json={"email": "alice@example.com", "password": "alice-password"}
    ).json()

    response = client.post(f"/api/v1/admin/users/{user.id}/reset-password", headers=_bearer(_admin_token(client)))
    assert response.status_code == 200
    new_password = response.json()["password"]

    assert client.get("/api/v1/user/auth/profile", headers=_bearer(user_tokens["access_token"])).status_code == 401
    assert client.post(
        "/api/v1/user/auth/login", json={"email": "alice@example.com", "password": new_password}
    ).status_code == 200


def test_delete_user_cascades_refresh_tokens(client, db, make_admin, make_user):
    make_admin()
    user = make_user()
    user_id = user.id
    refresh_token_ledger.issue(db, user_id, PrincipalType.USER)
    refresh_token_ledger.issue(db, user_id, PrincipalType.USER)

    response = client.delete(f"/api/v1/admin/users/{user_id}", headers=_bearer(_admin_token(client)))
    assert response.status_code == 200

    db.expunge_all()
    assert db.get(User, user_id) is None
    assert db.query(RefreshToken).filter(
        RefreshToken.principal_id == user_id, RefreshToken.principal_type == "user"
    ).count() == 0


def test_missing_user_is_not_found(client, make_admin):
    make_admin()
    response = client.get("/api/v1/admin/users/999", headers=_bearer(_admin_token(client)))
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_oversized_user_id_is_rejected_not_500(client, make_admin):
    make_admin()
    token = _admin_token(client)
    for method in ("get", "delete"):
        response = getattr(client, method)("/api/v1/admin/users/99999999999999999999", headers=_bearer(token))
        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"
    response = client.get(f"/api/v1/admin/users/{2 ** 53}", headers=_bearer(token))
    assert response.status_code == 422


def test_revoke_sessions(client, make_admin, make_user):
    make_admin()
    user = make_user()
    user_tokens = client.post(
        "/api/v1/user/auth/login", json={"email": "alice@example.com", "password": "alice-password"}
    ).json()

    response = client.post(
        "/api/v1/admin/sessions/revoke",
        json={"principal_type": "user", "principal_id": user.id},
        headers=_bearer(_admin_token(client)),
    )
    assert response.status_code == 200
    assert response.json()["refresh_tokens_revoked"] == 1
    assert response.json()["token_version"] == 3

    assert client.get("/api/v1/user/auth/profile", headers=_bearer(user_tokens["access_token"])).status_code == 401
    refreshed = client.post("/api/v1/user/auth/refresh", json={"refresh_token": user_tokens["refresh_token"]})
    assert refreshed.status_code == 401
    assert refreshed.json()["code"] == "INVALID_REFRESH_TOKEN"


def test_revoke_sessions_unknown_principal(client, make_admin):
    make_admin()
    response = client.post(
        "/api/v1/admin/sessions/revoke",
        json={"principal_type": "device", "principal_id": 42},
        headers=_bearer(_admin_token(client)),
    )
    assert response.status_code == 404


def test_sweep_endpoint(client, db, make_admin):
    make_admin()
    record = refresh_token_ledger.issue(db, 99, PrincipalType.USER)
    refresh_token_ledger.revoke(db, record.token)

    response = client.post("/api/v1/admin/maintenance/sweep-refresh-tokens", headers=_bearer(_admin_token(client)))
    assert response.status_code == 200
    assert response.json()["data"]["removed"] == 1
