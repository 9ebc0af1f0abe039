def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def _admin_token(client, email="admin@example.com", password="admin-password"):
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()["access_token"]


def _create(client, token, **overrides):
    payload = {"title": "Hello World", "content": "Some article body text"}
    payload.update(overrides)
    return client.post("/api/v1/admin/articles", json=payload, headers=_bearer(token))


def test_create_list_publish(client, make_admin):
    admin = make_admin()
    token = _admin_token(client)

    created = _create(client, token)
    assert created.status_code == 201
    article = created.json()
    assert article["slug"] == "hello-world"
    assert article["status"] == "draft"
    assert article["published_at"] is None
    assert article["admin_id"] == admin.id
    assert article["author_email"] == "admin@example.com"

    second = _create(client, token).json()
    assert second["slug"] == "hello-world-1"

    listing = client.get("/api/v1/admin/articles", headers=_bearer(token)).json()
    assert listing["total"] == 2
    assert listing["limit"] == 10
    assert [a["id"] for a in listing["items"]] == [second["id"], article["id"]]

    published = client.post(f"/api/v1/admin/articles/{article['id']}/publish", headers=_bearer(token))
    assert published.status_code == 200
    assert published.json()["status"] == "published"
    assert published.json()["published_at"] is not None

    drafts = client.get("/api/v1/admin/articles", params={"status": "draft"}, headers=_bearer(token)).json()
    assert [a["id"] for a in drafts["items"]] == [second["id"]]

    summary = client.get("/api/v1/admin/dashboard", headers=_bearer(token)).json()
    assert summary["articles"] == 2
    assert summary["published_articles"] == 1


def test_search_and_status_validation(client, make_admin):
    make_admin()
    token = _admin_token(client)
    _create(client, token, title="Kubernetes notes", content="Pods, services and deployments")
    _create(client, token, title="Cooking", content="Rice takes twenty minutes")

    found = client.get("/api/v1/admin/articles", params={"search": "pods"}, headers=_bearer(token)).json()
    assert found["total"] == 1
    assert found["items"][0]["slug"] == "kubernetes-notes"

    bad = client.get("/api/v1/admin/articles", params={"status": "deleted"}, headers=_bearer(token))
    assert bad.status_code == 422


def test_create_validates_input(client, make_admin):
    make_admin()
    token = _admin_token(client)
    assert _create(client, token, title="ab").status_code == 422
    assert _create(client, token, content="short").status_code == 422
    assert _create(client, token, slug="Not A Slug").status_code == 422
    assert _create(client, token, status="live").status_code == 422


def test_get_update_delete(client, make_admin):
    make_admin()
    token = _admin_token(client)
    article = _create(client, token).json()
    url = f"/api/v1/admin/articles/{article['id']}"

    assert client.get(url, headers=_bearer(token)).json()["title"] == "Hello World"

    updated = client.put(url, json={"title": "Goodbye World", "slug": "goodbye-world"}, headers=_bearer(token))
    assert updated.status_code == 200
    assert updated.json()["slug"] == "goodbye-world"
    assert updated.json()["content"] == "Some article body text"

    assert client.delete(url, headers=_bearer(token)).status_code == 200
    missing = client.get(url, headers=_bearer(token))
    assert missing.status_code == 404
    assert missing.json()["code"] == "NOT_FOUND"


def test_other_admin_can_read_but_not_modify(client, make_admin):
    make_admin()
    make_admin(email="other@example.com", password="other-password")
    article = _create(client, _admin_token(client)).json()
    other = _admin_token(client, email="other@example.com", password="other-password")
    url = f"/api/v1/admin/articles/{article['id']}"

    assert client.get(url, headers=_bearer(other)).status_code == 200
    for response in (
        client.put(url, json={"title": "Hijacked title"}, headers=_bearer(other)),
        client.delete(url, headers=_bearer(other)),
        client.post(f"{url}/publish", headers=_bearer(other)),
    ):
        assert response.status_code == 403
        assert response.json()["code"] == "PERMISSION_DENIED"


def test_articles_require_admin(client, make_user):
    make_user()
    tokens = client.post(
        "/api/v1/user/auth/login", json={"email": "alice@example.com", "password": "alice-password"}
    ).json()
    assert client.get("/api/v1/admin/articles", headers=_bearer(tokens["access_token"])).status_code == 403
    assert client.get("/api/v1/admin/articles").status_code == 401
