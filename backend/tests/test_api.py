import json

from conftest import jpeg_bytes


def _login(client, username="admin", password="admin123"):
    return client.post("/api/v1/auth/login", json={"username": username, "password": password})


def test_health_and_root(client):
    assert client.get("/health").json()["readiness"]["database"]["ok"] is True
    assert client.get("/").json()["status"] == "running"


def test_login_sets_refresh_cookie(client):
    response = _login(client)

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["username"] == "admin"
    assert body["user"]["role"] == "ADMIN"
    cookie = response.headers["set-cookie"]
    assert "refreshToken=" in cookie
    assert "HttpOnly" in cookie
    assert "Path=/api" in cookie


def test_bad_login_uses_error_envelope(client):
    response = _login(client, password="wrong-password")

    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "INVALID_CREDENTIALS"
    assert body["path"] == "/api/v1/auth/login"


def test_refresh_rotates_and_rejects_replay(client):
    first = _login(client).json()["refresh_token"]

    response = client.post("/api/v1/auth/refresh", json={"refresh_token": first})
    assert response.status_code == 200
    second = response.json()["refresh_token"]
    assert second != first

    replay = client.post("/api/v1/auth/refresh", json={"refresh_token": first})
    assert replay.status_code == 401
    assert replay.json()["code"] == "INVALID_REFRESH_TOKEN"

    assert client.post("/api/v1/auth/refresh", json={"refresh_token": second}).status_code == 200


def test_refresh_from_cookie(client):
    _login(client)

    response = client.post("/api/v1/auth/refresh")

    assert response.status_code == 200
    assert response.json()["access_token"]


def test_cookie_refresh_from_foreign_origin_is_forbidden(client):
    _login(client)

    response = client.post("/api/v1/auth/refresh", headers={"Origin": "https://evil.example"})

    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


def test_refresh_without_token(client):
    response = client.post("/api/v1/auth/refresh")
    assert response.status_code == 401


def test_logout_revokes_once(client):
    refresh = _login(client).json()["refresh_token"]

    first = client.post("/api/v1/auth/logout", json={"refresh_token": refresh})
    second = client.post("/api/v1/auth/logout", json={"refresh_token": refresh})

    assert first.status_code == 200
    assert first.json()["refresh_token_revoked"] is True
    assert second.status_code == 200
    assert second.json()["refresh_token_revoked"] is False
    assert client.post("/api/v1/auth/refresh", json={"refresh_token": refresh}).status_code == 401


def test_protected_routes_require_token_and_role(client, admin_headers):
    assert client.get("/api/v1/users/").status_code == 401

    created = client.post(
        "/api/v1/auth/register",
        json={"username": "budi", "password": "secret1"},
        headers=admin_headers,
    )
    assert created.status_code == 201

    token = _login(client, "budi", "secret1").json()["access_token"]
    user_headers = {"Authorization": f"Bearer {token}"}
    forbidden = client.get("/api/v1/users/", headers=user_headers)
    assert forbidden.status_code == 403
    assert client.get("/api/v1/areas/", headers=user_headers).status_code == 200


def test_deactivated_user_loses_access(client, admin_headers):
    user_id = client.post(
        "/api/v1/auth/register",
        json={"username": "budi", "password": "secret1"},
        headers=admin_headers,
    ).json()["id"]
    login = _login(client, "budi", "secret1").json()

    removed = client.delete(f"/api/v1/users/{user_id}", headers=admin_headers)
    assert removed.status_code == 200
    assert removed.json()["success"] is True
    assert removed.json()["data"]["status"] == "INACTIVE"

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {login['access_token']}"})
    assert me.status_code == 403
    assert me.json()["code"] == "USER_DISABLED"
    refresh = client.post("/api/v1/auth/refresh", json={"refresh_token": login["refresh_token"]})
    assert refresh.status_code == 401


def test_upload_into_comparison_group(client, admin_headers):
    response = client.post(
        "/api/v1/photos/",
        headers=admin_headers,
        data={
            "areaName": "Gudang A",
            "comparisonGroupTitle": "Pintu depan",
            "fileMeta": json.dumps([{"category": "BEFORE", "takenAt": "2024-03-05T08:00:00Z"}, {"category": "ACTION"}]),
        },
        files=[
            ("files", ("before.jpg", jpeg_bytes(), "image/jpeg")),
            ("files", ("action.jpg", jpeg_bytes(), "image/jpeg")),
        ],
    )
    assert response.status_code == 201
    body = response.json()
    assert body["count"] == 2
    group_id = body["comparison_group_id"]

    photo_url = body["photos"][0]["url"]
    assert client.get(photo_url).status_code == 200

    status = client.get(f"/api/v1/comparison-groups/{group_id}", headers=admin_headers).json()
    assert status["categories"] == {"BEFORE": 1, "ACTION": 1, "AFTER": 0}
    assert status["is_complete"] is False
    assert status["can_add_photos"] is True

    taken = client.post(
        "/api/v1/photos/",
        headers=admin_headers,
        data={"comparisonGroupId": str(group_id), "fileMeta": json.dumps([{"category": "before"}])},
        files=[("files", ("again.jpg", jpeg_bytes(), "image/jpeg"))],
    )
    assert taken.status_code == 409
    assert taken.json()["code"] == "CATEGORY_SLOT_TAKEN"


def test_upload_rejects_malformed_file_meta(client, admin_headers):
    response = client.post(
        "/api/v1/photos/",
        headers=admin_headers,
        data={"areaName": "Gudang A", "fileMeta": json.dumps({"category": "BEFORE"})},
        files=[("files", ("a.jpg", jpeg_bytes(), "image/jpeg"))],
    )
    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_FAILED"

    bad_category = client.post(
        "/api/v1/photos/",
        headers=admin_headers,
        data={"areaName": "Gudang A", "fileMeta": json.dumps([{"category": "DURING"}])},
        files=[("files", ("a.jpg", jpeg_bytes(), "image/jpeg"))],
    )
    assert bad_category.status_code == 422
    assert bad_category.json()["code"] == "INVALID_CATEGORY"


def test_fad_crud_records_audit_trail(client, admin_headers):
    created = client.post(
        "/api/v1/fads",
        headers=admin_headers,
        json={"noFad": "fad/01", "item": "Pompa", "terimaFad": "2024-03-05"},
    )
    assert created.status_code == 201
    fad_id = created.json()["id"]
    assert created.json()["no_fad"] == "FAD/01"

    updated = client.put(f"/api/v1/fads/{fad_id}", headers=admin_headers, json={"status": "Selesai"})
    assert updated.json()["changes"]["status"] == {"from": None, "to": "Selesai"}

    listing = client.get("/api/v1/fads", headers=admin_headers, params={"search": "05/03/2024"}).json()
    assert listing["meta"]["total"] == 1

    events = client.get(
        "/api/v1/admin/audit-events", headers=admin_headers, params={"targetType": "fad"}
    ).json()
    assert {e["action"] for e in events["logs"]} == {"create_fad", "update_fad"}


def test_session_chain_follows_rotations(client, admin_headers):
    from fadtrack.core.security import decode_refresh_token

    first = _login(client).json()["refresh_token"]
    second = client.post("/api/v1/auth/refresh", json={"refresh_token": first}).json()["refresh_token"]
    first_id = decode_refresh_token(first)["jti"]

    chain = client.get(f"/api/v1/admin/sessions/{first_id}/chain", headers=admin_headers).json()

    assert chain["length"] == 2
    assert chain["chain"][0]["revoked"] is True
    assert chain["chain"][1]["id"] == decode_refresh_token(second)["jti"]


def test_login_is_limited_per_ip_across_usernames(client, monkeypatch):
    from fadtrack.config import settings

    monkeypatch.setattr(settings, "LOGIN_IP_RATE_LIMIT_PER_MINUTE", 3)

    statuses = [_login(client, f"user{i}", "wrong-password").status_code for i in range(4)]

    assert statuses == [401, 401, 401, 429]
    assert _login(client).json()["code"] == "RATE_LIMITED"
