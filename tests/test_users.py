from __future__ import annotations

import uuid
from datetime import timedelta

from conftest import bearer, image
from utils.security import TokenConfig, TokenService


def test_current_user_with_bearer_header(client, tokens):
    resp = client.get("/api/v1/users/current-user", headers=bearer(tokens["access"]))
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["userName"] == "ann"
    assert "refreshToken" not in data
    assert "password" not in data


def test_cookie_takes_precedence_over_header(client, tokens):
    headers = {"Cookie": f"accessToken={tokens['access']}", "Authorization": "Bearer garbage"}
    assert client.get("/api/v1/users/current-user", headers=headers).status_code == 200


def test_missing_token(client):
    resp = client.get("/api/v1/users/current-user")
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Unauthorized access"
    assert client.get("/api/v1/users/current-user", headers={"Authorization": "Token abc"}).status_code == 401


def test_expired_and_malformed_tokens_look_the_same(app, client, tokens):
    expired_service = TokenService(TokenConfig.from_mapping({**app.config, "ACCESS_TOKEN_EXPIRES": timedelta(seconds=-30)}), None)
    expired = expired_service.sign_access_token("some-id", "ann", "Ann Lee", "ann@x.com")

    r_expired = client.get("/api/v1/users/current-user", headers=bearer(expired))
    r_garbage = client.get("/api/v1/users/current-user", headers=bearer("not-a-token"))
    r_refresh = client.get("/api/v1/users/current-user", headers=bearer(tokens["refresh"]))
    for resp in (r_expired, r_garbage, r_refresh):
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Invalid access token"


def test_token_for_unknown_user(app, client):
    service = app.extensions["token_service"]
    token = service.sign_access_token(str(uuid.uuid4()), "ghost", "Ghost", "ghost@x.com")
    resp = client.get("/api/v1/users/current-user", headers=bearer(token))
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Invalid access token"


def test_update_account(client, tokens):
    resp = client.patch(
        "/api/v1/users/update-account",
        json={"fullName": "Ann B. Lee", "email": "Ann.Lee@X.com"},
        headers=bearer(tokens["access"]),
    )
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["fullName"] == "Ann B. Lee"
    assert data["email"] == "ann.lee@x.com"


def test_update_account_requires_a_field(client, tokens):
    resp = client.patch("/api/v1/users/update-account", json={}, headers=bearer(tokens["access"]))
    assert resp.status_code == 400


def test_update_account_accepts_any_non_empty_email(client, tokens):
    resp = client.patch(
        "/api/v1/users/update-account", json={"email": "ann@intranet"}, headers=bearer(tokens["access"])
    )
    assert resp.status_code == 200
    assert resp.get_json()["data"]["email"] == "ann@intranet"


def test_update_account_email_conflict(client, register, tokens):
    assert register(userName="bob", email="bob@x.com").status_code == 201
    resp = client.patch(
        "/api/v1/users/update-account", json={"email": "BOB@x.com"}, headers=bearer(tokens["access"])
    )
    assert resp.status_code == 409
    # keeping your own email is fine
    resp = client.patch(
        "/api/v1/users/update-account", json={"email": "ann@x.com"}, headers=bearer(tokens["access"])
    )
    assert resp.status_code == 200


def test_update_password(client, login, tokens):
    resp = client.patch(
        "/api/v1/users/update-password",
        json={"oldPassword": "secret123", "newPassword": "n3w-secret"},
        headers=bearer(tokens["access"]),
    )
    assert resp.status_code == 200
    assert login(password="secret123").status_code == 401
    assert login(password="n3w-secret").status_code == 200


def test_update_password_wrong_old_password(client, login, tokens):
    resp = client.patch(
        "/api/v1/users/update-password",
        json={"oldPassword": "nope", "newPassword": "n3w-secret"},
        headers=bearer(tokens["access"]),
    )
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Incorrect old password"
    assert login(password="secret123").status_code == 200


def test_update_password_missing_fields(client, tokens):
    resp = client.patch(
        "/api/v1/users/update-password", json={"oldPassword": "secret123"}, headers=bearer(tokens["access"])
    )
    assert resp.status_code == 400


def test_profile_edits_do_not_touch_password(client, login, tokens):
    client.patch("/api/v1/users/update-account", json={"fullName": "Ann"}, headers=bearer(tokens["access"]))
    assert login(password="secret123").status_code == 200


def test_update_avatar_replaces_and_deletes_previous(client, tokens, uploader):
    before = client.get("/api/v1/users/current-user", headers=bearer(tokens["access"])).get_json()["data"]
    resp = client.patch(
        "/api/v1/users/update-avatar",
        data={"avatar": image("new.png")},
        content_type="multipart/form-data",
        headers=bearer(tokens["access"]),
    )
    assert resp.status_code == 200
    after = resp.get_json()["data"]
    assert after["avatar"] != before["avatar"]
    assert uploader.deleted == [before["avatar"].rsplit("/", 1)[1]]


def test_update_avatar_survives_delete_failure(client, tokens, uploader):
    uploader.fail_deletes = True
    resp = client.patch(
        "/api/v1/users/update-avatar",
        data={"avatar": image("new.png")},
        content_type="multipart/form-data",
        headers=bearer(tokens["access"]),
    )
    assert resp.status_code == 200


def test_update_avatar_requires_file(client, tokens):
    resp = client.patch(
        "/api/v1/users/update-avatar", data={}, content_type="multipart/form-data", headers=bearer(tokens["access"])
    )
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Avatar is required"


def test_update_cover_image(client, tokens, uploader):
    resp = client.patch(
        "/api/v1/users/update-cover-image",
        data={"coverImage": image("cover.jpg")},
        content_type="multipart/form-data",
        headers=bearer(tokens["access"]),
    )
    assert resp.status_code == 200
    assert resp.get_json()["data"]["coverImage"].startswith("https://media.example/")
    # there was no cover image before, so nothing to delete
    assert uploader.deleted == []


def test_profile_routes_require_authentication(client):
    assert client.patch("/api/v1/users/update-account", json={"fullName": "x"}).status_code == 401
    assert client.patch("/api/v1/users/update-password", json={}).status_code == 401
    assert client.patch("/api/v1/users/update-avatar").status_code == 401
    assert client.patch("/api/v1/users/update-cover-image").status_code == 401
