import os
import uuid

import jwt
import pytest
from unittest.mock import AsyncMock, patch
from tortoise.exceptions import IntegrityError

from app.config import settings
from app.models.user import User


pytestmark = pytest.mark.asyncio


async def register_user(
    client,
    username: str,
    email: str,
    password: str = "StrongPass!23",
    full_name: str = "Jane Doe",
    avatar: bool = True,
    cover: bool = False,
):
    files = {}
    if avatar:
        files["avatar"] = ("avatar.png", b"\x89PNG fake avatar", "image/png")
    if cover:
        files["coverImage"] = ("cover.jpg", b"\xff\xd8 fake cover", "image/jpeg")
    return await client.post(
        "/api/v1/users/register",
        data={"fullName": full_name, "email": email, "userName": username, "password": password},
        files=files or None,
    )


async def login_user(client, password: str, username: str | None = None, email: str | None = None):
    body = {"password": password}
    if username is not None:
        body["userName"] = username
    if email is not None:
        body["email"] = email
    return await client.post("/api/v1/users/login", json=body)


def _set_cookie_names(resp) -> set[str]:
    return {h.split("=", 1)[0] for h in resp.headers.get_list("set-cookie")}


async def test_register_and_login_flow(client, media_store):
    username = f"User_{uuid.uuid4().hex[:6]}"
    email = f"{username}@example.com"
    password = "StrongPass!23"

    resp = await register_user(client, username, email, password, cover=True)
    body = resp.json()
    assert resp.status_code == 201, resp.text
    assert body["success"] is True
    assert body["statusCode"] == 201
    created = body["data"]
    assert created["userName"] == username.lower()
    assert created["email"] == email.lower()
    assert created["avatar"].startswith("http://media.test/")
    assert created["coverImage"].startswith("http://media.test/")
    # Secrets never leave the server
    assert "password" not in created
    assert "passwordHash" not in created
    assert "refreshToken" not in created

    # Temp files were removed after upload
    assert len(media_store.uploaded) == 2
    assert not any(os.path.exists(p) for p in media_store.uploaded)

    # Login by username (case-insensitive) and by email
    login_resp = await login_user(client, password, username=username.upper())
    login_body = login_resp.json()
    assert login_resp.status_code == 200, login_resp.text
    data = login_body["data"]
    assert data["user"]["userName"] == username.lower()
    assert "refreshToken" not in data["user"]
    assert {"accessToken", "refreshToken"} <= _set_cookie_names(login_resp)
    cookie_headers = ";".join(login_resp.headers.get_list("set-cookie")).lower()
    assert "httponly" in cookie_headers
    assert "secure" in cookie_headers

    access = jwt.decode(data["accessToken"], settings.access_token_secret, algorithms=[settings.jwt_alg])
    refresh = jwt.decode(data["refreshToken"], settings.refresh_token_secret, algorithms=[settings.jwt_alg])
    assert access["sub"] == refresh["sub"] == created["id"]
    assert access["userName"] == username.lower()

    stored = await User.get(id=created["id"])
    assert stored.refresh_token == data["refreshToken"]

    email_login = await login_user(client, password, email=email)
    assert email_login.status_code == 200


async def test_register_duplicate_email_or_username_conflicts(client):
    username = f"user_{uuid.uuid4().hex[:6]}"
    first = await register_user(client, username, f"{username}@example.com")
    assert first.status_code == 201

    same_email = await register_user(client, f"other_{uuid.uuid4().hex[:6]}", f"{username}@example.com")
    assert same_email.status_code == 409
    assert same_email.json()["success"] is False
    assert same_email.json()["statusCode"] == 409

    same_username = await register_user(client, username.upper(), "another@example.com")
    assert same_username.status_code == 409

    assert await User.all().count() == 1


async def test_register_requires_avatar(client, media_store):
    username = f"user_{uuid.uuid4().hex[:6]}"
    resp = await register_user(client, username, f"{username}@example.com", avatar=False)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Avatar file is required"
    assert media_store.uploaded == []
    assert await User.all().count() == 0


async def test_register_rejects_blank_fields(client):
    resp = await register_user(client, "   ", "someone@example.com")
    body = resp.json()
    assert resp.status_code == 400
    assert body["success"] is False
    assert body["errors"][0]["field"] == "userName"
    assert await User.all().count() == 0


async def test_register_avatar_upload_failure_creates_nothing(client, media_store):
    media_store.fail_uploads = True
    username = f"user_{uuid.uuid4().hex[:6]}"
    resp = await register_user(client, username, f"{username}@example.com", cover=True)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Avatar upload failed"
    assert await User.all().count() == 0
    # Both buffered files are gone even though the cover was never uploaded
    assert len(media_store.uploaded) == 1
    assert not any(os.path.exists(p) for p in media_store.uploaded)


async def test_login_errors(client, create_user):
    user, password = await create_user()

    missing = await client.post("/api/v1/users/login", json={"password": password})
    assert missing.status_code == 400
    assert missing.json()["success"] is False

    unknown = await login_user(client, password, username="nobody_here")
    assert unknown.status_code == 404

    wrong = await login_user(client, "wrong", username=user.username)
    assert wrong.status_code == 401
    assert wrong.json()["message"] == "Invalid user credentials"


async def test_refresh_rotates_and_rejects_superseded_token(client, create_user):
    user, password = await create_user()
    login_resp = await login_user(client, password, username=user.username)
    first_refresh = login_resp.json()["data"]["refreshToken"]
    # Exercise the body token only, not the cookie jar
    client.cookies.clear()

    rotated = await client.post("/api/v1/users/refresh-token", json={"refreshToken": first_refresh})
    assert rotated.status_code == 200, rotated.text
    second_refresh = rotated.json()["data"]["refreshToken"]
    assert second_refresh != first_refresh
    assert {"accessToken", "refreshToken"} <= _set_cookie_names(rotated)

    client.cookies.clear()
    reused = await client.post("/api/v1/users/refresh-token", json={"refreshToken": first_refresh})
    assert reused.status_code == 401
    assert reused.json()["message"] == "Refresh token is expired or used"

    client.cookies.clear()
    again = await client.post("/api/v1/users/refresh-token", json={"refreshToken": second_refresh})
    assert again.status_code == 200


async def test_refresh_requires_valid_token(client):
    missing = await client.post("/api/v1/users/refresh-token")
    assert missing.status_code == 401
    assert missing.json()["message"] == "Unauthorized request"

    garbage = await client.post("/api/v1/users/refresh-token", json={"refreshToken": "not.a.jwt"})
    assert garbage.status_code == 401
    assert garbage.json()["message"] == "Invalid refresh token"


async def test_logout_revokes_refresh_token(client, create_user):
    user, password = await create_user()
    login_resp = await login_user(client, password, username=user.username)
    data = login_resp.json()["data"]
    headers = {"Authorization": f"Bearer {data['accessToken']}"}

    logout_resp = await client.post("/api/v1/users/logout", headers=headers)
    assert logout_resp.status_code == 200
    assert logout_resp.json()["success"] is True
    assert {"accessToken", "refreshToken"} <= _set_cookie_names(logout_resp)

    await user.refresh_from_db()
    assert user.refresh_token is None

    client.cookies.clear()
    after = await client.post("/api/v1/users/refresh-token", json={"refreshToken": data["refreshToken"]})
    assert after.status_code == 401


async def test_change_password(client, create_user, auth_header_factory):
    user, password = await create_user()
    headers = await auth_header_factory(user.username, password)
    original_hash = (await User.get(id=user.id)).password_hash

    bad = await client.post(
        "/api/v1/users/change-password",
        json={"oldPassword": "not-it", "newPassword": "NewPass#456"},
        headers=headers,
    )
    assert bad.status_code == 400
    assert bad.json()["message"] == "Invalid old password"
    assert (await User.get(id=user.id)).password_hash == original_hash

    ok = await client.post(
        "/api/v1/users/change-password",
        json={"oldPassword": password, "newPassword": "NewPass#456"},
        headers=headers,
    )
    assert ok.status_code == 200

    old_login = await login_user(client, password, username=user.username)
    assert old_login.status_code == 401
    new_login = await login_user(client, "NewPass#456", username=user.username)
    assert new_login.status_code == 200


async def test_auth_requires_token(client):
    unauth_me = await client.get("/api/v1/users/current-user")
    body = unauth_me.json()
    assert unauth_me.status_code == 401
    assert body == {
        "statusCode": 401,
        "data": None,
        "message": "Unauthorized request",
        "success": False,
        "errors": [],
    }

    bad_token = await client.post(
        "/api/v1/users/logout", headers={"Authorization": "Bearer nonsense"}
    )
    assert bad_token.status_code == 401


async def test_register_lost_race_removes_uploaded_assets(client, media_store):
    username = f"user_{uuid.uuid4().hex[:6]}"
    # A concurrent registration claims the email between the check and the insert
    with patch.object(User, "save", AsyncMock(side_effect=IntegrityError("duplicate key"))):
        resp = await register_user(client, username, f"{username}@example.com", cover=True)

    assert resp.status_code == 409
    assert resp.json()["message"] == "User with email or username already exists"
    assert media_store.deleted == ["asset1", "asset2"]
    assert await User.all().count() == 0


async def test_refresh_reads_token_from_cookie(client, create_user):
    user, password = await create_user()
    data = (await login_user(client, password, username=user.username)).json()["data"]

    # Secure cookies are not sent over http://testserver, so put it in the jar directly
    client.cookies.clear()
    client.cookies.set("refreshToken", data["refreshToken"])
    rotated = await client.post("/api/v1/users/refresh-token")
    assert rotated.status_code == 200, rotated.text
    new_refresh = rotated.json()["data"]["refreshToken"]
    assert new_refresh != data["refreshToken"]
    assert (await User.get(id=user.id)).refresh_token == new_refresh

    # The cookie wins over the body: a superseded cookie fails even with a valid body token
    client.cookies.clear()
    client.cookies.set("refreshToken", data["refreshToken"])
    stale = await client.post("/api/v1/users/refresh-token", json={"refreshToken": new_refresh})
    assert stale.status_code == 401
    assert stale.json()["message"] == "Refresh token is expired or used"


async def test_access_token_cookie_authenticates(client, create_user):
    user, password = await create_user()
    data = (await login_user(client, password, username=user.username)).json()["data"]

    client.cookies.clear()
    client.cookies.set("accessToken", data["accessToken"])
    me = await client.get("/api/v1/users/current-user")
    assert me.status_code == 200, me.text
    assert me.json()["data"]["id"] == str(user.id)

    client.cookies.clear()
    client.cookies.set("accessToken", "garbage")
    bad = await client.get("/api/v1/users/current-user")
    assert bad.status_code == 401
    assert bad.json()["message"] == "Invalid access token"


async def test_logout_with_cookies_then_cookie_refresh_fails(client, create_user):
    user, password = await create_user()
    data = (await login_user(client, password, username=user.username)).json()["data"]

    client.cookies.clear()
    client.cookies.set("accessToken", data["accessToken"])
    client.cookies.set("refreshToken", data["refreshToken"])
    logout_resp = await client.post("/api/v1/users/logout")
    assert logout_resp.status_code == 200, logout_resp.text

    client.cookies.clear()
    client.cookies.set("refreshToken", data["refreshToken"])
    after = await client.post("/api/v1/users/refresh-token")
    assert after.status_code == 401
    assert after.json()["message"] == "Refresh token is expired or used"
