# app/api/v1/routers/auth.py
"""
Session routes: register, login, logout, token refresh, password change.
A user's session moves Anonymous -> Authenticated on login and back on logout.
"""
import logging

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile, status
from pydantic import ValidationError
from tortoise.exceptions import IntegrityError
from tortoise.expressions import Q

from app.api.v1.deps import get_current_user
from app.config import settings
from app.core.errors import BadRequest, Conflict, InternalError, NotFound, Unauthorized, format_validation_errors
from app.core.responses import api_response
from app.models.user import User
from app.schemas.user import ChangePasswordIn, LoginIn, RefreshTokenIn, RegisterIn
from app.services.media_base import MediaStore, discard_local_file, stash_upload
from app.services.media_factory import get_media_store
from app.services.profiles import user_to_dict
from app.services.tokens import TokenPair, TokenService, get_token_service

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/users", tags=["auth"])

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

def _set_session_cookies(response: Response, pair: TokenPair) -> None:
    response.set_cookie(ACCESS_COOKIE, pair.access_token, httponly=True, secure=settings.cookie_secure)
    response.set_cookie(REFRESH_COOKIE, pair.refresh_token, httponly=True, secure=settings.cookie_secure)

def _clear_session_cookies(response: Response) -> None:
    response.delete_cookie(ACCESS_COOKIE, httponly=True, secure=settings.cookie_secure)
    response.delete_cookie(REFRESH_COOKIE, httponly=True, secure=settings.cookie_secure)

@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    fullName: str = Form(""),
    email: str = Form(""),
    userName: str = Form(""),
    password: str = Form(""),
    avatar: UploadFile | None = File(None),
    coverImage: UploadFile | None = File(None),
    media: MediaStore = Depends(get_media_store),
):
    """
    Register a new account (multipart form).

    Steps:
      1. Validate fullName / email / userName / password are present and non-blank
      2. Reject duplicates (email or username) with 409
      3. Require an avatar file, upload it (and the optional cover image)
      4. Create the user (username lowercased) and return it without secrets

    Nothing is written to the database unless the avatar upload succeeded.

    Error codes:
        - 400: Missing field, missing avatar, avatar upload failed
        - 409: Email or username already taken
    """
    avatar_path = await stash_upload(avatar, settings.upload_tmp_dir)
    cover_path = await stash_upload(coverImage, settings.upload_tmp_dir)
    try:
        try:
            body = RegisterIn(fullName=fullName, email=email, userName=userName, password=password)
        except ValidationError as e:
            raise BadRequest("All fields are required", errors=format_validation_errors(e.errors()))

        if await User.filter(Q(email=body.email) | Q(username=body.userName)).exists():
            raise Conflict("User with email or username already exists")

        if not avatar_path:
            raise BadRequest("Avatar file is required")

        avatar_asset = await media.upload(avatar_path)
        if not avatar_asset or not avatar_asset.url:
            raise BadRequest("Avatar upload failed")
        cover_asset = await media.upload(cover_path) if cover_path else None

        user = User(
            full_name=body.fullName,
            avatar=avatar_asset.url,
            cover_image=(cover_asset.url if cover_asset else ""),
            email=body.email,
            username=body.userName,
        )
        user.set_password(body.password)
        try:
            await user.save()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email/username
            for asset in (avatar_asset, cover_asset):
                if asset and await media.delete(asset.public_id) is None:
                    logger.warning("[auth] could not delete orphaned asset %s", asset.public_id)
            raise Conflict("User with email or username already exists")
    finally:
        # Uploads remove their own temp file; this covers the early-exit paths
        discard_local_file(avatar_path)
        discard_local_file(cover_path)

    created = await User.get_or_none(id=user.id)
    if not created:
        raise InternalError("Something went wrong while registering the user")
    return api_response(status.HTTP_201_CREATED, user_to_dict(created), "User registered successfully")

@router.post("/login")
async def login(
    body: LoginIn,
    response: Response,
    tokens: TokenService = Depends(get_token_service),
):
    """
    Authenticate by username or email plus password.

    On success both tokens are returned in the body and also set as
    httpOnly/secure cookies ("accessToken", "refreshToken").

    Error codes:
        - 400: Neither userName nor email given
        - 404: No such user
        - 401: Wrong password
    """
    conditions = []
    if body.email and body.email.strip():
        conditions.append(Q(email=body.email.strip().lower()))
    if body.userName and body.userName.strip():
        conditions.append(Q(username=body.userName.strip().lower()))
    user = await User.filter(Q(*conditions, join_type="OR")).first()
    if not user:
        raise NotFound("User does not exist")

    if not user.is_password_correct(body.password):
        raise Unauthorized("Invalid user credentials")

    pair = await tokens.issue_token_pair(user.id)
    logged_in = await User.get(id=user.id)

    _set_session_cookies(response, pair)
    return api_response(
        status.HTTP_200_OK,
        {"user": user_to_dict(logged_in), "accessToken": pair.access_token, "refreshToken": pair.refresh_token},
        "User logged in successfully",
    )

@router.post("/logout")
async def logout(
    response: Response,
    user: User = Depends(get_current_user),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Log out: forget the stored refresh token and clear both session cookies.
    The access token stays valid until it expires.
    """
    await tokens.revoke_refresh_token(user)
    _clear_session_cookies(response)
    return api_response(status.HTTP_200_OK, {}, "User logged out successfully")

@router.post("/refresh-token")
async def refresh_access_token(
    request: Request,
    response: Response,
    body: RefreshTokenIn | None = None,
    tokens: TokenService = Depends(get_token_service),
):
    """
    Exchange a refresh token (cookie first, then JSON body) for a new pair.

    The presented token must be the one currently stored for its user, so a
    token superseded by a later login/refresh is rejected.

    Error codes:
        - 401: Missing, expired, malformed, or superseded refresh token
    """
    incoming = request.cookies.get(REFRESH_COOKIE) or (body.refreshToken if body else None)
    if not incoming:
        raise Unauthorized("Unauthorized request")

    user = await tokens.verify_refresh_token(incoming)
    pair = await tokens.issue_token_pair(user.id)

    _set_session_cookies(response, pair)
    return api_response(
        status.HTTP_200_OK,
        {"accessToken": pair.access_token, "refreshToken": pair.refresh_token},
        "Access token refreshed",
    )

@router.post("/change-password")
async def change_current_password(body: ChangePasswordIn, user: User = Depends(get_current_user)):
    """
    Change password for the logged-in user after checking the old one.

    Error codes:
        - 400: Old password is wrong (stored hash is left untouched)
    """
    if not user.is_password_correct(body.oldPassword):
        raise BadRequest("Invalid old password")

    user.set_password(body.newPassword)
    await user.save(update_fields=["password_hash", "updated_at"])
    return api_response(status.HTTP_200_OK, {}, "Password changed successfully")
