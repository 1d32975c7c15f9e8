# app/api/v1/deps.py
from fastapi import Depends, Header, Request

from app.core.errors import Unauthorized
from app.models.user import User
from app.services.tokens import TokenService, get_token_service

async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
    tokens: TokenService = Depends(get_token_service),
) -> User:
    """
    FastAPI dependency to get the current authenticated user.

    This dependency extracts and validates the access token from either:
    1. Authorization header (Bearer token) - preferred method
    2. HttpOnly cookie (accessToken) - fallback method

    Raises:
        Unauthorized (401): No token, invalid/expired token, or user no longer exists

    Usage:
        @router.get("/protected")
        async def protected_route(user: User = Depends(get_current_user)):
            return {"user_id": str(user.id)}
    """
    token = None
    # 1) Prioritize Authorization: Bearer xxx
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    # 2) Secondly HttpOnly Cookie: accessToken
    if not token:
        token = request.cookies.get("accessToken")

    if not token:
        raise Unauthorized("Unauthorized request")

    try:
        payload = tokens.decode_access_token(token)
        user_id: str = payload.get("sub")
        user = await User.get_or_none(id=user_id)
    except Exception:
        raise Unauthorized("Invalid access token")

    if not user:
        raise Unauthorized("Invalid access token")
    return user
