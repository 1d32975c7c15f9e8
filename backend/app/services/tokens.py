"""
Token Service

Issues access/refresh token pairs and validates refresh tokens.

One refresh token per user: the current value lives on User.refresh_token and
every issuance overwrites it (last write wins). A refresh token that no longer
matches the stored value has been superseded and is rejected.
"""
import logging
from dataclasses import dataclass

import jwt  # PyJWT

from app.config import Settings, settings
from app.core.errors import InternalError, Unauthorized
from app.core.security import ACCESS_TOKEN, REFRESH_TOKEN, decode_token
from app.models.user import User

logger = logging.getLogger(__name__)


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str


class TokenService:
    def __init__(self, config: Settings = settings):
        self.config = config

    async def issue_token_pair(self, user_id) -> TokenPair:
        """
        Generate a new access/refresh pair for `user_id` and store the refresh token.

        Only the refresh token column is written, so other fields are not re-validated.

        Raises:
            InternalError: If the user can't be loaded or the token can't be generated/saved
        """
        try:
            user = await User.get_or_none(id=user_id)
            if user is None:
                raise LookupError(f"user {user_id} not found")
            access_token = user.generate_access_token(self.config)
            refresh_token = user.generate_refresh_token(self.config)
            user.refresh_token = refresh_token
            await user.save(update_fields=["refresh_token", "updated_at"])
        except Exception as e:
            raise InternalError("Something went wrong while generating refresh and access token") from e
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    async def verify_refresh_token(self, token: str | None) -> User:
        """
        Validate a refresh token and return its user.

        Raises:
            Unauthorized: Missing, expired, malformed, unknown user, or superseded token
        """
        if not token:
            raise Unauthorized("Unauthorized request")
        try:
            claims = decode_token(token, self.config.refresh_token_secret, REFRESH_TOKEN, self.config.jwt_alg)
        except jwt.ExpiredSignatureError:
            raise Unauthorized("Refresh token is expired")
        except jwt.InvalidTokenError:
            raise Unauthorized("Invalid refresh token")

        user = await User.get_or_none(id=claims.get("sub"))
        if user is None:
            raise Unauthorized("Invalid refresh token")
        if token != user.refresh_token:
            logger.info("[tokens] superseded refresh token presented for user %s", user.id)
            raise Unauthorized("Refresh token is expired or used")
        return user

    def decode_access_token(self, token: str) -> dict:
        """
        Raises:
            jwt.InvalidTokenError: If the token is invalid, expired or not an access token
        """
        return decode_token(token, self.config.access_token_secret, ACCESS_TOKEN, self.config.jwt_alg)

    async def revoke_refresh_token(self, user: User) -> None:
        user.refresh_token = None
        await user.save(update_fields=["refresh_token", "updated_at"])


# Global singleton (optional)
token_service = TokenService()


def get_token_service() -> TokenService:
    return token_service
