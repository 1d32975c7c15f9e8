# app/models/user.py
"""
Database model for users.
Represents an account on the video platform: credentials, profile images,
the single current refresh token and the ordered watch history.
"""
import uuid
from tortoise import fields, models

from app.config import Settings, settings
from app.core.security import (
    ACCESS_TOKEN,
    REFRESH_TOKEN,
    create_token,
    hash_password,
    verify_password,
)

class User(models.Model):
    """
    User database model.

    Relationships:
    - Has many Videos (one-to-many, via related_name="videos")
    - Has many Subscriptions as subscriber ("subscriptions") and as channel ("subscribers")

    Security:
    - Password is stored as a hash (never store plain text passwords)
    - Username and email must be unique; both are stored lowercase
    - refresh_token holds at most one value: each issuance overwrites the previous one
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key: unique user identifier
    username = fields.CharField(max_length=64, unique=True, index=True)  # Lowercased at registration
    email = fields.CharField(max_length=256, unique=True, index=True)
    full_name = fields.CharField(max_length=128, index=True)
    avatar = fields.CharField(max_length=1024)  # Media host URL (required)
    cover_image = fields.CharField(max_length=1024, default="")  # Media host URL, empty if never set
    password_hash = fields.CharField(max_length=255)  # Argon2 hash, never returned by the API
    refresh_token = fields.TextField(null=True)  # Current refresh token; null after logout
    watch_history = fields.JSONField(default=list)  # Ordered list of video ids (str)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"

    def set_password(self, plain: str) -> None:
        """Hash and assign a new password. Caller persists with save(update_fields=...)."""
        self.password_hash = hash_password(plain)

    def is_password_correct(self, candidate: str) -> bool:
        return verify_password(candidate or "", self.password_hash)

    def generate_access_token(self, config: Settings = settings) -> str:
        """Short-lived token; carries denormalized profile fields for the client."""
        claims = {
            "sub": str(self.id),
            "email": self.email,
            "userName": self.username,
            "fullName": self.full_name,
        }
        return create_token(claims, config.access_token_secret, config.access_token_expire_minutes,
                            ACCESS_TOKEN, config.jwt_alg)

    def generate_refresh_token(self, config: Settings = settings) -> str:
        return create_token({"sub": str(self.id)}, config.refresh_token_secret,
                            config.refresh_token_expire_minutes, REFRESH_TOKEN, config.jwt_alg)
