# app/schemas/user.py
"""
Pydantic schemas for account endpoints.
Every input is validated here before any handler logic runs.
"""
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


def _require_text(value: Optional[str]) -> str:
    if value is None or not value.strip():
        raise ValueError("must not be blank")
    return value.strip()


def _check_email(value: str) -> str:
    # Loose shape check only; deliverability is not this service's concern
    local, _, domain = value.partition("@")
    if not local or "." not in domain:
        raise ValueError("must be a valid email address")
    return value.lower()


# ========== Inputs ==========
class RegisterIn(BaseModel):
    """Registration form fields (images arrive as separate multipart files)."""
    fullName: str
    email: str
    userName: str
    password: str

    @field_validator("fullName", "userName", "password")
    @classmethod
    def _not_blank(cls, v: Optional[str], info) -> str:
        cleaned = _require_text(v)
        # Password is kept verbatim, only checked for blankness
        return v if info.field_name == "password" else cleaned

    @field_validator("email")
    @classmethod
    def _email(cls, v: Optional[str]) -> str:
        return _check_email(_require_text(v))

    @field_validator("userName")
    @classmethod
    def _lower_username(cls, v: str) -> str:
        return v.lower()


class LoginIn(BaseModel):
    userName: Optional[str] = None
    email: Optional[str] = None
    password: str = ""

    @model_validator(mode="after")
    def _needs_identifier(self):
        if not ((self.userName or "").strip() or (self.email or "").strip()):
            raise ValueError("username or email is required")
        return self


class RefreshTokenIn(BaseModel):
    refreshToken: Optional[str] = None


class ChangePasswordIn(BaseModel):
    oldPassword: str = Field(min_length=1)
    newPassword: str = Field(min_length=1)


class UpdateAccountIn(BaseModel):
    fullName: Optional[str] = None
    email: Optional[str] = None

    @field_validator("fullName")
    @classmethod
    def _strip_name(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v and v.strip() else None

    @field_validator("email")
    @classmethod
    def _email(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return _check_email(v.strip())

    @model_validator(mode="after")
    def _needs_one_field(self):
        if not (self.fullName or self.email):
            raise ValueError("fullName or email is required")
        return self


# ========== Outputs ==========
class UserOut(BaseModel):
    """Sanitized account record: never carries the password hash or refresh token."""
    id: str
    userName: str
    email: str
    fullName: str
    avatar: str
    coverImage: str = ""
    watchHistory: list[str] = []
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class ChannelProfileOut(BaseModel):
    fullName: str
    userName: str
    subscribersCount: int
    channelsSubscribedToCount: int
    isSubscribed: bool
    avatar: str
    coverImage: str = ""
    email: str


class VideoOwnerOut(BaseModel):
    """Reduced owner projection used inside watch history items."""
    fullName: str
    userName: str
    avatar: str


class WatchHistoryItemOut(BaseModel):
    id: str
    videoFile: str
    thumbnail: str
    title: str
    description: str = ""
    duration: float = 0.0
    views: int = 0
    isPublished: bool = True
    owner: Optional[VideoOwnerOut] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None
