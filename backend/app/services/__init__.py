"""
Services Module

Provides the business services behind the account routes:
- Media store: Cloudinary upload/delete for avatars and cover images
- Tokens: access/refresh token issuance and refresh token validation
- Profiles: account serialization, channel profile and watch history reads
"""

# Media store
from .media_base import (
    MediaAsset,
    MediaStore,
    derive_public_id,
    stash_upload,
)
from .media_cloudinary import CloudinaryMediaStore, cloudinary_media_store
from .media_factory import get_media_store

# Tokens
from .tokens import TokenPair, TokenService, get_token_service

# Profile reads
from .profiles import get_channel_profile, get_watch_history, user_to_dict

__all__ = [
    # Media store
    "MediaAsset",
    "MediaStore",
    "derive_public_id",
    "stash_upload",
    "CloudinaryMediaStore",
    "cloudinary_media_store",
    "get_media_store",
    # Tokens
    "TokenPair",
    "TokenService",
    "get_token_service",
    # Profile reads
    "get_channel_profile",
    "get_watch_history",
    "user_to_dict",
]
