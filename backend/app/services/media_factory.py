"""
Media Store Factory

Uses Cloudinary for avatar and cover image storage
"""
import logging
from .media_base import MediaStore
from .media_cloudinary import cloudinary_media_store

logger = logging.getLogger(__name__)


def get_media_store() -> MediaStore:
    """
    Get the media store (FastAPI dependency; tests override it).

    Note:
    - Need to configure CLOUDINARY_CLOUD_NAME / CLOUDINARY_API_KEY / CLOUDINARY_API_SECRET in .env.
      Without them every upload fails and the request is rejected with 400.
    """
    if not cloudinary_media_store.is_available():
        logger.warning("[media] %s credentials missing, uploads will fail", cloudinary_media_store.name)
    return cloudinary_media_store
