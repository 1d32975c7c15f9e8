# app/api/v1/routers/users.py
"""
Profile routes: current user, account details, avatar / cover image,
channel profile and watch history. All of them require a logged-in user.
"""
import logging

from fastapi import APIRouter, Depends, File, UploadFile, status

from app.api.v1.deps import get_current_user
from app.config import settings
from app.core.errors import BadRequest, Conflict
from app.core.responses import api_response
from app.models.user import User
from app.schemas.user import UpdateAccountIn
from app.services.media_base import MediaStore, derive_public_id, stash_upload
from app.services.media_factory import get_media_store
from app.services.profiles import get_channel_profile, get_watch_history, user_to_dict

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/users", tags=["users"])

async def _replace_image(
    user: User,
    upload: UploadFile | None,
    field: str,
    label: str,
    media: MediaStore,
) -> User:
    """
    Upload a new image for `field` ("avatar" / "cover_image"), persist the new
    URL, then delete the old remote asset if there was one.

    The old asset is only deleted once the record no longer points at it.
    A failed delete is only logged: the new image is already live.
    """
    local_path = await stash_upload(upload, settings.upload_tmp_dir)
    if not local_path:
        raise BadRequest(f"{label} file is missing")

    asset = await media.upload(local_path)
    if not asset or not asset.url:
        raise BadRequest(f"Error while uploading {label.lower()}")

    old_url = getattr(user, field)
    setattr(user, field, asset.url)
    await user.save(update_fields=[field, "updated_at"])

    if old_url:
        old_public_id = derive_public_id(old_url)
        if await media.delete(old_public_id) is None:
            logger.warning("[users] could not delete old %s asset %s for user %s", field, old_public_id, user.id)
    return user

@router.get("/current-user")
async def get_current_user_profile(user: User = Depends(get_current_user)):
    """Return the authenticated user's record (without secrets)."""
    return api_response(status.HTTP_200_OK, user_to_dict(user), "User fetched successfully")

@router.patch("/update-account")
async def update_account_details(body: UpdateAccountIn, user: User = Depends(get_current_user)):
    """
    Update full name and/or email. At least one must be provided.

    Error codes:
        - 400: Neither fullName nor email given
        - 409: Email already belongs to another account
    """
    update_fields = []
    if body.fullName:
        user.full_name = body.fullName
        update_fields.append("full_name")
    if body.email and body.email != user.email:
        if await User.filter(email=body.email).exclude(id=user.id).exists():
            raise Conflict("Email is already in use")
        user.email = body.email
        update_fields.append("email")

    if update_fields:
        await user.save(update_fields=update_fields + ["updated_at"])
    return api_response(status.HTTP_200_OK, user_to_dict(user), "Account details updated successfully")

@router.patch("/avatar")
async def update_user_avatar(
    avatar: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    media: MediaStore = Depends(get_media_store),
):
    """Replace the avatar image (multipart field "avatar")."""
    user = await _replace_image(user, avatar, "avatar", "Avatar", media)
    return api_response(status.HTTP_200_OK, user_to_dict(user), "Avatar updated successfully")

@router.patch("/cover-image")
async def update_user_cover_image(
    coverImage: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    media: MediaStore = Depends(get_media_store),
):
    """Replace the cover image (multipart field "coverImage")."""
    user = await _replace_image(user, coverImage, "cover_image", "Cover image", media)
    return api_response(status.HTTP_200_OK, user_to_dict(user), "Cover image updated successfully")

@router.get("/c/{username}")
async def get_user_channel_profile(username: str, user: User = Depends(get_current_user)):
    """
    Channel profile: subscriber counts and whether the caller subscribes to it.

    Error codes:
        - 400: Blank username
        - 404: No such channel
    """
    channel = await get_channel_profile(username, viewer_id=user.id)
    return api_response(status.HTTP_200_OK, channel, "User channel fetched successfully")

@router.get("/history")
async def get_user_watch_history(user: User = Depends(get_current_user)):
    """Watch history in stored order, each owner reduced to name and avatar."""
    history = await get_watch_history(user.id)
    return api_response(status.HTTP_200_OK, history, "Watch history fetched successfully")
