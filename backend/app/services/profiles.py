"""
Profile read models.

Serializers for the account record and the two aggregation reads
(channel profile, watch history). Kept free of HTTP concerns.
"""
import uuid
import datetime as dt
from typing import Optional

from app.core.errors import BadRequest, NotFound
from app.models.subscription import Subscription
from app.models.user import User
from app.models.video import Video
from app.schemas.user import (
    ChannelProfileOut,
    UserOut,
    VideoOwnerOut,
    WatchHistoryItemOut,
)


def _iso(value: Optional[dt.datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def user_to_dict(u: User) -> dict:
    """
    Convert a User to its API representation.
    The password hash and refresh token are never included.
    """
    return UserOut(
        id=str(u.id),
        userName=u.username,
        email=u.email,
        fullName=u.full_name,
        avatar=u.avatar,
        coverImage=u.cover_image or "",
        watchHistory=[str(v) for v in (u.watch_history or [])],
        createdAt=_iso(u.created_at),
        updatedAt=_iso(u.updated_at),
    ).model_dump()


def _owner_to_dict(owner: Optional[User]) -> Optional[dict]:
    if owner is None:
        return None
    return VideoOwnerOut(fullName=owner.full_name, userName=owner.username, avatar=owner.avatar).model_dump()


def _video_to_dict(v: Video) -> dict:
    return WatchHistoryItemOut(
        id=str(v.id),
        videoFile=v.video_file,
        thumbnail=v.thumbnail,
        title=v.title,
        description=v.description or "",
        duration=v.duration,
        views=v.views,
        isPublished=v.is_published,
        owner=_owner_to_dict(v.owner),
        createdAt=_iso(v.created_at),
        updatedAt=_iso(v.updated_at),
    ).model_dump()


async def get_channel_profile(username: str, viewer_id=None) -> dict:
    """
    Channel profile of `username` (case-insensitive) as seen by `viewer_id`.

    Returns the projection {fullName, userName, subscribersCount,
    channelsSubscribedToCount, isSubscribed, avatar, coverImage, email}.

    Raises:
        BadRequest: Blank username
        NotFound: No such channel
    """
    if not username or not username.strip():
        raise BadRequest("Username is missing")
    channel = await User.get_or_none(username=username.strip().lower())
    if channel is None:
        raise NotFound("Channel does not exist")

    subscribers_count = await Subscription.filter(channel_id=channel.id).count()
    subscribed_to_count = await Subscription.filter(subscriber_id=channel.id).count()
    is_subscribed = False
    if viewer_id is not None:
        is_subscribed = await Subscription.filter(channel_id=channel.id, subscriber_id=viewer_id).exists()

    return ChannelProfileOut(
        fullName=channel.full_name,
        userName=channel.username,
        subscribersCount=subscribers_count,
        channelsSubscribedToCount=subscribed_to_count,
        isSubscribed=is_subscribed,
        avatar=channel.avatar,
        coverImage=channel.cover_image or "",
        email=channel.email,
    ).model_dump()


async def get_watch_history(user_id) -> list[dict]:
    """
    Resolve a user's watch history to video documents in the stored order.
    Repeated ids produce repeated entries; ids of videos that no longer exist are skipped.

    Raises:
        BadRequest: `user_id` is not a valid record identifier
        NotFound: No such user
    """
    try:
        pk = uuid.UUID(str(user_id))
    except (TypeError, ValueError):
        raise BadRequest("Invalid user id")

    user = await User.get_or_none(id=pk)
    if user is None:
        raise NotFound("User does not exist")

    ids = []
    for raw in user.watch_history or []:
        try:
            ids.append(str(uuid.UUID(str(raw))))
        except ValueError:
            continue  # not a video id
    if not ids:
        return []

    videos = await Video.filter(id__in=list(set(ids))).prefetch_related("owner")
    by_id = {str(v.id): v for v in videos}
    return [_video_to_dict(by_id[vid]) for vid in ids if vid in by_id]
