# app/models/video.py
import uuid
from tortoise import fields, models

class Video(models.Model):
    """
    Uploaded video. Owned by another part of the platform; here it is only
    resolved from a user's watch history.
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    video_file = fields.CharField(max_length=1024)  # Media host URL
    thumbnail = fields.CharField(max_length=1024)   # Media host URL
    title = fields.CharField(max_length=256)
    description = fields.TextField(default="")
    duration = fields.FloatField(default=0.0)  # Seconds
    views = fields.IntField(default=0)
    is_published = fields.BooleanField(default=True)
    owner = fields.ForeignKeyField("models.User", related_name="videos", on_delete=fields.CASCADE)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "videos"
