# app/models/subscription.py
"""
Database model for channel subscriptions.
A channel is just a User seen as the target of subscriptions. This service
only reads these rows (subscriber counts, "is subscribed" flag).
"""
import uuid
from tortoise import fields, models

class Subscription(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    subscriber = fields.ForeignKeyField(
        "models.User",
        related_name="subscriptions",
        on_delete=fields.CASCADE,
    )  # The user who subscribes
    channel = fields.ForeignKeyField(
        "models.User",
        related_name="subscribers",
        on_delete=fields.CASCADE,
    )  # The user being subscribed to
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "subscriptions"
        unique_together = (("subscriber", "channel"),)
