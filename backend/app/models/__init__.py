# app/models/__init__.py
"""
Database models module initialization.
Exports all Tortoise ORM models for convenient imports.

Models exported:
- User: Account, credentials, profile images, refresh token and watch history
- Subscription: Subscriber -> channel edge (read-only for this service)
- Video: Video document referenced by watch history (read-only for this service)
"""
from .user import User
from .subscription import Subscription
from .video import Video
