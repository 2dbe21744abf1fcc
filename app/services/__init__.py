"""
Services layer for data access.

This layer handles:
- Database queries and operations (per-domain *_service modules)
- The persistence gateway used by the real-time core
"""

from . import chat_room_service
from . import message_service
from . import user_service

__all__ = [
    "chat_room_service",
    "message_service",
    "user_service",
]
