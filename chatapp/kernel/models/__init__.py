"""
SQLAlchemy models.
"""

from chatapp.kernel.models.base import Base, TimestampMixin, UuidPrimaryKeyMixin, generate_uuid, utcnow
from chatapp.kernel.models.user import User, UserRole
from chatapp.kernel.models.chat import Chat, ChatMessage, chat_participants

__all__ = [
    "Base",
    "TimestampMixin",
    "UuidPrimaryKeyMixin",
    "generate_uuid",
    "utcnow",
    "User",
    "UserRole",
    "Chat",
    "ChatMessage",
    "chat_participants",
]
