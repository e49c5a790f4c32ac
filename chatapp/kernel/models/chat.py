"""
Chat and message records.
"""

import uuid
from typing import List, Optional

from sqlalchemy import Boolean, Column, ForeignKey, String, Table, Text, Uuid, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chatapp.kernel.models.base import Base, TimestampMixin, UuidPrimaryKeyMixin


chat_participants = Table(
    "chat_participants",
    Base.metadata,
    Column("chat_id", Uuid(), ForeignKey("chats.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid(), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Chat(UuidPrimaryKeyMixin, TimestampMixin, Base):
    """A one-to-one or group conversation."""

    __tablename__ = "chats"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_group_chat: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    admin_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    # No FK: chat_messages already points back at chats
    last_message_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(), nullable=True)

    participants: Mapped[List["User"]] = relationship(  # noqa: F821
        "User",
        secondary=chat_participants,
        lazy="selectin",
    )
    messages: Mapped[List["ChatMessage"]] = relationship(
        "ChatMessage",
        back_populates="chat",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def participant_ids(self) -> List[uuid.UUID]:
        return [user.id for user in self.participants]

    def __repr__(self) -> str:
        return f"<Chat {self.name}>"


class ChatMessage(UuidPrimaryKeyMixin, TimestampMixin, Base):
    """A message posted to a chat."""

    __tablename__ = "chat_messages"

    chat_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("chats.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    sender_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # [{"url": "..."}]
    attachments: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    chat: Mapped["Chat"] = relationship("Chat", back_populates="messages")

    def __repr__(self) -> str:
        return f"<ChatMessage {self.id} in {self.chat_id}>"
