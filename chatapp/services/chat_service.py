"""
Chat and message record operations.
"""

import uuid
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import and_, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from chatapp.kernel.models.base import utcnow
from chatapp.kernel.models.chat import Chat, ChatMessage, chat_participants
from chatapp.kernel.models.user import User
from chatapp.logging_config import get_logger

logger = get_logger(__name__)


class ChatService:
    """
    CRUD over chats and their messages.

    Usage:
        chats = ChatService(session)
        chat = await chats.create_chat("general", admin_id=alice.id, participant_ids=[bob.id])
        await chats.post_message(chat.id, alice.id, content="hi")
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_chat(
        self,
        name: str,
        admin_id: uuid.UUID,
        participant_ids: Iterable[uuid.UUID],
        is_group_chat: bool = False,
    ) -> Chat:
        """
        Create a chat. The admin is always a participant.

        Raises:
            ValueError: Empty name, or a participant id with no user
        """
        name = name.strip()
        if not name:
            raise ValueError("Chat name is required")

        ids = {admin_id, *participant_ids}
        result = await self.session.execute(select(User).where(User.id.in_(ids)))
        users = list(result.scalars().all())
        missing = ids - {user.id for user in users}
        if missing:
            raise ValueError(f"Unknown participant(s): {', '.join(sorted(map(str, missing)))}")

        chat = Chat(
            name=name,
            is_group_chat=is_group_chat,
            admin_id=admin_id,
            participants=users,
        )
        self.session.add(chat)
        await self.session.flush()
        await self.session.refresh(chat)
        logger.debug("Chat created", extra={"chat_id": str(chat.id)})
        return chat

    async def get_chat(self, chat_id: uuid.UUID) -> Optional[Chat]:
        """Get a chat by ID."""
        result = await self.session.execute(select(Chat).where(Chat.id == chat_id))
        return result.scalar_one_or_none()

    async def list_chats_for_user(self, user_id: uuid.UUID) -> List[Chat]:
        """Chats the user participates in, most recently active first."""
        query = (
            select(Chat)
            .join(chat_participants, chat_participants.c.chat_id == Chat.id)
            .where(chat_participants.c.user_id == user_id)
            .order_by(desc(Chat.updated_at))
        )
        result = await self.session.execute(query)
        return list(result.scalars().unique().all())

    async def is_participant(self, chat_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        query = select(chat_participants.c.chat_id).where(
            and_(
                chat_participants.c.chat_id == chat_id,
                chat_participants.c.user_id == user_id,
            )
        )
        result = await self.session.execute(query)
        return result.first() is not None

    async def post_message(
        self,
        chat_id: uuid.UUID,
        sender_id: uuid.UUID,
        content: Optional[str] = None,
        attachments: Iterable[str] = (),
    ) -> Optional[ChatMessage]:
        """
        Store a message and make it the chat's last message.

        Args:
            attachments: Attachment URLs

        Returns:
            The message, or None if the chat does not exist

        Raises:
            ValueError: Neither content nor attachments given
        """
        content = content.strip() if content else None
        attachment_list = [{"url": url} for url in attachments if url]
        if not content and not attachment_list:
            raise ValueError("A message needs content or an attachment")

        chat = await self.get_chat(chat_id)
        if chat is None:
            return None

        now = utcnow()
        message = ChatMessage(
            chat_id=chat_id,
            sender_id=sender_id,
            content=content,
            attachments=attachment_list,
            created_at=now,
            updated_at=now,
        )
        self.session.add(message)
        await self.session.flush()

        chat.last_message_id = message.id
        chat.updated_at = now
        await self.session.flush()
        return message

    async def get_message(self, message_id: uuid.UUID) -> Optional[ChatMessage]:
        result = await self.session.execute(
            select(ChatMessage).where(ChatMessage.id == message_id)
        )
        return result.scalar_one_or_none()

    async def list_messages(
        self,
        chat_id: uuid.UUID,
        limit: int = 50,
        before: Optional[datetime] = None,
    ) -> List[ChatMessage]:
        """
        Messages in a chat, newest first.

        Args:
            limit: Maximum number of messages
            before: Only messages created strictly before this instant
        """
        query = select(ChatMessage).where(ChatMessage.chat_id == chat_id)
        if before is not None:
            query = query.where(ChatMessage.created_at < before)
        query = query.order_by(desc(ChatMessage.created_at)).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def delete_message(self, message_id: uuid.UUID, sender_id: uuid.UUID) -> bool:
        """
        Delete a message posted by ``sender_id``.

        Returns:
            True if deleted, False if missing or posted by someone else
        """
        message = await self.get_message(message_id)
        if message is None or message.sender_id != sender_id:
            return False

        chat = await self.get_chat(message.chat_id)
        await self.session.delete(message)
        await self.session.flush()

        if chat is not None and chat.last_message_id == message_id:
            previous = await self.list_messages(chat.id, limit=1)
            chat.last_message_id = previous[0].id if previous else None
            await self.session.flush()
        return True
