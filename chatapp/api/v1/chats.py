"""
Chat endpoints.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from chatapp.api.deps import Chats, CurrentUser
from chatapp.schemas.chat import ChatCreate, ChatResponse, MessageCreate, MessageResponse
from chatapp.schemas.common import SuccessResponse

router = APIRouter()


async def _require_participant(chats, chat_id: uuid.UUID, user_id: uuid.UUID) -> None:
    if not await chats.is_participant(chat_id, user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Chat not found",
        )


@router.post("", response_model=ChatResponse, status_code=status.HTTP_201_CREATED)
async def create_chat(data: ChatCreate, user: CurrentUser, chats: Chats):
    """Create a chat administered by the current user."""
    try:
        chat = await chats.create_chat(
            name=data.name,
            admin_id=user.id,
            participant_ids=data.participant_ids,
            is_group_chat=data.is_group_chat,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    return ChatResponse.model_validate(chat)


@router.get("", response_model=List[ChatResponse])
async def list_chats(user: CurrentUser, chats: Chats):
    """Chats the current user takes part in."""
    return [ChatResponse.model_validate(chat) for chat in await chats.list_chats_for_user(user.id)]


@router.get("/{chat_id}", response_model=ChatResponse)
async def get_chat(chat_id: uuid.UUID, user: CurrentUser, chats: Chats):
    await _require_participant(chats, chat_id, user.id)
    chat = await chats.get_chat(chat_id)
    return ChatResponse.model_validate(chat)


@router.post(
    "/{chat_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def post_message(chat_id: uuid.UUID, data: MessageCreate, user: CurrentUser, chats: Chats):
    await _require_participant(chats, chat_id, user.id)
    try:
        message = await chats.post_message(
            chat_id,
            user.id,
            content=data.content,
            attachments=data.attachments,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    if message is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat not found")
    return MessageResponse.model_validate(message)


@router.get("/{chat_id}/messages", response_model=List[MessageResponse])
async def list_messages(
    chat_id: uuid.UUID,
    user: CurrentUser,
    chats: Chats,
    limit: int = Query(50, ge=1, le=200),
    before: Optional[datetime] = None,
):
    """Messages newest first; page backwards with ``before``."""
    await _require_participant(chats, chat_id, user.id)
    messages = await chats.list_messages(chat_id, limit=limit, before=before)
    return [MessageResponse.model_validate(m) for m in messages]


@router.delete("/{chat_id}/messages/{message_id}", response_model=SuccessResponse)
async def delete_message(chat_id: uuid.UUID, message_id: uuid.UUID, user: CurrentUser, chats: Chats):
    await _require_participant(chats, chat_id, user.id)
    if not await chats.delete_message(message_id, user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    return SuccessResponse(message="Message deleted")
