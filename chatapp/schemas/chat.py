"""
Chat schemas.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    participant_ids: List[uuid.UUID] = Field(default_factory=list)
    is_group_chat: bool = False


class ChatResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    is_group_chat: bool
    admin_id: Optional[uuid.UUID] = None
    last_message_id: Optional[uuid.UUID] = None
    participant_ids: List[uuid.UUID]
    created_at: datetime
    updated_at: datetime


class Attachment(BaseModel):
    url: str


class MessageCreate(BaseModel):
    content: Optional[str] = Field(None, max_length=10000)
    attachments: List[str] = Field(default_factory=list, max_length=10)


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    chat_id: uuid.UUID
    sender_id: Optional[uuid.UUID] = None
    content: Optional[str] = None
    attachments: List[Attachment]
    created_at: datetime
