"""
FastAPI dependencies for authentication and database sessions.
"""

from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from chatapp.config import get_settings
from chatapp.database import get_db
from chatapp.kernel.identity.config import IdentityConfig
from chatapp.kernel.identity.errors import IdentityError
from chatapp.kernel.identity.identity_service import IdentityService
from chatapp.kernel.identity.record import IdentityRecord
from chatapp.kernel.stores.sql import SqlUserStore
from chatapp.services.chat_service import ChatService
from chatapp.services.notifier import LoggingNotifier, SecretNotifier


security = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]


@lru_cache
def get_identity_config() -> IdentityConfig:
    """Identity configuration built once from settings."""
    return IdentityConfig.from_settings(get_settings())


def get_identity_service(
    db: DbSession,
    config: Annotated[IdentityConfig, Depends(get_identity_config)],
) -> IdentityService:
    return IdentityService(SqlUserStore(db), config)


def get_chat_service(db: DbSession) -> ChatService:
    return ChatService(db)


_notifier = LoggingNotifier()


def get_notifier() -> SecretNotifier:
    return _notifier


Identity = Annotated[IdentityService, Depends(get_identity_service)]
Chats = Annotated[ChatService, Depends(get_chat_service)]
Notifier = Annotated[SecretNotifier, Depends(get_notifier)]


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    identity: Identity,
) -> IdentityRecord:
    """Get current authenticated user or raise 401."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user, _ = await identity.current_user(credentials.credentials)
    except IdentityError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc

    return user


CurrentUser = Annotated[IdentityRecord, Depends(get_current_user)]
