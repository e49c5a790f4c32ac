"""
SQLAlchemy-backed user store.
"""

import uuid
from typing import Any, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from chatapp.kernel.identity.errors import DuplicateField, StaleRecordError
from chatapp.kernel.identity.record import IdentityRecord, normalize_identifier
from chatapp.kernel.models.user import User
from chatapp.kernel.stores.base import UNIQUE_FIELDS
from chatapp.logging_config import get_logger

logger = get_logger(__name__)

# Columns written from an IdentityRecord; id/version/timestamps are managed here
_WRITABLE = (
    "username",
    "email",
    "phone_number",
    "password_hash",
    "first_name",
    "last_name",
    "about",
    "is_email_verified",
    "is_phone_number_verified",
    "email_verification_token_hash",
    "email_verification_expiry",
    "phone_number_verification_token_hash",
    "phone_number_verification_expiry",
    "forgot_password_token_hash",
    "forgot_password_expiry",
    "refresh_token",
)


def to_record(user: User) -> IdentityRecord:
    return IdentityRecord.model_validate(user)


def to_values(record: IdentityRecord) -> dict[str, Any]:
    values = {name: getattr(record, name) for name in _WRITABLE}
    values["role"] = record.role.value
    values["avatar"] = record.avatar.model_dump()
    return values


def _duplicate_field(exc: IntegrityError) -> str:
    message = str(exc.orig).lower()
    for field in UNIQUE_FIELDS:
        if field in message:
            return field
    return "id"


class SqlUserStore:
    """
    UserStore over the ``users`` table.

    Updates are a conditional ``UPDATE ... WHERE version = :expected``, so
    two sessions racing on the same row cannot both win.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _one(self, *conditions) -> Optional[IdentityRecord]:
        query = (
            select(User)
            .where(*conditions)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        user = result.scalars().first()
        return to_record(user) if user else None

    async def get(self, user_id: uuid.UUID) -> Optional[IdentityRecord]:
        return await self._one(User.id == user_id)

    async def find_by_identifier(self, identifier: str) -> Optional[IdentityRecord]:
        key = normalize_identifier(identifier)
        return await self._one(or_(User.username == key, User.email == key))

    async def find_by_field(self, field: str, value: Any) -> Optional[IdentityRecord]:
        if value is None:
            return None
        return await self._one(getattr(User, field) == value)

    async def _check_unique(self, record: IdentityRecord) -> None:
        for field in UNIQUE_FIELDS:
            query = select(User.id).where(
                getattr(User, field) == getattr(record, field),
                User.id != record.id,
            )
            result = await self.session.execute(query)
            if result.first() is not None:
                raise DuplicateField(field)

    async def insert(self, record: IdentityRecord) -> IdentityRecord:
        await self._check_unique(record)
        user = User(id=record.id, version=1, **to_values(record))
        self.session.add(user)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            await self.session.rollback()
            raise DuplicateField(_duplicate_field(exc)) from exc
        await self.session.refresh(user)
        return to_record(user)

    async def update(self, record: IdentityRecord) -> IdentityRecord:
        await self._check_unique(record)
        statement = (
            update(User)
            .where(User.id == record.id, User.version == record.version)
            .values(version=record.version + 1, **to_values(record))
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(statement)
        except IntegrityError as exc:
            await self.session.rollback()
            raise DuplicateField(_duplicate_field(exc)) from exc
        if result.rowcount != 1:
            logger.debug("Stale write rejected", extra={"user_id": str(record.id)})
            raise StaleRecordError(record.id)
        stored = await self.get(record.id)
        return stored
