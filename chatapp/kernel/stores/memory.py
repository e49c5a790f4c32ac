"""
In-process user store.
"""

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from chatapp.kernel.identity.errors import DuplicateField, StaleRecordError
from chatapp.kernel.identity.record import IdentityRecord, normalize_identifier
from chatapp.kernel.stores.base import UNIQUE_FIELDS


class InMemoryUserStore:
    """
    Dictionary-backed UserStore.

    Records are copied on the way in and out, so callers never share a
    mutable instance with the store or with each other.
    """

    def __init__(self):
        self._records: Dict[uuid.UUID, IdentityRecord] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._records)

    async def get(self, user_id: uuid.UUID) -> Optional[IdentityRecord]:
        record = self._records.get(user_id)
        return record.model_copy(deep=True) if record else None

    async def find_by_identifier(self, identifier: str) -> Optional[IdentityRecord]:
        key = normalize_identifier(identifier)
        for record in self._records.values():
            if record.username == key or record.email == key:
                return record.model_copy(deep=True)
        return None

    async def find_by_field(self, field: str, value: Any) -> Optional[IdentityRecord]:
        if value is None:
            return None
        for record in self._records.values():
            if getattr(record, field) == value:
                return record.model_copy(deep=True)
        return None

    def _check_unique(self, record: IdentityRecord) -> None:
        for other in self._records.values():
            if other.id == record.id:
                continue
            for field in UNIQUE_FIELDS:
                if getattr(other, field) == getattr(record, field):
                    raise DuplicateField(field)

    async def insert(self, record: IdentityRecord) -> IdentityRecord:
        async with self._lock:
            if record.id in self._records:
                raise DuplicateField("id")
            self._check_unique(record)
            now = datetime.now(timezone.utc)
            stored = record.model_copy(
                deep=True,
                update={"version": 1, "created_at": now, "updated_at": now},
            )
            self._records[stored.id] = stored
            return stored.model_copy(deep=True)

    async def update(self, record: IdentityRecord) -> IdentityRecord:
        async with self._lock:
            current = self._records.get(record.id)
            if current is None or current.version != record.version:
                raise StaleRecordError(record.id)
            self._check_unique(record)
            stored = record.model_copy(
                deep=True,
                update={
                    "version": record.version + 1,
                    "created_at": current.created_at,
                    "updated_at": datetime.now(timezone.utc),
                },
            )
            self._records[stored.id] = stored
            return stored.model_copy(deep=True)
