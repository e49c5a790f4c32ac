"""
Storage boundary for identity records.
"""

import uuid
from typing import Any, Optional, Protocol

from chatapp.kernel.identity.record import IdentityRecord

UNIQUE_FIELDS = ("username", "email", "phone_number")


class UserStore(Protocol):
    """
    Get/put access to identity records.

    ``update`` is a compare-and-set on ``record.version``: it raises
    StaleRecordError when the stored version differs, and returns the
    record with its version bumped otherwise. ``insert`` and ``update``
    raise DuplicateField when a unique field is taken.
    """

    async def get(self, user_id: uuid.UUID) -> Optional[IdentityRecord]:
        ...

    async def find_by_identifier(self, identifier: str) -> Optional[IdentityRecord]:
        """Match on username or email."""
        ...

    async def find_by_field(self, field: str, value: Any) -> Optional[IdentityRecord]:
        ...

    async def insert(self, record: IdentityRecord) -> IdentityRecord:
        ...

    async def update(self, record: IdentityRecord) -> IdentityRecord:
        ...
