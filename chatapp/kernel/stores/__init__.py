"""
Identity record stores.
"""

from chatapp.kernel.stores.base import UserStore, UNIQUE_FIELDS
from chatapp.kernel.stores.memory import InMemoryUserStore
from chatapp.kernel.stores.sql import SqlUserStore

__all__ = [
    "UserStore",
    "UNIQUE_FIELDS",
    "InMemoryUserStore",
    "SqlUserStore",
]
