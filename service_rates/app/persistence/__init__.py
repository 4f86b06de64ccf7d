"""
Persistence package for user profiles.
"""

from .user_store import UserStore, InMemoryUserStore
from .postgres import PostgresUserStore

__all__ = [
    "UserStore",
    "InMemoryUserStore",
    "PostgresUserStore",
]
