"""
User profile store contract and the in-process implementation.
"""

from typing import Dict, Iterable, Optional, Protocol, runtime_checkable

from shared.logging import get_logger
from ..models import UserProfile


@runtime_checkable
class UserStore(Protocol):
    """Lookup/update interface over persisted user profiles."""

    async def start(self) -> None:
        ...

    async def stop(self) -> None:
        ...

    async def fetch_user(self, user_id: str) -> Optional[UserProfile]:
        """Return the profile for ``user_id``, or None when it does not exist."""
        ...

    async def update_bio(self, user_id: str, bio: str) -> Optional[UserProfile]:
        """Persist a new bio and return the updated profile, or None when absent."""
        ...

    async def health_check(self) -> bool:
        ...


class InMemoryUserStore:
    """User store kept in process memory, seeded from ``users``."""

    def __init__(self, users: Iterable[UserProfile] = ()):
        self.logger = get_logger("rates.persistence.memory")
        self._users: Dict[str, UserProfile] = {user.id: user for user in users}

    async def start(self) -> None:
        self.logger.info("In-memory user store started", users=len(self._users))

    async def stop(self) -> None:
        self.logger.info("In-memory user store stopped")

    async def fetch_user(self, user_id: str) -> Optional[UserProfile]:
        user = self._users.get(user_id)
        return user.model_copy() if user is not None else None

    async def update_bio(self, user_id: str, bio: str) -> Optional[UserProfile]:
        user = self._users.get(user_id)
        if user is None:
            return None
        updated = user.model_copy(update={"bio": bio})
        self._users[user_id] = updated
        return updated.model_copy()

    async def health_check(self) -> bool:
        return True
