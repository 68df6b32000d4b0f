"""UserRepository protocol: services depend on this, not the MongoDB implementation."""

from datetime import datetime
from typing import Any, Optional, Protocol

from schemas.models.user import ActionTokenPurpose, UserDoc


class UserRepository(Protocol):
    async def find_by_id(self, user_id: str) -> Optional[UserDoc]: ...

    async def find_by_email(self, email: str) -> Optional[UserDoc]: ...

    async def find_by_username(self, username: str) -> Optional[UserDoc]: ...

    async def find_by_email_or_username(
        self, email: str, username: str
    ) -> Optional[UserDoc]: ...

    async def create(self, user: UserDoc) -> Optional[UserDoc]:
        """Insert *user*; returns None when a unique index rejects it."""
        ...

    async def save(self, user_id: str, updates: dict[str, Any]) -> None:
        """Apply a partial update. ``None`` values are stored as null."""
        ...

    async def find_by_action_token(
        self, purpose: ActionTokenPurpose, token_hash: str, now: datetime
    ) -> Optional[UserDoc]:
        """Read-only lookup with the same match rule as the update below."""
        ...

    async def find_and_update_by_action_token(
        self,
        purpose: ActionTokenPurpose,
        token_hash: str,
        now: datetime,
        updates: dict[str, Any],
    ) -> Optional[UserDoc]:
        """Atomically apply *updates* to the account holding an unexpired token.

        Matches when the stored hash for *purpose* equals *token_hash* and the
        paired expiry is strictly after *now*. Returns the updated document,
        or None when nothing matched.
        """
        ...
