"""EmailProvider protocol: services depend on this, not the concrete implementation."""

from typing import Protocol


class EmailProvider(Protocol):
    async def send_verification_email(
        self, email: str, username: str, verification_url: str
    ) -> bool: ...

    async def send_password_reset_email(
        self, email: str, username: str, reset_url: str
    ) -> bool: ...
