"""Profile reads and updates for the authenticated account."""

from __future__ import annotations

from repositories.protocol import UserRepository
from schemas.models.user import UserDoc
from shared.logging import get_logger
from shared.result import Failure, FailureKind, Ok, Result

log = get_logger(__name__)


class AccountService:
    def __init__(self, users: UserRepository) -> None:
        self._users = users

    async def get_current_user(self, user_id: str) -> Result[UserDoc]:
        user = await self._users.find_by_id(user_id)
        if user is None:
            return Failure(FailureKind.NOT_FOUND, "User not found")
        return Ok(user)

    async def update_account_details(
        self, user_id: str, fullname: str
    ) -> Result[UserDoc]:
        fullname = fullname.strip()
        if not fullname:
            return Failure(FailureKind.INVALID_INPUT, "Fullname is required")

        user = await self._users.find_by_id(user_id)
        if user is None:
            return Failure(FailureKind.NOT_FOUND, "User not found")

        await self._users.save(user_id, {"fullname": fullname})
        log.info("account_details_updated", user_id=user_id)
        return Ok(user.model_copy(update={"fullname": fullname}))
