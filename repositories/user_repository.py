"""
MongoDB implementation of UserRepository over the async pymongo driver.

Absent documents come back as None. Driver errors other than a duplicate key
on insert propagate to the caller.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pymongo import ASCENDING, ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from schemas.models.base import parse_object_id
from schemas.models.user import ActionTokenPurpose, UserDoc
from shared.datetime_utils import Clock, SystemClock
from shared.logging import get_logger

log = get_logger(__name__)

USERS_COLLECTION = "users"


def _action_token_filter(
    purpose: ActionTokenPurpose, token_hash: str, now: datetime
) -> dict[str, Any]:
    return {purpose.token_field: token_hash, purpose.expiry_field: {"$gt": now}}


class MongoUserRepository:
    def __init__(self, db: AsyncDatabase, clock: Optional[Clock] = None) -> None:
        self._collection = db[USERS_COLLECTION]
        self._clock = clock or SystemClock()

    async def ensure_indexes(self) -> None:
        await self._collection.create_index(
            [("email", ASCENDING)], unique=True, name="email_unique"
        )
        await self._collection.create_index(
            [("username", ASCENDING)], unique=True, name="username_unique"
        )
        for purpose in ActionTokenPurpose:
            await self._collection.create_index(
                [(purpose.token_field, ASCENDING)],
                sparse=True,
                name=f"{purpose.token_field}_idx",
            )

    async def find_by_id(self, user_id: str) -> Optional[UserDoc]:
        oid = parse_object_id(user_id)
        if oid is None:
            return None
        return UserDoc.from_mongo(await self._collection.find_one({"_id": oid}))

    async def find_by_email(self, email: str) -> Optional[UserDoc]:
        return UserDoc.from_mongo(await self._collection.find_one({"email": email}))

    async def find_by_username(self, username: str) -> Optional[UserDoc]:
        return UserDoc.from_mongo(
            await self._collection.find_one({"username": username})
        )

    async def find_by_email_or_username(
        self, email: str, username: str
    ) -> Optional[UserDoc]:
        doc = await self._collection.find_one(
            {"$or": [{"email": email}, {"username": username}]}
        )
        return UserDoc.from_mongo(doc)

    async def create(self, user: UserDoc) -> Optional[UserDoc]:
        now = self._clock.now()
        data = user.to_mongo()
        data["created_at"] = now
        data["updated_at"] = now
        try:
            result = await self._collection.insert_one(data)
        except DuplicateKeyError:
            # Lost a race against a concurrent registration
            log.warning("user_insert_duplicate", email=user.email)
            return None
        data["_id"] = result.inserted_id
        return UserDoc.from_mongo(data)

    async def save(self, user_id: str, updates: dict[str, Any]) -> None:
        oid = parse_object_id(user_id)
        if oid is None:
            return
        await self._collection.update_one(
            {"_id": oid},
            {"$set": {**updates, "updated_at": self._clock.now()}},
        )

    async def find_by_action_token(
        self, purpose: ActionTokenPurpose, token_hash: str, now: datetime
    ) -> Optional[UserDoc]:
        doc = await self._collection.find_one(
            _action_token_filter(purpose, token_hash, now)
        )
        return UserDoc.from_mongo(doc)

    async def find_and_update_by_action_token(
        self,
        purpose: ActionTokenPurpose,
        token_hash: str,
        now: datetime,
        updates: dict[str, Any],
    ) -> Optional[UserDoc]:
        doc = await self._collection.find_one_and_update(
            _action_token_filter(purpose, token_hash, now),
            {"$set": {**updates, "updated_at": self._clock.now()}},
            return_document=ReturnDocument.AFTER,
        )
        return UserDoc.from_mongo(doc)
