"""
Shared fixtures: in-memory collaborators and fully wired services.

The fakes mirror the behaviour of the real implementations closely enough to
drive the services end to end without MongoDB, ZeptoMail or a real clock.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from urllib.parse import urlparse

import pytest
from bson import ObjectId

from config import ActionTokenSettings, JWTSettings, PasswordSettings
from infrastructure.media.protocol import MediaUpload, StoredMedia
from schemas.models.user import ActionTokenPurpose, UserDoc
from services.account_service import AccountService
from services.action_token_service import ActionTokenService
from services.auth_service import AuthSessionService
from services.token_codec import TokenCodec
from shared.crypto import PasswordHasher


class FakeClock:
    def __init__(self, start: Optional[datetime] = None) -> None:
        self.current = start or datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: Any) -> None:
        self.current = self.current + timedelta(**kwargs)


class InMemoryUserRepository:
    """Dict-backed UserRepository with the same uniqueness and matching rules."""

    def __init__(self, clock: FakeClock) -> None:
        self._clock = clock
        self.docs: dict[ObjectId, dict] = {}

    def _load(self, doc: Optional[dict]) -> Optional[UserDoc]:
        return UserDoc.from_mongo(dict(doc)) if doc is not None else None

    def raw(self, user_id: str) -> dict:
        return self.docs[ObjectId(user_id)]

    async def find_by_id(self, user_id: str) -> Optional[UserDoc]:
        if not ObjectId.is_valid(user_id):
            return None
        return self._load(self.docs.get(ObjectId(user_id)))

    async def find_by_email(self, email: str) -> Optional[UserDoc]:
        return self._load(
            next((d for d in self.docs.values() if d["email"] == email), None)
        )

    async def find_by_username(self, username: str) -> Optional[UserDoc]:
        return self._load(
            next((d for d in self.docs.values() if d["username"] == username), None)
        )

    async def find_by_email_or_username(
        self, email: str, username: str
    ) -> Optional[UserDoc]:
        return self._load(
            next(
                (
                    d
                    for d in self.docs.values()
                    if d["email"] == email or d["username"] == username
                ),
                None,
            )
        )

    async def create(self, user: UserDoc) -> Optional[UserDoc]:
        for doc in self.docs.values():
            if doc["email"] == user.email or doc["username"] == user.username:
                return None
        data = user.to_mongo()
        data["_id"] = ObjectId()
        data["created_at"] = data["updated_at"] = self._clock.now()
        self.docs[data["_id"]] = data
        return self._load(data)

    async def save(self, user_id: str, updates: dict[str, Any]) -> None:
        doc = self.docs.get(ObjectId(user_id)) if ObjectId.is_valid(user_id) else None
        if doc is not None:
            doc.update(updates)
            doc["updated_at"] = self._clock.now()

    async def find_by_action_token(
        self, purpose: ActionTokenPurpose, token_hash: str, now: datetime
    ) -> Optional[UserDoc]:
        for doc in self.docs.values():
            expiry = doc.get(purpose.expiry_field)
            if doc.get(purpose.token_field) == token_hash and expiry and expiry > now:
                return self._load(doc)
        return None

    async def find_and_update_by_action_token(
        self,
        purpose: ActionTokenPurpose,
        token_hash: str,
        now: datetime,
        updates: dict[str, Any],
    ) -> Optional[UserDoc]:
        for doc in self.docs.values():
            expiry = doc.get(purpose.expiry_field)
            if doc.get(purpose.token_field) == token_hash and expiry and expiry > now:
                doc.update(updates)
                doc["updated_at"] = self._clock.now()
                return self._load(doc)
        return None


class RecordingEmailProvider:
    """EmailProvider that records every message instead of sending it."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str, str]] = []
        self.succeed = True
        self.error: Optional[Exception] = None

    async def _record(self, kind: str, email: str, username: str, url: str) -> bool:
        if self.error is not None:
            raise self.error
        self.sent.append((kind, email, username, url))
        return self.succeed

    async def send_verification_email(
        self, email: str, username: str, verification_url: str
    ) -> bool:
        return await self._record("verification", email, username, verification_url)

    async def send_password_reset_email(
        self, email: str, username: str, reset_url: str
    ) -> bool:
        return await self._record("password_reset", email, username, reset_url)

    def last_token(self, kind: str) -> str:
        """Plain token from the most recent link of *kind*."""
        url = next(u for k, _, _, u in reversed(self.sent) if k == kind)
        return urlparse(url).path.rsplit("/", 1)[-1]


class FakeMediaStorage:
    def __init__(self) -> None:
        self.uploaded: dict[str, StoredMedia] = {}
        self.deleted: list[str] = []

    async def upload(self, media: MediaUpload) -> StoredMedia:
        public_id = f"media/{media.filename}"
        stored = StoredMedia(url=f"https://img.example.com/{public_id}", public_id=public_id)
        self.uploaded[public_id] = stored
        return stored

    async def delete(self, public_id: str) -> None:
        self.deleted.append(public_id)


# ── Fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def jwt_settings() -> JWTSettings:
    return JWTSettings(
        jwt_issuer="accounts-test",
        jwt_audience="accounts-test.users",
        access_token_secret="access-secret-for-tests-0123456789abcdef",
        refresh_token_secret="refresh-secret-for-tests-0123456789abcdef",
        access_token_ttl_seconds=900,
        refresh_token_ttl_seconds=86400,
        cookie_secure=True,
    )


@pytest.fixture
def action_settings() -> ActionTokenSettings:
    return ActionTokenSettings(
        temporary_token_ttl_seconds=1200,
        email_verification_url="https://api.example.com/api/v1/users/verify-email",
        forgot_password_redirect_url="https://app.example.com/reset-password/",
    )


@pytest.fixture
def hasher() -> PasswordHasher:
    # Minimal argon2 work factor keeps the suite fast
    return PasswordHasher(
        PasswordSettings(
            argon2_time_cost=1, argon2_memory_cost=8, argon2_parallelism=1
        )
    )


@pytest.fixture
def codec(jwt_settings, action_settings, clock) -> TokenCodec:
    return TokenCodec(jwt_settings, action_settings, clock=clock)


@pytest.fixture
def users(clock) -> InMemoryUserRepository:
    return InMemoryUserRepository(clock)


@pytest.fixture
def email() -> RecordingEmailProvider:
    return RecordingEmailProvider()


@pytest.fixture
def media() -> FakeMediaStorage:
    return FakeMediaStorage()


@pytest.fixture
def action_tokens(users, codec, email, action_settings, hasher, clock):
    return ActionTokenService(users, codec, email, action_settings, hasher, clock=clock)


@pytest.fixture
def auth_service(users, hasher, codec, action_tokens, media) -> AuthSessionService:
    return AuthSessionService(users, hasher, codec, action_tokens, media=media)


@pytest.fixture
def account_service(users) -> AccountService:
    return AccountService(users)


@pytest.fixture
def register_alice(auth_service):
    """Register the canonical test account and return its RegistrationResult."""

    async def _register(**overrides):
        fields = dict(
            email="alice@example.com",
            username="alice",
            fullname="Alice",
            password="secret123",
        )
        fields.update(overrides)
        result = await auth_service.register(**fields)
        assert result.ok, result
        return result.value

    return _register
