"""
Session lifecycle: registration, login, refresh-token rotation, logout and
password change.

Each account holds at most one live refresh token (``UserDoc.refresh_token``).
Login and refresh overwrite it, so a refresh token stops working the moment a
newer one is stored, and logout nulls it. Concurrent writers are not
serialised here: the last write wins.
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass
from typing import Optional

from infrastructure.media.protocol import MediaStorage, MediaUpload, StoredMedia
from repositories.protocol import UserRepository
from schemas.models.user import UserDoc
from services.action_token_service import ActionTokenService
from services.token_codec import TokenInvalid, TokenCodec
from shared.crypto import PasswordHasher
from shared.logging import get_logger
from shared.result import Failure, FailureKind, Ok, Result

log = get_logger(__name__)

_UNAUTHORIZED_REFRESH = Failure(FailureKind.UNAUTHORIZED, "Invalid refresh token")


@dataclass(frozen=True)
class SessionTokens:
    access_token: str
    refresh_token: str
    user: UserDoc


@dataclass(frozen=True)
class RegistrationResult:
    user: UserDoc
    verification_sent: bool


class AuthSessionService:
    def __init__(
        self,
        users: UserRepository,
        hasher: PasswordHasher,
        codec: TokenCodec,
        action_tokens: ActionTokenService,
        media: Optional[MediaStorage] = None,
    ) -> None:
        self._users = users
        self._hasher = hasher
        self._codec = codec
        self._action_tokens = action_tokens
        self._media = media

    async def _issue_session(self, user: UserDoc) -> SessionTokens:
        access_token = self._codec.issue_access_token(user)
        refresh_token = self._codec.issue_refresh_token(user)
        await self._users.save(user.user_id, {"refresh_token": refresh_token})
        return SessionTokens(
            access_token=access_token,
            refresh_token=refresh_token,
            user=user.model_copy(update={"refresh_token": refresh_token}),
        )

    # ── Registration ─────────────────────────────────────────────────────────

    async def _upload_media(
        self, avatar: Optional[MediaUpload], cover_image: Optional[MediaUpload]
    ) -> tuple[Optional[StoredMedia], Optional[StoredMedia]]:
        if self._media is None:
            return None, None
        stored_avatar = await self._media.upload(avatar) if avatar else None
        try:
            stored_cover = (
                await self._media.upload(cover_image) if cover_image else None
            )
        except Exception:
            if stored_avatar is not None:
                await self._media.delete(stored_avatar.public_id)
            raise
        return stored_avatar, stored_cover

    async def _discard_media(self, *uploaded: Optional[StoredMedia]) -> None:
        for media in uploaded:
            if media is None or self._media is None:
                continue
            try:
                await self._media.delete(media.public_id)
            except Exception as e:
                log.error(
                    "media_cleanup_failed",
                    public_id=media.public_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )

    async def register(
        self,
        email: str,
        username: str,
        fullname: str,
        password: str,
        avatar: Optional[MediaUpload] = None,
        cover_image: Optional[MediaUpload] = None,
    ) -> Result[RegistrationResult]:
        """Create an unverified account and send the first verification email.

        Uploaded media is deleted again if the account record cannot be
        created. Once the record exists it is kept even when issuing the
        verification token or sending the email fails; the caller sees
        ``verification_sent=False`` and the user can ask for a resend.
        """
        email = email.strip().lower()
        username = username.strip().lower()

        existing = await self._users.find_by_email_or_username(email, username)
        if existing is not None:
            log.warning("registration_failed", reason="email_or_username_exists")
            return Failure(
                FailureKind.CONFLICT, "User with email / username already exists"
            )

        stored_avatar, stored_cover = await self._upload_media(avatar, cover_image)

        try:
            user = await self._users.create(
                UserDoc(
                    email=email,
                    username=username,
                    fullname=fullname.strip(),
                    password_hash=self._hasher.hash(password),
                    avatar=stored_avatar.url if stored_avatar else None,
                    cover_image=stored_cover.url if stored_cover else None,
                    is_email_verified=False,
                )
            )
        except Exception:
            await self._discard_media(stored_avatar, stored_cover)
            raise

        if user is None:
            await self._discard_media(stored_avatar, stored_cover)
            log.warning("registration_failed", reason="race_condition_duplicate")
            return Failure(
                FailureKind.CONFLICT, "User with email / username already exists"
            )

        log.info("user_registered", user_id=user.user_id)

        verification_sent = await self._action_tokens.try_send_email_verification(
            user
        )

        return Ok(RegistrationResult(user=user, verification_sent=verification_sent))

    # ── Sessions ─────────────────────────────────────────────────────────────

    async def login(self, email: str, password: str) -> Result[SessionTokens]:
        user = await self._users.find_by_email(email.strip().lower())
        if user is None:
            log.warning("login_failed", reason="user_not_found")
            return Failure(FailureKind.NOT_FOUND, "User not found")

        if not self._hasher.verify(password, user.password_hash):
            log.warning(
                "login_failed", reason="invalid_password", user_id=user.user_id
            )
            return Failure(FailureKind.INVALID_CREDENTIALS, "Invalid credentials")

        session = await self._issue_session(user)
        log.info("login_success", user_id=user.user_id)
        return Ok(session)

    async def refresh_access_token(
        self, presented: Optional[str]
    ) -> Result[SessionTokens]:
        if not presented:
            log.warning("token_refresh_failed", reason="missing")
            return Failure(FailureKind.UNAUTHORIZED, "Refresh token is required")

        claims = self._codec.verify_refresh_token(presented)
        if isinstance(claims, TokenInvalid):
            log.warning("token_refresh_failed", reason=claims.reason)
            return _UNAUTHORIZED_REFRESH

        user = await self._users.find_by_id(claims.subject)
        if user is None:
            log.warning("token_refresh_failed", reason="user_not_found")
            return _UNAUTHORIZED_REFRESH

        if user.refresh_token is None or not hmac.compare_digest(
            presented.encode("utf-8"), user.refresh_token.encode("utf-8")
        ):
            # Signed and unexpired, but superseded by a newer login/refresh or
            # cleared by logout.
            log.warning(
                "token_refresh_failed", reason="stale_or_revoked", user_id=user.user_id
            )
            return _UNAUTHORIZED_REFRESH

        session = await self._issue_session(user)
        log.info("token_refreshed", user_id=user.user_id)
        return Ok(session)

    async def logout(self, user_id: str) -> Result[None]:
        await self._users.save(user_id, {"refresh_token": None})
        log.info("logout", user_id=user_id)
        return Ok(None)

    async def authenticate(self, access_token: Optional[str]) -> Result[UserDoc]:
        """Resolve the account behind an access token."""
        claims = self._codec.verify_access_token(access_token or "")
        if isinstance(claims, TokenInvalid):
            return Failure(FailureKind.UNAUTHORIZED, "Invalid access token")

        user = await self._users.find_by_id(claims.subject)
        if user is None:
            return Failure(FailureKind.UNAUTHORIZED, "Invalid access token")
        return Ok(user)

    # ── Password change ──────────────────────────────────────────────────────

    async def change_password(
        self, user_id: str, old_password: str, new_password: str
    ) -> Result[None]:
        """Replace the password hash.

        Existing access and refresh tokens stay valid.
        """
        user = await self._users.find_by_id(user_id)
        if user is None:
            return Failure(FailureKind.NOT_FOUND, "User not found")

        if not self._hasher.verify(old_password, user.password_hash):
            log.warning(
                "password_change_failed", reason="wrong_old_password", user_id=user_id
            )
            return Failure(
                FailureKind.INVALID_CREDENTIALS, "Old password is incorrect"
            )

        if self._hasher.verify(new_password, user.password_hash):
            return Failure(
                FailureKind.INVALID_INPUT, "Old password and new password are same"
            )

        await self._users.save(
            user_id, {"password_hash": self._hasher.hash(new_password)}
        )
        log.info("password_changed", user_id=user_id)
        return Ok(None)
