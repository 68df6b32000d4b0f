"""
Single-use action tokens: email verification and password reset.

Both flows follow the same shape:

- issue: mint a TemporaryToken, store its hash and expiry on the account
  (overwriting any earlier token of the same purpose), then mail the plain
  value embedded in a link. The store write happens before the email goes
  out; if delivery fails the stored token stays valid and the user can ask
  for another email.
- consume: hash the presented value and, in one atomic update, match it
  against an unexpired stored hash, apply the effect and clear the pair.

Every consume failure (empty, unknown, already used, expired) is the same
``INVALID_OR_EXPIRED`` outcome.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from config import ActionTokenSettings
from infrastructure.email.protocol import EmailProvider
from repositories.protocol import UserRepository
from schemas.models.user import ActionTokenPurpose, UserDoc
from services.token_codec import TokenCodec
from shared.crypto import PasswordHasher
from shared.datetime_utils import Clock, SystemClock
from shared.logging import get_logger
from shared.result import Failure, FailureKind, Ok, Result

log = get_logger(__name__)

_INVALID_OR_EXPIRED = Failure(
    FailureKind.INVALID_OR_EXPIRED, "Token is invalid or expired"
)


@dataclass(frozen=True)
class VerificationOutcome:
    is_email_verified: bool


def _action_url(base_url: str, plain_value: str) -> str:
    return f"{base_url.rstrip('/')}/{plain_value}"


class ActionTokenService:
    def __init__(
        self,
        users: UserRepository,
        codec: TokenCodec,
        email: EmailProvider,
        settings: ActionTokenSettings,
        hasher: PasswordHasher,
        clock: Optional[Clock] = None,
    ) -> None:
        self._users = users
        self._codec = codec
        self._email = email
        self._settings = settings
        self._hasher = hasher
        self._clock = clock or SystemClock()

    async def _store_new_token(
        self, user: UserDoc, purpose: ActionTokenPurpose
    ) -> str:
        token = self._codec.issue_temporary_token()
        await self._users.save(
            user.user_id,
            {
                purpose.token_field: token.hashed_value,
                purpose.expiry_field: token.expiry,
            },
        )
        log.info(
            "action_token_issued",
            user_id=user.user_id,
            purpose=purpose.value,
            expires_at=token.expiry.isoformat(),
        )
        return token.plain_value

    # ── Email verification ───────────────────────────────────────────────────

    async def send_email_verification(self, user: UserDoc) -> bool:
        """Issue a verification token for *user* and mail the link.

        Returns whether the email was accepted by the provider. The token is
        stored either way.
        """
        plain = await self._store_new_token(user, ActionTokenPurpose.EMAIL_VERIFICATION)
        sent = await self._email.send_verification_email(
            user.email,
            user.username,
            _action_url(self._settings.email_verification_url, plain),
        )
        if not sent:
            log.warning("verification_email_not_sent", user_id=user.user_id)
        return sent

    async def try_send_email_verification(self, user: UserDoc) -> bool:
        """Like send_email_verification, but a provider exception is logged
        and reported as not sent."""
        try:
            return await self.send_email_verification(user)
        except Exception as e:
            log.error(
                "verification_issue_failed",
                user_id=user.user_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    async def issue_email_verification(self, user_id: str) -> Result[None]:
        user = await self._users.find_by_id(user_id)
        if user is None:
            return Failure(FailureKind.NOT_FOUND, "User does not exist")
        if user.is_email_verified:
            return Failure(FailureKind.CONFLICT, "Email is already verified")

        await self.try_send_email_verification(user)
        return Ok(None)

    async def consume_email_verification(
        self, plain_value: str
    ) -> Result[VerificationOutcome]:
        if not plain_value:
            return _INVALID_OR_EXPIRED

        purpose = ActionTokenPurpose.EMAIL_VERIFICATION
        user = await self._users.find_and_update_by_action_token(
            purpose,
            self._codec.hash_token(plain_value),
            self._clock.now(),
            {**purpose.cleared(), "is_email_verified": True},
        )
        if user is None:
            log.warning("email_verification_failed", reason="invalid_or_expired")
            return _INVALID_OR_EXPIRED

        log.info("email_verified", user_id=user.user_id)
        return Ok(VerificationOutcome(is_email_verified=True))

    # ── Password reset ───────────────────────────────────────────────────────

    async def issue_forgot_password(self, email: str) -> Result[None]:
        user = await self._users.find_by_email(email.strip().lower())
        if user is None:
            log.info("password_reset_requested", outcome="unknown_email")
            return Failure(FailureKind.NOT_FOUND, "User does not exist")

        plain = await self._store_new_token(user, ActionTokenPurpose.PASSWORD_RESET)
        try:
            sent = await self._email.send_password_reset_email(
                user.email,
                user.username,
                _action_url(self._settings.forgot_password_redirect_url, plain),
            )
        except Exception as e:
            log.error(
                "password_reset_email_failed",
                user_id=user.user_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            sent = False
        if not sent:
            log.warning("password_reset_email_not_sent", user_id=user.user_id)
        return Ok(None)

    async def consume_forgot_password(
        self, plain_value: str, new_password: str
    ) -> Result[None]:
        if not plain_value:
            return _INVALID_OR_EXPIRED

        purpose = ActionTokenPurpose.PASSWORD_RESET
        token_hash = self._codec.hash_token(plain_value)
        now = self._clock.now()
        # Hash the new password only once a live token matches
        if await self._users.find_by_action_token(purpose, token_hash, now) is None:
            log.warning("password_reset_failed", reason="invalid_or_expired")
            return _INVALID_OR_EXPIRED

        user = await self._users.find_and_update_by_action_token(
            purpose,
            token_hash,
            now,
            {**purpose.cleared(), "password_hash": self._hasher.hash(new_password)},
        )
        if user is None:
            log.warning("password_reset_failed", reason="invalid_or_expired")
            return _INVALID_OR_EXPIRED

        log.info("password_reset_completed", user_id=user.user_id)
        return Ok(None)
