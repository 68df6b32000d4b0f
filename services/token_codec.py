"""
Token issuing and verification.

Two families of tokens:

- Signed JWTs (HS256) for sessions. Access and refresh tokens are signed with
  different secrets and carry a ``type`` claim, so neither can stand in for
  the other.
- Temporary action tokens for email verification and password reset: a random
  256-bit value handed to the user once, of which only the SHA-256 hash and an
  expiry are stored.

Verification never raises for bad input; it returns ``TokenInvalid``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

import jwt

from config import ActionTokenSettings, JWTSettings
from schemas.models.user import UserDoc
from shared.crypto import hash_token
from shared.datetime_utils import Clock, SystemClock
from shared.generators import generate_secure_token, generate_token_id

ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@dataclass(frozen=True)
class TokenClaims:
    subject: str
    token_type: str
    issued_at: datetime
    expires_at: datetime
    raw: dict[str, Any]


@dataclass(frozen=True)
class TokenInvalid:
    reason: str


@dataclass(frozen=True)
class TemporaryToken:
    plain_value: str
    hashed_value: str
    expiry: datetime


VerifyResult = Union[TokenClaims, TokenInvalid]


class TokenCodec:
    def __init__(
        self,
        settings: JWTSettings,
        action_settings: Optional[ActionTokenSettings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._settings = settings
        self._action_settings = action_settings or ActionTokenSettings()
        self._clock = clock or SystemClock()

    @property
    def access_ttl_seconds(self) -> int:
        return self._settings.access_token_ttl_seconds

    @property
    def refresh_ttl_seconds(self) -> int:
        return self._settings.refresh_token_ttl_seconds

    # ── Session JWTs ─────────────────────────────────────────────────────────

    def _encode(
        self,
        subject: str,
        token_type: str,
        ttl_seconds: int,
        secret: str,
        extra: Optional[dict[str, Any]] = None,
    ) -> str:
        now = self._clock.now()
        claims: dict[str, Any] = {
            "iss": self._settings.jwt_issuer,
            "aud": self._settings.jwt_audience,
            "sub": subject,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=ttl_seconds)).timestamp()),
            "jti": generate_token_id(),
            "type": token_type,
        }
        if extra:
            claims.update(extra)
        return jwt.encode(claims, secret, algorithm=ALGORITHM)

    def issue_access_token(self, user: UserDoc) -> str:
        return self._encode(
            user.user_id,
            ACCESS_TOKEN_TYPE,
            self._settings.access_token_ttl_seconds,
            self._settings.access_token_secret,
            extra={
                "email": user.email,
                "username": user.username,
                "fullname": user.fullname,
            },
        )

    def issue_refresh_token(self, user: UserDoc) -> str:
        return self._encode(
            user.user_id,
            REFRESH_TOKEN_TYPE,
            self._settings.refresh_token_ttl_seconds,
            self._settings.refresh_token_secret,
        )

    def verify(self, token: str, secret: str, expected_type: str) -> VerifyResult:
        """Check signature, structure, issuer, audience, type and expiry.

        Expiry is checked against the injected clock, not by PyJWT.
        """
        if not token:
            return TokenInvalid("missing")
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[ALGORITHM],
                audience=self._settings.jwt_audience,
                issuer=self._settings.jwt_issuer,
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": ["exp", "iat", "sub"],
                },
            )
        except jwt.InvalidTokenError as e:
            return TokenInvalid(type(e).__name__)

        if claims.get("type") != expected_type:
            return TokenInvalid("wrong_type")

        try:
            expires_at = datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc)
            issued_at = datetime.fromtimestamp(int(claims["iat"]), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError, OSError):
            return TokenInvalid("malformed_claims")

        if expires_at <= self._clock.now():
            return TokenInvalid("expired")

        return TokenClaims(
            subject=str(claims["sub"]),
            token_type=expected_type,
            issued_at=issued_at,
            expires_at=expires_at,
            raw=claims,
        )

    def verify_access_token(self, token: str) -> VerifyResult:
        return self.verify(token, self._settings.access_token_secret, ACCESS_TOKEN_TYPE)

    def verify_refresh_token(self, token: str) -> VerifyResult:
        return self.verify(
            token, self._settings.refresh_token_secret, REFRESH_TOKEN_TYPE
        )

    # ── Temporary action tokens ──────────────────────────────────────────────

    def issue_temporary_token(
        self, ttl_seconds: Optional[int] = None
    ) -> TemporaryToken:
        if ttl_seconds is None:
            ttl_seconds = self._action_settings.temporary_token_ttl_seconds
        plain = generate_secure_token(32)
        return TemporaryToken(
            plain_value=plain,
            hashed_value=hash_token(plain),
            expiry=self._clock.now() + timedelta(seconds=ttl_seconds),
        )

    @staticmethod
    def hash_token(plain_value: str) -> str:
        return hash_token(plain_value)
