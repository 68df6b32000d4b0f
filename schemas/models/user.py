"""
User document model.

Maps to the `users` MongoDB collection. Credential state lives directly on
the account document; there is no separate token collection:

- refresh_token holds the single refresh token currently accepted for the
  account (null after logout).
- each single-use action token is a (hash, expiry) pair; the plain token is
  never stored.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import field_validator

from schemas.models.base import MongoBaseModel
from shared.datetime_utils import ensure_utc


class ActionTokenPurpose(str, Enum):
    """Single-use token purposes and the field pair each one occupies."""

    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"

    @property
    def token_field(self) -> str:
        return _ACTION_TOKEN_FIELDS[self][0]

    @property
    def expiry_field(self) -> str:
        return _ACTION_TOKEN_FIELDS[self][1]

    def cleared(self) -> dict:
        """Update fragment that clears this purpose's hash and expiry together."""
        return {self.token_field: None, self.expiry_field: None}


_ACTION_TOKEN_FIELDS = {
    ActionTokenPurpose.EMAIL_VERIFICATION: (
        "email_verification_token",
        "email_verification_expiry",
    ),
    ActionTokenPurpose.PASSWORD_RESET: (
        "forgot_password_token",
        "forgot_password_expiry",
    ),
}


class UserDoc(MongoBaseModel):
    """Document model for the `users` collection."""

    email: str
    username: str
    fullname: str
    password_hash: str
    avatar: Optional[str] = None
    cover_image: Optional[str] = None
    refresh_token: Optional[str] = None
    is_email_verified: bool = False
    email_verification_token: Optional[str] = None
    email_verification_expiry: Optional[datetime] = None
    forgot_password_token: Optional[str] = None
    forgot_password_expiry: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator(
        "email_verification_expiry",
        "forgot_password_expiry",
        "created_at",
        "updated_at",
    )
    @classmethod
    def _as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @property
    def user_id(self) -> str:
        return str(self.id)
