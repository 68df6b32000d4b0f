"""
Response DTOs for the users API.

UserProfileResponse  — sanitized account projection
UserResponse         — {user} envelope (register, login, current user, update)
RegisterResponse     — POST /register  (201)
VerifyEmailResponse  — POST /verify-email/{token}  (200)

Tokens are never part of a response body; they travel as HTTP-only cookies.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.models.user import UserDoc


class UserProfileResponse(BaseModel):
    """Public view of an account: no password hash, refresh token or action tokens."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str
    username: str
    fullname: str
    avatar: Optional[str] = None
    cover_image: Optional[str] = None
    is_email_verified: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user: UserDoc) -> "UserProfileResponse":
        return cls(
            id=user.user_id,
            email=user.email,
            username=user.username,
            fullname=user.fullname,
            avatar=user.avatar,
            cover_image=user.cover_image,
            is_email_verified=user.is_email_verified,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user: UserProfileResponse
    message: Optional[str] = None


class RegisterResponse(BaseModel):
    """Response body for POST /register (201)."""

    model_config = ConfigDict(populate_by_name=True)

    user: UserProfileResponse
    requires_verification: bool
    verification_sent: bool


class VerifyEmailResponse(BaseModel):
    """Response body for POST /verify-email/{token} (200)."""

    model_config = ConfigDict(populate_by_name=True)

    is_email_verified: bool
    message: str
