"""
Request DTOs for the users API.

RegisterRequest              — POST /api/v1/users/register
LoginRequest                 — POST /api/v1/users/login
ChangePasswordRequest        — POST /api/v1/users/change-password
ForgotPasswordRequest        — POST /api/v1/users/forgot-password
ResetPasswordRequest         — POST /api/v1/users/reset-password/{reset_token}
UpdateAccountDetailsRequest  — PUT  /api/v1/users/update-details
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.validators import (
    validate_email,
    validate_password_length,
    validate_username,
)


def _check_email(value: str) -> str:
    value = value.strip().lower()
    if not value:
        raise ValueError("Email is required")
    if not validate_email(value):
        raise ValueError("Invalid Email Id")
    return value


def _check_password(value: str) -> str:
    if not validate_password_length(value):
        raise ValueError("Password must be minimum 8 characters")
    return value


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/users/register."""

    model_config = ConfigDict(populate_by_name=True)

    email: str
    username: str
    fullname: str
    password: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("username")
    @classmethod
    def _username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Username is required")
        if not validate_username(v):
            raise ValueError(
                "Username must be at least 3 characters long and in lowercase"
            )
        return v

    @field_validator("fullname")
    @classmethod
    def _fullname(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Fullname is required")
        return v

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        return _check_password(v)


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/users/login."""

    model_config = ConfigDict(populate_by_name=True)

    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        return _check_password(v)


class ChangePasswordRequest(BaseModel):
    """Request body for POST /api/v1/users/change-password."""

    model_config = ConfigDict(populate_by_name=True)

    old_password: str = Field(alias="oldPassword")
    new_password: str = Field(alias="newPassword")

    @field_validator("old_password", "new_password")
    @classmethod
    def _password(cls, v: str) -> str:
        return _check_password(v)


class ForgotPasswordRequest(BaseModel):
    """Request body for POST /api/v1/users/forgot-password."""

    model_config = ConfigDict(populate_by_name=True)

    email: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _check_email(v)


class ResetPasswordRequest(BaseModel):
    """Request body for POST /api/v1/users/reset-password/{reset_token}."""

    model_config = ConfigDict(populate_by_name=True)

    new_password: str = Field(alias="newPassword")

    @field_validator("new_password")
    @classmethod
    def _password(cls, v: str) -> str:
        return _check_password(v)


class UpdateAccountDetailsRequest(BaseModel):
    """Request body for PUT /api/v1/users/update-details."""

    model_config = ConfigDict(populate_by_name=True)

    fullname: str

    @field_validator("fullname")
    @classmethod
    def _fullname(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Fullname is required")
        return v
