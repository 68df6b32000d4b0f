"""
Input validators: framework-agnostic, pure functions.

Used by the request DTOs; they return booleans and leave the error message to
the caller.
"""

from __future__ import annotations

import validators as _validators

MIN_PASSWORD_LENGTH = 8
MIN_USERNAME_LENGTH = 3


def validate_email(email: str) -> bool:
    """Return True if *email* is a syntactically valid address."""
    return bool(_validators.email(email))


def validate_username(username: str) -> bool:
    """Usernames are at least 3 characters and entirely lower-case."""
    return len(username) >= MIN_USERNAME_LENGTH and username == username.lower()


def validate_password_length(password: str) -> bool:
    """Passwords must be at least 8 characters once surrounding whitespace is removed."""
    return len(password.strip()) >= MIN_PASSWORD_LENGTH
