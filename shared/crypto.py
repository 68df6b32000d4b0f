"""
Cryptographic helpers: password hashing and token hashing.

Uses argon2 for passwords (via argon2-cffi) and SHA-256 for token hashing.

The two primitives are not interchangeable: argon2 salts every call, so the
same password never hashes to the same string twice, while ``hash_token`` is
deterministic so a token presented later can be re-hashed and looked up.
"""

from __future__ import annotations

import hashlib
from typing import Optional

from argon2 import PasswordHasher as _Argon2Hasher
from argon2.exceptions import InvalidHashError, VerificationError

from config import PasswordSettings


class PasswordHasher:
    """One-way password hashing with a configurable argon2id work factor."""

    def __init__(self, settings: Optional[PasswordSettings] = None) -> None:
        if settings is None:
            self._hasher = _Argon2Hasher()
        else:
            self._hasher = _Argon2Hasher(
                time_cost=settings.argon2_time_cost,
                memory_cost=settings.argon2_memory_cost,
                parallelism=settings.argon2_parallelism,
            )

    def hash(self, plain_password: str) -> str:
        """Hash *plain_password* with argon2id.

        Returns:
            Argon2 hash string (includes algorithm parameters and salt).
        """
        return self._hasher.hash(plain_password)

    def verify(self, plain_password: str, password_hash: Optional[str]) -> bool:
        """Verify *plain_password* against an argon2 *password_hash*.

        Returns:
            ``True`` if the password matches, ``False`` for a wrong password,
            a malformed hash or a missing hash.
        """
        if not password_hash:
            return False
        try:
            return self._hasher.verify(password_hash, plain_password)
        except (VerificationError, InvalidHashError):
            return False


def hash_token(token: str) -> str:
    """Return the hex-encoded SHA-256 digest of *token*.

    Used to hash email-verification and password-reset tokens before storing
    them so the plaintext is never persisted.

    Returns:
        64-character lowercase hex string.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
