"""
Random token generators: pure, side-effect-free functions.

All generators use the ``secrets`` module.
"""

from __future__ import annotations

import secrets


def generate_secure_token(length: int = 32) -> str:
    """Generate a cryptographically secure URL-safe random token.

    Args:
        length: Number of random bytes before base64 encoding (default 32,
            i.e. 256 bits). The resulting string is longer than *length*.

    Returns:
        URL-safe base64-encoded token string.
    """
    return secrets.token_urlsafe(length)


def generate_token_id() -> str:
    """Generate a 128-bit hex identifier for the JWT ``jti`` claim."""
    return secrets.token_hex(16)
