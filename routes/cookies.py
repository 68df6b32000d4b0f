"""Session cookies: both tokens travel only as HTTP-only, secure cookies."""

from __future__ import annotations

from fastapi import Response

from config import JWTSettings

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"


def set_auth_cookies(
    response: Response,
    settings: JWTSettings,
    access_token: str,
    refresh_token: str,
) -> Response:
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        value=access_token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
        max_age=settings.access_token_ttl_seconds,
    )
    response.set_cookie(
        REFRESH_TOKEN_COOKIE,
        value=refresh_token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
        max_age=settings.refresh_token_ttl_seconds,
    )
    return response


def clear_auth_cookies(response: Response, settings: JWTSettings) -> Response:
    for name in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
        response.delete_cookie(
            name,
            path="/",
            secure=settings.cookie_secure,
            httponly=True,
            samesite="lax",
        )
    return response
