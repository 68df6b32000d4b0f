"""
FastAPI dependency providers.

Services are built once in the app factory and stored on app.state; these
functions hand them to route handlers through Depends().
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request

from config import AppSettings
from errors import unwrap
from routes.cookies import ACCESS_TOKEN_COOKIE
from schemas.models.user import UserDoc
from services.account_service import AccountService
from services.action_token_service import ActionTokenService
from services.auth_service import AuthSessionService


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_auth_service(request: Request) -> AuthSessionService:
    return request.app.state.auth_service


def get_action_token_service(request: Request) -> ActionTokenService:
    return request.app.state.action_token_service


def get_account_service(request: Request) -> AccountService:
    return request.app.state.account_service


def extract_access_token(request: Request) -> Optional[str]:
    """Access token from the cookie, falling back to an Authorization bearer header."""
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return None


async def get_current_user(
    request: Request,
    auth_service: AuthSessionService = Depends(get_auth_service),
) -> UserDoc:
    """Authenticated account for the request; 401 when the token is missing or invalid."""
    return unwrap(await auth_service.authenticate(extract_access_token(request)))
