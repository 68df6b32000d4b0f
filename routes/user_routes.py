"""
Users API under /api/v1/users.

Public:    register, login, refresh-token, verify-email, forgot-password,
           reset-password
Protected: logout, change-password, current-user-details, update-details,
           resend-email-verification

Handlers stay thin: they call a service, ``unwrap`` the Result (raising the
matching AppError on failure) and attach or clear the session cookies.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from config import AppSettings
from dependencies import (
    get_account_service,
    get_action_token_service,
    get_auth_service,
    get_current_user,
    get_settings,
)
from errors import unwrap
from routes.cookies import REFRESH_TOKEN_COOKIE, clear_auth_cookies, set_auth_cookies
from schemas.dto.requests.auth import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UpdateAccountDetailsRequest,
)
from schemas.dto.responses.auth import (
    RegisterResponse,
    UserProfileResponse,
    UserResponse,
    VerifyEmailResponse,
)
from schemas.dto.responses.common import ErrorResponse, MessageResponse
from schemas.models.user import UserDoc
from services.account_service import AccountService
from services.action_token_service import ActionTokenService
from services.auth_service import AuthSessionService

router = APIRouter(
    prefix="/api/v1/users",
    tags=["users"],
    responses={
        code: {"model": ErrorResponse} for code in (400, 401, 404, 409, 500)
    },
)


def _json(model, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=model.model_dump(mode="json"))


@router.post("/register", status_code=201, response_model=RegisterResponse)
async def register(
    body: RegisterRequest,
    auth_service: AuthSessionService = Depends(get_auth_service),
) -> JSONResponse:
    result = unwrap(
        await auth_service.register(
            email=body.email,
            username=body.username,
            fullname=body.fullname,
            password=body.password,
        )
    )
    return _json(
        RegisterResponse(
            user=UserProfileResponse.from_user(result.user),
            requires_verification=True,
            verification_sent=result.verification_sent,
        ),
        status_code=201,
    )


@router.post("/login", response_model=UserResponse)
async def login(
    body: LoginRequest,
    auth_service: AuthSessionService = Depends(get_auth_service),
    settings: AppSettings = Depends(get_settings),
) -> JSONResponse:
    session = unwrap(await auth_service.login(body.email, body.password))
    response = _json(
        UserResponse(
            user=UserProfileResponse.from_user(session.user),
            message="User logged in successfully",
        )
    )
    return set_auth_cookies(
        response, settings.jwt, session.access_token, session.refresh_token
    )


@router.post("/refresh-token", response_model=MessageResponse)
async def refresh_token(
    request: Request,
    auth_service: AuthSessionService = Depends(get_auth_service),
    settings: AppSettings = Depends(get_settings),
) -> JSONResponse:
    session = unwrap(
        await auth_service.refresh_access_token(
            request.cookies.get(REFRESH_TOKEN_COOKIE)
        )
    )
    response = _json(
        MessageResponse(success=True, message="Access token refreshed successfully")
    )
    return set_auth_cookies(
        response, settings.jwt, session.access_token, session.refresh_token
    )


@router.post("/verify-email/{verification_token}", response_model=VerifyEmailResponse)
async def verify_email(
    verification_token: str,
    action_tokens: ActionTokenService = Depends(get_action_token_service),
) -> JSONResponse:
    outcome = unwrap(await action_tokens.consume_email_verification(verification_token))
    return _json(
        VerifyEmailResponse(
            is_email_verified=outcome.is_email_verified, message="Email is verified"
        )
    )


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    body: ForgotPasswordRequest,
    action_tokens: ActionTokenService = Depends(get_action_token_service),
) -> JSONResponse:
    unwrap(await action_tokens.issue_forgot_password(body.email))
    return _json(
        MessageResponse(
            success=True,
            message="Password reset email has been sent to your email Id",
        )
    )


@router.post("/reset-password/{reset_token}", response_model=MessageResponse)
async def reset_password(
    reset_token: str,
    body: ResetPasswordRequest,
    action_tokens: ActionTokenService = Depends(get_action_token_service),
) -> JSONResponse:
    unwrap(await action_tokens.consume_forgot_password(reset_token, body.new_password))
    return _json(MessageResponse(success=True, message="Password reset successfully"))


# ── Protected routes ──────────────────────────────────────────────────────────


@router.post("/logout", response_model=MessageResponse)
async def logout(
    user: UserDoc = Depends(get_current_user),
    auth_service: AuthSessionService = Depends(get_auth_service),
    settings: AppSettings = Depends(get_settings),
) -> JSONResponse:
    unwrap(await auth_service.logout(user.user_id))
    response = _json(MessageResponse(success=True, message="User logged out successfully"))
    return clear_auth_cookies(response, settings.jwt)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    user: UserDoc = Depends(get_current_user),
    auth_service: AuthSessionService = Depends(get_auth_service),
) -> JSONResponse:
    unwrap(
        await auth_service.change_password(
            user.user_id, body.old_password, body.new_password
        )
    )
    return _json(MessageResponse(success=True, message="Password changed successfully"))


@router.get("/current-user-details", response_model=UserResponse)
async def current_user_details(
    user: UserDoc = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
) -> JSONResponse:
    current = unwrap(await accounts.get_current_user(user.user_id))
    return _json(
        UserResponse(
            user=UserProfileResponse.from_user(current),
            message="Current user details",
        )
    )


@router.put("/update-details", response_model=UserResponse)
async def update_details(
    body: UpdateAccountDetailsRequest,
    user: UserDoc = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
) -> JSONResponse:
    updated = unwrap(await accounts.update_account_details(user.user_id, body.fullname))
    return _json(
        UserResponse(
            user=UserProfileResponse.from_user(updated),
            message="User details updated successfully",
        )
    )


@router.post("/resend-email-verification", response_model=MessageResponse)
async def resend_email_verification(
    user: UserDoc = Depends(get_current_user),
    action_tokens: ActionTokenService = Depends(get_action_token_service),
) -> JSONResponse:
    unwrap(await action_tokens.issue_email_verification(user.user_id))
    return _json(
        MessageResponse(success=True, message="Email has been sent to your email Id")
    )
