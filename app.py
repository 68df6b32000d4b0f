"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx
import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import AppSettings
from errors import register_error_handlers
from infrastructure.email.zeptomail import ZeptoMailProvider
from repositories.user_repository import MongoUserRepository
from routes.health_routes import router as health_router
from routes.user_routes import router as user_router
from services.account_service import AccountService
from services.action_token_service import ActionTokenService
from services.auth_service import AuthSessionService
from services.token_codec import TokenCodec
from shared.crypto import PasswordHasher
from shared.datetime_utils import SystemClock
from shared.logging import get_logger

log = get_logger(__name__)


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()
    settings.validate_secrets()

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            profiles_sample_rate=settings.sentry.sentry_profile_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        mongo_client: AsyncMongoClient = AsyncMongoClient(
            settings.db.mongodb_uri, tz_aware=True
        )
        db = mongo_client[settings.db.db_name]
        http_client = httpx.AsyncClient(timeout=settings.email.email_timeout_seconds)

        clock = SystemClock()
        users = MongoUserRepository(db, clock=clock)
        await users.ensure_indexes()

        hasher = PasswordHasher(settings.passwords)
        codec = TokenCodec(settings.jwt, settings.action_tokens, clock=clock)
        email = ZeptoMailProvider(
            settings.email, http_client, app_name=settings.app_name
        )
        action_tokens = ActionTokenService(
            users, codec, email, settings.action_tokens, hasher, clock=clock
        )

        app.state.settings = settings
        app.state.mongo_client = mongo_client
        app.state.db = db
        app.state.auth_service = AuthSessionService(users, hasher, codec, action_tokens)
        app.state.action_token_service = action_tokens
        app.state.account_service = AccountService(users)

        log.info("app_started", env=settings.env, db_name=settings.db.db_name)

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await http_client.aclose()
        await mongo_client.close()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(user_router)

    return app
