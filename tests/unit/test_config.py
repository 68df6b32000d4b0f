"""Unit tests for AppSettings and sub-configs."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from config import (
    ActionTokenSettings,
    AppSettings,
    DatabaseSettings,
    JWTSettings,
    PasswordSettings,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def with_mongo(monkeypatch):
    """Set the required MONGODB_URI so AppSettings can be instantiated."""
    monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017/")
    return monkeypatch


@pytest.fixture
def with_secrets(with_mongo):
    with_mongo.setenv("ACCESS_TOKEN_SECRET", "access-secret-0123456789abcdef")
    with_mongo.setenv("REFRESH_TOKEN_SECRET", "refresh-secret-0123456789abcdef")
    return with_mongo


# ---------------------------------------------------------------------------
# DatabaseSettings
# ---------------------------------------------------------------------------


class TestDatabaseSettings:
    def test_loads_mongodb_uri(self, monkeypatch):
        monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017/")
        assert DatabaseSettings().mongodb_uri == "mongodb://localhost:27017/"

    def test_default_db_name(self, monkeypatch):
        monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017/")
        monkeypatch.delenv("DB_NAME", raising=False)
        assert DatabaseSettings().db_name == "accounts"

    def test_missing_mongodb_uri_raises(self, monkeypatch):
        monkeypatch.delenv("MONGODB_URI", raising=False)
        with pytest.raises(PydanticValidationError):
            DatabaseSettings()


# ---------------------------------------------------------------------------
# JWTSettings / ActionTokenSettings / PasswordSettings
# ---------------------------------------------------------------------------


class TestJWTSettings:
    def test_defaults(self, monkeypatch):
        for var in (
            "JWT_ISSUER",
            "JWT_AUDIENCE",
            "ACCESS_TOKEN_TTL_SECONDS",
            "REFRESH_TOKEN_TTL_SECONDS",
            "COOKIE_SECURE",
            "ACCESS_TOKEN_SECRET",
            "REFRESH_TOKEN_SECRET",
        ):
            monkeypatch.delenv(var, raising=False)
        s = JWTSettings()
        assert s.jwt_issuer == "accounts-api"
        assert s.jwt_audience == "accounts-api.users"
        assert s.access_token_ttl_seconds == 900
        assert s.refresh_token_ttl_seconds == 2592000
        assert s.cookie_secure is True
        assert s.access_token_secret == ""

    def test_ttls_from_env(self, monkeypatch):
        monkeypatch.setenv("ACCESS_TOKEN_TTL_SECONDS", "60")
        monkeypatch.setenv("REFRESH_TOKEN_TTL_SECONDS", "3600")
        s = JWTSettings()
        assert s.access_token_ttl_seconds == 60
        assert s.refresh_token_ttl_seconds == 3600


def test_temporary_token_ttl_default(monkeypatch):
    monkeypatch.delenv("TEMPORARY_TOKEN_TTL_SECONDS", raising=False)
    assert ActionTokenSettings().temporary_token_ttl_seconds == 1200


def test_argon2_parameters_from_env(monkeypatch):
    monkeypatch.setenv("ARGON2_TIME_COST", "5")
    monkeypatch.setenv("ARGON2_MEMORY_COST", "1024")
    s = PasswordSettings()
    assert s.argon2_time_cost == 5
    assert s.argon2_memory_cost == 1024


# ---------------------------------------------------------------------------
# AppSettings
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "env, expected",
    [("production", True), ("development", False)],
    ids=["production", "development"],
)
def test_is_production(with_mongo, env, expected):
    with_mongo.setenv("ENV", env)
    assert AppSettings().is_production is expected


class TestValidateSecrets:
    def test_accepts_distinct_secrets(self, with_secrets):
        AppSettings().validate_secrets()

    @pytest.mark.parametrize(
        "missing", ["ACCESS_TOKEN_SECRET", "REFRESH_TOKEN_SECRET"]
    )
    def test_missing_secret_raises(self, with_secrets, missing):
        with_secrets.delenv(missing)
        with pytest.raises(RuntimeError, match="must both be set"):
            AppSettings().validate_secrets()

    def test_identical_secrets_raise(self, with_secrets):
        with_secrets.setenv("REFRESH_TOKEN_SECRET", "access-secret-0123456789abcdef")
        with pytest.raises(RuntimeError, match="must differ"):
            AppSettings().validate_secrets()


class TestAppSettings:
    def test_sub_configs_populated(self, with_mongo):
        s = AppSettings()
        for attr in (
            "db",
            "jwt",
            "action_tokens",
            "passwords",
            "email",
            "logging",
            "sentry",
        ):
            assert getattr(s, attr) is not None, f"sub-config '{attr}' is None"

    def test_cors_origins_default(self, with_mongo):
        with_mongo.delenv("CORS_ORIGINS", raising=False)
        assert AppSettings().cors_origins == ["*"]
