"""Unit tests for TokenCodec — session JWTs and temporary action tokens."""

from __future__ import annotations

from datetime import timedelta

import jwt
import pytest
from bson import ObjectId

from schemas.models.user import UserDoc
from services.token_codec import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    TokenClaims,
    TokenCodec,
    TokenInvalid,
)
from shared.crypto import hash_token


@pytest.fixture
def user() -> UserDoc:
    return UserDoc(
        _id=ObjectId(),
        email="alice@example.com",
        username="alice",
        fullname="Alice",
        password_hash="$argon2id$placeholder",
    )


# ── Access tokens ────────────────────────────────────────────────────────────


class TestAccessToken:
    def test_round_trip_claims(self, codec, user, clock):
        claims = codec.verify_access_token(codec.issue_access_token(user))
        assert isinstance(claims, TokenClaims)
        assert claims.subject == user.user_id
        assert claims.token_type == ACCESS_TOKEN_TYPE
        assert claims.raw["email"] == "alice@example.com"
        assert claims.raw["username"] == "alice"
        assert claims.raw["fullname"] == "Alice"
        assert claims.expires_at - claims.issued_at == timedelta(seconds=900)

    def test_expires_after_ttl(self, codec, user, clock):
        token = codec.issue_access_token(user)
        clock.advance(seconds=899)
        assert isinstance(codec.verify_access_token(token), TokenClaims)
        clock.advance(seconds=1)
        result = codec.verify_access_token(token)
        assert result == TokenInvalid("expired")

    def test_refresh_token_is_not_an_access_token(self, codec, user):
        result = codec.verify_access_token(codec.issue_refresh_token(user))
        assert isinstance(result, TokenInvalid)

    def test_tokens_issued_in_same_second_differ(self, codec, user):
        assert codec.issue_access_token(user) != codec.issue_access_token(user)


# ── Refresh tokens ───────────────────────────────────────────────────────────


class TestRefreshToken:
    def test_round_trip(self, codec, user):
        claims = codec.verify_refresh_token(codec.issue_refresh_token(user))
        assert isinstance(claims, TokenClaims)
        assert claims.subject == user.user_id
        assert claims.token_type == REFRESH_TOKEN_TYPE
        assert "email" not in claims.raw

    def test_longer_ttl_than_access(self, codec, user, clock):
        token = codec.issue_refresh_token(user)
        clock.advance(hours=1)
        assert isinstance(codec.verify_refresh_token(token), TokenClaims)
        clock.advance(days=1)
        assert codec.verify_refresh_token(token) == TokenInvalid("expired")

    def test_access_token_is_not_a_refresh_token(self, codec, user):
        result = codec.verify_refresh_token(codec.issue_access_token(user))
        assert isinstance(result, TokenInvalid)

    def test_rotation_yields_new_string(self, codec, user):
        assert codec.issue_refresh_token(user) != codec.issue_refresh_token(user)


# ── Verification failures ────────────────────────────────────────────────────


class TestVerifyFailures:
    @pytest.mark.parametrize(
        "token",
        ["", "not-a-jwt", "a.b.c", "eyJhbGciOiJIUzI1NiJ9.e30.x"],
        ids=["empty", "garbage", "three_parts", "bad_signature"],
    )
    def test_malformed_input_returns_invalid(self, codec, token):
        assert isinstance(codec.verify_access_token(token), TokenInvalid)

    def test_wrong_secret(self, codec, user, jwt_settings):
        token = codec.issue_access_token(user)
        result = codec.verify(token, "some-other-secret-0123456789abcdef", ACCESS_TOKEN_TYPE)
        assert isinstance(result, TokenInvalid)

    def test_wrong_audience(self, jwt_settings, user, clock):
        other = TokenCodec(
            jwt_settings.model_copy(update={"jwt_audience": "someone-else"}),
            clock=clock,
        )
        token = other.issue_access_token(user)
        codec = TokenCodec(jwt_settings, clock=clock)
        assert isinstance(codec.verify_access_token(token), TokenInvalid)

    def test_missing_type_claim(self, codec, jwt_settings, clock):
        now = int(clock.now().timestamp())
        token = jwt.encode(
            {
                "iss": jwt_settings.jwt_issuer,
                "aud": jwt_settings.jwt_audience,
                "sub": "abc",
                "iat": now,
                "exp": now + 60,
            },
            jwt_settings.access_token_secret,
            algorithm="HS256",
        )
        assert codec.verify_access_token(token) == TokenInvalid("wrong_type")

    def test_missing_exp_claim(self, codec, jwt_settings, clock):
        token = jwt.encode(
            {
                "iss": jwt_settings.jwt_issuer,
                "aud": jwt_settings.jwt_audience,
                "sub": "abc",
                "iat": int(clock.now().timestamp()),
                "type": ACCESS_TOKEN_TYPE,
            },
            jwt_settings.access_token_secret,
            algorithm="HS256",
        )
        assert isinstance(codec.verify_access_token(token), TokenInvalid)


# ── Temporary tokens ─────────────────────────────────────────────────────────


class TestTemporaryToken:
    def test_hash_matches_plain_value(self, codec):
        token = codec.issue_temporary_token()
        assert token.hashed_value == hash_token(token.plain_value)
        assert codec.hash_token(token.plain_value) == token.hashed_value

    def test_default_expiry_is_twenty_minutes(self, codec, clock):
        token = codec.issue_temporary_token()
        assert token.expiry == clock.now() + timedelta(minutes=20)

    def test_custom_ttl(self, codec, clock):
        assert codec.issue_temporary_token(ttl_seconds=60).expiry == clock.now() + timedelta(
            seconds=60
        )

    def test_plain_values_are_unique(self, codec):
        values = {codec.issue_temporary_token().plain_value for _ in range(20)}
        assert len(values) == 20

    def test_plain_value_is_not_the_hash(self, codec):
        token = codec.issue_temporary_token()
        assert token.plain_value != token.hashed_value
