# tests/test_tokens.py
from datetime import timedelta

import pytest
from jose import jwt
from pydantic import ValidationError

from jobboard.core.config import Settings
from jobboard.core.errors import InvalidToken, TokenExpired, Unauthenticated
from jobboard.services.tokens import TokenPurpose, TokenService


@pytest.fixture
def tokens(settings):
    return TokenService(settings)


@pytest.mark.parametrize("purpose", list(TokenPurpose))
def test_round_trip_returns_subject(tokens, purpose):
    token = tokens.issue("64b7f0c2a1b2c3d4e5f60718", purpose, ttl=timedelta(minutes=5))
    assert tokens.verify(token, purpose) == "64b7f0c2a1b2c3d4e5f60718"


def test_round_trip_without_expiry(tokens):
    token = tokens.issue("subject-1", TokenPurpose.LOGIN)
    assert "exp" not in jwt.get_unverified_claims(token)
    assert tokens.verify(token, TokenPurpose.LOGIN) == "subject-1"


@pytest.mark.parametrize(
    "issued, presented",
    [
        (TokenPurpose.RESET, TokenPurpose.LOGIN),
        (TokenPurpose.CONFIRMATION, TokenPurpose.LOGIN),
        (TokenPurpose.LOGIN, TokenPurpose.RESET),
        (TokenPurpose.LOGIN, TokenPurpose.CONFIRMATION),
    ],
)
def test_cross_purpose_tokens_are_rejected(tokens, issued, presented):
    token = tokens.issue("subject-1", issued, ttl=timedelta(minutes=5))
    with pytest.raises(InvalidToken):
        tokens.verify(token, presented)


def test_zero_ttl_is_already_expired(tokens):
    token = tokens.issue("subject-1", TokenPurpose.LOGIN, ttl=timedelta(0))
    with pytest.raises(TokenExpired):
        tokens.verify(token, TokenPurpose.LOGIN)


def test_past_expiry_is_rejected(tokens):
    token = tokens.issue("subject-1", TokenPurpose.RESET, ttl=timedelta(minutes=-10))
    with pytest.raises(TokenExpired):
        tokens.verify(token, TokenPurpose.RESET)


def test_tampered_payload_fails_signature(tokens):
    token = tokens.issue("subject-1", TokenPurpose.LOGIN)
    header, payload, signature = token.split(".")
    forged = jwt.encode({"sub": "someone-else", "purpose": "login"}, "guess", algorithm="HS256")
    with pytest.raises(InvalidToken):
        tokens.verify(".".join([header, forged.split(".")[1], signature]), TokenPurpose.LOGIN)


def test_token_signed_elsewhere_is_rejected(tokens):
    other = TokenService(
        Settings(
            _env_file=None,
            LOGIN_SECRET="another-login",
            CONFIRMATION_SECRET="another-confirm",
            RESET_PASSWORD_SECRET="another-reset",
        )
    )
    with pytest.raises(InvalidToken):
        tokens.verify(other.issue("subject-1", TokenPurpose.LOGIN), TokenPurpose.LOGIN)


def test_purpose_claim_must_match(settings, tokens):
    # right secret, wrong embedded purpose
    token = jwt.encode({"sub": "subject-1", "purpose": "reset"}, settings.LOGIN_SECRET, algorithm="HS256")
    with pytest.raises(InvalidToken):
        tokens.verify(token, TokenPurpose.LOGIN)


@pytest.mark.parametrize("garbage", ["", "not-a-jwt", "a.b.c"])
def test_garbage_is_invalid(tokens, garbage):
    with pytest.raises(InvalidToken) as exc:
        tokens.verify(garbage, TokenPurpose.LOGIN)
    assert isinstance(exc.value, Unauthenticated)
    assert exc.value.status_code == 401


def test_configured_lifetimes(settings):
    svc = TokenService(settings.model_copy(update={"LOGIN_TOKEN_EXPIRE_MINUTES": None}))
    assert svc.lifetime(TokenPurpose.LOGIN) is None
    assert svc.lifetime(TokenPurpose.RESET) == timedelta(minutes=15)
    assert "exp" not in jwt.get_unverified_claims(svc.issue_login("subject-1"))
    assert "exp" in jwt.get_unverified_claims(svc.issue_confirmation("subject-1"))


def test_settings_reject_shared_secrets():
    with pytest.raises(ValidationError):
        Settings(
            _env_file=None,
            LOGIN_SECRET="same",
            CONFIRMATION_SECRET="same",
            RESET_PASSWORD_SECRET="different",
        )
