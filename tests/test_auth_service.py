"""Tests for access token issuance and verification."""
import uuid
from datetime import UTC, datetime, timedelta

import jwt
import pytest

from codebreaker.config import get_settings
from codebreaker.services.auth_service import AuthError, AuthService


def test_token_round_trips_identity():
    service = AuthService()
    player_id = uuid.uuid4()

    token, expires_in = service.create_access_token(player_id, "  Player@Example.com ")
    identity = service.decode_access_token(token)

    assert identity.player_id == player_id
    assert identity.email == "player@example.com"
    assert expires_in == get_settings().access_token_exp_minutes * 60


def test_expired_token_rejected():
    service = AuthService()
    issued = datetime.now(UTC) - timedelta(days=2)
    token, _ = service.create_access_token(uuid.uuid4(), now=issued)

    with pytest.raises(AuthError, match="token_expired"):
        service.decode_access_token(token)


def test_token_signed_with_other_key_rejected():
    token = jwt.encode(
        {"sub": str(uuid.uuid4()), "exp": datetime.now(UTC) + timedelta(minutes=5)},
        "some-other-secret",
        algorithm="HS256",
    )

    with pytest.raises(AuthError, match="invalid_token"):
        AuthService().decode_access_token(token)


def test_token_without_uuid_subject_rejected():
    settings = get_settings()
    token = jwt.encode(
        {"sub": "not-a-uuid", "exp": datetime.now(UTC) + timedelta(minutes=5)},
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )

    with pytest.raises(AuthError, match="invalid_token"):
        AuthService().decode_access_token(token)


def test_admin_allow_list_is_case_insensitive():
    assert get_settings().is_admin_email("ADMIN@example.com")
    assert not get_settings().is_admin_email("player@example.com")
    assert not get_settings().is_admin_email(None)
