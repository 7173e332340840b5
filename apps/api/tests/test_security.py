"""Tests for session tokens and the scheduler secret check."""

import uuid

import jwt
import pytest

from app.core.config import settings
from app.core.security import bearer_matches, create_session_token, decode_session_token


def test_session_token_round_trip():
    user_id = uuid.uuid4()
    token = create_session_token(user_id, "payroll", 3)

    payload = decode_session_token(token)

    assert payload["sub"] == str(user_id)
    assert payload["role"] == "payroll"
    assert payload["token_version"] == 3


def test_previous_secret_still_verifies(monkeypatch):
    token = create_session_token(uuid.uuid4(), "recruiter", 1)
    old_secret = settings.JWT_SECRET
    monkeypatch.setattr(settings, "JWT_SECRET", "rotated-secret")
    monkeypatch.setattr(settings, "JWT_SECRET_PREVIOUS", old_secret)

    assert decode_session_token(token)["role"] == "recruiter"


def test_unknown_secret_is_rejected():
    token = jwt.encode({"sub": "x"}, "someone-else", algorithm="HS256")
    with pytest.raises(jwt.InvalidTokenError):
        decode_session_token(token)


@pytest.mark.parametrize(
    "header,expected",
    [
        ("Bearer s3cret", True),
        ("bearer s3cret", True),
        ("Bearer wrong", False),
        ("Basic s3cret", False),
        ("Bearer", False),
        ("", False),
        (None, False),
    ],
)
def test_bearer_matches(header, expected):
    assert bearer_matches(header, "s3cret") is expected


def test_bearer_never_matches_empty_secret():
    assert bearer_matches("Bearer ", "") is False
