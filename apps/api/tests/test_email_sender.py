"""Tests for the Resend email sender."""

import json

import httpx
import pytest

from app.services import http_service
from app.services.email_sender import (
    RESEND_SEND_URL,
    EmailSendError,
    ResendEmailSender,
)


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr(http_service, "_backoff", lambda *args: 0)


def _sender(handler) -> ResendEmailSender:
    return ResendEmailSender(
        api_key="re_test",
        from_email="crm@example.com",
        transport=httpx.MockTransport(handler),
    )


def test_send_posts_to_resend():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "email_1"})

    _sender(handler).send(["payroll@example.com"], "Delete Request: job J-1", "<p>hi</p>")

    assert captured["url"] == RESEND_SEND_URL
    assert captured["auth"] == "Bearer re_test"
    assert captured["body"] == {
        "from": "crm@example.com",
        "to": ["payroll@example.com"],
        "subject": "Delete Request: job J-1",
        "html": "<p>hi</p>",
    }


def test_send_retries_transient_failures():
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        if calls["count"] < 3:
            return httpx.Response(503)
        return httpx.Response(200, json={"id": "email_1"})

    _sender(handler).send(["payroll@example.com"], "s", "b")

    assert calls["count"] == 3


def test_send_raises_with_provider_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"message": "Invalid `to` field"})

    with pytest.raises(EmailSendError, match="Invalid `to` field"):
        _sender(handler).send(["not-an-email"], "s", "b")


def test_send_without_api_key_is_a_dry_run():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    sender = ResendEmailSender(api_key="", transport=httpx.MockTransport(handler))

    assert sender.is_configured() is False
    sender.send(["payroll@example.com"], "s", "b")


def test_send_skips_empty_recipients():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    _sender(handler).send(["", None], "s", "b")
