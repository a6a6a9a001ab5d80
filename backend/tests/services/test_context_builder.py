"""Context Builder — tests for per-request context construction.

Tests cover:
    - No credential => anonymous context (not an error)
    - Bearer header and session cookie both authenticate; header wins
    - Invalid or expired credentials => anonymous context
    - Deadline derives from configured timeout; client may shorten, never extend
    - Request id taken from header when present
    - The store is attached but never used
"""

import time
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from switchyard.infrastructure.tokens import mint_session_token
from switchyard.services.context_builder import (
    RawRequest, build_context, extract_credential, resolve_timeout,
)


@pytest.fixture
def token(settings):
    return mint_session_token(str(uuid4()), "ada@example.com", "Ada", settings)


def test_no_credential_is_anonymous(settings):
    ctx = build_context(RawRequest(), MagicMock(), settings)
    assert ctx.session is None
    assert ctx.is_authenticated is False


def test_bearer_header_authenticates(settings, token):
    raw = RawRequest(headers={"Authorization": f"Bearer {token}"})
    ctx = build_context(raw, MagicMock(), settings)
    assert ctx.session is not None
    assert ctx.session.name == "Ada"


def test_cookie_authenticates(settings, token):
    raw = RawRequest(cookies={settings.session_cookie_name: token})
    assert build_context(raw, MagicMock(), settings).session is not None


def test_header_preferred_over_cookie(settings, token):
    raw = RawRequest(
        headers={"authorization": f"Bearer {token}"},
        cookies={settings.session_cookie_name: "garbage"},
    )
    assert extract_credential(raw, settings.session_cookie_name) == token


@pytest.mark.parametrize("header", ["Bearer not-a-jwt", "Basic abc", "Bearer ", "token"])
def test_invalid_credentials_are_anonymous(settings, header):
    ctx = build_context(RawRequest(headers={"Authorization": header}), MagicMock(), settings)
    assert ctx.session is None


def test_deadline_uses_configured_timeout(settings):
    before = time.monotonic()
    ctx = build_context(RawRequest(), MagicMock(), settings)
    assert before + settings.request_timeout_seconds <= ctx.deadline
    assert ctx.deadline <= time.monotonic() + settings.request_timeout_seconds


@pytest.mark.parametrize("header, expected", [
    ("1000", 1.0),
    ("999999999", 5.0),   # cannot extend past configured 5s
    ("0", 5.0),
    ("-10", 5.0),
    ("abc", 5.0),
])
def test_client_timeout_header(header, expected):
    raw = RawRequest(headers={"X-Request-Timeout-Ms": header})
    assert resolve_timeout(raw, 5.0) == expected


def test_request_id_from_header(settings):
    raw = RawRequest(headers={"X-Request-Id": "abc-123"})
    assert build_context(raw, MagicMock(), settings).request_id == "abc-123"


def test_request_ids_are_unique_per_request(settings):
    a = build_context(RawRequest(), MagicMock(), settings)
    b = build_context(RawRequest(), MagicMock(), settings)
    assert a.request_id != b.request_id


def test_store_attached_but_not_touched(settings, token):
    store = MagicMock()
    ctx = build_context(RawRequest(headers={"Authorization": f"Bearer {token}"}), store, settings)
    assert ctx.store is store
    assert store.method_calls == []
