"""Unit tests for the requests-backed provider transport"""

from __future__ import annotations

import asyncio
import json
from unittest.mock import MagicMock

import pytest
import requests

from tabgrouper.grouping.errors import ApiError, NetworkError, RateLimited, Unauthorized
from tabgrouper.llm.providers import ProviderRequest
from tabgrouper.llm.transport import RequestsTransport, error_message_from_body
from tabgrouper.observability.telemetry import _COUNTERS

GEMINI_URL = (
    "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash:generateContent"
    "?key=AIza-very-secret"
)


def _response(status_code: int, body: object | None = None, text: str | None = None) -> MagicMock:
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    if text is None:
        text = json.dumps(body)
    response.text = text
    if body is None:
        response.json.side_effect = json.JSONDecodeError("Expecting value", text, 0)
    else:
        response.json.return_value = body
    return response


def _transport(response: MagicMock | None = None, error: Exception | None = None):
    session = MagicMock(spec=requests.Session)
    if error is not None:
        session.post.side_effect = error
    else:
        session.post.return_value = response
    return RequestsTransport(session=session, timeout_seconds=5), session


def _send(transport: RequestsTransport, url: str = "https://api.example.test/v1/chat"):
    request = ProviderRequest(url=url, headers={"Content-Type": "application/json"}, body={"x": 1})
    return asyncio.run(transport.send(request))


def test_success_returns_decoded_json():
    transport, session = _transport(_response(200, {"message": {"content": "hi"}}))

    assert _send(transport) == {"message": {"content": "hi"}}
    session.post.assert_called_once_with(
        "https://api.example.test/v1/chat",
        headers={"Content-Type": "application/json"},
        json={"x": 1},
        timeout=5,
    )


def test_401_is_unauthorized():
    transport, _ = _transport(_response(401, {"error": {"message": "invalid x-api-key"}}))

    with pytest.raises(Unauthorized) as exc_info:
        _send(transport)

    assert exc_info.value.message == "Invalid API key. Check Settings."
    assert _COUNTERS["llm.unauthorized"] == 1


def test_429_is_rate_limited():
    transport, _ = _transport(_response(429, {"error": {"message": "slow down"}}))

    with pytest.raises(RateLimited):
        _send(transport)


def test_other_status_uses_error_message_from_body():
    transport, _ = _transport(_response(400, {"error": {"message": "model not found"}}))

    with pytest.raises(ApiError) as exc_info:
        _send(transport)

    assert exc_info.value.message == "model not found"
    assert exc_info.value.status_code == 400


def test_plain_text_error_body_is_truncated():
    transport, _ = _transport(_response(500, text="x" * 500))

    with pytest.raises(ApiError) as exc_info:
        _send(transport)

    assert exc_info.value.message == "x" * 200


def test_non_json_success_body_is_api_error():
    transport, _ = _transport(_response(200, text="<html>proxy</html>"))

    with pytest.raises(ApiError) as exc_info:
        _send(transport)

    assert "not JSON" in exc_info.value.message
    assert _COUNTERS["llm.non_json_body"] == 1


def test_connection_failure_is_network_error_without_key():
    error = requests.exceptions.ConnectionError(f"Max retries exceeded with url: {GEMINI_URL}")
    transport, _ = _transport(error=error)

    with pytest.raises(NetworkError) as exc_info:
        _send(transport, url=GEMINI_URL)

    assert exc_info.value.message.startswith("Network error: ")
    assert "AIza-very-secret" not in exc_info.value.message
    assert _COUNTERS["llm.network_error"] == 1


def test_timeout_is_network_error():
    transport, _ = _transport(error=requests.exceptions.Timeout("read timed out"))

    with pytest.raises(NetworkError) as exc_info:
        _send(transport)

    assert exc_info.value.detail == "read timed out"


@pytest.mark.parametrize(
    ("body", "expected"),
    [
        ('{"error": {"message": "bad key", "type": "auth"}}', "bad key"),
        ('{"message": "model offline"}', "model offline"),
        ('{"error": "not an object"}', "API error (500)"),
        ('["unexpected"]', "API error (500)"),
        ("", "API error (500)"),
        ("upstream unavailable", "upstream unavailable"),
    ],
)
def test_error_message_from_body(body, expected):
    assert error_message_from_body(500, body) == expected
