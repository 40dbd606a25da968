"""
Pytest configuration for TabGrouper tests

Provides fixtures shared across unit, contract and integration tests.
"""

from __future__ import annotations

from typing import Any

import pytest

from tabgrouper.grouping.models import Tab
from tabgrouper.llm.providers import ProviderRequest
from tabgrouper.observability.telemetry import reset_telemetry


@pytest.fixture(autouse=True)
def reset_metrics():
    reset_telemetry()
    yield
    reset_telemetry()


@pytest.fixture
def sample_tabs() -> list[Tab]:
    return [
        Tab(id=11, title="Inbox (3) - Gmail", url="https://mail.google.com/mail/u/0/#inbox"),
        Tab(id=12, title="Pull requests", url="https://github.com/pulls", favIconUrl="https://github.com/favicon.ico"),
        Tab(id=13, title="Lo-fi beats", url="https://www.youtube.com/watch?v=abc"),
        Tab(id=14, title="asyncio docs", url="https://docs.python.org/3/library/asyncio.html"),
    ]


class FakeTransport:
    """Transport double: records requests and replays a canned body or error."""

    def __init__(self, body: Any = None, error: Exception | None = None):
        self.body = body
        self.error = error
        self.requests: list[ProviderRequest] = []

    async def send(self, request: ProviderRequest) -> Any:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.body


@pytest.fixture
def fake_transport_factory():
    return FakeTransport


@pytest.fixture
def claude_body():
    """Build an Anthropic-shaped response body carrying `text`."""

    def _build(text: str) -> dict[str, Any]:
        return {"content": [{"type": "text", "text": text}], "stop_reason": "end_turn"}

    return _build
