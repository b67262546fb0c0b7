"""
Shared fixtures for the test suite
Fake aiohttp session objects and a valid settings dict
"""
import json
from typing import Any

import pytest


class FakeResponse:
    def __init__(self, status: int = 200, payload: Any = None, text: str | None = None):
        self.status = status
        self._payload = payload if payload is not None else {}
        self._text = text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def json(self, content_type=None):
        if self._text is not None and self._payload == {}:
            return json.loads(self._text)
        return self._payload

    async def text(self):
        if self._text is not None:
            return self._text
        return json.dumps(self._payload)


class FakeSession:
    """Records requests and replays queued responses (last one repeats)"""

    def __init__(self, *responses: FakeResponse):
        self.responses = list(responses) or [FakeResponse()]
        self.calls: list[dict[str, Any]] = []

    def _next(self) -> FakeResponse:
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

    def post(self, url, **kwargs):
        self.calls.append({"method": "POST", "url": url, **kwargs})
        return self._next()

    def get(self, url, **kwargs):
        self.calls.append({"method": "GET", "url": url, **kwargs})
        return self._next()


class FakeTransport:
    def __init__(self, session: FakeSession):
        self.session = session
        self.closed = False

    async def close_session(self, *, silent: bool = False) -> None:
        self.closed = True


@pytest.fixture
def settings() -> dict[str, Any]:
    return {
        "twitch": {
            "bot_user_id": "bot-1",
            "bot_username": "kissbot",
            "oauth_token": "oauth:abc123",
            "client_id": "client-xyz",
            "channel_user_id": "chan-9",
        },
        "openai": {"api_key": "sk-test"},
    }


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def fake_transport(fake_session) -> FakeTransport:
    return FakeTransport(fake_session)
