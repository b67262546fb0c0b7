"""
Tests for the shared aiohttp transport
"""
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from twitch_ai.clients.twitch.transport import TCPClient
from twitch_ai.shared.constants import WS_TIMEOUT
from twitch_ai.shared.exceptions import ClientConnectorError


def _transport_with(session) -> TCPClient:
    transport = TCPClient()
    transport._TCPClient__session = session
    return transport


@pytest.mark.asyncio
class TestWsConnect:
    async def test_uses_websocket_timeout_object(self):
        session = MagicMock(closed=False)
        session.ws_connect = AsyncMock(return_value="ws")
        transport = _transport_with(session)
        assert await transport.ws_connect("wss://example.test/ws") == "ws"
        kwargs = session.ws_connect.await_args.kwargs
        assert isinstance(kwargs["timeout"], aiohttp.ClientWSTimeout)
        assert kwargs["timeout"].ws_close == WS_TIMEOUT
        assert kwargs["autoclose"] is True
        assert kwargs["headers"] == {"User-Agent": "TwitchAIBot/1.0"}

    async def test_connector_error_is_wrapped(self):
        session = MagicMock(closed=False)
        session.ws_connect = AsyncMock(
            side_effect=aiohttp.ClientConnectorError(MagicMock(), OSError("refused"))
        )
        transport = _transport_with(session)
        with pytest.raises(ClientConnectorError):
            await transport.ws_connect("wss://example.test/ws")

    async def test_session_is_created_lazily_and_closed(self):
        transport = TCPClient()
        session = transport.session
        assert transport.session is session
        await transport.close_session()
        assert session.closed
