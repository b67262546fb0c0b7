import asyncio
import time

import aiohttp
from loguru import logger

from ...shared.constants import RECEIVE_TIMEOUT
from ...shared.exceptions import ClientConnectorError, WebSocketConnectionError

__all__ = ("_EventSubSocketMixin",)

_KEEPALIVE_GRACE = 5


class _EventSubSocketMixin:
    @property
    def _ws_available(self) -> bool:
        return self.ws_connection is not None and not self.ws_connection.closed

    async def _open_socket(self) -> None:
        async with self._ws_lock:
            if self._ws_available:
                return
            try:
                ws = await self.transport.ws_connect(self.url)
            except (aiohttp.ClientError, OSError, ClientConnectorError) as e:
                logger.error(f"WebSocket connection failed: {e}")
                raise WebSocketConnectionError() from e
            self.ws_connection = ws
            self._last_frame_at = time.monotonic()
        logger.info(f"WebSocket connection opened: {self.url}")
        await self._on_open()

    async def _listen(self) -> None:
        while self.running:
            ws = self.ws_connection
            if ws is None or ws.closed:
                await self._socket_closed(ws)
                return
            try:
                msg = await asyncio.wait_for(ws.receive(), timeout=RECEIVE_TIMEOUT)
            except TimeoutError:
                self._check_keepalive()
                continue
            except (aiohttp.ClientError, OSError) as e:
                await self._on_error(e)
                await self._close_socket()
                await self._socket_closed(ws)
                return
            self._last_frame_at = time.monotonic()
            if msg.type == aiohttp.WSMsgType.TEXT:
                await self._on_message(msg.data)
            elif msg.type == aiohttp.WSMsgType.BINARY:
                await self._on_message(msg.data)
            elif msg.type == aiohttp.WSMsgType.ERROR:
                await self._on_error(ws.exception() or msg.data)
            elif msg.type in (
                aiohttp.WSMsgType.CLOSE,
                aiohttp.WSMsgType.CLOSING,
                aiohttp.WSMsgType.CLOSED,
            ):
                await self._socket_closed(ws, msg.data, msg.extra)
                return

    def _check_keepalive(self) -> None:
        session = self.session
        if session is None or not session.keepalive_timeout_seconds:
            return
        silence = time.monotonic() - self._last_frame_at
        if silence > session.keepalive_timeout_seconds + _KEEPALIVE_GRACE:
            logger.warning(
                f"No frames for {silence:.0f}s "
                f"(keepalive window {session.keepalive_timeout_seconds}s)"
            )

    async def _socket_closed(
        self,
        ws: aiohttp.ClientWebSocketResponse | None,
        code: int | None = None,
        reason: str | None = None,
    ) -> None:
        async with self._ws_lock:
            if ws is None or self.ws_connection is not ws:
                return
            self.ws_connection = None
        if code is None:
            code = ws.close_code
        await self._on_close(code, reason or "")

    async def _close_socket(self) -> None:
        async with self._ws_lock:
            ws = self.ws_connection
        if ws is None or ws.closed:
            return
        try:
            await ws.close()
        except (aiohttp.ClientError, OSError) as e:
            logger.debug(f"Error closing WebSocket: {e}")
