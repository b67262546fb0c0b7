import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

import aiohttp
from loguru import logger

from ...shared.constants import TWITCH_EVENTSUB_URL
from ...shared.exceptions import SubscriptionError
from .events import _EventSubEventsMixin
from .frames import WelcomeFrame
from .helix import HelixAPI
from .socket import _EventSubSocketMixin
from .transport import TCPClient

__all__ = ("EventSubClient", "EventSubSession", "SessionState")


class SessionState(Enum):
    NO_SESSION = "no_session"
    AWAITING_WELCOME = "awaiting_welcome"
    ACTIVE = "active"


@dataclass(frozen=True, slots=True)
class EventSubSession:
    session_id: str
    keepalive_timeout_seconds: int | None = None
    connected_at: str | None = None


class EventSubClient(_EventSubSocketMixin, _EventSubEventsMixin):
    def __init__(
        self,
        helix: HelixAPI,
        *,
        url: str = TWITCH_EVENTSUB_URL,
        transport: TCPClient | None = None,
        log_dump_events: bool = False,
    ):
        self.helix = helix
        self.url = url
        self.transport: TCPClient = transport or helix.transport
        self.log_dump_events = log_dump_events
        self.ws_connection: aiohttp.ClientWebSocketResponse | None = None
        self.session: EventSubSession | None = None
        self.state = SessionState.NO_SESSION
        self.running = False
        self.notification_handlers: list[tuple[Any, Any]] = []
        self._handler_tasks: set[asyncio.Task[None]] = set()
        self._ws_lock = asyncio.Lock()
        self._last_frame_at = time.monotonic()

    @property
    def session_id(self) -> str | None:
        session = self.session
        return session.session_id if session else None

    async def run(self) -> None:
        if self.running:
            return
        self.running = True
        try:
            await self._open_socket()
            await self._listen()
        except asyncio.CancelledError:
            raise
        except Exception:
            await self._close_socket()
            await self._socket_closed(self.ws_connection)
            raise
        finally:
            self.running = False

    async def close(self) -> None:
        self.running = False
        ws = self.ws_connection
        await self._close_socket()
        await self._socket_closed(ws)
        await self._cancel_handler_tasks()
        logger.debug("EventSub client closed")

    async def _on_open(self) -> None:
        self.state = SessionState.AWAITING_WELCOME
        logger.debug("Awaiting session_welcome")

    async def _on_error(self, error: Any) -> None:
        logger.error(f"WebSocket error: {error}")

    async def _on_close(self, code: int | None, reason: str) -> None:
        logger.warning(f"WebSocket closed: code={code}, reason={reason}")
        self.session = None
        self.state = SessionState.NO_SESSION

    async def _handle_welcome(self, frame: WelcomeFrame) -> None:
        if not frame.session_id:
            raise SubscriptionError("session_welcome without a session id")
        previous = self.session
        session = EventSubSession(
            session_id=frame.session_id,
            keepalive_timeout_seconds=frame.keepalive_timeout_seconds,
            connected_at=frame.connected_at,
        )
        self.session = session
        self.state = SessionState.ACTIVE
        if previous and previous.session_id != session.session_id:
            logger.info(
                f"Session {previous.session_id} superseded by {session.session_id}"
            )
        logger.info(f"session_welcome: session_id={session.session_id}")
        await self.subscribe(session)

    async def subscribe(self, session: EventSubSession | None = None) -> dict[str, Any]:
        snapshot = session or self.session
        if snapshot is None or not snapshot.session_id:
            raise SubscriptionError("cannot subscribe without a session id")
        result = await self.helix.create_chat_subscription(snapshot.session_id)
        if self.session is not snapshot:
            logger.warning(
                f"Subscription for session {snapshot.session_id} completed after "
                "the session was replaced"
            )
        return result
