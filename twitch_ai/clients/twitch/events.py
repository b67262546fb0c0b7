import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger

from ...shared.utils import maybe_log_event_dump
from .frames import (
    ChatNotification,
    Frame,
    FrameDecodeError,
    KeepaliveFrame,
    NotificationFrame,
    ReconnectFrame,
    UnrecognizedFrame,
    WelcomeFrame,
    parse_frame,
)

__all__ = ("_EventSubEventsMixin", "AdmissionFilter", "NotificationHandler")

NotificationHandler = Callable[[ChatNotification], Awaitable[Any] | Any]
AdmissionFilter = Callable[[ChatNotification], bool]


class _EventSubEventsMixin:
    def on_notification(
        self,
        handler: NotificationHandler,
        *,
        admit: AdmissionFilter | None = None,
    ) -> None:
        self.notification_handlers.append((handler, admit))

    async def _on_message(self, raw: str | bytes) -> None:
        logger.opt(lazy=True).debug("Received raw WS data: {}", lambda: raw)
        try:
            frame = parse_frame(raw)
        except FrameDecodeError as e:
            logger.error(f"Dropping malformed frame: {e}")
            return
        await self.route_frame(frame)

    async def route_frame(self, frame: Frame) -> None:
        if isinstance(frame, WelcomeFrame):
            await self._handle_welcome(frame)
        elif isinstance(frame, KeepaliveFrame):
            logger.debug("Received session_keepalive (heartbeat)")
        elif isinstance(frame, NotificationFrame):
            self._handle_notification(frame)
        elif isinstance(frame, ReconnectFrame):
            logger.warning(
                f"Received session_reconnect; reconnect URL: {frame.reconnect_url}"
            )
        elif isinstance(frame, UnrecognizedFrame):
            logger.info(f"Unhandled WS message_type: {frame.message_type}")
            maybe_log_event_dump(
                self.log_dump_events,
                kind=frame.message_type or "unknown",
                payload=frame.payload,
            )

    def _handle_notification(self, frame: NotificationFrame) -> None:
        event = frame.event
        maybe_log_event_dump(
            self.log_dump_events, kind="Notification", payload=frame.payload
        )
        logger.info(
            f"Notification received (message_id={event.message_id}, "
            f"sender={event.sender_name}/{event.sender_id})"
        )
        for handler, admit in self.notification_handlers:
            if admit is not None and not self._admit(admit, event):
                continue
            self._spawn_handler(handler, event)

    @staticmethod
    def _admit(admit: AdmissionFilter, event: ChatNotification) -> bool:
        try:
            return bool(admit(event))
        except Exception as e:
            logger.exception(f"Error in notification admission: {e}")
            return False

    def _spawn_handler(
        self, handler: NotificationHandler, event: ChatNotification
    ) -> None:
        task = asyncio.create_task(
            self._call_handler(handler, event),
            name=f"notification-{event.message_id or 'unknown'}",
        )
        self._handler_tasks.add(task)
        task.add_done_callback(self._handler_tasks.discard)

    @staticmethod
    async def _call_handler(
        handler: NotificationHandler, event: ChatNotification
    ) -> None:
        try:
            result = handler(event)
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Error in notification handler: {e}")

    async def drain(self) -> None:
        while self._handler_tasks:
            await asyncio.gather(*list(self._handler_tasks), return_exceptions=True)

    async def _cancel_handler_tasks(self) -> None:
        tasks = list(self._handler_tasks)
        self._handler_tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
