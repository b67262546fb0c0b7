import json
from dataclasses import dataclass, field
from typing import Any

__all__ = (
    "ChatNotification",
    "Frame",
    "FrameDecodeError",
    "KeepaliveFrame",
    "NotificationFrame",
    "ReconnectFrame",
    "UnrecognizedFrame",
    "WelcomeFrame",
    "decode_frame",
    "parse_frame",
)

SESSION_WELCOME = "session_welcome"
SESSION_KEEPALIVE = "session_keepalive"
SESSION_RECONNECT = "session_reconnect"
NOTIFICATION = "notification"


class FrameDecodeError(ValueError):
    """Malformed EventSub frame"""


@dataclass(frozen=True, slots=True)
class ChatNotification:
    message_id: str
    sender_id: str
    sender_name: str
    text: str
    broadcaster_id: str | None = None
    subscription_type: str | None = None


@dataclass(frozen=True, slots=True)
class WelcomeFrame:
    message_id: str
    session_id: str | None
    keepalive_timeout_seconds: int | None = None
    connected_at: str | None = None


@dataclass(frozen=True, slots=True)
class KeepaliveFrame:
    message_id: str


@dataclass(frozen=True, slots=True)
class NotificationFrame:
    message_id: str
    event: ChatNotification
    payload: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True, slots=True)
class ReconnectFrame:
    message_id: str
    reconnect_url: str | None


@dataclass(frozen=True, slots=True)
class UnrecognizedFrame:
    message_id: str
    message_type: str | None
    payload: dict[str, Any] = field(default_factory=dict, compare=False)


Frame = (
    WelcomeFrame
    | KeepaliveFrame
    | NotificationFrame
    | ReconnectFrame
    | UnrecognizedFrame
)


def _dict(container: dict[str, Any], key: str) -> dict[str, Any]:
    value = container.get(key)
    return value if isinstance(value, dict) else {}


def _str(container: dict[str, Any], key: str, default: str = "") -> str:
    value = container.get(key)
    return value if isinstance(value, str) and value else default


def _optional_str(container: dict[str, Any], key: str) -> str | None:
    value = container.get(key)
    return value if isinstance(value, str) and value else None


def _decode_welcome(message_id: str, payload: dict[str, Any]) -> WelcomeFrame:
    session = _dict(payload, "session")
    keepalive = session.get("keepalive_timeout_seconds")
    return WelcomeFrame(
        message_id=message_id,
        session_id=_optional_str(session, "id"),
        keepalive_timeout_seconds=keepalive if isinstance(keepalive, int) else None,
        connected_at=_optional_str(session, "connected_at"),
    )


def _decode_notification(message_id: str, payload: dict[str, Any]) -> NotificationFrame:
    event = _dict(payload, "event")
    message = _dict(event, "message")
    subscription = _dict(payload, "subscription")
    return NotificationFrame(
        message_id=message_id,
        event=ChatNotification(
            message_id=_str(event, "message_id"),
            sender_id=_str(event, "chatter_user_id", "unknown-user"),
            sender_name=_str(event, "chatter_user_name", "UnknownUser"),
            text=_str(message, "text"),
            broadcaster_id=_optional_str(event, "broadcaster_user_id"),
            subscription_type=_optional_str(subscription, "type"),
        ),
        payload=payload,
    )


def _decode_reconnect(message_id: str, payload: dict[str, Any]) -> ReconnectFrame:
    session = _dict(payload, "session")
    return ReconnectFrame(
        message_id=message_id, reconnect_url=_optional_str(session, "reconnect_url")
    )


def decode_frame(data: Any) -> Frame:
    if not isinstance(data, dict):
        raise FrameDecodeError("frame root must be an object")
    metadata = data.get("metadata")
    if not isinstance(metadata, dict):
        raise FrameDecodeError("frame has no metadata object")
    message_type = metadata.get("message_type")
    message_id = _str(metadata, "message_id")
    payload = _dict(data, "payload")
    if message_type == SESSION_WELCOME:
        return _decode_welcome(message_id, payload)
    if message_type == SESSION_KEEPALIVE:
        return KeepaliveFrame(message_id=message_id)
    if message_type == NOTIFICATION:
        return _decode_notification(message_id, payload)
    if message_type == SESSION_RECONNECT:
        return _decode_reconnect(message_id, payload)
    return UnrecognizedFrame(
        message_id=message_id,
        message_type=message_type if isinstance(message_type, str) else None,
        payload=payload,
    )


def parse_frame(raw: str | bytes) -> Frame:
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise FrameDecodeError(f"invalid JSON: {e}") from e
    return decode_frame(data)
