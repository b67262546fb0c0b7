"""
Tests for EventSub frame decoding
"""
import json

import pytest

from twitch_ai.clients.twitch.frames import (
    FrameDecodeError,
    KeepaliveFrame,
    NotificationFrame,
    ReconnectFrame,
    UnrecognizedFrame,
    WelcomeFrame,
    decode_frame,
    parse_frame,
)


def _frame(message_type, payload=None):
    return {
        "metadata": {"message_id": "meta-1", "message_type": message_type},
        "payload": payload or {},
    }


class TestDecodeFrame:
    def test_welcome(self):
        frame = decode_frame(
            _frame(
                "session_welcome",
                {"session": {"id": "s1", "keepalive_timeout_seconds": 10}},
            )
        )
        assert isinstance(frame, WelcomeFrame)
        assert frame.session_id == "s1"
        assert frame.keepalive_timeout_seconds == 10

    def test_welcome_without_session_id(self):
        frame = decode_frame(_frame("session_welcome", {"session": {}}))
        assert isinstance(frame, WelcomeFrame)
        assert frame.session_id is None

    def test_keepalive(self):
        assert isinstance(decode_frame(_frame("session_keepalive")), KeepaliveFrame)

    def test_notification(self):
        frame = decode_frame(
            _frame(
                "notification",
                {
                    "subscription": {"type": "channel.chat.message"},
                    "event": {
                        "message_id": "m1",
                        "chatter_user_id": "u1",
                        "chatter_user_name": "Bob",
                        "broadcaster_user_id": "chan-9",
                        "message": {"text": "hi"},
                    },
                },
            )
        )
        assert isinstance(frame, NotificationFrame)
        event = frame.event
        assert event.message_id == "m1"
        assert event.sender_id == "u1"
        assert event.sender_name == "Bob"
        assert event.text == "hi"
        assert event.broadcaster_id == "chan-9"
        assert event.subscription_type == "channel.chat.message"

    def test_notification_defaults(self):
        frame = decode_frame(_frame("notification", {"event": {}}))
        event = frame.event
        assert event.message_id == ""
        assert event.sender_id == "unknown-user"
        assert event.sender_name == "UnknownUser"
        assert event.text == ""

    def test_reconnect(self):
        frame = decode_frame(
            _frame(
                "session_reconnect",
                {"session": {"id": "s1", "reconnect_url": "wss://example/ws"}},
            )
        )
        assert isinstance(frame, ReconnectFrame)
        assert frame.reconnect_url == "wss://example/ws"

    def test_unrecognized(self):
        frame = decode_frame(_frame("revocation", {"subscription": {}}))
        assert isinstance(frame, UnrecognizedFrame)
        assert frame.message_type == "revocation"

    @pytest.mark.parametrize("data", [None, [], "text", {"payload": {}}])
    def test_invalid_shapes(self, data):
        with pytest.raises(FrameDecodeError):
            decode_frame(data)


class TestParseFrame:
    def test_parses_json_text(self):
        frame = parse_frame(json.dumps(_frame("session_keepalive")))
        assert isinstance(frame, KeepaliveFrame)

    def test_invalid_json(self):
        with pytest.raises(FrameDecodeError):
            parse_frame("{not json")
