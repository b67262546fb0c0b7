import json
from typing import Any

import aiohttp
from loguru import logger

from ...shared.constants import (
    CHAT_MESSAGE_MAX_LENGTH,
    CHAT_MESSAGE_SUBSCRIPTION,
    CHAT_MESSAGE_SUBSCRIPTION_VERSION,
    HTTP_UNAUTHORIZED,
    TWITCH_HELIX_URL,
)
from ...shared.exceptions import SubscriptionError
from ...shared.utils import format_log_text, redact_token
from .auth import TwitchAuth
from .transport import TCPClient

__all__ = ("HelixAPI",)


class HelixAPI:
    def __init__(
        self,
        auth: TwitchAuth,
        *,
        broadcaster_id: str,
        bot_user_id: str,
        transport: TCPClient | None = None,
        base_url: str = TWITCH_HELIX_URL,
    ):
        self.auth = auth
        self.broadcaster_id = broadcaster_id
        self.bot_user_id = bot_user_id
        self.transport: TCPClient = transport or TCPClient()
        self.base_url = base_url.rstrip("/")

    @property
    def session(self) -> aiohttp.ClientSession:
        return self.transport.session

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.auth.access_token}",
            "Client-Id": self.auth.client_id,
            "Content-Type": "application/json",
        }

    @staticmethod
    def _format_error_text(error_text: str) -> str:
        s = error_text.strip()
        if not s:
            return ""
        try:
            obj = json.loads(s)
        except json.JSONDecodeError:
            return redact_token(s)
        if not isinstance(obj, dict):
            return redact_token(s)
        error = obj.get("error")
        message = obj.get("message")
        if isinstance(error, str) and isinstance(message, str):
            return f"{error}: {message}"
        if isinstance(message, str):
            return message
        return redact_token(s)

    def build_chat_subscription(self, session_id: str) -> dict[str, Any]:
        return {
            "type": CHAT_MESSAGE_SUBSCRIPTION,
            "version": CHAT_MESSAGE_SUBSCRIPTION_VERSION,
            "condition": {
                "broadcaster_user_id": self.broadcaster_id,
                "user_id": self.bot_user_id,
            },
            "transport": {
                "method": "websocket",
                "session_id": session_id,
            },
        }

    async def create_chat_subscription(self, session_id: str) -> dict[str, Any]:
        if not session_id:
            raise SubscriptionError("cannot subscribe without a session id")
        body = self.build_chat_subscription(session_id)
        url = f"{self.base_url}/eventsub/subscriptions"
        logger.info(
            f"Subscribing to {CHAT_MESSAGE_SUBSCRIPTION} "
            f"(broadcaster={self.broadcaster_id}, bot={self.bot_user_id})"
        )
        logger.debug(f"Subscription body: {body}")
        try:
            async with self.session.post(
                url, json=body, headers=self._headers()
            ) as response:
                if 200 <= response.status < 300:
                    try:
                        result = await response.json(content_type=None)
                    except ValueError:
                        logger.warning("Subscription accepted with a non-JSON body")
                        result = {}
                    logger.info(f"Subscribed to {CHAT_MESSAGE_SUBSCRIPTION}")
                    return result if isinstance(result, dict) else {}
                error_text = self._format_error_text(await response.text())
                status = response.status
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.error(f"Subscription request error: {redact_token(str(e))}")
            raise SubscriptionError(str(e)) from e
        if status == HTTP_UNAUTHORIZED:
            logger.error(f"Subscription rejected; token unauthorized: {error_text}")
        else:
            logger.error(f"Subscription failed: {status} - {error_text}")
        raise SubscriptionError(f"{status}: {error_text}")

    async def send_chat_message(self, text: str) -> bool:
        if len(text) > CHAT_MESSAGE_MAX_LENGTH:
            logger.warning(
                f"Reply exceeds {CHAT_MESSAGE_MAX_LENGTH} characters; truncating"
            )
            text = text[:CHAT_MESSAGE_MAX_LENGTH]
        url = f"{self.base_url}/chat/messages"
        params = {
            "broadcaster_id": self.broadcaster_id,
            "moderator_id": self.bot_user_id,
        }
        logger.info(f"Sending chat message: {format_log_text(text, 80)}")
        try:
            async with self.session.post(
                url,
                params=params,
                json={"message": text, "sender_id": self.bot_user_id},
                headers=self._headers(),
            ) as response:
                if 200 <= response.status < 300:
                    logger.info(f"Sent message: {format_log_text(text)}")
                    return True
                error_text = self._format_error_text(await response.text())
                logger.error(
                    f"Send chat message failed: {response.status} - {error_text}"
                )
                return False
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.error(f"Send chat message error: {redact_token(str(e))}")
            return False
