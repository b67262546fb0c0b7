from typing import Any

import aiohttp
from loguru import logger

from ...shared.constants import (
    API_MAX_RETRIES,
    HTTP_TOO_MANY_REQUESTS,
    HTTP_UNAUTHORIZED,
    TWITCH_OAUTH_URL,
)
from ...shared.exceptions import (
    APIConnectionError,
    APIRateLimitError,
    AuthenticationError,
)
from ...shared.utils import redact_token, retry_async
from .transport import TCPClient

__all__ = ("TwitchAuth",)


class TwitchAuth:
    def __init__(
        self,
        *,
        access_token: str,
        client_id: str,
        client_secret: str = "",
        refresh_token: str = "",
        transport: TCPClient | None = None,
        base_url: str = TWITCH_OAUTH_URL,
    ):
        self.access_token = access_token
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.transport: TCPClient = transport or TCPClient()
        self.base_url = base_url.rstrip("/")

    @property
    def can_refresh(self) -> bool:
        return bool(self.client_id and self.client_secret and self.refresh_token)

    @retry_async(
        max_retries=API_MAX_RETRIES,
        retryable_exceptions=(APIConnectionError, APIRateLimitError),
    )
    async def validate(self, token: str | None = None) -> dict[str, Any]:
        token = token or self.access_token
        logger.debug("Validating token via /oauth2/validate")
        try:
            async with self.transport.session.get(
                f"{self.base_url}/validate",
                headers={"Authorization": f"OAuth {token}"},
            ) as response:
                if response.status == HTTP_UNAUTHORIZED:
                    logger.error("Token validation failed: token invalid or expired")
                    raise AuthenticationError("Twitch token invalid")
                if response.status == HTTP_TOO_MANY_REQUESTS:
                    logger.warning("Token validation rate limited")
                    raise APIRateLimitError()
                if not 200 <= response.status < 300:
                    error_text = redact_token(await response.text())
                    logger.error(
                        f"Token validation failed: {response.status} - {error_text}"
                    )
                    raise APIConnectionError(error_text)
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.error(f"Token validation request error: {redact_token(str(e))}")
            raise APIConnectionError() from e
        if not isinstance(data, dict):
            raise APIConnectionError("invalid validation payload")
        logger.info(
            f"OAuth token validated (login={data.get('login')}, "
            f"expires_in={data.get('expires_in')})"
        )
        return data

    async def refresh(self) -> bool:
        if not self.can_refresh:
            logger.warning(
                "Missing client_id/client_secret/refresh_token; skipping token refresh"
            )
            return False
        logger.info(f"Refreshing token with client_id={self.client_id}")
        form = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "grant_type": "refresh_token",
            "refresh_token": self.refresh_token,
        }
        try:
            async with self.transport.session.post(
                f"{self.base_url}/token", data=form
            ) as response:
                try:
                    data = await response.json(content_type=None)
                except ValueError:
                    data = {}
                ok = 200 <= response.status < 300
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.error(f"Token refresh request error: {redact_token(str(e))}")
            return False
        if not isinstance(data, dict):
            data = {}
        access_token = data.get("access_token")
        refresh_token = data.get("refresh_token")
        if not ok or not access_token or not refresh_token:
            logger.error(f"Token refresh failed (status={response.status})")
            return False
        self.access_token = access_token
        self.refresh_token = refresh_token
        logger.info("Token refreshed successfully")
        return True
