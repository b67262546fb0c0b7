import asyncio
from typing import Any

import openai
from loguru import logger
from openai import (
    APIConnectionError as OpenAIConnectionError,
)
from openai import (
    APITimeoutError,
    BadRequestError,
    RateLimitError,
)
from openai import (
    AuthenticationError as OpenAIAuthenticationError,
)

from ...shared.constants import (
    API_MAX_RETRIES,
    API_TIMEOUT,
    DEFAULT_MODEL,
    OPENAI_MAX_CONCURRENCY,
)
from ...shared.exceptions import APIConnectionError, AuthenticationError
from ...shared.utils import retry_async
from .extract import parse_json, process_chat_completions_response
from .requests import make_chat_completions_request

__all__ = ("OpenAIAPI",)


class OpenAIAPI:
    @staticmethod
    def _safe_error_message(e: Exception, *, limit: int = 300) -> str:
        name = type(e).__name__
        msg = str(e).strip()
        if not msg:
            return name
        msg = " ".join(msg.split())
        if len(msg) > limit:
            msg = f"{msg[: max(0, limit - 3)]}..."
        return f"{name}: {msg}"

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        api_base: str | None = None,
    ):
        self.api_key = api_key
        self.model = (model or DEFAULT_MODEL).strip().lower()
        self.api_base = (api_base or "https://api.openai.com/v1").strip().strip("`")
        self._semaphore = asyncio.Semaphore(OPENAI_MAX_CONCURRENCY)
        try:
            self.client = openai.AsyncOpenAI(
                api_key=self.api_key, base_url=self.api_base, timeout=API_TIMEOUT
            )
        except Exception as e:
            logger.error(f"Failed to create OpenAI API client: {e}")
            raise APIConnectionError(self._safe_error_message(e)) from e
        logger.debug(f"OpenAI API client created: {self.api_base} ({self.model})")

    async def close(self):
        if getattr(self, "client", None):
            await self.client.close()
            logger.debug("OpenAI API client closed")

    @retry_async(
        max_retries=API_MAX_RETRIES,
        retryable_exceptions=(
            RateLimitError,
            APITimeoutError,
            OpenAIConnectionError,
            APIConnectionError,
        ),
    )
    async def _call_api(
        self,
        messages: list[dict[str, Any]],
        max_tokens: int | None,
        temperature: float | None,
        call_type: str,
        response_format: dict[str, Any] | None = None,
    ) -> str:
        try:
            response = await make_chat_completions_request(
                client=self.client,
                semaphore=self._semaphore,
                model=self.model,
                api_base=self.api_base,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
                response_format=response_format,
            )
            return process_chat_completions_response(response, call_type)
        except BadRequestError as e:
            logger.error(f"API request parameter error: {e}")
            raise ValueError(self._safe_error_message(e)) from e
        except OpenAIAuthenticationError as e:
            logger.error(f"API authentication failed: {e}")
            raise AuthenticationError(self._safe_error_message(e)) from e
        except (TypeError, KeyError, AttributeError) as e:
            logger.error(f"Invalid API response format: {e}")
            raise ValueError(self._safe_error_message(e)) from e

    async def generate_json(
        self,
        messages: list[dict[str, Any]],
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> tuple[Any, str]:
        text = await self._call_api(
            messages,
            max_tokens,
            temperature,
            "multi-turn json",
            response_format={"type": "json_object"},
        )
        try:
            return parse_json(text), text
        except ValueError:
            return None, text
