import asyncio
from typing import Any
from urllib.parse import urlparse

import openai

from ...shared.constants import REQUEST_TIMEOUT


def _uses_completion_tokens(api_base: str) -> bool:
    host = urlparse(api_base).hostname
    return bool(host) and (host == "openai.com" or host.endswith(".openai.com"))


async def make_chat_completions_request(
    *,
    client: openai.AsyncOpenAI,
    semaphore: asyncio.Semaphore,
    model: str,
    api_base: str,
    messages: list[dict[str, Any]],
    max_tokens: int | None,
    temperature: float | None,
    response_format: dict[str, Any] | None = None,
):
    async with semaphore:
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": messages,
        }
        if temperature is not None:
            kwargs["temperature"] = temperature
        if max_tokens is not None:
            if _uses_completion_tokens(api_base):
                kwargs["max_completion_tokens"] = max_tokens
            else:
                kwargs["max_tokens"] = max_tokens
        if response_format:
            kwargs["response_format"] = response_format
        return await asyncio.wait_for(
            client.chat.completions.create(**kwargs),
            timeout=REQUEST_TIMEOUT,
        )
