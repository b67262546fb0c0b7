import json
import re
from typing import Any

from loguru import logger
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

__all__ = (
    "format_log_text",
    "maybe_log_event_dump",
    "redact_token",
    "retry_async",
)

_BEARER_RE = re.compile(r"((?:Bearer|OAuth)\s+)[A-Za-z0-9._~+/=-]+", re.IGNORECASE)
_TOKEN_PARAM_RE = re.compile(
    r"([?&](?:access_token|refresh_token|client_secret)=)[^&#\s]+"
)
_TOKEN_JSON_RE = re.compile(
    r'("(?:access_token|refresh_token|client_secret)"\s*:\s*")[^"]+(")'
)


def redact_token(text: str) -> str:
    if not text:
        return text
    text = _BEARER_RE.sub(r"\1***", text)
    text = _TOKEN_PARAM_RE.sub(r"\1***", text)
    return _TOKEN_JSON_RE.sub(r"\1***\2", text)


def retry_async(max_retries=3, retryable_exceptions=None):
    kwargs = {
        "stop": stop_after_attempt(max_retries),
        "wait": wait_random_exponential(multiplier=1, max=30),
        "before_sleep": lambda retry_state: logger.info(
            f"Retry attempt #{retry_state.attempt_number}..."
        ),
        "reraise": True,
    }
    if retryable_exceptions:
        kwargs["retry"] = retry_if_exception_type(retryable_exceptions)
    return retry(**kwargs)


def format_log_text(text: str, max_length: int = 50) -> str:
    if not text:
        return "None"
    suffix = "..." if len(text) > max_length else ""
    return f"{text[:max_length]}{suffix}"


def maybe_log_event_dump(enabled: bool, *, kind: str, payload: Any) -> None:
    if not enabled:
        return
    logger.opt(lazy=True).debug(
        "{} data: {}",
        lambda: kind,
        lambda: json.dumps(payload, ensure_ascii=False, indent=2),
    )
