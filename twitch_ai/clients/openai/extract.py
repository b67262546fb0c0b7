import json
from typing import Any

from loguru import logger

from ...shared.exceptions import APIConnectionError


def process_chat_completions_response(response: Any, call_type: str) -> str:
    choices = getattr(response, "choices", None)
    if not choices:
        raise APIConnectionError("Empty choices")
    generated_text = choices[0].message.content
    if not generated_text:
        raise APIConnectionError("Empty output")
    logger.debug(
        f"OpenAI API {call_type} call succeeded; output length: {len(generated_text)}"
    )
    return generated_text


def coerce_json_substring(text: str) -> str | None:
    s = text.strip()
    if not s:
        return None
    for open_ch, close_ch in (("{", "}"), ("[", "]")):
        i = s.find(open_ch)
        j = s.rfind(close_ch)
        if 0 <= i < j:
            return s[i : j + 1]
    return None


def parse_json(text: str) -> Any:
    if (sub := coerce_json_substring(text)) is None:
        raise ValueError("no JSON object in output")
    return json.loads(sub)
