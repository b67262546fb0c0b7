from dataclasses import dataclass
from typing import Any, Protocol

from loguru import logger

from ..clients.openai import OpenAIAPI
from ..shared.utils import format_log_text
from .memory import ConversationState

__all__ = ("OpenAIResponseGenerator", "Reply", "ResponseGenerator")

_FINAL_PROMPT = """User asked: "{text}"
Generate a short, final Twitch reply in valid JSON format.
The output must be a JSON object with a single key "text" whose value is your final answer.
Do not include any additional text or commentary.
Final Answer:"""


@dataclass(frozen=True, slots=True)
class Reply:
    text: str


class ResponseGenerator(Protocol):
    async def generate(self, text: str, state: ConversationState) -> Reply: ...


class OpenAIResponseGenerator:
    def __init__(
        self,
        openai: OpenAIAPI,
        *,
        system_prompt: str = "",
        max_tokens: int | None = None,
        temperature: float | None = None,
    ):
        self.openai = openai
        self.system_prompt = system_prompt
        self.max_tokens = max_tokens
        self.temperature = temperature

    def build_messages(
        self, text: str, state: ConversationState
    ) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt.strip()})
        messages.extend(state.as_chat_messages())
        messages.append({"role": "user", "content": _FINAL_PROMPT.format(text=text)})
        return messages

    @staticmethod
    def extract_reply_text(obj: Any, raw: str) -> str:
        if obj is None:
            return raw.strip()
        if isinstance(obj, dict) and isinstance(obj.get("text"), str):
            return obj["text"].strip()
        return ""

    async def generate(self, text: str, state: ConversationState) -> Reply:
        messages = self.build_messages(text, state)
        logger.opt(lazy=True).debug(
            "LLM prompt (truncated): {}",
            lambda: format_log_text(messages[-1]["content"], 400),
        )
        obj, raw = await self.openai.generate_json(
            messages, max_tokens=self.max_tokens, temperature=self.temperature
        )
        reply = Reply(text=self.extract_reply_text(obj, raw))
        logger.info(f"LLM output text: {format_log_text(reply.text)}")
        return reply
