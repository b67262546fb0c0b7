"""
Tests for the OpenAI client wrapper (no network)
"""
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from twitch_ai.clients.openai import OpenAIAPI
from twitch_ai.clients.openai.extract import coerce_json_substring, parse_json


def _completion(content):
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class TestParseJson:
    def test_object_inside_prose(self):
        assert parse_json('Sure! {"text": "hi"} done') == {"text": "hi"}

    def test_no_json(self):
        assert coerce_json_substring("hello there") is None
        with pytest.raises(ValueError):
            parse_json("hello there")


@pytest.mark.asyncio
class TestOpenAIAPI:
    async def test_model_is_normalized(self):
        api = OpenAIAPI("sk-test", " DeepSeek-R1:14B ", "http://localhost:11434/v1")
        assert api.model == "deepseek-r1:14b"
        await api.close()

    async def test_generate_json_parses_reply(self):
        api = OpenAIAPI("sk-test", None, "http://localhost:11434/v1")
        create = AsyncMock(return_value=_completion('{"text": "hello!"}'))
        api.client.chat.completions.create = create
        obj, raw = await api.generate_json(
            [{"role": "user", "content": "hi"}], max_tokens=50, temperature=0.2
        )
        assert obj == {"text": "hello!"}
        assert raw == '{"text": "hello!"}'
        kwargs = create.await_args.kwargs
        assert kwargs["model"] == "deepseek-r1:14b"
        assert kwargs["max_tokens"] == 50
        assert kwargs["temperature"] == 0.2
        assert kwargs["response_format"] == {"type": "json_object"}
        await api.close()

    async def test_plain_text_reply(self):
        api = OpenAIAPI("sk-test", "gpt-4o-mini")
        create = AsyncMock(return_value=_completion("just words"))
        api.client.chat.completions.create = create
        obj, raw = await api.generate_json([], max_tokens=10)
        assert obj is None
        assert raw == "just words"
        assert create.await_args.kwargs["max_completion_tokens"] == 10
        await api.close()
