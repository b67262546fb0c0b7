import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger

from ..clients.twitch.frames import ChatNotification
from .generator import Reply
from .memory import ConversationState

__all__ = ("PostResponseHook", "PostResponseHooks")

PostResponseHook = Callable[
    [ChatNotification, Reply, ConversationState], Awaitable[Any] | Any
]


class PostResponseHooks:
    def __init__(self, hooks: list[PostResponseHook] | None = None):
        self._hooks: list[PostResponseHook] = list(hooks or [])

    def __len__(self) -> int:
        return len(self._hooks)

    def register(self, hook: PostResponseHook) -> PostResponseHook:
        self._hooks.append(hook)
        return hook

    async def run(
        self, message: ChatNotification, reply: Reply, state: ConversationState
    ) -> None:
        for hook in self._hooks:
            name = getattr(hook, "__name__", type(hook).__name__)
            try:
                result = hook(message, reply, state)
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.exception(f"Post-response hook failed ({name}): {e}")
