import asyncio
from typing import Protocol

from loguru import logger

from ..clients.twitch.frames import ChatNotification
from ..shared.constants import RESPONSE_TIMEOUT
from ..shared.utils import format_log_text
from .dedup import DedupLedger
from .generator import Reply, ResponseGenerator
from .hooks import PostResponseHooks
from .memory import ConversationMemory, ConversationState

__all__ = ("MessagePipeline", "ReplySender")


class ReplySender(Protocol):
    async def send_chat_message(self, text: str) -> bool: ...


class MessagePipeline:
    def __init__(
        self,
        *,
        bot_user_id: str,
        room_id: str,
        generator: ResponseGenerator,
        sender: ReplySender,
        memory: ConversationMemory | None = None,
        hooks: PostResponseHooks | None = None,
        ledger: DedupLedger | None = None,
        timeout: float = RESPONSE_TIMEOUT,
        bot_username: str = "",
    ):
        self.bot_user_id = bot_user_id
        self.bot_username = bot_username
        self.room_id = room_id
        self.generator = generator
        self.sender = sender
        self.memory = memory if memory is not None else ConversationMemory()
        self.hooks = hooks if hooks is not None else PostResponseHooks()
        self.ledger = ledger if ledger is not None else DedupLedger()
        self.timeout = timeout

    def admit(self, event: ChatNotification) -> bool:
        if event.sender_id == self.bot_user_id:
            logger.info("Ignoring message from the bot (loop prevention)")
            return False
        if not self.ledger.check_and_record(event.message_id):
            logger.info(f"Ignoring repeated message: id={event.message_id}")
            return False
        return True

    async def handle(self, event: ChatNotification) -> bool:
        if not self.admit(event):
            return False
        return await self.process(event)

    async def process(self, event: ChatNotification) -> bool:
        logger.info(f"Processing {event.sender_name}: {format_log_text(event.text)}")
        user_record = self.memory.create_record(
            room_id=self.room_id,
            user_id=event.sender_id,
            user_name=event.sender_name,
            text=event.text,
        )
        state = self.memory.compose_state(self.room_id)
        reply = await self._generate(event, state)
        if reply is None:
            return False
        if not reply.text:
            logger.warning("LLM returned empty text; skipping send")
            return False
        self.memory.create_record(
            room_id=self.room_id,
            user_id=self.bot_user_id,
            user_name=self.bot_username or self.bot_user_id,
            text=reply.text,
            role="assistant",
        )
        self.memory.mark_processed(user_record.id)
        filtered_state = self.memory.compose_state(
            self.room_id, exclude=(user_record.id,)
        )
        await self.hooks.run(event, reply, filtered_state)
        logger.info(f"Sending reply: {format_log_text(reply.text)}")
        try:
            sent = await self.sender.send_chat_message(reply.text)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Send chat message error: {e}")
            sent = False
        if not sent:
            logger.error(f"Reply to message {event.message_id} was not delivered")
        return sent

    async def _generate(
        self, event: ChatNotification, state: ConversationState
    ) -> Reply | None:
        try:
            reply = await asyncio.wait_for(
                self.generator.generate(event.text, state), timeout=self.timeout
            )
        except TimeoutError:
            logger.error(
                f"LLM response timed out after {self.timeout}s "
                f"(message_id={event.message_id})"
            )
            return None
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"LLM generation failed: {e}")
            return None
        if reply is None:
            logger.error("LLM returned no result")
            return None
        return reply
