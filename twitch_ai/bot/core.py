import asyncio

from loguru import logger

from ..clients.openai import OpenAIAPI
from ..clients.twitch.auth import TwitchAuth
from ..clients.twitch.eventsub import EventSubClient
from ..clients.twitch.helix import HelixAPI
from ..clients.twitch.transport import TCPClient
from ..shared.config import Config
from ..shared.config_keys import ConfigKeys
from ..shared.exceptions import ConfigurationError
from .dedup import DedupLedger
from .generator import OpenAIResponseGenerator, ResponseGenerator
from .hooks import PostResponseHook, PostResponseHooks
from .memory import ConversationMemory
from .pipeline import MessagePipeline
from .runtime import BotRuntime

__all__ = ("TwitchBot",)


class TwitchBot:
    def __init__(self, config: Config, *, generator: ResponseGenerator | None = None):
        self.config = config
        try:
            self.bot_user_id = config.get_required(ConfigKeys.TWITCH_BOT_USER_ID)
            self.bot_username = config.get_required(ConfigKeys.TWITCH_BOT_USERNAME)
            self.channel_user_id = config.get_required(
                ConfigKeys.TWITCH_CHANNEL_USER_ID
            )
            self._twitch_transport = TCPClient()
            self.auth = TwitchAuth(
                access_token=config.get_required(ConfigKeys.TWITCH_OAUTH_TOKEN),
                client_id=config.get_required(ConfigKeys.TWITCH_CLIENT_ID),
                client_secret=config.get(ConfigKeys.TWITCH_CLIENT_SECRET, ""),
                refresh_token=config.get(ConfigKeys.TWITCH_REFRESH_TOKEN, ""),
                transport=self._twitch_transport,
            )
            self.helix = HelixAPI(
                self.auth,
                broadcaster_id=self.channel_user_id,
                bot_user_id=self.bot_user_id,
                transport=self._twitch_transport,
            )
            self.eventsub = EventSubClient(
                self.helix,
                url=config.get(ConfigKeys.TWITCH_EVENTSUB_URL),
                transport=self._twitch_transport,
                log_dump_events=bool(config.get(ConfigKeys.LOG_DUMP_EVENTS)),
            )
            self.openai: OpenAIAPI | None = None
            if generator is None:
                self.openai = OpenAIAPI(
                    config.get_required(ConfigKeys.OPENAI_API_KEY),
                    config.get(ConfigKeys.OPENAI_MODEL),
                    config.get(ConfigKeys.OPENAI_API_BASE),
                )
                generator = OpenAIResponseGenerator(
                    self.openai,
                    system_prompt=config.get(ConfigKeys.BOT_SYSTEM_PROMPT, ""),
                    max_tokens=config.get(ConfigKeys.OPENAI_MAX_TOKENS),
                    temperature=config.get(ConfigKeys.OPENAI_TEMPERATURE),
                )
        except (ValueError, TypeError, KeyError) as e:
            logger.error(f"Initialization failed: {e}")
            raise ConfigurationError() from e
        self.generator = generator
        self.memory = ConversationMemory(config.get(ConfigKeys.BOT_CHAT_MEMORY, 10))
        self.hooks = PostResponseHooks()
        self.ledger = DedupLedger()
        self.pipeline = MessagePipeline(
            bot_user_id=self.bot_user_id,
            bot_username=self.bot_username,
            room_id=f"twitch-{self.channel_user_id}",
            generator=self.generator,
            sender=self.helix,
            memory=self.memory,
            hooks=self.hooks,
            ledger=self.ledger,
        )
        self.eventsub.on_notification(self.pipeline.process, admit=self.pipeline.admit)
        self.runtime = BotRuntime()
        logger.info("Bot initialized")

    @property
    def name(self) -> str:
        return "twitch"

    def add_post_response_hook(self, hook: PostResponseHook) -> PostResponseHook:
        return self.hooks.register(hook)

    async def start(self) -> asyncio.Task[None]:
        logger.info("Starting Twitch client...")
        if self.auth.can_refresh:
            await self.auth.refresh()
        await self.auth.validate()
        self.runtime.running = True
        task = self.runtime.add_task("eventsub", self.eventsub.run())
        logger.info(f"Twitch client started for channel {self.channel_user_id}")
        return task

    async def stop(self) -> None:
        logger.info("Stopping Twitch client...")
        self.runtime.running = False
        await self.eventsub.close()
        await self.runtime.cleanup_tasks()
        if self.openai:
            await self.openai.close()
        await self._twitch_transport.close_session()
        logger.info("Twitch client stopped")
