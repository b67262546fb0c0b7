import asyncio
import signal
import sys
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

from ..bot.core import TwitchBot
from ..shared.config import Config
from ..shared.config_keys import ConfigKeys
from ..shared.exceptions import (
    APIConnectionError,
    APIRateLimitError,
    AuthenticationError,
    ConfigurationError,
    SubscriptionError,
    WebSocketConnectionError,
)


class BotRunner:
    def __init__(self):
        self.bot: TwitchBot | None = None
        self.shutdown_event: asyncio.Event | None = None
        self._shutdown_called = False

    async def run(self) -> None:
        self.shutdown_event = asyncio.Event()
        load_dotenv()
        config = Config()
        config.load()
        log_path = Path(config.get(ConfigKeys.LOG_PATH))
        logger.add(
            log_path,
            level=config.get(ConfigKeys.LOG_LEVEL),
            rotation="10 MB",
            compression="zip",
            enqueue=True,
        )
        logger.info("Starting bot...")
        try:
            self.bot = TwitchBot(config)
            eventsub_task = await self.bot.start()
            self._setup_signals()
            await self._wait(eventsub_task)
        finally:
            try:
                await asyncio.shield(self.shutdown())
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Error during shutdown")

    async def _wait(self, eventsub_task: asyncio.Task[None]) -> None:
        shutdown_task = asyncio.create_task(self.shutdown_event.wait())
        try:
            await asyncio.wait(
                {eventsub_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            shutdown_task.cancel()
        if eventsub_task.done() and not eventsub_task.cancelled():
            if (error := eventsub_task.exception()) is not None:
                raise error
            logger.warning("EventSub connection ended")

    def _setup_signals(self) -> None:
        signals = (
            (signal.SIGINT, signal.SIGTERM, signal.SIGHUP)
            if sys.platform != "win32"
            else (signal.SIGINT, signal.SIGTERM)
        )

        def signal_handler(sig, _):
            logger.info(
                f"Received signal {signal.Signals(sig).name}; preparing to shut down..."
            )
            if self.shutdown_event and not self.shutdown_event.is_set():
                self.shutdown_event.set()
                try:
                    loop = asyncio.get_running_loop()
                    loop.call_soon_threadsafe(lambda: None)
                except RuntimeError:
                    pass

        for sig in signals:
            try:
                signal.signal(sig, signal_handler)
            except (OSError, ValueError):
                logger.warning(f"Failed to register signal handler: {sig}")

    async def shutdown(self) -> None:
        if self._shutdown_called:
            return
        self._shutdown_called = True
        logger.info("Shutting down bot...")
        if self.bot:
            await self.bot.stop()
        logger.info("Bot shut down")


def main() -> int:
    try:
        asyncio.run(BotRunner().run())
        logger.info("Bye")
        return 0
    except KeyboardInterrupt:
        return 130
    except ConfigurationError as e:
        logger.error(f"Startup error: {e}")
        return 2
    except AuthenticationError as e:
        logger.error(f"Startup error: {e}")
        return 3
    except (APIConnectionError, APIRateLimitError, WebSocketConnectionError) as e:
        logger.error(f"Connection error: {e}")
        return 4
    except SubscriptionError as e:
        logger.error(f"Subscription error: {e}")
        return 5
    except Exception:
        logger.exception("Unhandled exception during startup")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
