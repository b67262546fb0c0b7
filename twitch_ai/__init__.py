from importlib import import_module
from typing import Any

_EXPORTS: dict[str, tuple[str, str]] = {
    "TwitchBot": (".bot.core", "TwitchBot"),
    "BotRunner": (".app.main", "BotRunner"),
    "BotRuntime": (".bot.runtime", "BotRuntime"),
    "Config": (".shared.config", "Config"),
    "ConfigKeys": (".shared.config_keys", "ConfigKeys"),
    "ConversationMemory": (".bot.memory", "ConversationMemory"),
    "DedupLedger": (".bot.dedup", "DedupLedger"),
    "EventSubClient": (".clients.twitch.eventsub", "EventSubClient"),
    "HelixAPI": (".clients.twitch.helix", "HelixAPI"),
    "MessagePipeline": (".bot.pipeline", "MessagePipeline"),
    "OpenAIAPI": (".clients.openai.openai_api", "OpenAIAPI"),
    "OpenAIResponseGenerator": (".bot.generator", "OpenAIResponseGenerator"),
    "PostResponseHooks": (".bot.hooks", "PostResponseHooks"),
    "TCPClient": (".clients.twitch.transport", "TCPClient"),
    "TwitchAuth": (".clients.twitch.auth", "TwitchAuth"),
}

__all__ = list(_EXPORTS)


def __getattr__(name: str) -> Any:
    try:
        module_name, attr_name = _EXPORTS[name]
    except KeyError:
        raise AttributeError(name) from None
    value = getattr(import_module(module_name, __name__), attr_name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    return sorted(set(globals()) | set(_EXPORTS))
