__all__ = (
    "TwitchBotError",
    "ConfigurationError",
    "AuthenticationError",
    "APIConnectionError",
    "APIRateLimitError",
    "SubscriptionError",
    "WebSocketConnectionError",
    "ClientConnectorError",
)


class TwitchBotError(Exception):
    """Base error"""


class ConfigurationError(TwitchBotError):
    """Configuration error"""


class AuthenticationError(TwitchBotError):
    """Authentication error"""


class APIConnectionError(TwitchBotError):
    """API connection error"""


class APIRateLimitError(TwitchBotError):
    """API rate limit error"""


class SubscriptionError(TwitchBotError):
    """EventSub subscription error"""


class WebSocketConnectionError(TwitchBotError):
    """WebSocket connection error"""


class ClientConnectorError(TwitchBotError):
    """TCP client connector error"""
