HTTP_UNAUTHORIZED = 401
HTTP_TOO_MANY_REQUESTS = 429

API_TIMEOUT = 60
API_MAX_RETRIES = 3
REQUEST_TIMEOUT = 120

WS_TIMEOUT = 30
RECEIVE_TIMEOUT = 10

TWITCH_EVENTSUB_URL = "wss://eventsub.wss.twitch.tv/ws"
TWITCH_HELIX_URL = "https://api.twitch.tv/helix"
TWITCH_OAUTH_URL = "https://id.twitch.tv/oauth2"

CHAT_MESSAGE_SUBSCRIPTION = "channel.chat.message"
CHAT_MESSAGE_SUBSCRIPTION_VERSION = "1"
CHAT_MESSAGE_MAX_LENGTH = 500

DEDUP_LEDGER_CAPACITY = 100
RESPONSE_TIMEOUT = 120

OPENAI_MAX_CONCURRENCY = 4
DEFAULT_MODEL = "deepseek-r1:14b"

CHAT_CACHE_MAX_ROOMS = 1000
CHAT_CACHE_TTL = 3600
