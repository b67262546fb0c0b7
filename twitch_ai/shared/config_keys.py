class ConfigKeys:
    TWITCH_BOT_USER_ID = "twitch.bot_user_id"
    TWITCH_BOT_USERNAME = "twitch.bot_username"
    TWITCH_OAUTH_TOKEN = "twitch.oauth_token"
    TWITCH_CLIENT_ID = "twitch.client_id"
    TWITCH_CHANNEL_USER_ID = "twitch.channel_user_id"
    TWITCH_CLIENT_SECRET = "twitch.client_secret"
    TWITCH_REFRESH_TOKEN = "twitch.refresh_token"
    TWITCH_EVENTSUB_URL = "twitch.eventsub_url"
    OPENAI_API_KEY = "openai.api_key"
    OPENAI_MODEL = "openai.model"
    OPENAI_API_BASE = "openai.api_base"
    OPENAI_MAX_TOKENS = "openai.max_tokens"
    OPENAI_TEMPERATURE = "openai.temperature"
    BOT_SYSTEM_PROMPT = "bot.system_prompt"
    BOT_CHAT_MEMORY = "bot.chat_memory"
    LOG_PATH = "log.path"
    LOG_LEVEL = "log.level"
    LOG_DUMP_EVENTS = "log.dump_events"
