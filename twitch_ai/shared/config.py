import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError, field_validator

from .config_keys import ConfigKeys
from .constants import DEFAULT_MODEL, TWITCH_EVENTSUB_URL
from .exceptions import ConfigurationError

__all__ = ("Config",)

_MISSING = object()

_ENV_TO_KEY = {
    "TWITCH_BOT_USER_ID": ConfigKeys.TWITCH_BOT_USER_ID,
    "TWITCH_BOT_USERNAME": ConfigKeys.TWITCH_BOT_USERNAME,
    "TWITCH_OAUTH_TOKEN": ConfigKeys.TWITCH_OAUTH_TOKEN,
    "TWITCH_CLIENT_ID": ConfigKeys.TWITCH_CLIENT_ID,
    "TWITCH_CHANNEL_USER_ID": ConfigKeys.TWITCH_CHANNEL_USER_ID,
    "TWITCH_CLIENT_SECRET": ConfigKeys.TWITCH_CLIENT_SECRET,
    "TWITCH_REFRESH_TOKEN": ConfigKeys.TWITCH_REFRESH_TOKEN,
    "TWITCH_EVENTSUB_URL": ConfigKeys.TWITCH_EVENTSUB_URL,
    "OPENAI_API_KEY": ConfigKeys.OPENAI_API_KEY,
    "OPENAI_MODEL": ConfigKeys.OPENAI_MODEL,
    "OPENAI_API_BASE": ConfigKeys.OPENAI_API_BASE,
    "OPENAI_MAX_TOKENS": ConfigKeys.OPENAI_MAX_TOKENS,
    "OPENAI_TEMPERATURE": ConfigKeys.OPENAI_TEMPERATURE,
    "BOT_SYSTEM_PROMPT": ConfigKeys.BOT_SYSTEM_PROMPT,
    "BOT_CHAT_MEMORY": ConfigKeys.BOT_CHAT_MEMORY,
    "LOG_PATH": ConfigKeys.LOG_PATH,
    "LOG_LEVEL": ConfigKeys.LOG_LEVEL,
    "LOG_DUMP_EVENTS": ConfigKeys.LOG_DUMP_EVENTS,
}


def _project_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _set_dotted(config: dict[str, Any], dotted: str, value: Any) -> None:
    cur: dict[str, Any] = config
    parts = dotted.split(".")
    for key in parts[:-1]:
        nxt = cur.get(key)
        if not isinstance(nxt, dict):
            nxt = {}
            cur[key] = nxt
        cur = nxt
    cur[parts[-1]] = value


def _get_dotted(config: dict[str, Any], dotted: str) -> Any:
    cur: Any = config
    for key in dotted.split("."):
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur


def _maybe_load_text_file(
    value: str,
    *,
    config_dir: Path,
    project_root: Path,
) -> str:
    s = value.strip()
    if not s:
        return ""
    file_path = s.removeprefix("file://") if s.startswith("file://") else s
    path = Path(file_path)
    if not path.is_absolute():
        path = config_dir / path
    try:
        resolved = path.resolve()
    except OSError:
        return value
    if not resolved.is_file() or not resolved.is_relative_to(project_root):
        return value
    try:
        return resolved.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError):
        return value


def _require_text(v: str, name: str) -> str:
    s = v.strip()
    if not s:
        raise ValueError(f"{name} must not be empty")
    return s


class TwitchConfig(BaseModel):
    bot_user_id: str
    bot_username: str
    oauth_token: str
    client_id: str
    channel_user_id: str
    client_secret: str = ""
    refresh_token: str = ""
    eventsub_url: str = TWITCH_EVENTSUB_URL

    @field_validator(
        "bot_user_id", "bot_username", "oauth_token", "client_id", "channel_user_id"
    )
    @classmethod
    def _validate_required(cls, v: str, info) -> str:
        return _require_text(v, info.field_name)

    @field_validator("oauth_token")
    @classmethod
    def _strip_oauth_prefix(cls, v: str) -> str:
        return v.removeprefix("oauth:")

    @field_validator("eventsub_url")
    @classmethod
    def _validate_eventsub_url(cls, v: str) -> str:
        s = v.strip()
        if not s.startswith(("wss://", "ws://")):
            raise ValueError("EventSub URL must use ws:// or wss://")
        return s


class OpenAIConfig(BaseModel):
    api_key: str
    model: str = DEFAULT_MODEL
    api_base: str = "https://api.openai.com/v1"
    max_tokens: int = 1000
    temperature: float = 0.8

    @field_validator("api_key")
    @classmethod
    def _validate_api_key(cls, v: str) -> str:
        return _require_text(v, "api_key")

    @field_validator("model")
    @classmethod
    def _normalize_model(cls, v: str) -> str:
        return v.strip().lower() or DEFAULT_MODEL

    @field_validator("max_tokens")
    @classmethod
    def _validate_max_tokens(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("max tokens must be > 0")
        return v

    @field_validator("temperature")
    @classmethod
    def _validate_temperature(cls, v: float) -> float:
        if not (0 <= float(v) <= 2):
            raise ValueError("temperature must be between 0 and 2")
        return float(v)


class BotConfig(BaseModel):
    system_prompt: str = ""
    chat_memory: int = 10

    @field_validator("chat_memory")
    @classmethod
    def _validate_chat_memory(cls, v: int) -> int:
        if v < 0:
            raise ValueError("chat context memory length must be >= 0")
        return v


class LogConfig(BaseModel):
    path: str = "logs/twitch_ai.log"
    level: str = "INFO"
    dump_events: bool = False


class AppConfig(BaseModel):
    twitch: TwitchConfig
    openai: OpenAIConfig
    bot: BotConfig = BotConfig()
    log: LogConfig = LogConfig()


class Config:
    def __init__(self, config_path: str | None = None):
        self.config_path = config_path or os.environ.get("CONFIG_PATH", "config.yaml")
        self._model: AppConfig | None = None
        self.data: dict[str, Any] = {}

    def load(self) -> None:
        config_path = Path(self.config_path)
        merged = self._load_yaml_config(config_path)
        self._apply_env_overrides(merged)
        self._expand_prompt_files(merged, config_path)
        self._model = self._validate_model(merged)
        self.data = self._model.model_dump()
        self._ensure_paths()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        config = cls()
        config._model = cls._validate_model(data)
        config.data = config._model.model_dump()
        return config

    @staticmethod
    def _load_yaml_config(config_path: Path) -> dict[str, Any]:
        if not config_path.exists():
            return {}
        if not config_path.is_file():
            raise ConfigurationError(f"config path is not a file: {config_path}")
        try:
            raw = config_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ConfigurationError(f"Config file decode error: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Config file read error: {e}") from e
        try:
            loaded = yaml.safe_load(raw) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"YAML config parse error: {e}") from e
        if not isinstance(loaded, dict):
            raise ConfigurationError("config file root node must be an object")
        return loaded

    @staticmethod
    def _apply_env_overrides(config: dict[str, Any]) -> None:
        for env_name, key in _ENV_TO_KEY.items():
            if (env_value := os.environ.get(env_name)) is not None:
                _set_dotted(config, key, env_value)

    @staticmethod
    def _expand_prompt_files(config: dict[str, Any], config_path: Path) -> None:
        value = _get_dotted(config, ConfigKeys.BOT_SYSTEM_PROMPT)
        if not isinstance(value, str):
            return
        config_dir = config_path.parent if config_path.parent else Path(".")
        _set_dotted(
            config,
            ConfigKeys.BOT_SYSTEM_PROMPT,
            _maybe_load_text_file(
                value, config_dir=config_dir, project_root=_project_root()
            ),
        )

    @staticmethod
    def _validate_model(config: dict[str, Any]) -> AppConfig:
        try:
            return AppConfig.model_validate(config)
        except ValidationError as e:
            raise ConfigurationError(str(e)) from e

    def _ensure_paths(self) -> None:
        path = self.get(ConfigKeys.LOG_PATH)
        if not isinstance(path, str) or not path:
            return
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(f"failed to create log directory: {path}") from e

    def get(self, key: str, default: Any = _MISSING) -> Any:
        if self._model is None:
            if default is not _MISSING:
                return default
            return None
        value = _get_dotted(self.data, key)
        if value is None and default is not _MISSING:
            return default
        return value

    def get_required(self, key: str, desc: str | None = None) -> Any:
        value = self.get(key)
        if value is None:
            raise ConfigurationError(f"missing required config: {desc or key}")
        if isinstance(value, str) and not value.strip():
            raise ConfigurationError(f"missing required config: {desc or key}")
        return value
