"""Configuration for the Gear Concierge service."""

from dataclasses import dataclass
from pathlib import Path
import os
from typing import Any, Dict, Optional

DEFAULT_GEMINI_MODEL = "models/gemini-1.5-flash-002"
DEFAULT_DB_PATH = "data/gear.db"


@dataclass
class AppConfig:
    """Runtime settings.

    API keys are expected from the environment. Everything else may also come
    from ``config/environments/<APP_ENV>.yaml`` so local and deployed runs only
    differ by ``APP_ENV``; environment variables win over the file.
    """

    model: str = DEFAULT_GEMINI_MODEL
    api_key: Optional[str] = None
    weather_api_key: Optional[str] = None
    gear_db_path: str = DEFAULT_DB_PATH
    weather_timeout_seconds: float = 5.0
    history_window: int = 8
    prompt_history_turns: int = 4
    environment: str | None = None

    # config key -> (dataclass field, parser); the env var is the upper-cased key
    _KEYS = {
        "model": ("model", str),
        "google_api_key": ("api_key", str),
        "openweather_api_key": ("weather_api_key", str),
        "gear_db_path": ("gear_db_path", str),
        "weather_timeout_seconds": ("weather_timeout_seconds", float),
        "history_window": ("history_window", int),
        "prompt_history_turns": ("prompt_history_turns", int),
    }

    @classmethod
    def from_env(cls) -> "AppConfig":
        env_name = os.getenv("APP_ENV")
        file_values = cls._load_yaml_config(cls._config_path(env_name))

        overrides: Dict[str, Any] = {}
        for key, (attribute, parse) in cls._KEYS.items():
            raw = os.getenv(key.upper()) or file_values.get(key)
            if raw:
                overrides[attribute] = parse(raw)
        return cls(environment=env_name, **overrides)

    @staticmethod
    def _config_path(env_name: Optional[str]) -> Optional[Path]:
        explicit = os.getenv("APP_CONFIG_PATH")
        if explicit:
            return Path(explicit)
        if env_name:
            return Path(os.getenv("GEAR_CONFIG_DIR", "config/environments")) / f"{env_name}.yaml"
        return None

    @staticmethod
    def _load_yaml_config(path: Optional[Path]) -> Dict[str, str]:
        """Read flat ``key: value`` lines; comments, blanks and nesting are ignored."""

        if path is None or not path.exists():
            return {}

        values: Dict[str, str] = {}
        for line in path.read_text().splitlines():
            key, sep, value = line.partition(":")
            if not sep or line.lstrip().startswith("#") or line[:1].isspace():
                continue
            value = value.strip()
            if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
                value = value[1:-1]
            values[key.strip()] = value
        return values


__all__ = ["AppConfig", "DEFAULT_DB_PATH", "DEFAULT_GEMINI_MODEL"]
