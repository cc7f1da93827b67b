import os
from dataclasses import asdict, dataclass, fields
from typing import Dict, Mapping, Optional


@dataclass
class BaseConfig:
    DEBUG: bool = False
    TESTING: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "*"

    BOT_TOKEN: str = ""
    TELEGRAM_API_URL: str = "https://api.telegram.org"
    TELEGRAM_FILE_URL: str = "https://api.telegram.org/file"
    REQUEST_TIMEOUT: int = 60
    WEBHOOK_URL: str = ""
    WEBHOOK_SECRET: str = ""
    POLL_TIMEOUT: int = 50

    MAX_PER_DESTINATION: int = 120
    PAGE_SIZE: int = 20
    DEFAULT_TAG: str = "⭐"


@dataclass
class DevelopmentConfig(BaseConfig):
    DEBUG: bool = True
    LOG_LEVEL: str = "DEBUG"


@dataclass
class TestingConfig(BaseConfig):
    TESTING: bool = True
    BOT_TOKEN: str = "test-token"


CONFIG_MAP = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": BaseConfig
}

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _coerce(raw: str, default: object) -> object:
    if isinstance(default, bool):
        return raw.strip().lower() in _TRUE_VALUES
    if isinstance(default, int):
        try:
            return int(raw)
        except ValueError:
            return default
    return raw.strip()


def load_config(name: str, environ: Optional[Mapping[str, str]] = None) -> Dict[str, object]:
    """Config class defaults for ``name``, overridden by same-named environment variables."""
    environ = os.environ if environ is None else environ
    config_class = CONFIG_MAP.get(name, BaseConfig)
    config = asdict(config_class())
    for config_field in fields(config_class):
        raw = environ.get(config_field.name)
        if raw is not None and raw != "":
            config[config_field.name] = _coerce(raw, config[config_field.name])
    return config
