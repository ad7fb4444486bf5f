"""Settings for the curator, read from the environment.

Every field of Config maps to one environment variable; unset variables
keep the dataclass default.

    GEMINI_API_KEY            Gemini key for both agents (not needed when
                              both models are local openai:{model}@{url})
    CURATOR_MODEL             Story selection model (provider:model)
    ANALYST_MODEL             Interest learning model (provider:model)
    LANGUAGE                  Title/summary language: en, ja or zh
    SEARCH_GROUNDING          Let the curator search the web (default on)
    DB_PATH                   SQLite file holding the profile
    NEWS_WEBHOOK_URL          Webhook for unattended runs, overrides the profile
    DELIVERY_MODE             lenient (any response is sent) or strict (2xx only)
    WEBHOOK_TIMEOUT_SECONDS   Total timeout of one webhook POST
    POLL_INTERVAL_SECONDS     Pause between unattended runs (run -c)
    LOG_DIR, LOG_LEVEL        Log file directory and console level
    LOG_FORMAT                text or json
    LOG_MAX_BYTES             Rotate by size when > 0, else at midnight
    LOG_BACKUP_COUNT          Rotated files to keep
    ENABLE_LOGFIRE            Send pydantic-ai spans to Logfire
    LOGFIRE_TOKEN             Logfire write token
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, TypeVar

T = TypeVar("T")

SUPPORTED_LANGUAGES = ("en", "ja", "zh")
DELIVERY_MODES = ("lenient", "strict")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")

DEFAULT_MODEL = "google-gla:gemini-2.5-flash"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env(key: str, default: str = "") -> str:
    return os.environ.get(key, default)


def _env_as(key: str, default: T, parse: Callable[[str], T]) -> T:
    """Parse a numeric variable; empty means default.

    Raises:
        ValueError: Naming the variable when the value does not parse
    """
    raw = os.environ.get(key, "").strip()
    if not raw:
        return default
    try:
        return parse(raw)
    except ValueError:
        raise ValueError(f"{key} must be {parse.__name__}, got '{raw}'") from None


def _env_flag(key: str, default: bool) -> bool:
    raw = os.environ.get(key, "").strip().lower()
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    return default


@dataclass
class Config:
    """Curator settings.

    Example:
        >>> config = Config.load()
        >>> if error := config.validate():
        ...     sys.exit(error)
    """

    # === AI service ===
    gemini_api_key: str = ""
    # provider:model, or openai:{model}@{base_url} for a local server
    curator_model: str = DEFAULT_MODEL
    analyst_model: str = DEFAULT_MODEL

    # === Digest ===
    language: str = "en"
    search_grounding: bool = True

    # === Storage ===
    db_path: Path = field(default_factory=lambda: Path("curator.db"))

    # === Delivery ===
    webhook_url: str = ""
    delivery_mode: str = "lenient"
    webhook_timeout_seconds: float = 10.0

    # === Unattended runs ===
    poll_interval_seconds: int = 86400

    # === Logging ===
    log_dir: Path = field(default_factory=lambda: Path("log"))
    log_level: str = "INFO"
    log_format: str = "text"
    log_max_bytes: int = 0
    log_backup_count: int = 30

    # === Tracing (pip install logfire) ===
    enable_logfire: bool = False
    logfire_token: str = ""

    @classmethod
    def load(cls) -> "Config":
        """Build a Config from the current environment."""
        return cls(
            gemini_api_key=_env("GEMINI_API_KEY"),
            curator_model=_env("CURATOR_MODEL", DEFAULT_MODEL),
            analyst_model=_env("ANALYST_MODEL", DEFAULT_MODEL),
            language=_env("LANGUAGE", "en").lower(),
            search_grounding=_env_flag("SEARCH_GROUNDING", True),
            db_path=Path(_env("DB_PATH", "curator.db")),
            webhook_url=_env("NEWS_WEBHOOK_URL").strip(),
            delivery_mode=_env("DELIVERY_MODE", "lenient").lower(),
            webhook_timeout_seconds=_env_as("WEBHOOK_TIMEOUT_SECONDS", 10.0, float),
            poll_interval_seconds=_env_as("POLL_INTERVAL_SECONDS", 86400, int),
            log_dir=Path(_env("LOG_DIR", "log")),
            log_level=_env("LOG_LEVEL", "INFO").upper(),
            log_format=_env("LOG_FORMAT", "text").lower(),
            log_max_bytes=_env_as("LOG_MAX_BYTES", 0, int),
            log_backup_count=_env_as("LOG_BACKUP_COUNT", 30, int),
            enable_logfire=_env_flag("ENABLE_LOGFIRE", False),
            logfire_token=_env("LOGFIRE_TOKEN"),
        )

    @property
    def uses_remote_models(self) -> bool:
        """True when any configured model needs the Gemini API key."""
        return any(
            not model.startswith("openai:")
            for model in (self.curator_model, self.analyst_model)
        )

    def validate(self) -> str | None:
        """Check settings before the AI service is used.

        Returns:
            The first problem found, or None
        """
        if self.uses_remote_models and not self.gemini_api_key:
            return "GEMINI_API_KEY environment variable is required"

        choices = (
            ("LANGUAGE", self.language, SUPPORTED_LANGUAGES),
            ("DELIVERY_MODE", self.delivery_mode, DELIVERY_MODES),
            ("LOG_LEVEL", self.log_level, LOG_LEVELS),
            ("LOG_FORMAT", self.log_format, LOG_FORMATS),
        )
        for name, value, allowed in choices:
            if value not in allowed:
                return f"Invalid {name} '{value}' - must be one of {', '.join(allowed)}"

        if self.webhook_timeout_seconds <= 0:
            return "WEBHOOK_TIMEOUT_SECONDS must be positive"
        if self.poll_interval_seconds <= 0:
            return "POLL_INTERVAL_SECONDS must be positive"
        if self.log_max_bytes < 0 or self.log_backup_count < 0:
            return "LOG_MAX_BYTES and LOG_BACKUP_COUNT must be non-negative"
        return None
