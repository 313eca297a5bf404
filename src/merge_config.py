# merge_config.py
# Environment-driven settings and logging setup shared by the API and CLI.

import logging
import os
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field, field_validator

BEST_SCORE_KEY = "2048-best-score"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")

_ENV_FIELDS = {
    "win_tile": "MERGE2048_WIN_TILE",
    "rate_limit": "MERGE2048_RATE_LIMIT",
    "log_level": "MERGE2048_LOG_LEVEL",
    "hint_model": "MERGE2048_HINT_MODEL",
    "hint_timeout": "MERGE2048_HINT_TIMEOUT",
    "openai_api_key": "OPENAI_API_KEY",
    "openai_base_url": "OPENAI_BASE_URL",
}


def _check_log_level(value: str) -> str:
    level_name = value.strip().upper()
    if level_name not in LOG_LEVELS:
        raise ValueError(f"Unknown log level {value!r}; expected one of {', '.join(LOG_LEVELS)}.")
    return level_name


class Settings(BaseModel):
    """Runtime settings. Every field can be overridden by an environment variable."""
    win_tile: int = Field(default=2048, gt=0, description="Tile value that counts as a win.")
    rate_limit: str = Field(default="100/minute", description="slowapi limit applied per client address.")
    log_level: str = Field(default="INFO", description="Root logging level.")
    hint_model: str = Field(default="gpt-4o-mini", description="Chat model used for hints.")
    hint_timeout: float = Field(default=10.0, gt=0, description="Seconds before a hint request is abandoned.")
    openai_api_key: Optional[str] = Field(default=None, description="Credential for the hint service.")
    openai_base_url: Optional[str] = Field(default=None, description="Alternate OpenAI-compatible endpoint.")

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, value: str) -> str:
        return _check_log_level(value)


def load_settings(environ=None) -> Settings:
    """
    Builds Settings from environment variables.
    Args:
        environ: Mapping to read from. Defaults to os.environ.
    Returns:
        Settings: The validated settings.
    Raises:
        pydantic.ValidationError: If a variable holds an invalid value.
    """
    environ = os.environ if environ is None else environ
    values = {}
    for field_name, env_name in _ENV_FIELDS.items():
        raw = environ.get(env_name)
        if raw not in (None, ""):
            values[field_name] = raw
    return Settings(**values)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configures root logging for an entry point (API server or CLI).
    Raises:
        ValueError: If level is not one of LOG_LEVELS.
    """
    level_name = _check_log_level(level) if level else get_settings().log_level
    logging.basicConfig(
        level=logging.getLevelName(level_name),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
