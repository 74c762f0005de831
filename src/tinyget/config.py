"""Environment configuration for default request settings."""

import math
from typing import Any

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tinyget.constants import TIMEOUT_ENV_VAR


logger = structlog.get_logger()


class ClientSettings(BaseSettings):
    """Defaults read from the process environment.

    ``TINYGET_TIMEOUT`` holds the number of seconds after which a request
    without its own timeout gives up. Values that are not a non-negative
    number are ignored.
    """

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    timeout: float | None = Field(default=None, validation_alias=TIMEOUT_ENV_VAR)

    @field_validator("timeout", mode="before")
    @classmethod
    def ignore_invalid_timeout(cls, v: Any) -> float | None:
        """Treat empty, non-numeric, or negative timeouts as unset."""
        if v is None:
            return None
        try:
            seconds = float(v)
        except (TypeError, ValueError):
            logger.warning("invalid_timeout_env", env_var=TIMEOUT_ENV_VAR, value=v)
            return None
        if not math.isfinite(seconds) or seconds < 0:
            logger.warning("invalid_timeout_env", env_var=TIMEOUT_ENV_VAR, value=v)
            return None
        return seconds


def get_settings() -> ClientSettings:
    """Get a settings instance reflecting the current environment."""
    return ClientSettings()


def resolve_timeout(
    explicit: float | None,
    settings: ClientSettings | None = None,
) -> float | None:
    """Pick the timeout for a request.

    An explicit per-request timeout wins over the environment default;
    with neither, the request has no timeout.

    Args:
        explicit: Timeout set on the request, in seconds.
        settings: Environment settings; loaded fresh when omitted.

    Returns:
        Timeout in seconds, or None for no timeout.
    """
    if explicit is not None:
        return explicit
    if settings is None:
        settings = get_settings()
    return settings.timeout
