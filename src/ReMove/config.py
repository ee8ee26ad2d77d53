"""Runtime settings and logging setup."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass

_LOGGER_NAME = "ReMove"
_ENV_PREFIX = "REMOVE_"


@dataclass(frozen=True)
class Settings:
    api_host: str = "github.com"
    page_size: int = 100
    pacing_interval: float = 1.0
    debounce_interval: float = 0.8
    cache_ttl: float = 300.0
    request_timeout: float = 30.0
    keyring_service: str = "ReMove"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Settings:
        """Build settings from ``REMOVE_*`` environment variables.

        Unset variables keep their defaults. Raises ValueError naming the
        variable when a numeric value cannot be parsed or is out of range.
        """
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            api_host=env.get(f"{_ENV_PREFIX}API_HOST", defaults.api_host).strip()
            or defaults.api_host,
            page_size=int(_number(env, "PAGE_SIZE", defaults.page_size, int)),
            pacing_interval=_number(env, "PACING_INTERVAL", defaults.pacing_interval, float),
            debounce_interval=_number(
                env, "DEBOUNCE_INTERVAL", defaults.debounce_interval, float
            ),
            cache_ttl=_number(env, "CACHE_TTL", defaults.cache_ttl, float),
            request_timeout=_number(env, "REQUEST_TIMEOUT", defaults.request_timeout, float),
            keyring_service=env.get(
                f"{_ENV_PREFIX}KEYRING_SERVICE", defaults.keyring_service
            ),
        )


def _number(env, name: str, default, cast):
    key = f"{_ENV_PREFIX}{name}"
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw.strip())
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}") from None
    if value < 0 or (cast is int and value == 0):
        raise ValueError(f"{key} is out of range: {raw!r}")
    return value


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """Attach a single stderr handler to the ReMove logger (idempotent)."""
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    if not any(getattr(h, "_remove_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )
        handler._remove_handler = True
        logger.addHandler(handler)
    return logger
