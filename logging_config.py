from __future__ import annotations

import logging
import time
from logging.config import dictConfig
from typing import Any, Iterable, Sequence

from settings import get_settings

TELEMETRY_EXTRA_KEYS = (
    "sensor_id",
    "level_cm",
    "milestone",
    "advice_type",
    "speed",
    "interval_ms",
)
PROVIDER_EXTRA_KEYS = ("endpoint", "status", "reason")

_NOISY_LOGGERS = ("httpx", "httpcore", "google_genai")

_configured = False


class ContextualFormatter(logging.Formatter):
    """Render UTC timestamps and append known ``extra`` fields as ``key=value`` pairs."""

    converter = time.gmtime

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        extra_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        keys = extra_keys if extra_keys is not None else TELEMETRY_EXTRA_KEYS + PROVIDER_EXTRA_KEYS
        self._extra_keys: Sequence[str] = tuple(keys)

    @staticmethod
    def _render(value: Any) -> str:
        if isinstance(value, float):
            return f"{value:.1f}"
        return str(value)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = [
            f"{key}={self._render(getattr(record, key))}"
            for key in self._extra_keys
            if getattr(record, key, None) is not None
        ]
        if not context:
            return message
        return f"{message} | {' '.join(context)}"


def configure_logging(level: str | int | None = None, force: bool = False) -> None:
    """Install the stderr handler once; ``force`` re-applies it with a new level."""
    global _configured
    if _configured and not force:
        return

    log_level = level if level is not None else get_settings().log_level

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "contextual": {
                    "()": "logging_config.ContextualFormatter",
                    "fmt": "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                }
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "level": log_level,
                    "formatter": "contextual",
                    "stream": "ext://sys.stderr",
                }
            },
            "loggers": {name: {"level": "WARNING"} for name in _NOISY_LOGGERS},
            "root": {"handlers": ["stderr"], "level": log_level},
        }
    )

    _configured = True
