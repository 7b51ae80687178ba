"""Process logging for the agent: one stream handler, readings rendered with units."""

from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any, Callable, Mapping, Optional

# ``extra=`` keys appended to a record, in this order, with their renderer.
CONTEXT_RENDERERS: Mapping[str, Callable[[Any], str]] = {
    "temperature": lambda value: f"{value:.1f}°C",
    "threshold": lambda value: f"{value:.1f}°C",
    "mode": str,
    "device_id": str,
    "status_code": str,
    "url": str,
    "delay_s": lambda value: f"{int(value)}s",
    "checkpoint": str,
}

# httpx logs every request at INFO; with a sensor poll every few minutes that
# drowns the agent's own status lines.
_CHATTY_LOGGERS = ("httpx", "httpcore")


class ContextualFormatter(logging.Formatter):
    """Appends ``key=value`` pairs for the known context keys present on a record."""

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        renderers: Optional[Mapping[str, Callable[[Any], str]]] = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._renderers = renderers if renderers is not None else CONTEXT_RENDERERS

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context: list[str] = []
        for key, render in self._renderers.items():
            value = getattr(record, key, None)
            if value is not None:
                context.append(f"{key}={render(value)}")
        if not context:
            return message
        return f"{message} | {' '.join(context)}"


def configure_logging(level: str) -> None:
    """Route all records to stderr at ``level``.

    Safe to call more than once: ``dictConfig`` replaces the root handlers
    instead of stacking new ones.
    """
    level = level.upper()
    library_level = "DEBUG" if level == "DEBUG" else "WARNING"
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "agent": {
                    "()": ContextualFormatter,
                    "fmt": "%(asctime)s | %(levelname)s | %(threadName)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                }
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "formatter": "agent",
                }
            },
            "loggers": {name: {"level": library_level} for name in _CHATTY_LOGGERS},
            "root": {"handlers": ["stderr"], "level": level},
        }
    )
