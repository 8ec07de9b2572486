"""Central logging utilities for r6tracker.

- One place to configure logging for the CLI and the scheduling service.
- Console output (coloured on a TTY) or one JSON object per line (LOG_FORMAT=json).
- Respects LOG_LEVEL, LOG_FORMAT and LOG_NO_COLOR=1; explicit arguments win.

Usage:
    from r6tracker.common.logging_utils import configure_logging, get_logger
    configure_logging(service="scheduler")  # idempotent
    logger = get_logger(__name__)

Calling configure_logging() more than once is a no-op unless ``force=True``.
"""
from __future__ import annotations

import json
import logging
import os
import sys
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_CONFIG_LOCK = threading.Lock()
_ALREADY_CONFIGURED = False

# Attributes every LogRecord carries; anything else was passed via ``extra``
_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class ColorFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\x1b[38;5;245m",
        "INFO": "\x1b[38;5;39m",
        "WARNING": "\x1b[38;5;214m",
        "ERROR": "\x1b[38;5;196m",
        "CRITICAL": "\x1b[48;5;196m\x1b[38;5;231m",
    }
    RESET = "\x1b[0m"

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc).astimezone()
        base = f"{ts:%Y-%m-%d %H:%M:%S} | {record.levelname:<8} | {record.name} | {record.getMessage()}"
        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)
        color = self.COLORS.get(record.levelname)
        return f"{color}{base}{self.RESET}" if color else base


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for k, v in record.__dict__.items():
            if k in _RESERVED or k in payload or k.startswith("_"):
                continue
            try:
                json.dumps(v)
                payload[k] = v
            except (TypeError, ValueError):
                payload[k] = repr(v)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(
    service: str | None = None,
    *,
    level: Optional[str] = None,
    fmt: Optional[str] = None,
    force: bool = False,
) -> None:
    """Configure root logging once.

    Parameters
    ----------
    service: logical process name, attached as ``service`` to every record.
    level / fmt: override LOG_LEVEL / LOG_FORMAT.
    force: reconfigure even if already configured.
    """
    global _ALREADY_CONFIGURED
    with _CONFIG_LOCK:
        if _ALREADY_CONFIGURED and not force:
            return

        log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
        log_format = (fmt or os.getenv("LOG_FORMAT", "console")).lower()
        no_color = os.getenv("LOG_NO_COLOR") == "1"

        root = logging.getLogger()
        for h in list(root.handlers):
            root.removeHandler(h)

        if log_format == "json":
            formatter: logging.Formatter = JsonFormatter()
        elif sys.stderr.isatty() and not no_color:
            formatter = ColorFormatter()
        else:
            formatter = logging.Formatter(
                fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )

        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        if service:
            handler.addFilter(_ServiceFilter(service))
        root.addHandler(handler)
        root.setLevel(getattr(logging, log_level, logging.INFO))

        # Chatty third-party loggers
        for noisy in ("aiohttp.access", "asyncio", "sqlalchemy.engine"):
            logging.getLogger(noisy).setLevel(logging.WARNING)

        _ALREADY_CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class _ServiceFilter(logging.Filter):
    def __init__(self, service: str):
        super().__init__()
        self.service = service

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "service"):
            record.service = self.service
        return True


__all__ = [
    "configure_logging",
    "get_logger",
]
