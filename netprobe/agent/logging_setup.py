from __future__ import annotations

"""Structured JSON logging for the probe agent.

Features:
 * Thread-safe idempotent configuration (probe tasks log from many threads)
 * Safe reconfiguration (level & static fields update in place)
 * UTC timestamps with millisecond precision (Z suffix)
 * Agent level names accepted as-is (TRACE, WARN, ...)
 * Resilient JSON serialization (non-serializable -> str)
 * User fields isolated under 'fields'

Usage example:
    from netprobe.agent.logging_setup import configure_json_logging
    logger = configure_json_logging(level="DEBUG", extra_static={"hostname": "probe-01"})
    logger.info(
        "Report sent",
        extra={"event": "report_sent", "fields": {"target": "1.1.1.1", "type": "ping"}},
    )

Modules log through child loggers:
    log = get_logger(__name__)
"""

from datetime import datetime, timezone
import json
import logging
import sys
from threading import RLock
from typing import Any, Mapping

ROOT_LOGGER_NAME = "netprobe"

_lock = RLock()

# Level names used in agent config files that `logging` does not know.
LEVEL_ALIASES = {
    "TRACE": logging.DEBUG,
    "WARN": logging.WARNING,
}

RESERVED = {
    "ts",
    "level",
    "logger",
    "thread",
    "module",
    "func",
    "line",
    "msg",
    "event",
}


def coerce_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        name = level.strip().upper()
        if name in LEVEL_ALIASES:
            return LEVEL_ALIASES[name]
        lvl = logging.getLevelName(name)
        if isinstance(lvl, int):
            return lvl
    return logging.INFO


class JsonFormatter(logging.Formatter):
    """One JSON object per record, never raises on odd field values."""

    def __init__(self, *, static: dict[str, Any] | None = None) -> None:
        super().__init__()
        self._static = static or {}

    def format(self, record: logging.LogRecord) -> str:
        ts = (
            datetime.fromtimestamp(record.created, timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )
        msg = record.getMessage()
        event = getattr(record, "event", None)
        if event == msg:
            event = None

        base: dict[str, Any] = {
            "ts": ts,
            "level": record.levelname.lower(),
            "logger": record.name,
            "thread": record.threadName,
            "module": record.module,
            "func": record.funcName,
            "line": record.lineno,
            "msg": msg,
        }
        if event:
            base["event"] = event
        if self._static:
            base["static"] = self._static

        fields_obj = getattr(record, "fields", {})
        if isinstance(fields_obj, Mapping):
            user_fields = dict(fields_obj)
        else:
            user_fields = {"_fields_type": str(type(fields_obj))}
        if user_fields:
            base["fields"] = user_fields

        if record.exc_info:
            base["exc"] = self.formatException(record.exc_info)

        try:
            return json.dumps(base, ensure_ascii=False, separators=(",", ":"), default=str)
        except (TypeError, ValueError) as exc:  # pragma: no cover (circular refs)
            fallback = {
                "ts": ts,
                "level": "error",
                "logger": record.name,
                "msg": "log_serialization_failed",
                "error": str(exc),
            }
            return json.dumps(fallback, separators=(",", ":"))


def configure_json_logging(
    *,
    level: int | str = "INFO",
    stream: Any | None = None,
    force: bool = False,
    extra_static: dict[str, Any] | None = None,
) -> logging.Logger:
    """Configure or update the agent's root JSON logger.

    Parameters
    ----------
    level: Log level (int or name string, agent aliases allowed).
    stream: Optional stream for the handler (defaults to sys.stdout).
    force: If True, replace the existing handler with a fresh one.
    extra_static: Static metadata included under key 'static' on every line.

    Returns
    -------
    logging.Logger: The configured ``netprobe`` logger. Module loggers
    obtained via :func:`get_logger` propagate into it.
    """
    numeric_level = coerce_level(level)
    with _lock:
        logger = logging.getLogger(ROOT_LOGGER_NAME)
        logger.propagate = False
        logger.setLevel(numeric_level)

        existing = [h for h in logger.handlers if getattr(h, "_netprobe_json", False)]
        if existing and not force:
            handler = existing[0]
            handler.setLevel(numeric_level)
            handler.setFormatter(JsonFormatter(static=extra_static))
            return logger

        for old in existing:
            logger.removeHandler(old)

        handler = logging.StreamHandler(stream or sys.stdout)
        handler.setLevel(numeric_level)
        handler.setFormatter(JsonFormatter(static=extra_static))
        setattr(handler, "_netprobe_json", True)
        logger.addHandler(handler)
        return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Return a logger under the ``netprobe`` hierarchy.

    Modules pass ``__name__`` which already starts with ``netprobe.``.
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


__all__ = [
    "configure_json_logging",
    "coerce_level",
    "get_logger",
    "JsonFormatter",
    "RESERVED",
    "ROOT_LOGGER_NAME",
]
