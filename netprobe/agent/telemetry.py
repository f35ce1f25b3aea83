"""Telemetry channel: the one websocket connection to the collector.

Every probe task sends through the same channel. Writes are serialized with a
lock so two reports never interleave on the wire. The channel never reconnects
on its own: a task that gets a :class:`TelemetryError` from :meth:`send` calls
:meth:`reconnect`, and the report it was sending is dropped.

Reconnects are not synchronized against concurrent senders. Two tasks failing
at once both dial; the last one to finish wins. At worst one more report is
lost on the stale handle.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional

from websockets.exceptions import WebSocketException
from websockets.sync.client import connect as ws_connect

from .logging_setup import get_logger
from .reports import Report, to_message

OPEN_TIMEOUT = 10  # seconds

log = get_logger(__name__)


class TelemetryError(Exception):
    """Base class for telemetry delivery failures."""


class ConnectionDown(TelemetryError):
    def __init__(self, message: str = "connection is down") -> None:
        super().__init__(message)


class TelemetryWriteError(TelemetryError):
    pass


def default_dialer(url: str) -> Any:
    return ws_connect(url, open_timeout=OPEN_TIMEOUT)


class TelemetryChannel:
    """Owned collector connection exposing ``connect`` / ``send`` / ``reconnect``."""

    def __init__(self, url: str, dialer: Callable[[str], Any] | None = None) -> None:
        self.url = url
        self._dial = dialer or default_dialer
        self._conn: Optional[Any] = None
        self._write_lock = threading.Lock()

    @property
    def connected(self) -> bool:
        return self._conn is not None

    def connect(self) -> bool:
        """Dial once. On failure the handle is left absent; no retry, no backoff."""
        log.info("Connecting to telemetry websocket", extra={"event": "ws_connecting", "fields": {"url": self.url}})
        try:
            conn = self._dial(self.url)
        except (OSError, WebSocketException) as exc:
            log.warning(
                "Failed connecting to telemetry websocket",
                extra={"event": "ws_connect_failed", "fields": {"url": self.url, "error": str(exc)}},
            )
            self._conn = None
            return False
        self._conn = conn
        log.info("Connected to telemetry websocket", extra={"event": "ws_connected", "fields": {"url": self.url}})
        return True

    reconnect = connect

    def send(self, report: Report) -> None:
        """Write one report as a single message.

        Raises ConnectionDown without writing when no handle is held, and
        TelemetryWriteError when the write itself fails.
        """
        conn = self._conn
        if conn is None:
            raise ConnectionDown()
        message = to_message(report)
        with self._write_lock:
            try:
                conn.send(message)
            except (OSError, WebSocketException) as exc:
                raise TelemetryWriteError(str(exc)) from exc
        log.debug(
            "Report sent",
            extra={"event": "report_sent", "fields": {"type": report.type, "target": report.target}},
        )

    def close(self) -> None:
        conn, self._conn = self._conn, None
        if conn is None:
            return
        try:
            conn.close()
        except (OSError, WebSocketException) as exc:
            log.debug("Error closing telemetry websocket", extra={"event": "ws_close_failed", "fields": {"error": str(exc)}})


__all__ = [
    "ConnectionDown",
    "TelemetryChannel",
    "TelemetryError",
    "TelemetryWriteError",
    "default_dialer",
]
