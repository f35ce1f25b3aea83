"""Path diagnostic (mtr --json) decoding."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from .logging_setup import get_logger

log = get_logger(__name__)


def decode_path_output(raw: str) -> Optional[Dict[str, Any]]:
    """Decode mtr JSON output into a plain mapping.

    Returns None when the text is not a JSON object; the caller drops the
    report for that target without escalating.
    """
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as exc:
        log.debug("Dropping undecodable path output", extra={"event": "trace_decode_failed", "fields": {"error": str(exc)}})
        return None
    if not isinstance(payload, dict):
        log.debug(
            "Dropping non-object path output",
            extra={"event": "trace_decode_failed", "fields": {"kind": type(payload).__name__}},
        )
        return None
    return payload


def hop_count(payload: Dict[str, Any]) -> int:
    """Number of hops in an mtr report (``report.hubs``), 0 if absent."""
    report = payload.get("report")
    if not isinstance(report, dict):
        return 0
    hubs = report.get("hubs")
    return len(hubs) if isinstance(hubs, list) else 0


__all__ = ["decode_path_output", "hop_count"]
