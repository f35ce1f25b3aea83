"""Telemetry report models.

One report is built per probe task and sent as a single JSON message:

    {"type": "ping", "source": ..., "target": ..., "data": {min, max, avg, jitter, loss}}
    {"type": "traceroute", "source": ..., "target": ..., "data": <mtr JSON object>}
"""

from __future__ import annotations

from typing import Any, Dict, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

PING = "ping"
TRACEROUTE = "traceroute"


class Statistics(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: float = 0.0
    max: float = 0.0
    avg: float = 0.0
    jitter: float = 0.0
    loss: float = Field(0.0, ge=0.0, le=1.0)


class PingReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["ping"] = PING
    source: str
    target: str
    data: Statistics


class TraceReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["traceroute"] = TRACEROUTE
    source: str
    target: str
    data: Dict[str, Any]


Report = Union[PingReport, TraceReport]


def to_message(report: Report) -> str:
    """Serialize a report to the wire format (one text frame)."""
    return report.model_dump_json()


__all__ = ["Statistics", "PingReport", "TraceReport", "Report", "to_message", "PING", "TRACEROUTE"]
