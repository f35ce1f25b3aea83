"""Per-target probe tasks.

Each task runs one diagnostic, turns its output into a report and hands the
report to the telemetry channel. Tasks return the report they sent (or tried to
send) so callers and tests can inspect it; the scheduler ignores the value.
"""

from __future__ import annotations

from typing import Callable, Optional

from .logging_setup import get_logger
from .ping_stats import ping_statistics
from .probes import DiagnosticKind, DiagnosticResult, run_diagnostic
from .reports import PingReport, Report, TraceReport
from .telemetry import TelemetryChannel, TelemetryError
from .trace import decode_path_output

Runner = Callable[[str, DiagnosticKind], DiagnosticResult]

log = get_logger(__name__)


def dispatch(channel: TelemetryChannel, report: Report) -> bool:
    """Send a report; on any channel failure drop it and redial."""
    try:
        channel.send(report)
        return True
    except TelemetryError as exc:
        log.warning(
            "Sending data failed",
            extra={
                "event": "send_failed",
                "fields": {"type": report.type, "target": report.target, "error": str(exc)},
            },
        )
        channel.reconnect()
        return False


def ping_task(
    target: str,
    source: str,
    channel: TelemetryChannel,
    runner: Runner = run_diagnostic,
) -> PingReport:
    # ping exits non-zero on any lost probe; losses are read from the output
    result = runner(target, DiagnosticKind.REACHABILITY)
    report = PingReport(source=source, target=target, data=ping_statistics(result.output))
    log.info(
        "Created ping report",
        extra={"event": "ping_report", "fields": {"target": target, **report.data.model_dump()}},
    )
    dispatch(channel, report)
    return report


def trace_task(
    target: str,
    source: str,
    channel: TelemetryChannel,
    runner: Runner = run_diagnostic,
) -> Optional[TraceReport]:
    result = runner(target, DiagnosticKind.PATH)
    if not result.ok:
        log.warning(
            "Path diagnostic failed",
            extra={"event": "trace_failed", "fields": {"target": target, "rc": result.returncode}},
        )
        return None

    payload = decode_path_output(result.output)
    if payload is None:
        return None

    report = TraceReport(source=source, target=target, data=payload)
    log.info("Created trace report", extra={"event": "trace_report", "fields": {"target": target}})
    dispatch(channel, report)
    return report


__all__ = ["dispatch", "ping_task", "trace_task", "Runner"]
