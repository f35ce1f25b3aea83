"""Agent entrypoint (Typer CLI).

Commands:
 - run:   long-running agent (config -> logging -> targets -> websocket -> scheduler)
 - probe: one-shot local ping/mtr against given targets, printed as a table

Usage:
  netprobe run --config /etc/netprobe/config.json
  netprobe probe 1.1.1.1 8.8.8.8 --trace
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Tuple

import typer
from rich import print
from rich.table import Table

from netprobe import __version__
from netprobe.utils import StartupError, fetch_targets, load_config

from .logging_setup import configure_json_logging, get_logger
from .ping_stats import ping_statistics
from .probes import DiagnosticKind, run_diagnostic
from .reports import Statistics
from .scheduler import ProbeScheduler
from .telemetry import TelemetryChannel
from .trace import decode_path_output, hop_count

app = typer.Typer(add_completion=False, help="Network health probe agent")

log = get_logger(__name__)


def park(stop: threading.Event | None = None) -> None:
    """Block the main thread until interrupted; the scheduler threads do the work."""
    (stop or threading.Event()).wait()


@app.command()
def run(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file (default: $NETPROBE_CONFIG or config.json)"),
):
    """Run the probe agent until interrupted."""
    configure_json_logging(level="INFO")
    try:
        cfg = load_config(config)
        logger = configure_json_logging(level=cfg.log_level, extra_static={"hostname": cfg.hostname})
        logger.info(
            "Setting log level",
            extra={"event": "log_level", "fields": {"level": cfg.log_level, "version": __version__}},
        )
        targets = fetch_targets(cfg)
    except StartupError as exc:
        log.error("Startup failed", extra={"event": "startup_failed", "fields": {"error": str(exc)}})
        raise typer.Exit(code=1)

    channel = TelemetryChannel(cfg.web_socket)
    channel.connect()

    scheduler = ProbeScheduler(targets, cfg.hostname, channel)
    scheduler.start()
    try:
        park()
    except KeyboardInterrupt:
        log.info("Interrupted, shutting down", extra={"event": "shutdown"})
    finally:
        scheduler.stop()
        channel.close()


def probe_one(target: str, trace: bool) -> Tuple[str, Statistics, Optional[int]]:
    stats = ping_statistics(run_diagnostic(target, DiagnosticKind.REACHABILITY).output)
    hops = None
    if trace:
        result = run_diagnostic(target, DiagnosticKind.PATH)
        payload = decode_path_output(result.output) if result.ok else None
        hops = hop_count(payload) if payload is not None else None
    return target, stats, hops


@app.command()
def probe(
    targets: List[str] = typer.Argument(..., help="Addresses to probe"),
    trace: bool = typer.Option(False, "--trace", help="Also run mtr and report hop count"),
    workers: int = typer.Option(8, "--workers", "-w", help="Parallel workers"),
    log_level: str = typer.Option("WARN", "--log-level", help="Agent log level"),
):
    """Probe targets once locally; nothing is sent to the collector."""
    configure_json_logging(level=log_level)
    with ThreadPoolExecutor(max_workers=workers) as ex:
        results = list(ex.map(lambda t: probe_one(t, trace), targets))

    table = Table(title="Probe results")
    for col in ("Target", "Min", "Max", "Avg", "Jitter", "Loss"):
        table.add_column(col)
    if trace:
        table.add_column("Hops")
    for target, stats, hops in results:
        loss = f"[green]{stats.loss:.0%}" if stats.loss == 0 else f"[red]{stats.loss:.0%}"
        row = [target, f"{stats.min:.2f}", f"{stats.max:.2f}", f"{stats.avg:.2f}", f"{stats.jitter:.2f}", loss]
        if trace:
            row.append("[red]n/a" if hops is None else str(hops))
        table.add_row(*row)
    print(table)


def main():  # pragma: no cover - entrypoint
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
