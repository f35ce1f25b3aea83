"""Probe scheduler: two independent periodic sweeps over the target list.

Every 30 s a reachability sweep starts one ping task per target; every 60 s a
path sweep starts one mtr task per target. A sweep never waits for its tasks:
each task runs on its own daemon thread and the trigger goes straight back to
sleeping. There is no cap on in-flight tasks and no cancellation.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, List, Sequence

from .logging_setup import get_logger
from .probes import run_diagnostic
from .tasks import Runner, ping_task, trace_task
from .telemetry import TelemetryChannel

PING_INTERVAL = 30.0  # seconds
TRACE_INTERVAL = 60.0

log = get_logger(__name__)


class TaskSpawner:
    """Starts fire-and-forget tasks. Nothing is ever joined.

    Exceptions stop at the task boundary: they are logged and the thread ends.
    """

    def __init__(self, name: str = "probe") -> None:
        self.name = name
        self._count = 0
        self._lock = threading.Lock()

    @property
    def spawned(self) -> int:
        return self._count

    def _guarded(self, fn: Callable[..., Any], args: tuple) -> None:
        try:
            fn(*args)
        except Exception:
            log.exception(
                "Probe task crashed",
                extra={"event": "task_crashed", "fields": {"task": getattr(fn, "__name__", repr(fn)), "args": args}},
            )

    def spawn(self, fn: Callable[..., Any], *args: Any) -> threading.Thread:
        with self._lock:
            self._count += 1
            n = self._count
        t = threading.Thread(target=self._guarded, args=(fn, args), name=f"{self.name}-{n}", daemon=True)
        t.start()
        return t


class PeriodicTrigger:
    """Calls ``fn`` every ``interval`` seconds on a daemon thread, first call after one interval."""

    def __init__(self, name: str, interval: float, fn: Callable[[], None]) -> None:
        self.name = name
        self.interval = interval
        self._fn = fn
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._loop, name=f"trigger-{name}", daemon=True)

    def _loop(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self._fn()
            except Exception:  # pragma: no cover - sweeps only spawn threads
                log.exception("Sweep failed", extra={"event": "sweep_failed", "fields": {"trigger": self.name}})

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()


class ProbeScheduler:
    def __init__(
        self,
        targets: Sequence[str],
        source: str,
        channel: TelemetryChannel,
        *,
        ping_interval: float = PING_INTERVAL,
        trace_interval: float = TRACE_INTERVAL,
        runner: Runner = run_diagnostic,
        spawner: TaskSpawner | None = None,
    ) -> None:
        self.targets: List[str] = list(targets)
        self.source = source
        self.channel = channel
        self.runner = runner
        self.spawner = spawner or TaskSpawner()
        self._triggers = [
            PeriodicTrigger("ping", ping_interval, self.ping_sweep),
            PeriodicTrigger("traceroute", trace_interval, self.trace_sweep),
        ]

    def ping_sweep(self) -> None:
        log.info("Started pinging", extra={"event": "sweep_start", "fields": {"kind": "ping", "targets": len(self.targets)}})
        for address in self.targets:
            log.info("Pinging", extra={"event": "task_spawn", "fields": {"kind": "ping", "target": address}})
            self.spawner.spawn(ping_task, address, self.source, self.channel, self.runner)
        log.info("Ended pinging", extra={"event": "sweep_end", "fields": {"kind": "ping"}})

    def trace_sweep(self) -> None:
        log.info(
            "Started tracing", extra={"event": "sweep_start", "fields": {"kind": "traceroute", "targets": len(self.targets)}}
        )
        for address in self.targets:
            log.info("Tracing", extra={"event": "task_spawn", "fields": {"kind": "traceroute", "target": address}})
            self.spawner.spawn(trace_task, address, self.source, self.channel, self.runner)
        log.info("Ended tracing", extra={"event": "sweep_end", "fields": {"kind": "traceroute"}})

    def start(self) -> None:
        log.info("Creating scheduler", extra={"event": "scheduler_creating"})
        for trig in self._triggers:
            trig.start()
            log.info(
                "Added task",
                extra={"event": "scheduler_task_added", "fields": {"kind": trig.name, "every_s": trig.interval}},
            )
        log.info("Scheduler created", extra={"event": "scheduler_started"})

    def stop(self) -> None:
        for trig in self._triggers:
            trig.stop()
        log.info("Scheduler stopped", extra={"event": "scheduler_stopped"})


__all__ = ["PeriodicTrigger", "ProbeScheduler", "TaskSpawner", "PING_INTERVAL", "TRACE_INTERVAL"]
