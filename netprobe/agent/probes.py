"""Diagnostic runner: executes ping / mtr against a single target.

Command lines are fixed. ping runs 10 probes with ``-O`` so every missing reply
shows up as its own line; mtr runs with ``-z`` (AS lookups) and ``-j`` (JSON).
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from enum import Enum
from typing import List

from .logging_setup import get_logger

PING_COUNT = "10"

log = get_logger(__name__)


class DiagnosticKind(str, Enum):
    REACHABILITY = "ping"
    PATH = "mtr"


@dataclass(frozen=True)
class DiagnosticResult:
    target: str
    kind: DiagnosticKind
    output: str
    ok: bool
    returncode: int | None = None


def build_command(kind: DiagnosticKind, target: str) -> List[str]:
    if kind is DiagnosticKind.REACHABILITY:
        return ["ping", "-O", "-c", PING_COUNT, target]
    return ["mtr", "-z", "-j", target]


def run_diagnostic(target: str, kind: DiagnosticKind) -> DiagnosticResult:
    """Run one diagnostic and capture stdout. Never retries, never raises.

    No timeout is applied; ping and mtr bound their own run time.
    """
    cmd = build_command(kind, target)
    try:
        proc = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=False,
        )
    except OSError as exc:
        log.error(
            "Diagnostic program failed to start",
            extra={"event": "diagnostic_spawn_failed", "fields": {"cmd": cmd, "error": str(exc)}},
        )
        return DiagnosticResult(target=target, kind=kind, output="", ok=False)

    # hostnames in ping output are not guaranteed to be valid UTF-8
    stdout = proc.stdout.decode("utf-8", errors="replace")
    stderr = proc.stderr.decode("utf-8", errors="replace")
    log.debug(
        "Diagnostic output",
        extra={
            "event": "diagnostic_output",
            "fields": {"cmd": cmd, "rc": proc.returncode, "stdout": stdout, "stderr": stderr},
        },
    )
    return DiagnosticResult(
        target=target,
        kind=kind,
        output=stdout,
        ok=proc.returncode == 0,
        returncode=proc.returncode,
    )


__all__ = ["DiagnosticKind", "DiagnosticResult", "build_command", "run_diagnostic"]
