"""Ping output parsing and latency statistics.

Input is the raw text of ``ping -O -c 10 <target>``: a ``PING ...`` header, one
line per probe, then a blank line before the summary. Each probe line is either
a reply carrying ``time=<ms>`` or a failure line (``no answer yet ...``,
``Destination Host Unreachable`` ...). The summary block is never reached
because parsing stops at the first line shorter than two characters.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .logging_setup import get_logger
from .reports import Statistics

HEADER_PREFIX = "PING"
TIME_MARKER = "time="
MIN_REPLY_BYTES = 40
END_OF_OUTPUT = 2  # lines shorter than this end the probe section

_NON_NUMERIC = re.compile(r"[^0-9.]")

log = get_logger(__name__)


def parse_duration(line: str) -> Optional[float]:
    """Return the round-trip time in ms carried by a reply line, or None.

    A line counts as a reply only when it is at least 40 bytes long and carries
    the ``time=`` marker. The number is whatever digits and dots remain after
    the last marker once every other character is stripped.
    """
    if len(line.encode("utf-8")) < MIN_REPLY_BYTES or TIME_MARKER not in line:
        log.warning("Request timed out", extra={"event": "ping_timeout", "fields": {"line": line}})
        return None
    tail = line[line.rindex(TIME_MARKER):]
    digits = _NON_NUMERIC.sub("", tail)
    try:
        return float(digits)
    except ValueError:
        log.warning("Unparsable reply time", extra={"event": "ping_unparsable", "fields": {"line": line}})
        return None


@dataclass
class PingSamples:
    """Everything the extractor pulls out of one ping run."""

    durations: List[float] = field(default_factory=list)
    jitter: List[float] = field(default_factory=list)
    timeouts: int = 0
    lines: int = 0
    min: float = 0.0
    max: float = 0.0

    def add(self, duration: float) -> None:
        if not self.durations:
            self.min = self.max = duration
        elif duration < self.min:
            # a new minimum skips the maximum check for this line
            self.min = duration
        elif duration > self.max:
            self.max = duration

        # odd samples open a pair, even samples close it
        if len(self.durations) % 2 == 1:
            self.jitter.append(abs(self.durations[-1] - duration))
        self.durations.append(duration)


def extract_samples(raw: str) -> PingSamples:
    samples = PingSamples()
    for line in raw.split("\n"):
        if line.startswith(HEADER_PREFIX):
            continue
        if len(line) < END_OF_OUTPUT:
            break
        samples.lines += 1
        duration = parse_duration(line)
        if duration is None:
            samples.timeouts += 1
            continue
        samples.add(duration)
    return samples


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    result = sum(values) / len(values)
    return 0.0 if math.isnan(result) else result


def ratio(part: float, whole: float) -> float:
    if not whole:
        return 0.0
    result = part / whole
    return 0.0 if math.isnan(result) else result


def aggregate(samples: PingSamples) -> Statistics:
    stats = Statistics(
        min=samples.min,
        max=samples.max,
        avg=mean(samples.durations),
        jitter=mean(samples.jitter),
        loss=ratio(samples.timeouts, samples.lines),
    )
    log.debug(
        "Computed ping statistics",
        extra={
            "event": "ping_stats",
            "fields": {"durations": samples.durations, "jitter_samples": samples.jitter, **stats.model_dump()},
        },
    )
    return stats


def ping_statistics(raw: str) -> Statistics:
    """Parse raw ping output straight into :class:`Statistics`."""
    return aggregate(extract_samples(raw))


__all__ = [
    "PingSamples",
    "aggregate",
    "extract_samples",
    "parse_duration",
    "ping_statistics",
]
