from __future__ import annotations

import threading
import time
from typing import List

import pytest

from netprobe.agent.probes import DiagnosticKind, DiagnosticResult
from netprobe.agent.telemetry import TelemetryChannel


PING_OK = """PING 1.1.1.1 (1.1.1.1) 56(84) bytes of data.
64 bytes from 1.1.1.1: icmp_seq=1 ttl=57 time=10.0 ms
64 bytes from 1.1.1.1: icmp_seq=2 ttl=57 time=20.0 ms
64 bytes from 1.1.1.1: icmp_seq=3 ttl=57 time=10.0 ms
64 bytes from 1.1.1.1: icmp_seq=4 ttl=57 time=30.0 ms

--- 1.1.1.1 ping statistics ---
4 packets transmitted, 4 received, 0% packet loss, time 3004ms
rtt min/avg/max/mdev = 10.000/17.500/30.000/8.292 ms
"""

PING_ALL_LOST = """PING 10.9.9.9 (10.9.9.9) 56(84) bytes of data.
no answer yet for icmp_seq=1
no answer yet for icmp_seq=2
no answer yet for icmp_seq=3

--- 10.9.9.9 ping statistics ---
3 packets transmitted, 0 received, 100% packet loss, time 2049ms
"""

MTR_JSON = """{
  "report": {
    "mtr": {"src": "probe-01", "dst": "1.1.1.1", "tests": 10},
    "hubs": [
      {"count": 1, "host": "192.168.1.1", "Loss%": 0.0, "Avg": 0.8},
      {"count": 2, "host": "1.1.1.1", "Loss%": 0.0, "Avg": 9.7}
    ]
  }
}
"""


class FakeConnection:
    """Stand-in for a websockets sync connection; detects overlapping writes."""

    def __init__(self, delay: float = 0.0, fail: Exception | None = None) -> None:
        self.sent: List[str] = []
        self.delay = delay
        self.fail = fail
        self.closed = False
        self._active = 0
        self.max_active = 0
        self._guard = threading.Lock()

    def send(self, message: str) -> None:
        if self.fail is not None:
            raise self.fail
        with self._guard:
            self._active += 1
            self.max_active = max(self.max_active, self._active)
        # write in two halves to widen the interleaving window
        half = len(message) // 2
        chunks = [message[:half]]
        time.sleep(self.delay)
        chunks.append(message[half:])
        self.sent.append("".join(chunks))
        with self._guard:
            self._active -= 1

    def close(self) -> None:
        self.closed = True


class FakeRunner:
    def __init__(self, outputs: dict, ok: bool = True) -> None:
        self.outputs = outputs
        self.ok = ok
        self.calls: List[tuple] = []
        self._lock = threading.Lock()

    def __call__(self, target: str, kind: DiagnosticKind) -> DiagnosticResult:
        with self._lock:
            self.calls.append((target, kind))
        return DiagnosticResult(
            target=target,
            kind=kind,
            output=self.outputs.get(kind, ""),
            ok=self.ok,
            returncode=0 if self.ok else 1,
        )


@pytest.fixture
def fake_conn() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def live_channel(fake_conn) -> TelemetryChannel:
    channel = TelemetryChannel("ws://collector.test/ws", dialer=lambda url: fake_conn)
    assert channel.connect()
    return channel


@pytest.fixture
def ping_ok() -> str:
    return PING_OK


@pytest.fixture
def ping_all_lost() -> str:
    return PING_ALL_LOST


@pytest.fixture
def mtr_json() -> str:
    return MTR_JSON


@pytest.fixture
def make_runner():
    def _make(ok: bool = True, ping: str = PING_OK, mtr: str = MTR_JSON) -> FakeRunner:
        return FakeRunner({DiagnosticKind.REACHABILITY: ping, DiagnosticKind.PATH: mtr}, ok=ok)

    return _make


@pytest.fixture
def make_conn():
    return FakeConnection
