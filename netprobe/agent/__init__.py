"""Probe agent package.

Runs periodic reachability (ping) and path (mtr) sweeps against the configured
targets and streams each result to the telemetry collector.

Public helpers (imported in tests):
    ping_statistics: parse raw ping output into Statistics
    decode_path_output: decode mtr JSON output
    TelemetryChannel: the shared collector connection
"""

from .ping_stats import ping_statistics  # noqa: F401
from .trace import decode_path_output  # noqa: F401
from .telemetry import TelemetryChannel, ConnectionDown  # noqa: F401
