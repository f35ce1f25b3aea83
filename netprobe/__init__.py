"""Top-level package for the network probe agent.

Tests import modules as `from netprobe.agent import ping_stats`.
"""

__version__ = "0.3.0"

__all__ = [
	"agent",
	"utils",
]
