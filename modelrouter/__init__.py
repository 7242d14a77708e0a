"""Routing strategies, health tracking, latency averaging and retry timing for model pools."""

__version__ = "0.1.0"