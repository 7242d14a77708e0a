"""Exponentially weighted moving average of model response latency."""

from __future__ import annotations

import threading
from dataclasses import dataclass


@dataclass
class LatencyConfig:
    """Settings for moving average latency calculations."""

    decay: float = 0.06  # weight of new latency measurements
    warmup_samples: int = 3  # probes needed to initialise the average
    update_interval: float = 30.0  # seconds between probing slower models


class MovingAverage:
    """Exponentially weighted moving average of a series of numbers."""

    def __init__(self, decay: float, warmup_samples: int) -> None:
        self._lock = threading.RLock()
        self._decay = decay
        self._warmup_samples = warmup_samples
        self._count = 0
        self._value = 0.0

    def add(self, value: float) -> None:
        """Add a sample and update the average."""
        with self._lock:
            if self._count < self._warmup_samples:
                self._count += 1
                self._value += value
                return

            if self._count == self._warmup_samples:
                self._count += 1
                self._value = self._value / self._warmup_samples

            self._value = value * self._decay + self._value * (1 - self._decay)

    def warmed_up(self) -> bool:
        with self._lock:
            return self._count > self._warmup_samples

    def value(self) -> float:
        """Current average, or 0.0 until the series has warmed up."""
        with self._lock:
            return self._value if self.warmed_up() else 0.0

    def set(self, value: float) -> None:
        """Set the average directly, marking it as warmed up."""
        with self._lock:
            self._value = value
            if not self.warmed_up():
                self._count = self._warmup_samples + 1