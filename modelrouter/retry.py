"""Exponential retry with bounded delays."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass

_NS_PER_SECOND = 1_000_000_000


def _fraction(value: int, unit: int) -> str:
    whole, frac = divmod(value, unit)
    if not frac:
        return str(whole)
    digits = len(str(unit)) - 1
    return f"{whole}.{frac:0{digits}d}".rstrip("0")


def format_duration(seconds: float) -> str:
    """Format a duration in seconds compactly, like "2s", "1.5ms" or "1m30s"."""
    ns = round(seconds * _NS_PER_SECOND)
    sign = "-" if ns < 0 else ""
    ns = abs(ns)

    if ns == 0:
        return "0s"
    if ns < 1_000:
        return f"{sign}{ns}ns"
    if ns < 1_000_000:
        return f"{sign}{_fraction(ns, 1_000)}µs"
    if ns < _NS_PER_SECOND:
        return f"{sign}{_fraction(ns, 1_000_000)}ms"

    hours, rest = divmod(ns, 3600 * _NS_PER_SECOND)
    minutes, rest = divmod(rest, 60 * _NS_PER_SECOND)
    secs = f"{_fraction(rest, _NS_PER_SECOND)}s"

    if hours:
        return f"{sign}{hours}h{minutes}m{secs}"
    if minutes:
        return f"{sign}{minutes}m{secs}"
    return f"{sign}{secs}"


class ExpRetryIterator:
    """One run of retry attempts."""

    def __init__(
        self,
        max_retries: int,
        base_multiplier: int,
        min_delay: float,
        max_delay: float | None = None,
    ) -> None:
        self._attempt = 0
        self._max_retries = max_retries
        self._base_multiplier = base_multiplier
        self._min_delay = min_delay
        self._max_delay = max_delay

    def has_next(self) -> bool:
        return self._attempt < self._max_retries

    def next_wait_duration(self, attempt: int) -> float:
        """Delay in seconds before the given attempt."""
        delay = self._min_delay
        if attempt > 0:
            delay = delay * (self._base_multiplier << (attempt - 1))

        delay = max(delay, self._min_delay)

        if self._max_delay is not None:
            delay = min(delay, self._max_delay)

        return delay

    def wait_next(self, cancel: threading.Event | None = None) -> None:
        """Wait before the next attempt; raise InterruptedError if cancelled."""
        delay = self.next_wait_duration(self._attempt)
        self._attempt += 1

        if cancel is None:
            time.sleep(delay)
            return

        if cancel.wait(delay):
            raise InterruptedError("retry wait was cancelled")


class ExpRetry:
    """Wait time grows exponentially: min_delay * base_multiplier ** attempt."""

    def __init__(
        self,
        max_retries: int,
        base_multiplier: int,
        min_delay: float,
        max_delay: float | None = None,
    ) -> None:
        self.max_retries = max_retries
        self.base_multiplier = base_multiplier
        self.min_delay = min_delay
        self.max_delay = max_delay

    def iterator(self) -> ExpRetryIterator:
        return ExpRetryIterator(
            self.max_retries,
            self.base_multiplier,
            self.min_delay,
            self.max_delay,
        )


@dataclass
class ExpRetryConfig:
    """Retry settings; delays are in seconds."""

    max_retries: int = 3
    base_multiplier: int = 2
    min_delay: float = 2.0
    max_delay: float | None = 5.0

    def to_dict(self) -> dict:
        return {
            "max_retries": self.max_retries,
            "base_multiplier": self.base_multiplier,
            "min_delay": format_duration(self.min_delay),
            "max_delay": None if self.max_delay is None else format_duration(self.max_delay),
        }

    def build(self) -> ExpRetry:
        return ExpRetry(self.max_retries, self.base_multiplier, self.min_delay, self.max_delay)