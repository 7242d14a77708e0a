"""Health tracking for model providers: error budgets, token buckets and rate limits."""

from __future__ import annotations

import re
import threading
import time
from dataclasses import dataclass
from enum import Enum

BUDGET_SEPARATOR = "/"

_BUDGET_NUMBER = re.compile(r"[+-]?[0-9]+")


class NoTokensError(Exception):
    """Raised when a token bucket does not hold enough tokens."""

    def __init__(self, message: str = "not enough tokens in the bucket") -> None:
        super().__init__(message)


class UnauthorizedError(Exception):
    """Raised by a provider when its credentials are rejected."""


class RateLimitError(Exception):
    """Raised by a provider that hit a rate or quota limit."""

    def __init__(self, until_reset: float) -> None:
        super().__init__(f"rate limit reached, resets in {until_reset}s")
        self.until_reset = until_reset


def _now_micro() -> int:
    return time.time_ns() // 1000


class TokenBucket:
    """Thread-safe token bucket.

    Instead of counting tokens, it tracks a time pointer that moves forward
    as tokens are consumed. All times are in microseconds.
    """

    def __init__(self, time_per_token: int, burst_size: int) -> None:
        self._lock = threading.Lock()
        self._time_pointer = 0
        self._time_per_token = time_per_token
        self._time_per_burst = burst_size * time_per_token

    def _start_time(self, now: int) -> int:
        return max(self._time_pointer, now - self._time_per_burst)

    def take(self, tokens: int) -> None:
        """Consume tokens, raising NoTokensError if there are not enough."""
        with self._lock:
            now = _now_micro()
            new_time = self._start_time(now) + tokens * self._time_per_token
            if new_time > now:
                raise NoTokensError()
            self._time_pointer = new_time

    def has_tokens(self) -> bool:
        return self.tokens() >= 1.0

    def tokens(self) -> float:
        """Number of tokens currently available."""
        with self._lock:
            now = _now_micro()
            return (now - self._start_time(now)) / self._time_per_token


class Unit(str, Enum):
    MILLI = "ms"
    SEC = "s"
    MIN = "m"
    HOUR = "h"


_UNIT_MICROS = {
    Unit.MILLI: 1_000,
    Unit.SEC: 1_000_000,
    Unit.MIN: 60_000_000,
    Unit.HOUR: 3_600_000_000,
}


@dataclass(frozen=True)
class ErrorBudget:
    """Maximum number of errors allowed per time unit, written like "10/s"."""

    budget: int
    unit: Unit

    @classmethod
    def parse(cls, text: str) -> ErrorBudget:
        parts = text.split(BUDGET_SEPARATOR)
        if len(parts) != 2:
            raise ValueError("invalid format")

        number, unit_text = parts
        if not _BUDGET_NUMBER.fullmatch(number):
            raise ValueError(f"error parsing error number: {number!r} is not an integer")

        budget = int(number)
        if budget <= 0:
            raise ValueError(f"error number should be greater then 0 ({budget} given)")

        try:
            unit = Unit(unit_text)
        except ValueError:
            raise ValueError("invalid unit (supported: ms, s, m, h)") from None

        return cls(budget, unit)

    def time_per_token_micro(self) -> int:
        """Microseconds needed to recover one error token."""
        return _UNIT_MICROS.get(self.unit, 1) // self.budget

    def __str__(self) -> str:
        return f"{self.budget}{BUDGET_SEPARATOR}{Unit(self.unit).value}"


def default_error_budget() -> ErrorBudget:
    return ErrorBudget(10, Unit.MIN)


class RateLimitTracker:
    """Tracks a rate limit cooldown period."""

    def __init__(self) -> None:
        self._reset_at: float | None = None

    def limited(self) -> bool:
        if self._reset_at is not None and time.monotonic() > self._reset_at:
            self._reset_at = None
        return self._reset_at is not None

    def set_limited(self, until_reset: float) -> None:
        """Mark as limited for the given number of seconds."""
        self._reset_at = time.monotonic() + until_reset


class Tracker:
    """Tracks errors and general health of a model provider."""

    def __init__(self, budget: ErrorBudget) -> None:
        self._unauthorized = False
        self._rate_limit = RateLimitTracker()
        self._err_budget = TokenBucket(budget.time_per_token_micro(), budget.budget)

    def healthy(self) -> bool:
        return (
            not self._unauthorized
            and not self._rate_limit.limited()
            and self._err_budget.has_tokens()
        )

    def track_err(self, err: BaseException) -> None:
        if isinstance(err, UnauthorizedError):
            self._unauthorized = True
            return

        if isinstance(err, RateLimitError):
            self._rate_limit.set_limited(err.until_reset)
            return

        try:
            self._err_budget.take(1)
        except NoTokensError:
            pass