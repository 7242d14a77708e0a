"""Strategies for picking the next model to serve a request."""

from __future__ import annotations

import threading
import time
from enum import Enum
from typing import Callable, Iterable, Protocol

from modelrouter.latency import MovingAverage


class NoHealthyModelsError(Exception):
    """Raised when no healthy model is left in the pool."""

    def __init__(self, message: str = "no healthy models found") -> None:
        super().__init__(message)


class Strategy(str, Enum):
    """Supported routing strategies for language routers."""

    PRIORITY = "priority"
    ROUND_ROBIN = "round_robin"
    WEIGHTED_ROUND_ROBIN = "weighted_round_robin"
    LEAST_LATENCY = "least_latency"


class Model(Protocol):
    """What a routing strategy needs to know about a model."""

    @property
    def id(self) -> str: ...

    def healthy(self) -> bool: ...

    def weight(self) -> int: ...

    def latency_update_interval(self) -> float:
        """Seconds between latency probes of a model that is not the fastest."""
        ...


LatencyGetter = Callable[[Model], MovingAverage]


class PriorityIterator:
    """Yields the first healthy model, never going back to earlier ones."""

    def __init__(self, models: Iterable[Model]) -> None:
        self._models = list(models)
        self._idx = 0
        self._lock = threading.Lock()

    def next(self) -> Model:
        with self._lock:
            while self._idx < len(self._models):
                model = self._models[self._idx]
                if model.healthy():
                    return model
                self._idx += 1
        raise NoHealthyModelsError()


class PriorityRouting:
    """Routes to the first healthy model; list position defines priority."""

    def __init__(self, models: Iterable[Model]) -> None:
        self._models = list(models)

    def iterator(self) -> PriorityIterator:
        return PriorityIterator(self._models)


class RoundRobinRouting:
    """Routes to the next healthy model in the list, cycling around."""

    def __init__(self, models: Iterable[Model]) -> None:
        self._models = list(models)
        self._idx = 0
        self._lock = threading.Lock()

    def iterator(self) -> RoundRobinRouting:
        return self

    def next(self) -> Model:
        with self._lock:
            # one full cycle at most, so an all-unhealthy pool cannot loop forever
            for _ in range(len(self._models)):
                model = self._models[self._idx % len(self._models)]
                self._idx += 1
                if model.healthy():
                    return model
        raise NoHealthyModelsError()


class Weighter:
    """Current weight of a model in smooth weighted round robin."""

    def __init__(self, model: Model) -> None:
        self.model = model
        self.current = 0

    @property
    def weight(self) -> int:
        return self.model.weight()

    def incr(self) -> None:
        self.current += self.weight

    def decr(self, total_weight: int) -> None:
        self.current -= total_weight


class WeightedRoundRobinRouting:
    """Smooth weighted round robin: models are picked in proportion to weight."""

    def __init__(self, models: Iterable[Model]) -> None:
        self._weights = [Weighter(model) for model in models]
        self._lock = threading.Lock()

    def iterator(self) -> WeightedRoundRobinRouting:
        return self

    def next(self) -> Model:
        with self._lock:
            total_weight = 0
            best: Weighter | None = None

            for weighter in self._weights:
                if not weighter.model.healthy():
                    continue

                weighter.incr()
                total_weight += weighter.weight

                if best is None or weighter.current > best.current:
                    best = weighter

            if best is None:
                raise NoHealthyModelsError()

            best.decr(total_weight)
            return best.model


class ModelSchedule:
    """Latency update deadline of a model, in time.monotonic() seconds."""

    def __init__(self, model: Model, expire_at: float | None = None) -> None:
        self.model = model
        self._lock = threading.Lock()
        self._expire_at = 0.0
        if expire_at is None:
            self.update()
        else:
            self._expire_at = expire_at

    @property
    def expire_at(self) -> float:
        with self._lock:
            return self._expire_at

    def expired(self) -> bool:
        with self._lock:
            return time.monotonic() > self._expire_at

    def update(self) -> None:
        """Push the deadline forward by the model's update interval."""
        with self._lock:
            self._expire_at = time.monotonic() + self.model.latency_update_interval()


class LeastLatencyRouting:
    """Routes to the model with the lowest average latency.

    Cold models (whose latency average is not warmed up) are served first in
    round-robin order. Once all are warm, the fastest model wins, except that a
    model whose schedule expired gets a request to refresh its latency stats.
    """

    def __init__(self, latency_getter: LatencyGetter, models: Iterable[Model]) -> None:
        self._latency_getter = latency_getter
        self._schedules = [ModelSchedule(model) for model in models]
        self._warmup_idx = 0
        self._lock = threading.Lock()

    @classmethod
    def from_schedules(
        cls, latency_getter: LatencyGetter, schedules: Iterable[ModelSchedule]
    ) -> LeastLatencyRouting:
        routing = cls(latency_getter, [])
        routing._schedules = list(schedules)
        return routing

    def iterator(self) -> LeastLatencyRouting:
        return self

    def _cold_schedules(self) -> list[ModelSchedule]:
        return [
            schedule
            for schedule in self._schedules
            if schedule.model.healthy() and not self._latency_getter(schedule.model).warmed_up()
        ]

    def _latency(self, schedule: ModelSchedule) -> float:
        return self._latency_getter(schedule.model).value()

    def next(self) -> Model:
        cold = self._cold_schedules()
        if cold:
            with self._lock:
                idx = self._warmup_idx
                self._warmup_idx += 1
            schedule = cold[idx % len(cold)]
            schedule.update()
            return schedule.model

        chosen: ModelSchedule | None = None

        for schedule in self._schedules:
            if not schedule.model.healthy():
                continue

            if chosen is None:
                chosen = schedule
                continue

            # an expired model wins only if it expired earlier than the current pick
            if schedule.expired() and schedule.expire_at < chosen.expire_at:
                chosen = schedule
                continue

            if (
                not schedule.expired()
                and not chosen.expired()
                and self._latency(chosen) > self._latency(schedule)
            ):
                chosen = schedule

        if chosen is None:
            raise NoHealthyModelsError()

        chosen.update()
        return chosen.model