# modelrouter

A small library of pieces for spreading requests over several language
model backends: picking the next model, deciding when a model should be
skipped as unhealthy, averaging response latency, and timing retries.
It has no runtime dependencies.

## Installation

```
pip install modelrouter
```

## Routing strategies

A model in a pool needs an `id` attribute and the methods `healthy()`,
`weight()` and `latency_update_interval()` (seconds); the
`modelrouter.routing.Model` protocol lists them. Every routing class has
`iterator()`, and the returned object has `next()`, which gives back a
model or raises `NoHealthyModelsError` when no healthy model is left.

```python
from modelrouter.routing import (
    LeastLatencyRouting,
    NoHealthyModelsError,
    PriorityRouting,
    RoundRobinRouting,
    Strategy,
    WeightedRoundRobinRouting,
)

routing = PriorityRouting(models)            # first healthy model in list order
routing = RoundRobinRouting(models)          # cycles through the healthy models
routing = WeightedRoundRobinRouting(models)  # smooth weighted round robin
routing = LeastLatencyRouting(lambda m: m.chat_latency, models)

iterator = routing.iterator()
try:
    model = iterator.next()
except NoHealthyModelsError:
    ...
```

- `PriorityRouting.iterator()` returns a fresh `PriorityIterator`; within one
  iterator, models skipped as unhealthy are not tried again.
- `LeastLatencyRouting` takes a function that returns a model's
  `MovingAverage`. Models whose average is not warmed up are served first,
  round robin. After that the model with the lowest average wins, but a
  model whose `ModelSchedule` has expired is picked to refresh its figures.
  `LeastLatencyRouting.from_schedules()` builds one from ready-made
  schedules.
- `Strategy` names the four strategies: `priority`, `round_robin`,
  `weighted_round_robin` and `least_latency`.

## Health tracking

```python
from modelrouter.health import ErrorBudget, RateLimitError, Tracker, UnauthorizedError

budget = ErrorBudget.parse("10/m")   # formats: "5/ms", "10/s", "100/m", "1500/h"
tracker = Tracker(budget)

tracker.track_err(RateLimitError(until_reset=30.0))  # unhealthy for 30 seconds
tracker.track_err(UnauthorizedError())               # unhealthy from now on
tracker.track_err(RuntimeError("boom"))              # spends one error token

tracker.healthy()
```

`ErrorBudget.parse` raises `ValueError` on a malformed text, a number that
is not a positive integer, or an unknown unit. `default_error_budget()` is
`10/m`. The budget is kept by a `TokenBucket`, whose `take()` raises
`NoTokensError` when it is empty; `RateLimitTracker` holds the cooldown.

## Latency

```python
from modelrouter.latency import LatencyConfig, MovingAverage

avg = MovingAverage(decay=0.06, warmup_samples=3)
avg.add(120.0)
avg.warmed_up()   # False until more than warmup_samples values were added
avg.value()       # 0.0 while warming up, then the weighted average
avg.set(100.0)    # sets the value and marks the average as warmed up
```

`LatencyConfig()` defaults to a decay of 0.06, 3 warm-up samples and an
update interval of 30 seconds.

## Retries

```python
from modelrouter.retry import ExpRetryConfig

retry = ExpRetryConfig().build()   # 3 retries, x2, 2s minimum, 5s maximum
iterator = retry.iterator()
while iterator.has_next():
    ...
    iterator.wait_next()           # sleeps; pass a threading.Event to cancel
```

Delays grow as `min_delay * base_multiplier ** attempt`, capped at
`max_delay`. A set event makes `wait_next()` raise `InterruptedError`.
`ExpRetryConfig.to_dict()` renders delays with `format_duration`, for
example `"2s"` or `"1m30s"`.

## Telemetry and version

`modelrouter.telemetry.new_telemetry()` builds a `Telemetry` with a logger
configured from a `LogConfig` (JSON or console encoding, level, outputs to
`stdout`, `stderr` or files, extra fields). `new_telemetry_mock()` returns
one whose logger discards everything. `modelrouter.version.full_version()`
returns a one-line version string with commit, runtime and build date.

## What is not included

There are no provider clients, no router that sends chat requests to
models, no loading of configuration files, no HTTP server and no command
line tool. Telemetry covers logging only; no traces or metrics are exported.