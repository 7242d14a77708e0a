import threading
import time

import pytest

from modelrouter.health import (
    ErrorBudget,
    NoTokensError,
    RateLimitError,
    RateLimitTracker,
    TokenBucket,
    Tracker,
    UnauthorizedError,
    Unit,
    default_error_budget,
)


def test_token_bucket_take():
    bucket_size = 10
    bucket = TokenBucket(1000, bucket_size)

    for _ in range(bucket_size - 1):
        bucket.take(1)
        assert bucket.has_tokens()

    bucket.take(1)

    with pytest.raises(NoTokensError):
        bucket.take(1)
    assert not bucket.has_tokens()


def test_token_bucket_take_concurrently():
    bucket = TokenBucket(10_000, 1)
    taken = []
    refused = []
    lock = threading.Lock()

    def worker():
        for _ in range(10):
            while True:
                try:
                    bucket.take(1)
                    break
                except NoTokensError:
                    with lock:
                        refused.append(1)
                    time.sleep(0.01)
            with lock:
                taken.append(1)

    before = time.monotonic()
    threads = [threading.Thread(target=worker) for _ in range(10)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(taken) == 100
    assert len(refused) > 0
    assert bucket.tokens() <= 1.0
    assert time.monotonic() - before >= 0.9


def test_token_bucket_token_number_is_correct():
    bucket = TokenBucket(1_000_000, 10)
    assert bucket.tokens() == pytest.approx(10.0, rel=1e-4)

    for expected in (8.0, 6.0, 4.0, 2.0):
        bucket.take(2)
        assert bucket.tokens() == pytest.approx(expected, rel=1e-4)

    bucket.take(2)
    assert bucket.tokens() >= 0.0


def test_token_bucket_take_burstly():
    bucket = TokenBucket(1, 10)
    bucket.take(10)
    assert bucket.tokens() <= 10.0


def test_token_bucket_take_more_than_burst():
    bucket = TokenBucket(1_000_000, 3)
    with pytest.raises(NoTokensError):
        bucket.take(4)
    assert bucket.tokens() == pytest.approx(3.0, rel=1e-4)


@pytest.mark.parametrize(
    "text, errors, unit",
    [
        ("1/s", 1, Unit.SEC),
        ("10/ms", 10, Unit.MILLI),
        ("1000/m", 1000, Unit.MIN),
        ("100000/h", 100000, Unit.HOUR),
    ],
)
def test_error_budget_parse_valid(text, errors, unit):
    budget = ErrorBudget.parse(text)
    assert budget.budget == errors
    assert budget.unit == unit
    assert str(budget) == text


@pytest.mark.parametrize("text", ["0/s", "-1/s", "1.9/s", "1,9/s", "100/d", "100/mo", "10", "1/s/s"])
def test_error_budget_parse_invalid(text):
    with pytest.raises(ValueError):
        ErrorBudget.parse(text)


def test_error_budget_time_per_token():
    assert ErrorBudget(3, Unit.SEC).time_per_token_micro() == 333_333
    assert ErrorBudget(1, Unit.MILLI).time_per_token_micro() == 1_000
    assert default_error_budget().time_per_token_micro() == 6_000_000


def test_default_error_budget():
    assert str(default_error_budget()) == "10/m"


def test_rate_limit_tracker_resets():
    tracker = RateLimitTracker()
    assert not tracker.limited()

    tracker.set_limited(0.01)
    assert tracker.limited()

    time.sleep(0.011)
    assert not tracker.limited()


def test_tracker_healthy_by_default():
    tracker = Tracker(ErrorBudget(3, Unit.SEC))
    assert tracker.healthy()


def test_tracker_unhealthy_when_budget_exceeds():
    tracker = Tracker(ErrorBudget(3, Unit.SEC))
    for _ in range(3):
        tracker.track_err(ConnectionError("provider unavailable"))
    assert not tracker.healthy()


def test_tracker_rate_limited():
    tracker = Tracker(ErrorBudget(3, Unit.SEC))
    tracker.track_err(RateLimitError(600.0))
    assert not tracker.healthy()


def test_tracker_unauthorized():
    tracker = Tracker(ErrorBudget(3, Unit.SEC))
    tracker.track_err(UnauthorizedError("bad credentials"))
    assert not tracker.healthy()


def test_rate_limit_error_keeps_reset_time():
    err = RateLimitError(12.5)
    assert err.until_reset == 12.5