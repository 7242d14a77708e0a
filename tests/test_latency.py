import pytest

from modelrouter.latency import LatencyConfig, MovingAverage


def test_latency_config_default():
    config = LatencyConfig()
    assert config.decay == 0.06
    assert config.warmup_samples == 3
    assert config.update_interval == 30.0


def test_moving_average_warm_up_and_average():
    moving_average = MovingAverage(0.9, 3)

    for latency in (100, 100, 150):
        moving_average.add(latency)
        assert not moving_average.warmed_up()
        assert moving_average.value() == pytest.approx(0.0, abs=1e-4)

    moving_average.add(160)
    assert moving_average.warmed_up()
    assert moving_average.value() == pytest.approx(155.6667, abs=1e-4)

    moving_average.add(160)
    assert moving_average.warmed_up()
    assert moving_average.value() == pytest.approx(159.5667, abs=1e-4)


def test_moving_average_set_value():
    moving_average = MovingAverage(0.9, 3)
    moving_average.set(200.0)

    assert moving_average.warmed_up()
    assert moving_average.value() == pytest.approx(200.0, abs=1e-4)


def test_moving_average_add_after_set():
    moving_average = MovingAverage(0.5, 3)
    moving_average.set(100.0)
    moving_average.add(200.0)
    assert moving_average.value() == pytest.approx(150.0)