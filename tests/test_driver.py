"""Tests for the wall-clock driver."""

from __future__ import annotations

import time

import pytest

from chronicles.core.config import SimulationConfig
from chronicles.simulation.driver import SimulationDriver
from chronicles.simulation.engine import SimulationEngine
from chronicles.simulation.persistence import JsonFileStore
from chronicles.viz.logger import SimLogger

FAST = 0.005
DOOMED = SimulationConfig(initial_couples=2, gompertz_a=1.0, max_death_probability=1.0)


def _engine(config=SimulationConfig(initial_couples=5), store=None):
    engine = SimulationEngine(seed=2, config=config, store=store)
    engine.initialize()
    return engine


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


@pytest.fixture
def store(tmp_path):
    return JsonFileStore(str(tmp_path), logger=SimLogger(stdout=False))


def test_play_advances_and_pause_stops(store):
    engine = _engine(store=store)
    driver = SimulationDriver(engine, base_interval=FAST)
    start = engine.year

    driver.play()
    assert driver.is_running
    assert _wait_for(lambda: engine.year >= start + 3)
    driver.pause()

    assert not driver.is_running
    stopped_at = engine.year
    time.sleep(FAST * 10)
    assert engine.year == stopped_at
    assert store.load()["year"] == stopped_at


def test_play_twice_runs_one_loop():
    driver = SimulationDriver(_engine(), base_interval=FAST)
    driver.play()
    thread = driver._thread
    driver.play()
    assert driver._thread is thread
    driver.pause()


def test_speed_sets_interval():
    driver = SimulationDriver(_engine(), base_interval=1.0, speed=2.0)
    assert driver.interval == 0.5
    driver.set_speed(10.0)
    assert driver.speed == 10.0
    assert driver.interval == pytest.approx(0.1)


@pytest.mark.parametrize("speed", [0, -1.0])
def test_non_positive_speed_is_rejected(speed):
    with pytest.raises(ValueError):
        SimulationDriver(_engine(), speed=speed)
    driver = SimulationDriver(_engine())
    with pytest.raises(ValueError):
        driver.set_speed(speed)


def test_speed_change_while_running_restarts_schedule():
    engine = _engine()
    driver = SimulationDriver(engine, base_interval=1.0)
    driver.play()
    driver.set_speed(1.0 / FAST)
    assert driver.is_running
    start = engine.year
    assert _wait_for(lambda: engine.year >= start + 2)
    driver.pause()


def test_extinction_pauses_the_driver(store):
    engine = _engine(config=DOOMED, store=store)
    seen = []
    driver = SimulationDriver(engine, base_interval=FAST)
    driver.set_tick_callback(lambda e: seen.append(e.year))

    driver.play()
    assert _wait_for(lambda: not driver.is_running)
    assert engine.is_extinct
    assert seen == [engine.year]
    assert store.load()["people"] == []


def test_play_on_extinct_engine_is_a_noop():
    engine = _engine(config=DOOMED)
    engine.tick()
    driver = SimulationDriver(engine)
    driver.play()
    assert not driver.is_running


def test_step_and_toggle():
    engine = _engine()
    driver = SimulationDriver(engine, base_interval=FAST)
    start = engine.year
    driver.step()
    assert engine.year == start + 1

    driver.toggle()
    assert driver.is_running
    driver.toggle()
    assert not driver.is_running


def test_reset_while_running(store):
    engine = _engine(store=store)
    driver = SimulationDriver(engine, base_interval=FAST)
    driver.play()
    _wait_for(lambda: engine.year > -8000)
    driver.reset()

    assert not driver.is_running
    assert engine.year == -8000
    assert store.load() is None


def test_close_saves_even_when_paused(store):
    engine = _engine(store=store)
    driver = SimulationDriver(engine)
    driver.step()
    driver.close()
    assert store.load()["year"] == engine.year
