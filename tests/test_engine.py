"""Tests for the yearly tick and engine lifecycle."""

from __future__ import annotations

import json
from collections import deque
from dataclasses import FrozenInstanceError

import pytest

from chronicles.core.config import DEFAULT_CONFIG, SimulationConfig
from chronicles.simulation.engine import SimulationEngine, SimulationState
from chronicles.simulation.persistence import JsonFileStore, build_payload
from chronicles.viz.logger import SimLogger

from helpers import ScriptedRng, couple, man, woman

SMALL = SimulationConfig(initial_couples=2, initial_food=100.0)
DOOMED = SimulationConfig(initial_couples=2, gompertz_a=1.0, max_death_probability=1.0)


def _quiet_logger():
    return SimLogger(stdout=False)


def _assert_consistent(engine):
    people = engine.people
    ids = [p.id for p in people]
    assert len(ids) == len(set(ids))
    by_id = {p.id: p for p in people}
    for p in people:
        assert p.is_alive
        assert p.age >= 0
        assert p.id < engine.next_id
        if p.spouse_id is not None:
            assert by_id[p.spouse_id].spouse_id == p.id
    assert engine.food >= 0
    assert len(engine.logs) <= engine.config.max_log_entries
    assert len(engine.history) <= engine.config.max_history_points


def test_founding_generation():
    engine = SimulationEngine(seed=1, config=SMALL)
    engine.initialize()

    people = engine.people
    assert [p.id for p in people] == [1, 2, 3, 4]
    assert [p.gender.value for p in people] == ["female", "male", "female", "male"]
    assert (people[0].spouse_id, people[1].spouse_id) == (2, 1)
    assert all(p.age == 15 and p.is_founder for p in people)
    assert engine.food == 100.0
    assert engine.year == -8000
    assert engine.next_id == 5
    assert engine.logs == ["8000 BC: Simulation started with 2 couples"]
    assert engine.history == []


def test_scripted_first_year():
    # four survival rolls, then the first wife conceives a boy and the second does not
    rng = ScriptedRng(randoms=[0.99] * 4 + [0.1, 0.2, 0.9])
    engine = SimulationEngine(config=SMALL, rng=rng)
    engine.initialize()
    engine.tick()

    assert rng.remaining == 0
    assert len(engine.people) == 5
    assert engine.food == 135.0
    baby = engine.people[-1]
    assert (baby.id, baby.age, baby.mother_id, baby.father_id) == (5, 0, 1, 2)
    assert baby.name == "Liam"
    assert all(p.age == 16 for p in engine.people[:4])
    assert engine.next_id == 6
    assert engine.year == -7999
    assert engine.logs[0] == "8000 BC: Born: 1 children (Liam)"
    assert engine.logs[-1] == "8000 BC: Simulation started with 2 couples"

    point = engine.history[-1]
    assert (point.year, point.population, point.births, point.food) == (-8000, 5, 1, 135.0)

    report = engine.last_report
    assert (report.births, report.natural_deaths, report.starved) == (1, 0, 0)
    assert report.food_produced == 40.0
    assert report.food_consumed == 5.0


def test_seeded_run_stays_consistent():
    engine = SimulationEngine(seed=7)
    engine.initialize()
    for _ in range(60):
        engine.tick()
        _assert_consistent(engine)
    assert engine.year == DEFAULT_CONFIG.initial_year + 60
    assert len(engine.history) == 60


def test_same_seed_same_chronicle():
    a = SimulationEngine(seed=11, config=SMALL)
    b = SimulationEngine(seed=11, config=SMALL)
    for engine in (a, b):
        engine.initialize()
        engine.run(40)
    assert [p.to_dict() for p in a.people] == [p.to_dict() for p in b.people]
    assert a.logs == b.logs
    assert a.food == b.food


def test_extinction_stops_the_clock(tmp_path):
    store = JsonFileStore(str(tmp_path), logger=_quiet_logger())
    engine = SimulationEngine(seed=3, config=DOOMED, store=store)
    engine.initialize()
    engine.tick()

    assert engine.is_extinct
    assert engine.logs[0] == "8000 BC: Civilization has collapsed!"
    assert engine.history[-1].population == 0
    assert store.load()["people"] == []

    year = engine.year
    engine.tick()
    engine.run(10)
    assert engine.year == year


def test_widowhood_clears_spouse():
    engine = SimulationEngine(config=SMALL, rng=ScriptedRng(randoms=[0.99, 0.0]))
    engine.initialize()
    engine.tick()

    widow = engine.people[0]
    assert widow.id == 1
    assert widow.spouse_id is None
    assert engine.last_report.widowed == 1
    assert engine.logs[0].startswith("8000 BC: Died: 1 people (Adam(15))")


def test_names_of_the_dead_are_reusable():
    engine = SimulationEngine(config=SMALL, rng=ScriptedRng(randoms=[0.99, 0.0]))
    engine.initialize()
    engine.tick()
    assert "Adam" not in engine.names
    assert "Eve" in engine.names


def test_lineage_archive_holds_the_dead():
    engine = SimulationEngine(config=SMALL, rng=ScriptedRng(randoms=[0.99, 0.0]))
    engine.initialize()
    engine.tick()

    adam = engine.family().get(2)
    assert adam is not None
    assert not adam.is_alive
    assert adam.death_year == -8000
    ids = [p["id"] for p in engine.snapshot()["allPeople"]]
    assert sorted(ids) == [1, 2, 3, 4]


def test_lineage_can_be_dropped():
    engine = SimulationEngine(config=SMALL, rng=ScriptedRng(randoms=[0.99, 0.0]), retain_lineage=False)
    engine.initialize()
    engine.tick()
    assert engine.family().get(2) is None
    assert "allPeople" not in engine.snapshot()


def test_periodic_save(tmp_path):
    store = JsonFileStore(str(tmp_path), logger=_quiet_logger())
    config = SimulationConfig(save_interval=3)
    engine = SimulationEngine(seed=5, config=config, store=store)
    engine.initialize()

    engine.run(2)
    assert store.load() is None
    engine.tick()
    assert store.load()["year"] == engine.year


def test_resume_from_store(tmp_path):
    store = JsonFileStore(str(tmp_path), logger=_quiet_logger())
    first = SimulationEngine(seed=9, config=SMALL, store=store)
    first.initialize()
    first.run(25)
    assert first.save()

    second = SimulationEngine(seed=99, config=SMALL, store=store)
    second.initialize()
    assert second.year == first.year
    assert second.food == first.food
    assert second.next_id == first.next_id
    assert [p.to_dict() for p in second.people] == [p.to_dict() for p in first.people]
    assert second.logs == first.logs
    assert second.history == first.history
    assert set(second.archive) == set(first.archive)
    for p in second.people:
        assert p.name in second.names


def test_corrupt_save_founds_fresh(tmp_path):
    store = JsonFileStore(str(tmp_path), logger=_quiet_logger())
    with open(store.path, "w", encoding="utf-8") as f:
        f.write("not json at all")

    engine = SimulationEngine(seed=1, config=SMALL, store=store)
    engine.initialize()
    assert engine.year == -8000
    assert len(engine.people) == 4


def _large_save(store, **bad_record):
    people = [
        {"id": i, "name": f"P{i}", "gender": "female" if i % 2 else "male", "age": 20, "isAlive": True}
        for i in range(1, 151)
    ]
    people[120].update(bad_record)
    state = {"people": people, "food": 500.0, "year": -7000, "nextId": 151, "logs": [], "history": []}
    with open(store.path, "w", encoding="utf-8") as f:
        json.dump(build_payload(state), f)


@pytest.mark.parametrize("bad_record", [{"age": -5}, {"id": 1}])
def test_bad_record_past_validated_head_founds_fresh(tmp_path, bad_record):
    logger = _quiet_logger()
    store = JsonFileStore(str(tmp_path), logger=logger)
    _large_save(store, **bad_record)
    assert store.load() is not None

    engine = SimulationEngine(seed=1, config=SMALL, store=store, logger=logger)
    engine.initialize()

    assert engine.year == -8000
    assert len(engine.people) == 4
    assert any("could not be restored" in e.message for e in logger.entries)
    engine.tick()


def test_people_view_cannot_change_state():
    engine = SimulationEngine(config=SMALL)
    engine.initialize()
    with pytest.raises(FrozenInstanceError):
        engine.people[0].age = -3
    assert engine.state.people[0].age == 15


def test_chronicle_keeps_newest_first_and_drops_oldest():
    config = SimulationConfig(initial_couples=2, initial_food=100.0, max_log_entries=3)
    engine = SimulationEngine(config=config, rng=ScriptedRng(randoms=[0.99] * 4 + [0.1, 0.2, 0.9]))
    engine.initialize()
    engine.state.logs.extendleft(["old 1", "old 2"])
    assert engine.logs == ["old 2", "old 1", "8000 BC: Simulation started with 2 couples"]

    engine.tick()
    assert engine.logs == ["8000 BC: Born: 1 children (Liam)", "old 2", "old 1"]


def test_restore_repairs_dangling_links():
    logger = _quiet_logger()
    engine = SimulationEngine(config=SMALL, logger=logger)
    wife, _ = couple(1, 2)
    state = SimulationState(
        people=[wife, man(3, 40)],
        food=10.0,
        year=-7500,
        next_id=2,
        logs=deque(["7501 BC: Born: 1 children (Seth)"]),
    )
    engine.restore(state)

    assert engine.people[0].spouse_id is None
    assert engine.next_id == 4
    assert any("nextId" in e.message for e in logger.entries)
    assert engine.state.logs.maxlen == SMALL.max_log_entries


def test_reset_discards_everything(tmp_path):
    store = JsonFileStore(str(tmp_path), logger=_quiet_logger())
    engine = SimulationEngine(seed=4, config=SMALL, store=store)
    engine.initialize()
    engine.run(12)
    engine.save()

    engine.reset()
    assert engine.year == -8000
    assert len(engine.people) == 4
    assert engine.next_id == 5
    assert engine.history == []
    assert engine.archive == {}
    assert store.load() is None


def test_save_without_store():
    engine = SimulationEngine(config=SMALL)
    engine.initialize()
    assert engine.save() is False


def test_views_are_read_only_copies():
    engine = SimulationEngine(config=SMALL)
    engine.initialize()
    with pytest.raises(AttributeError):
        engine.people.append(woman(99))
    engine.logs.append("tampered")
    assert "tampered" not in engine.logs
