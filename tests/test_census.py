"""Tests for the census pass."""

from __future__ import annotations

from chronicles.simulation.census import take_census

from helpers import ScriptedRng, couple, man, woman


def test_worker_band_is_inclusive():
    people = [man(1, 14), man(2, 15), woman(3, 49), woman(4, 50)]
    census = take_census(people, ScriptedRng())
    assert census.workers == 2


def test_unmarried_adults_partitioned_by_gender():
    wife, husband = couple(1, 2)
    people = [wife, husband, woman(3, 15), man(4, 40), woman(5, 14), man(6, 3)]
    census = take_census(people, ScriptedRng())
    assert [p.id for p in census.unmarried_women] == [3]
    assert [p.id for p in census.unmarried_men] == [4]


def test_fertile_women_are_married_and_in_band():
    young_wife, h1 = couple(1, 2, age=15)
    old_wife, h2 = couple(3, 4, age=31)
    edge_wife, h3 = couple(5, 6, age=30)
    single = woman(7, 20)
    census = take_census([young_wife, h1, old_wife, h2, edge_wife, h3, single], ScriptedRng())
    assert [p.id for p in census.fertile_women] == [1, 5]


def test_one_death_roll_per_person_in_list_order():
    people = [man(1, 30), woman(2, 30), man(3, 30)]
    rng = ScriptedRng(randoms=[0.0, 0.5, 0.001])
    census = take_census(people, rng)
    # p(30) is about 0.0099: draws of 0.0 and 0.001 fall below it
    assert census.death_ids == {1, 3}
    assert rng.random_calls == 3


def test_lookup_table_covers_everyone():
    people = [man(1), woman(2), man(9, 70)]
    census = take_census(people, ScriptedRng())
    assert set(census.by_id) == {1, 2, 9}
    assert census.population == 3
    assert census.by_id[9].age == 70


def test_census_does_not_modify_people():
    people = [man(1, 30), woman(2, 30)]
    before = [(p.id, p.age, p.spouse_id) for p in people]
    take_census(people, ScriptedRng(randoms=[0.0, 0.0]))
    assert [(p.id, p.age, p.spouse_id) for p in people] == before
    assert all(p.is_alive for p in people)
