from __future__ import annotations

import random

import pytest
from hypothesis import given, settings
from pydantic import ValidationError

from riskengine.decisions import FortifyDecision, Placement, PlacementDecision
from riskengine.strategy import (
    StrategyKind,
    balanced_attack,
    balanced_fortify,
    balanced_place,
    get_border_territories,
    get_interior_territories,
    get_strategy,
    random_attack,
    random_place,
)
from tests.helpers.factories import line_map, make_players, make_territories
from tests.helpers.strategies import seeds


def _layout():
    # p0 holds A-B-C, p1 holds D-E
    return make_territories({"A": ("p0", 6), "B": ("p0", 1), "C": ("p0", 2),
                             "D": ("p1", 3), "E": ("p1", 1)})


def test_border_and_interior() -> None:
    territories = _layout()
    world_map = line_map()
    assert [t.name for t in get_border_territories("p0", territories, world_map)] == ["C"]
    assert [t.name for t in get_interior_territories("p0", territories, world_map)] == ["A", "B"]


def test_balanced_place_targets_weakest_border() -> None:
    p0 = make_players(2)[0].with_armies_available(5)
    decision = balanced_place(p0, _layout(), line_map(), random.Random(1))
    assert decision.placements == [Placement(territory="C", army_count=5)]
    assert decision.total_armies == 5


def test_balanced_place_with_nothing_to_place() -> None:
    p0 = make_players(2)[0]
    assert balanced_place(p0, _layout(), line_map(), random.Random(1)).placements == []


@given(seed=seeds())
@settings(max_examples=30)
def test_random_place_spends_exactly_what_is_available(seed: int) -> None:
    p0 = make_players(2)[0].with_armies_available(7)
    decision = random_place(p0, _layout(), line_map(), random.Random(seed))
    assert decision.total_armies == 7
    assert {p.territory for p in decision.placements} <= {"A", "B", "C"}


def test_balanced_attack_waits_for_good_odds() -> None:
    p0 = make_players(2)[0]
    assert balanced_attack(p0, _layout(), line_map(), random.Random(1)) is None

    stronger = make_territories({"A": ("p0", 1), "B": ("p0", 1), "C": ("p0", 8),
                                 "D": ("p1", 3), "E": ("p1", 1)})
    decision = balanced_attack(p0, stronger, line_map(), random.Random(1))
    assert (decision.from_territory, decision.to_territory) == ("C", "D")


@given(seed=seeds())
@settings(max_examples=30)
def test_random_attack_picks_a_legal_pair(seed: int) -> None:
    world_map = line_map()
    p0 = make_players(2)[0]
    decision = random_attack(p0, _layout(), world_map, random.Random(seed))
    assert decision is not None
    assert decision.from_territory == "C"
    assert world_map.are_adjacent(decision.from_territory, decision.to_territory)


def test_balanced_fortify_moves_interior_stack_to_the_front() -> None:
    p0 = make_players(2)[0]
    decision = balanced_fortify(p0, _layout(), line_map(), random.Random(1))
    assert decision == FortifyDecision(from_territory="A", to_territory="C", army_count=5)


def test_get_strategy() -> None:
    strategy = get_strategy(StrategyKind.RANDOM)
    assert strategy.kind == StrategyKind.RANDOM
    assert strategy.place is random_place
    assert get_strategy(StrategyKind.BALANCED).fortify is balanced_fortify


def test_decisions_validate_counts() -> None:
    with pytest.raises(ValidationError):
        Placement(territory="A", army_count=0)
    with pytest.raises(ValidationError):
        FortifyDecision(from_territory="A", to_territory="B", army_count=0)
    assert PlacementDecision().total_armies == 0
