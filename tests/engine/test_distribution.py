from __future__ import annotations

import random
from collections import Counter

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from riskengine.distribution import distribute_territories, initial_armies, start_game
from riskengine.errors import PhaseViolation, PreconditionViolation
from riskengine.game import Game, GamePhase
from riskengine.territory import WorldMap
from tests.helpers.factories import make_players, make_territories, ring_map
from tests.helpers.strategies import seeds


def test_initial_armies_table() -> None:
    assert [initial_armies(n) for n in range(2, 7)] == [40, 35, 30, 25, 20]
    assert initial_armies(9) == 30


@given(player_count=st.integers(min_value=2, max_value=6), seed=seeds())
@settings(max_examples=30)
def test_start_game_deals_every_territory(player_count: int, seed: int) -> None:
    world_map = WorldMap.classic()
    players = make_players(player_count)
    transition = start_game(Game(game_id="g1"), players, world_map, rng=random.Random(seed))

    territories = transition.territories
    assert sorted(t.name for t in territories) == sorted(world_map.territory_names)
    assert all(t.army_count == 1 for t in territories)
    assert all(t.territory_id == f"g1:{t.name}" for t in territories)

    owned = Counter(t.owner for t in territories)
    assert max(owned.values()) - min(owned.values()) <= 1

    for p in transition.players:
        assert p.armies_available == initial_armies(player_count) - owned[p.player_id]

    assert transition.game.phase == GamePhase.SETUP
    assert transition.game.current_player_order == 0


def test_distribution_is_round_robin() -> None:
    dealt = distribute_territories(list("ABCDEFG"), ["x", "y", "z"], random.Random(5))
    assert Counter(dealt.values()) == {"x": 3, "y": 2, "z": 2}


def test_start_game_rejects_bad_player_counts() -> None:
    with pytest.raises(PreconditionViolation):
        start_game(Game(game_id="g1"), make_players(1), WorldMap.classic())
    with pytest.raises(PreconditionViolation):
        start_game(Game(game_id="g1"), make_players(7), WorldMap.classic())


def test_start_game_only_once() -> None:
    world_map = WorldMap.classic()
    with pytest.raises(PreconditionViolation):
        start_game(Game(game_id="g1"), make_players(2), world_map,
                   make_territories({"alaska": ("p0", 1)}))
    with pytest.raises(PhaseViolation):
        start_game(Game(game_id="g1", phase=GamePhase.ATTACK), make_players(2), world_map)


def test_start_game_with_nothing_left_to_place() -> None:
    # 41 territories each uses up the whole 40-army allotment
    world_map = ring_map(82)
    transition = start_game(Game(game_id="g1"), make_players(2), world_map, rng=random.Random(3))

    assert transition.game.phase == GamePhase.REINFORCEMENT
    assert transition.game.current_player_order == 0
    assert transition.game.current_turn == 1
    assert transition.reinforcements == 41 // 3
    assert [(p.player_id, p.armies_available) for p in transition.players] == [("p0", 13), ("p1", 0)]
    assert len(transition.territories) == 82
