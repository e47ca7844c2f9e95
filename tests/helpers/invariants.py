from __future__ import annotations

from typing import Sequence

from riskengine.player import Player
from riskengine.territory import Territory


def assert_territories_held(territories: Sequence[Territory]) -> None:
    for t in territories:
        assert t.army_count >= 1, f"{t.name} has {t.army_count} armies"
        assert t.owner is not None


def assert_armies_non_negative(players: Sequence[Player]) -> None:
    for p in players:
        assert p.armies_available >= 0


def total_armies(territories: Sequence[Territory]) -> int:
    return sum(t.army_count for t in territories)
