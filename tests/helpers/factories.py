from __future__ import annotations

import random
from typing import Dict, Iterable, List, Optional, Sequence

from riskengine.game import Game, GamePhase
from riskengine.player import Player
from riskengine.territory import Territory, WorldMap

# A-B-C-D in a line, plus E hanging off D.
LINE_MAP_DATA = {
    "continents": {
        "West": {"bonus": 2, "territories": ["A", "B"]},
        "East": {"bonus": 3, "territories": ["C", "D", "E"]},
    },
    "territories": {
        "A": {"continent": "West", "adjacent": ["B"]},
        "B": {"continent": "West", "adjacent": ["A", "C"]},
        "C": {"continent": "East", "adjacent": ["B", "D"]},
        "D": {"continent": "East", "adjacent": ["C", "E"]},
        "E": {"continent": "East", "adjacent": ["D"]},
    },
}


class ScriptedDice(random.Random):
    """A Random whose randint() replays fixed faces; everything else is seeded."""

    def __init__(self, faces: Iterable[int], seed: int = 0) -> None:
        super().__init__(seed)
        self.faces: List[int] = list(faces)

    def randint(self, a: int, b: int) -> int:
        if not self.faces:
            raise AssertionError("ScriptedDice ran out of faces")
        return self.faces.pop(0)


def line_map() -> WorldMap:
    return WorldMap.from_dict(LINE_MAP_DATA)


def make_players(count: int = 2, armies: int = 0) -> List[Player]:
    return [
        Player(player_id=f"p{i}", name=f"Player {i}", turn_order=i, armies_available=armies)
        for i in range(count)
    ]


def make_territories(layout: Dict[str, tuple], game_id: str = "g1") -> List[Territory]:
    """layout maps territory name -> (owner, army_count)."""
    return [
        Territory(territory_id=f"{game_id}:{name}", name=name, owner=owner, army_count=armies)
        for name, (owner, armies) in layout.items()
    ]


def make_game(phase: GamePhase = GamePhase.REINFORCEMENT, order: int = 0,
              game_id: str = "g1", **changes) -> Game:
    return Game(game_id=game_id, phase=phase, current_player_order=order, **changes)


def territory(territories: Sequence[Territory], name: str) -> Territory:
    return next(t for t in territories if t.name == name)


def player(players: Sequence[Player], player_id: str) -> Optional[Player]:
    return next((p for p in players if p.player_id == player_id), None)


def ring_map(size: int) -> WorldMap:
    """`size` territories R0..R{size-1} in a cycle, all in one continent."""
    names = [f"R{i}" for i in range(size)]
    return WorldMap.from_dict({
        "continents": {"Ring": {"bonus": 5, "territories": names}},
        "territories": {
            name: {"continent": "Ring", "adjacent": [names[i - 1], names[(i + 1) % size]]}
            for i, name in enumerate(names)
        },
    })
