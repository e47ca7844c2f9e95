from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from .combat import BattleOutcome
from .player import Player
from .territory import Territory


class GamePhase(Enum):
    SETUP = "setup"
    REINFORCEMENT = "reinforcement"
    ATTACK = "attack"
    FORTIFY = "fortify"
    FINISHED = "finished"


@dataclass(frozen=True)
class Game:
    game_id: str
    phase: GamePhase = GamePhase.SETUP
    current_turn: int = 1
    current_player_order: int = 0
    winner_id: Optional[str] = None
    fortified_this_turn: bool = False

    @property
    def is_finished(self) -> bool:
        return self.phase == GamePhase.FINISHED

    def evolve(self, **changes) -> 'Game':
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            'game_id': self.game_id,
            'phase': self.phase.value,
            'current_turn': self.current_turn,
            'current_player_order': self.current_player_order,
            'winner_id': self.winner_id,
            'fortified_this_turn': self.fortified_this_turn
        }


@dataclass(frozen=True)
class Transition:
    """
    Everything an accepted action changes.

    The caller persists `game` plus every record listed in `players` and
    `territories` in one write; records not listed are unchanged.
    """
    game: Game
    players: Tuple[Player, ...] = ()
    territories: Tuple[Territory, ...] = ()
    battle: Optional[BattleOutcome] = None
    eliminated: Tuple[str, ...] = ()
    reinforcements: Optional[int] = None

    def merged_players(self, players: Iterable[Player]) -> List[Player]:
        changed: Dict[str, Player] = {p.player_id: p for p in self.players}
        return [changed.get(p.player_id, p) for p in players]

    def merged_territories(self, territories: Iterable[Territory]) -> List[Territory]:
        changed: Dict[str, Territory] = {t.territory_id: t for t in self.territories}
        merged = [changed.pop(t.territory_id, t) for t in territories]
        # territories created by this transition (game start)
        merged.extend(changed.values())
        return merged
