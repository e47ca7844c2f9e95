from typing import Iterable, List, Optional

from .player import Player
from .territory import Territory


def is_eliminated(player_id: str, territories: Iterable[Territory]) -> bool:
    """A player with zero territories is out of the game."""
    return not any(t.is_owned_by(player_id) for t in territories)


def active_players(players: Iterable[Player], territories: Iterable[Territory]) -> List[Player]:
    territories = list(territories)
    return [
        p for p in players
        if not p.is_eliminated and not is_eliminated(p.player_id, territories)
    ]


def get_winner(players: Iterable[Player], territories: Iterable[Territory]) -> Optional[Player]:
    """
    The sole remaining player, or None while two or more remain.

    Zero remaining players also yields None; the engine never produces that
    state since an attacker always keeps its source territory.
    """
    remaining = active_players(players, territories)
    if len(remaining) == 1:
        return remaining[0]
    return None


def newly_eliminated(players: Iterable[Player], territories: Iterable[Territory]) -> List[Player]:
    """Players not yet flagged who now own nothing."""
    territories = list(territories)
    return [
        p for p in players
        if not p.is_eliminated and is_eliminated(p.player_id, territories)
    ]
