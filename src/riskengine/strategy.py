"""
Move selection for computer players.

A strategy is three plain functions that look at read-only snapshots and
return decision models. Nothing here changes game state: every decision is
fed back through TurnStateMachine exactly like a human action.
"""
import random
from enum import Enum
from typing import Callable, List, NamedTuple, Optional, Sequence

from .battle import BattleOrchestrator
from .connectivity import reachable_territories
from .decisions import AttackDecision, FortifyDecision, Placement, PlacementDecision
from .player import Player
from .territory import Territory, WorldMap


def get_player_territories(player_id: str, territories: Sequence[Territory]) -> List[Territory]:
    return [t for t in territories if t.is_owned_by(player_id)]


def get_adjacent_enemies(territory: Territory, territories: Sequence[Territory],
                         world_map: WorldMap) -> List[Territory]:
    neighbours = world_map.neighbours(territory.name)
    return [
        t for t in territories
        if t.name in neighbours and t.owner is not None and t.owner != territory.owner
    ]


def get_border_territories(player_id: str, territories: Sequence[Territory],
                           world_map: WorldMap) -> List[Territory]:
    """Owned territories touching at least one enemy."""
    return [
        t for t in get_player_territories(player_id, territories)
        if get_adjacent_enemies(t, territories, world_map)
    ]


def get_interior_territories(player_id: str, territories: Sequence[Territory],
                             world_map: WorldMap) -> List[Territory]:
    return [
        t for t in get_player_territories(player_id, territories)
        if not get_adjacent_enemies(t, territories, world_map)
    ]


def _threat(territory: Territory, territories: Sequence[Territory], world_map: WorldMap) -> int:
    return max((t.army_count for t in get_adjacent_enemies(territory, territories, world_map)),
               default=0)


# -- random ----------------------------------------------------------------

def random_place(player: Player, territories: Sequence[Territory], world_map: WorldMap,
                 rng: random.Random) -> PlacementDecision:
    """Drop 1-3 armies at a time on random owned territories."""
    owned = get_player_territories(player.player_id, territories)
    remaining = player.armies_available
    placements = []

    while owned and remaining > 0:
        territory = rng.choice(owned)
        count = min(rng.randint(1, 3), remaining)
        placements.append(Placement(territory=territory.name, army_count=count))
        remaining -= count

    return PlacementDecision(placements=placements)


def random_attack(player: Player, territories: Sequence[Territory], world_map: WorldMap,
                  rng: random.Random) -> Optional[AttackDecision]:
    sources = [t for t in get_player_territories(player.player_id, territories)
               if t.can_attack_from()]
    rng.shuffle(sources)

    for source in sources:
        enemies = get_adjacent_enemies(source, territories, world_map)
        if enemies:
            target = rng.choice(enemies)
            return AttackDecision(from_territory=source.name, to_territory=target.name)
    return None


def random_fortify(player: Player, territories: Sequence[Territory], world_map: WorldMap,
                   rng: random.Random) -> Optional[FortifyDecision]:
    """Half the time, move a random amount from an interior stack to a connected border."""
    if rng.random() < 0.5:
        return None

    interior = [t for t in get_interior_territories(player.player_id, territories, world_map)
                if t.army_count > 1]
    borders = get_border_territories(player.player_id, territories, world_map)
    if not interior or not borders:
        return None

    source = rng.choice(interior)
    reachable = reachable_territories(source.name, player.player_id, territories, world_map)
    connected = [t for t in borders if t.name in reachable]
    if not connected:
        return None

    target = rng.choice(connected)
    return FortifyDecision(
        from_territory=source.name,
        to_territory=target.name,
        army_count=rng.randint(1, source.army_count - 1)
    )


# -- balanced --------------------------------------------------------------

def balanced_place(player: Player, territories: Sequence[Territory], world_map: WorldMap,
                   rng: random.Random) -> PlacementDecision:
    """Stack everything on the border territory facing the worst odds."""
    if player.armies_available <= 0:
        return PlacementDecision()

    candidates = (get_border_territories(player.player_id, territories, world_map)
                  or get_player_territories(player.player_id, territories))
    if not candidates:
        return PlacementDecision()

    weakest = min(
        candidates,
        key=lambda t: (t.army_count - _threat(t, territories, world_map), t.name)
    )
    return PlacementDecision(placements=[
        Placement(territory=weakest.name, army_count=player.armies_available)
    ])


def balanced_attack(player: Player, territories: Sequence[Territory], world_map: WorldMap,
                    rng: random.Random) -> Optional[AttackDecision]:
    """Best-odds attack, only when the estimate is at least even."""
    best = None
    best_odds = 0.0

    for source in get_player_territories(player.player_id, territories):
        if not source.can_attack_from():
            continue
        for target in get_adjacent_enemies(source, territories, world_map):
            odds = BattleOrchestrator.estimate_odds(source.army_count - 1, target.army_count)
            if odds > best_odds:
                best, best_odds = (source, target), odds

    if best is None or best_odds < 0.5:
        return None
    return AttackDecision(from_territory=best[0].name, to_territory=best[1].name)


def balanced_fortify(player: Player, territories: Sequence[Territory], world_map: WorldMap,
                     rng: random.Random) -> Optional[FortifyDecision]:
    """Pull the largest interior stack to the most threatened connected border."""
    interior = [t for t in get_interior_territories(player.player_id, territories, world_map)
                if t.army_count > 1]
    if not interior:
        return None

    source = max(interior, key=lambda t: (t.army_count, t.name))
    reachable = reachable_territories(source.name, player.player_id, territories, world_map)
    borders = [t for t in get_border_territories(player.player_id, territories, world_map)
               if t.name in reachable]
    if not borders:
        return None

    target = max(borders, key=lambda t: (_threat(t, territories, world_map), t.name))
    return FortifyDecision(
        from_territory=source.name,
        to_territory=target.name,
        army_count=source.army_count - 1
    )


class StrategyKind(Enum):
    RANDOM = "random"
    BALANCED = "balanced"


class Strategy(NamedTuple):
    kind: StrategyKind
    place: Callable[..., PlacementDecision]
    attack: Callable[..., Optional[AttackDecision]]
    fortify: Callable[..., Optional[FortifyDecision]]


_STRATEGIES = {
    StrategyKind.RANDOM: Strategy(StrategyKind.RANDOM, random_place, random_attack, random_fortify),
    StrategyKind.BALANCED: Strategy(StrategyKind.BALANCED, balanced_place, balanced_attack,
                                    balanced_fortify),
}


def get_strategy(kind: StrategyKind) -> Strategy:
    return _STRATEGIES[kind]
