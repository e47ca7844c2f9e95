import random
from typing import Dict, List, Optional, Sequence

from .combat import default_rng
from .errors import PhaseViolation, PreconditionViolation
from .game import Game, GamePhase, Transition
from .player import Player
from .reinforcement import calculate_reinforcements
from .territory import Territory, WorldMap

MIN_PLAYERS = 2
MAX_PLAYERS = 6

_INITIAL_ARMIES = {2: 40, 3: 35, 4: 30, 5: 25, 6: 20}


def initial_armies(player_count: int) -> int:
    """Calculate initial army count based on number of players."""
    return _INITIAL_ARMIES.get(player_count, 30)


def distribute_territories(territory_names: Sequence[str], player_ids: Sequence[str],
                           rng: Optional[random.Random] = None) -> Dict[str, str]:
    """Shuffle the territories and deal them round-robin; returns name -> player_id."""
    rng = rng or default_rng()
    shuffled = list(territory_names)
    rng.shuffle(shuffled)

    return {
        name: player_ids[i % len(player_ids)]
        for i, name in enumerate(shuffled)
    }


def start_game(game: Game, players: Sequence[Player], world_map: WorldMap,
               existing_territories: Sequence[Territory] = (),
               rng: Optional[random.Random] = None) -> Transition:
    """
    Deal the map and hand out setup armies.

    Every territory starts with 1 army; each player may then place whatever
    is left of their initial allotment.
    """
    if game.phase != GamePhase.SETUP:
        raise PhaseViolation("Game has already started")

    if existing_territories:
        raise PreconditionViolation("Territories have already been distributed")

    if not MIN_PLAYERS <= len(players) <= MAX_PLAYERS:
        raise PreconditionViolation(
            f"Number of players must be between {MIN_PLAYERS} and {MAX_PLAYERS}")

    orders = sorted(p.turn_order for p in players)
    if orders != list(range(len(players))):
        raise PreconditionViolation("Turn orders must be contiguous from 0")

    ordered = sorted(players, key=lambda p: p.turn_order)
    distribution = distribute_territories(
        world_map.territory_names, [p.player_id for p in ordered], rng)

    territories: List[Territory] = [
        Territory(
            territory_id=f"{game.game_id}:{name}",
            name=name,
            owner=owner,
            army_count=1
        )
        for name, owner in distribution.items()
    ]

    allotment = initial_armies(len(players))
    counts = {p.player_id: 0 for p in ordered}
    for owner in distribution.values():
        counts[owner] += 1

    updated_players = [
        p.with_armies_available(max(0, allotment - counts[p.player_id]))
        for p in ordered
    ]
    started = game.evolve(current_player_order=0, current_turn=1)

    # A map with more territories than the allotment leaves nothing to place.
    if all(p.armies_available == 0 for p in updated_players):
        done = complete_setup(started, updated_players, territories, world_map)
        return Transition(
            game=done.game,
            players=tuple(done.merged_players(updated_players)),
            territories=tuple(territories),
            reinforcements=done.reinforcements
        )

    return Transition(
        game=started,
        players=tuple(updated_players),
        territories=tuple(territories)
    )


def complete_setup(game: Game, players: Sequence[Player], territories: Sequence[Territory],
                   world_map: WorldMap) -> Transition:
    """Setup -> Reinforcement: the first active player takes the turn with their income."""
    first = min((p for p in players if not p.is_eliminated), key=lambda p: p.turn_order)
    income = calculate_reinforcements(first, territories, world_map)
    first = first.with_armies_available(income)
    return Transition(
        game=game.evolve(
            phase=GamePhase.REINFORCEMENT,
            current_player_order=first.turn_order,
            current_turn=1,
            fortified_this_turn=False
        ),
        players=(first,),
        reinforcements=income
    )
