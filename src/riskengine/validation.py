from typing import Iterable, Sequence

from .connectivity import are_connected
from .errors import (
    FortifyAlreadyUsed,
    GameFinished,
    InsufficientArmies,
    InsufficientAttackerForce,
    InsufficientDefenderForce,
    InvalidReference,
    NotAdjacent,
    NotConnected,
    NotYourTurn,
    PhaseViolation,
    PreconditionViolation,
)
from .game import Game, GamePhase
from .player import Player
from .territory import Territory, WorldMap


def find_territory(territories: Iterable[Territory], reference: str) -> Territory:
    """Look a territory up by id or by map name."""
    for territory in territories:
        if territory.territory_id == reference or territory.name == reference:
            return territory
    raise InvalidReference(f"Territory not found: {reference}", reference=reference)


def find_player(players: Iterable[Player], player_id: str) -> Player:
    for player in players:
        if player.player_id == player_id:
            return player
    raise InvalidReference(f"Player not found: {player_id}", reference=player_id)


def player_at_order(players: Iterable[Player], turn_order: int) -> Player:
    for player in players:
        if player.turn_order == turn_order:
            return player
    raise InvalidReference(f"No player holds turn order {turn_order}", reference=str(turn_order))


def validate_not_finished(game: Game) -> None:
    if game.phase == GamePhase.FINISHED:
        raise GameFinished("Game is over")


def validate_turn(game: Game, player: Player) -> None:
    validate_not_finished(game)
    if player.is_eliminated:
        raise PreconditionViolation(f"{player.name} has been eliminated")
    if player.turn_order != game.current_player_order:
        raise NotYourTurn("Not your turn")


def validate_phase(game: Game, *phases: GamePhase) -> None:
    validate_not_finished(game)
    if game.phase not in phases:
        allowed = " or ".join(p.value for p in phases)
        raise PhaseViolation(f"Not allowed during {game.phase.value} phase (needs {allowed})")


def validate_placement(game: Game, player: Player, territory: Territory, army_count: int) -> None:
    validate_phase(game, GamePhase.SETUP, GamePhase.REINFORCEMENT)
    if game.phase == GamePhase.REINFORCEMENT:
        validate_turn(game, player)
    elif player.is_eliminated:
        raise PreconditionViolation(f"{player.name} has been eliminated")

    if not territory.is_owned_by(player.player_id):
        raise PreconditionViolation("You do not own this territory")

    if army_count < 1:
        raise PreconditionViolation("Must place at least 1 army")

    if player.armies_available < army_count:
        raise InsufficientArmies(
            f"Not enough armies available (have {player.armies_available}, need {army_count})")


def validate_attack(game: Game, attacker: Player, from_territory: Territory,
                    to_territory: Territory, world_map: WorldMap) -> None:
    validate_phase(game, GamePhase.ATTACK)
    validate_turn(game, attacker)

    if not from_territory.is_owned_by(attacker.player_id):
        raise PreconditionViolation("You do not own the attacking territory")

    if to_territory.is_owned_by(attacker.player_id):
        raise PreconditionViolation("Cannot attack your own territory")

    if to_territory.owner is None:
        raise PreconditionViolation("Cannot attack an unowned territory")

    if from_territory.army_count < 2:
        raise InsufficientAttackerForce("Must have at least 2 armies to attack")

    if to_territory.army_count < 1:
        raise InsufficientDefenderForce("Defending territory has no armies")

    if not world_map.are_adjacent(from_territory.name, to_territory.name):
        raise NotAdjacent(
            f"{from_territory.name} is not adjacent to {to_territory.name}")


def validate_fortify(game: Game, player: Player, from_territory: Territory,
                     to_territory: Territory, army_count: int,
                     territories: Sequence[Territory], world_map: WorldMap) -> None:
    validate_phase(game, GamePhase.FORTIFY)
    validate_turn(game, player)

    if game.fortified_this_turn:
        raise FortifyAlreadyUsed("Already fortified this turn")

    if not from_territory.is_owned_by(player.player_id):
        raise PreconditionViolation("You do not own the source territory")

    if not to_territory.is_owned_by(player.player_id):
        raise PreconditionViolation("You do not own the destination territory")

    if from_territory.name == to_territory.name:
        raise PreconditionViolation("Source and destination must differ")

    if army_count < 1:
        raise PreconditionViolation("Must move at least 1 army")

    if from_territory.army_count - army_count < 1:
        raise InsufficientArmies("Must leave at least 1 army in source territory")

    if not are_connected(from_territory.name, to_territory.name, player.player_id,
                         territories, world_map):
        raise NotConnected("Territories are not connected through your territories")
