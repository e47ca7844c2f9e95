import random
from typing import Callable, List, Optional, Sequence

from . import distribution
from .battle import BattleOrchestrator, battle_context
from .combat import default_rng
from .connectivity import reachable_territories
from .decisions import AttackDecision, FortifyDecision, ValidMoves
from .errors import PhaseViolation, PreconditionViolation, ReinforcementsRemaining
from .game import Game, GamePhase, Transition
from .player import Player
from .reinforcement import calculate_reinforcements
from .territory import Territory, WorldMap
from .validation import (
    find_player,
    find_territory,
    player_at_order,
    validate_attack,
    validate_fortify,
    validate_not_finished,
    validate_phase,
    validate_placement,
    validate_turn,
)
from .victory import get_winner, newly_eliminated


class TurnStateMachine:
    """
    Phase order and legal actions for a game of Risk.

    Setup -> Reinforcement -> Attack -> Fortify -> (end turn) -> Reinforcement
    of the next active player. Finished is terminal and is entered as soon as
    a single player remains.

    Every method takes read-only snapshots and returns a Transition with the
    records to write back. Rule violations raise an EngineError before
    anything is computed, so a rejected action yields no partial result.
    """

    def __init__(self, world_map: WorldMap, orchestrator: Optional[BattleOrchestrator] = None,
                 rng: Optional[random.Random] = None):
        self.world_map = world_map
        self.orchestrator = orchestrator or BattleOrchestrator()
        self.rng = rng or default_rng()

    # -- setup -------------------------------------------------------------

    def start_game(self, game: Game, players: Sequence[Player],
                   territories: Sequence[Territory] = ()) -> Transition:
        return distribution.start_game(game, players, self.world_map, territories, self.rng)

    # -- turn pointer ------------------------------------------------------

    def get_current_player(self, game: Game, players: Sequence[Player]) -> Player:
        return player_at_order(players, game.current_player_order)

    @staticmethod
    def _next_order(players: Sequence[Player], current_order: int,
                    eligible: Callable[[Player], bool]) -> Optional[int]:
        """Next turn order after `current_order` (wrapping) whose player is eligible."""
        ordered = sorted(players, key=lambda p: p.turn_order)
        after = [p for p in ordered if p.turn_order > current_order]
        before = [p for p in ordered if p.turn_order <= current_order]
        for player in after + before:
            if eligible(player):
                return player.turn_order
        return None

    def _grant_reinforcements(self, player: Player,
                              territories: Sequence[Territory]) -> Player:
        income = calculate_reinforcements(player, territories, self.world_map)
        return player.with_armies_available(income)

    # -- reinforcement -----------------------------------------------------

    def place_armies(self, game: Game, players: Sequence[Player],
                     territories: Sequence[Territory], player_id: str,
                     territory_ref: str, army_count: int) -> Transition:
        """
        Place armies during setup or reinforcement.

        Setup placement is open to every active player with armies left and
        never moves the turn pointer; the last placement starts the first
        reinforcement phase.
        """
        validate_not_finished(game)
        player = find_player(players, player_id)
        territory = find_territory(territories, territory_ref)
        validate_placement(game, player, territory, army_count)

        placed_player = player.with_armies_available(player.armies_available - army_count)
        placed_territory = territory.with_armies(territory.army_count + army_count)

        if game.phase != GamePhase.SETUP:
            return Transition(game=game, players=(placed_player,), territories=(placed_territory,))

        updated_players = [placed_player if p.player_id == player_id else p for p in players]
        if any(p.armies_available > 0 for p in updated_players if not p.is_eliminated):
            return Transition(game=game, players=(placed_player,), territories=(placed_territory,))

        updated_territories = [placed_territory if t.territory_id == territory.territory_id else t
                               for t in territories]
        done = distribution.complete_setup(game, updated_players, updated_territories, self.world_map)
        changed = {placed_player.player_id: placed_player}
        changed.update((p.player_id, p) for p in done.players)
        return Transition(
            game=done.game,
            players=tuple(changed.values()),
            territories=(placed_territory,),
            reinforcements=done.reinforcements
        )

    def begin_attack(self, game: Game, players: Sequence[Player], player_id: str) -> Transition:
        """Reinforcement -> Attack; every reinforcement must be placed first."""
        validate_phase(game, GamePhase.REINFORCEMENT)
        player = find_player(players, player_id)
        validate_turn(game, player)

        if player.armies_available > 0:
            raise ReinforcementsRemaining(
                f"Must place all reinforcement armies first ({player.armies_available} left)")

        return Transition(game=game.evolve(phase=GamePhase.ATTACK))

    # -- attack ------------------------------------------------------------

    def attack(self, game: Game, players: Sequence[Player], territories: Sequence[Territory],
               player_id: str, from_ref: str, to_ref: str,
               armies_to_move: Optional[int] = None) -> Transition:
        """
        Resolve one round of combat between adjacent territories.

        On conquest the attacker moves in `armies_to_move` armies (default:
        every survivor but the one that stays behind). Elimination and victory
        are checked right away since either can happen mid-phase.
        """
        validate_not_finished(game)
        attacker = find_player(players, player_id)
        source = find_territory(territories, from_ref)
        target = find_territory(territories, to_ref)
        validate_attack(game, attacker, source, target, self.world_map)
        defender = find_player(players, target.owner)

        if armies_to_move is not None and armies_to_move < 1:
            raise PreconditionViolation("Must move at least 1 army into a conquered territory")

        context = battle_context(attacker, defender, source, target, territories)
        outcome = self.orchestrator.execute(context, self.rng)

        survivors = source.army_count - outcome.attacker_losses

        if outcome.conquered:
            moving = survivors - 1
            if armies_to_move is not None:
                moving = min(armies_to_move, moving)
            new_source = source.with_armies(survivors - moving)
            new_target = target.with_owner(attacker.player_id, moving)
        else:
            new_source = source.with_armies(survivors)
            new_target = target.with_armies(target.army_count - outcome.defender_losses)

        changed = {new_source.territory_id: new_source, new_target.territory_id: new_target}
        updated_territories = [changed.get(t.territory_id, t) for t in territories]

        eliminated = [p.eliminated() for p in newly_eliminated(players, updated_territories)]
        flagged = {p.player_id: p for p in eliminated}
        updated_players = [flagged.get(p.player_id, p) for p in players]

        next_game = game
        winner = get_winner(updated_players, updated_territories)
        if winner is not None:
            next_game = game.evolve(phase=GamePhase.FINISHED, winner_id=winner.player_id)

        return Transition(
            game=next_game,
            players=tuple(eliminated),
            territories=(new_source, new_target),
            battle=outcome,
            eliminated=tuple(flagged)
        )

    # -- fortify -----------------------------------------------------------

    def begin_fortify(self, game: Game, players: Sequence[Player], player_id: str) -> Transition:
        """Attack -> Fortify."""
        validate_phase(game, GamePhase.ATTACK)
        validate_turn(game, find_player(players, player_id))
        return Transition(game=game.evolve(phase=GamePhase.FORTIFY))

    def fortify(self, game: Game, players: Sequence[Player], territories: Sequence[Territory],
                player_id: str, from_ref: str, to_ref: str, army_count: int) -> Transition:
        """Move armies along a chain of the player's own territories, once per turn."""
        validate_not_finished(game)
        player = find_player(players, player_id)
        source = find_territory(territories, from_ref)
        destination = find_territory(territories, to_ref)
        validate_fortify(game, player, source, destination, army_count, territories, self.world_map)

        return Transition(
            game=game.evolve(fortified_this_turn=True),
            territories=(
                source.with_armies(source.army_count - army_count),
                destination.with_armies(destination.army_count + army_count),
            )
        )

    # -- end of turn -------------------------------------------------------

    def end_turn(self, game: Game, players: Sequence[Player], territories: Sequence[Territory],
                 player_id: str) -> Transition:
        """
        Hand the turn to the next active player and grant their reinforcements.

        Eliminated players keep their turn order slot but are skipped. The
        turn counter goes up each time the pointer wraps around.
        """
        validate_not_finished(game)
        player = find_player(players, player_id)
        validate_turn(game, player)

        if game.phase == GamePhase.SETUP:
            raise PhaseViolation("Cannot end turn during setup")

        if game.phase == GamePhase.REINFORCEMENT and player.armies_available > 0:
            raise ReinforcementsRemaining("Must place all reinforcement armies before ending turn")

        current_order = game.current_player_order
        next_order = self._next_order(players, current_order, lambda p: not p.is_eliminated)
        if next_order is None:
            next_order = current_order

        next_player = self._grant_reinforcements(player_at_order(players, next_order), territories)
        wrapped = next_order <= current_order

        return Transition(
            game=game.evolve(
                phase=GamePhase.REINFORCEMENT,
                current_player_order=next_order,
                current_turn=game.current_turn + 1 if wrapped else game.current_turn,
                fortified_this_turn=False
            ),
            players=(next_player,),
            reinforcements=next_player.armies_available
        )

    # -- queries -----------------------------------------------------------

    def get_available_actions(self, game: Game, players: Sequence[Player],
                              territories: Sequence[Territory], player_id: str) -> List[str]:
        """Get list of actions available to the player in the current phase."""
        if game.phase == GamePhase.FINISHED:
            return []

        player = find_player(players, player_id)
        if player.is_eliminated:
            return []

        if game.phase == GamePhase.SETUP:
            return ["place_armies"] if player.armies_available > 0 else []

        if player.turn_order != game.current_player_order:
            return []

        if game.phase == GamePhase.REINFORCEMENT:
            if player.armies_available > 0:
                return ["place_armies"]
            return ["begin_attack", "end_turn"]

        if game.phase == GamePhase.ATTACK:
            actions = ["begin_fortify", "end_turn"]
            if self._can_attack_somewhere(player_id, territories):
                actions.insert(0, "attack")
            return actions

        actions = ["end_turn"]
        if not game.fortified_this_turn and self._can_fortify_somewhere(player_id, territories):
            actions.insert(0, "fortify")
        return actions

    def get_valid_moves(self, game: Game, players: Sequence[Player],
                        territories: Sequence[Territory], player_id: str) -> ValidMoves:
        """Every legal attack pair, or every connected fortify pair, for the player."""
        actions = self.get_available_actions(game, players, territories, player_id)
        if "attack" in actions:
            return ValidMoves(attacks=self._attack_moves(player_id, territories))
        if "fortify" in actions:
            return ValidMoves(fortifies=self._fortify_moves(player_id, territories))
        return ValidMoves()

    def _attack_moves(self, player_id: str, territories: Sequence[Territory]) -> List[AttackDecision]:
        by_name = {t.name: t for t in territories}
        moves = []
        for source in sorted(territories, key=lambda t: t.name):
            if not source.is_owned_by(player_id) or not source.can_attack_from():
                continue
            for adj_name in sorted(self.world_map.neighbours(source.name)):
                target = by_name.get(adj_name)
                if (target and target.owner is not None and not target.is_owned_by(player_id)
                        and target.army_count >= 1):
                    moves.append(AttackDecision(from_territory=source.name, to_territory=target.name))
        return moves

    def _fortify_moves(self, player_id: str, territories: Sequence[Territory]) -> List[FortifyDecision]:
        moves = []
        for source in sorted(territories, key=lambda t: t.name):
            if not source.is_owned_by(player_id) or source.army_count < 2:
                continue
            reachable = reachable_territories(source.name, player_id, territories, self.world_map)
            for name in sorted(reachable - {source.name}):
                moves.append(FortifyDecision(from_territory=source.name, to_territory=name,
                                             army_count=source.army_count - 1))
        return moves

    def _can_attack_somewhere(self, player_id: str, territories: Sequence[Territory]) -> bool:
        """Check if the player can attack from any of their territories."""
        by_name = {t.name: t for t in territories}
        for territory in territories:
            if not territory.is_owned_by(player_id) or not territory.can_attack_from():
                continue
            for adj_name in self.world_map.neighbours(territory.name):
                adjacent = by_name.get(adj_name)
                if adjacent and adjacent.owner is not None and not adjacent.is_owned_by(player_id):
                    return True
        return False

    def _can_fortify_somewhere(self, player_id: str, territories: Sequence[Territory]) -> bool:
        """A spare army next to another of the player's territories."""
        owned = {t.name for t in territories if t.is_owned_by(player_id)}
        for territory in territories:
            if territory.is_owned_by(player_id) and territory.army_count > 1:
                if self.world_map.neighbours(territory.name) & owned:
                    return True
        return False
