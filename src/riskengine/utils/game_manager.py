import random
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from riskengine.battle import BattleOrchestrator, ModifierRegistry
from riskengine.combat import format_battle_result
from riskengine.errors import EngineError
from riskengine.game import Game, GamePhase, Transition
from riskengine.game_state import TurnStateMachine
from riskengine.player import Player
from riskengine.reinforcement import calculate_reinforcements, continent_bonuses
from riskengine.strategy import StrategyKind, get_strategy
from riskengine.territory import Territory, WorldMap
from riskengine.utils.config import Settings, load_settings
from riskengine.utils.logger import RiskLogger

PLAYER_COLORS = ["Red", "Blue", "Green", "Yellow", "Black", "Orange"]


@dataclass
class GameRecord:
    """Stored state of one game: the engine's records plus bookkeeping."""
    game: Game
    max_players: int
    name: Optional[str] = None
    players: List[Player] = field(default_factory=list)
    territories: List[Territory] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    game_log: List[str] = field(default_factory=list)

    def log_event(self, event: str) -> None:
        """Add an event to the game log."""
        timestamp = datetime.now().strftime("%H:%M:%S")
        self.game_log.append(f"[{timestamp}] {event}")

    def get_player(self, player_id: Optional[str]) -> Optional[Player]:
        return next((p for p in self.players if p.player_id == player_id), None)

    def get_current_player(self) -> Optional[Player]:
        order = self.game.current_player_order
        return next((p for p in self.players if p.turn_order == order), None)

    def get_territory(self, reference: str) -> Optional[Territory]:
        return next((t for t in self.territories
                     if t.territory_id == reference or t.name == reference), None)


class GameManager:
    """
    Keeps games in memory and drives them through the rules engine.

    Each action reads the stored records, asks the TurnStateMachine for a
    Transition and writes it back in one step. A rejected action raises
    before anything is written, so the stored game never sees half a move.
    """

    def __init__(self, settings: Optional[Settings] = None, logger: Optional[RiskLogger] = None,
                 world_map: Optional[WorldMap] = None, rng: Optional[random.Random] = None):
        self.settings = settings or load_settings()
        self.logger = logger or RiskLogger(level=self.settings.log_level,
                                           log_file=self.settings.log_file)
        self.world_map = world_map or self._load_world_map()
        self.registry = self._build_registry()
        self.engine = TurnStateMachine(self.world_map, BattleOrchestrator(self.registry), rng)
        self.games: Dict[str, GameRecord] = {}
        self._lock = threading.RLock()

    def _load_world_map(self) -> WorldMap:
        if self.settings.map_file:
            self.logger.log_info(f"Loading map from {self.settings.map_file}")
            try:
                return WorldMap.load(self.settings.map_file)
            except (OSError, ValueError, KeyError) as e:
                self.logger.log_error(str(e), context=f"map file {self.settings.map_file}")
                raise
        return WorldMap.classic()

    def _build_registry(self) -> ModifierRegistry:
        if self.settings.battle_modifiers:
            registry = ModifierRegistry.from_names(self.settings.battle_modifiers)
            self.logger.log_info(f"Battle modifiers enabled: {', '.join(self.settings.battle_modifiers)}")
        else:
            registry = ModifierRegistry.default()
        registry.freeze()
        return registry

    # -- bookkeeping ---------------------------------------------------------

    def _apply(self, record: GameRecord, transition: Transition) -> None:
        players = transition.merged_players(record.players)
        territories = transition.merged_territories(record.territories)
        record.game, record.players, record.territories = transition.game, players, territories

    def _execute(self, game_id: str, action: str,
                 call: Callable[[GameRecord], Transition]) -> Tuple[Optional[GameRecord], Optional[Transition], str]:
        """Run one engine call against a stored game; returns (record, transition, error)."""
        record = self.get_game(game_id)
        if not record:
            return None, None, "Game not found"

        try:
            transition = call(record)
        except EngineError as e:
            self.logger.log_rejected_action(action, str(e), game_id)
            return record, None, str(e)

        self._apply(record, transition)
        return record, transition, ""

    def _name(self, record: GameRecord, player_id: Optional[str]) -> str:
        player = record.get_player(player_id)
        return player.name if player else "Unknown"

    # -- lobby ---------------------------------------------------------------

    def create_game(self, num_players: int, game_name: Optional[str] = None) -> Tuple[bool, str, str]:
        """
        Create a new game.
        Returns (success, game_id, message).
        """
        if num_players < 2 or num_players > 6:
            return False, "", "Number of players must be between 2 and 6"

        game_id = str(uuid.uuid4())[:8]
        with self._lock:
            record = GameRecord(game=Game(game_id=game_id), max_players=num_players, name=game_name)
            self.games[game_id] = record

        game_name_str = f" '{game_name}'" if game_name else ""
        record.log_event(f"Game{game_name_str} created for {num_players} players")
        self.logger.log_game_event('game_created', f"Game{game_name_str} for {num_players} players", game_id)

        message = f"Game{game_name_str} created with ID: {game_id}. Waiting for {num_players} players to join."
        return True, game_id, message

    def get_game(self, game_id: str) -> Optional[GameRecord]:
        """Get a game by ID."""
        return self.games.get(game_id)

    def join_game(self, game_id: str, player_name: str) -> Tuple[bool, str, str]:
        """
        Add a player to a game; the game starts once the last seat is taken.
        Returns (success, player_id, message).
        """
        with self._lock:
            record = self.get_game(game_id)
            if not record:
                return False, "", "Game not found"

            if record.territories or record.game.phase != GamePhase.SETUP:
                return False, "", "Game has already started"

            if len(record.players) >= record.max_players:
                return False, "", "Game is full"

            if any(p.name.lower() == player_name.lower() for p in record.players):
                return False, "", "Player name already taken"

            color = PLAYER_COLORS[len(record.players)]
            player = Player(
                player_id=str(uuid.uuid4()),
                name=player_name,
                turn_order=len(record.players),
                color=color
            )
            record.players.append(player)
            record.log_event(f"{player_name} ({color}) joined the game")
            self.logger.log_game_event('player_joined', f"{player_name} ({color})", game_id)

            message = f"Joined as {player_name} ({color})"
            if len(record.players) == record.max_players:
                started, start_message = self.start_game(game_id)
                if started:
                    message = f"{message}. {start_message}"

            return True, player.player_id, message

    def start_game(self, game_id: str) -> Tuple[bool, str]:
        """Deal the map to whoever has joined (at least 2 players)."""
        with self._lock:
            record, transition, error = self._execute(
                game_id, 'start_game',
                lambda r: self.engine.start_game(r.game, r.players, r.territories))
            if not transition:
                return False, error

            record.log_event("Territories distributed")
            self.logger.log_game_event(
                'game_started',
                f"{len(record.players)} players, {len(record.territories)} territories",
                game_id)

            if transition.reinforcements is None:
                return True, "Game started. Every player places their remaining armies"

            first = record.get_current_player()
            record.log_event(f"No setup armies to place. {first.name} receives {transition.reinforcements} armies")
            self.logger.log_game_event(
                'reinforcements', f"{first.name} receives {transition.reinforcements} armies", game_id)
            return True, f"Game started. {first.name} receives {transition.reinforcements} armies"

    # -- actions -------------------------------------------------------------

    def place_armies(self, game_id: str, player_id: str, territory: str,
                     army_count: int) -> Tuple[bool, str]:
        with self._lock:
            record, transition, error = self._execute(
                game_id, 'place_armies',
                lambda r: self.engine.place_armies(r.game, r.players, r.territories,
                                                   player_id, territory, army_count))
            if not transition:
                return False, error

            name = self._name(record, player_id)
            placed = transition.territories[0]
            record.log_event(f"{name} placed {army_count} armies on {placed.name}")

            if transition.reinforcements is not None:
                current = record.get_current_player()
                record.log_event(f"Setup complete. {current.name} receives {transition.reinforcements} armies")
                self.logger.log_game_event(
                    'reinforcements', f"{current.name} receives {transition.reinforcements} armies", game_id)

            return True, f"Placed {army_count} armies on {placed.name}"

    def start_attack_phase(self, game_id: str, player_id: str) -> Tuple[bool, str]:
        with self._lock:
            record, transition, error = self._execute(
                game_id, 'start_attack_phase',
                lambda r: self.engine.begin_attack(r.game, r.players, player_id))
            if not transition:
                return False, error

            record.log_event(f"{self._name(record, player_id)} entered attack phase")
            return True, "Attack phase started"

    def attack_territory(self, game_id: str, player_id: str, from_territory: str, to_territory: str,
                         armies_to_move: Optional[int] = None) -> Tuple[bool, str]:
        with self._lock:
            record = self.get_game(game_id)
            defender_id = None
            if record:
                target = record.get_territory(to_territory)
                defender_id = target.owner if target else None

            record, transition, error = self._execute(
                game_id, 'attack_territory',
                lambda r: self.engine.attack(r.game, r.players, r.territories, player_id,
                                             from_territory, to_territory, armies_to_move))
            if not transition:
                return False, error

            attacker_name = self._name(record, player_id)
            defender_name = self._name(record, defender_id)
            source, target = transition.territories
            outcome = transition.battle

            self.logger.log_combat_result(attacker_name, defender_name, source.name, target.name,
                                          outcome, game_id)
            message = format_battle_result(outcome, attacker_name, defender_name,
                                           source.name, target.name)
            record.log_event(f"{attacker_name} attacked {target.name} from {source.name}")

            if outcome.conquered:
                record.log_event(f"{attacker_name} conquered {target.name}")
                self.logger.log_game_event(
                    'territory_conquered', f"{attacker_name} took {target.name} from {defender_name}", game_id)

            for eliminated_id in transition.eliminated:
                eliminated_name = self._name(record, eliminated_id)
                record.log_event(f"{eliminated_name} has been eliminated")
                self.logger.log_game_event('player_eliminated', eliminated_name, game_id)

            if transition.game.is_finished:
                winner_name = self._name(record, transition.game.winner_id)
                record.log_event(f"{winner_name} wins the game!")
                self.logger.log_game_event('game_won', f"{winner_name} wins", game_id)
                message += f"\n{winner_name} wins the game!"

            return True, message

    def start_fortify_phase(self, game_id: str, player_id: str) -> Tuple[bool, str]:
        with self._lock:
            record, transition, error = self._execute(
                game_id, 'start_fortify_phase',
                lambda r: self.engine.begin_fortify(r.game, r.players, player_id))
            if not transition:
                return False, error

            record.log_event(f"{self._name(record, player_id)} entered fortify phase")
            return True, "Fortify phase started"

    def fortify_position(self, game_id: str, player_id: str, from_territory: str,
                         to_territory: str, army_count: int) -> Tuple[bool, str]:
        with self._lock:
            record, transition, error = self._execute(
                game_id, 'fortify_position',
                lambda r: self.engine.fortify(r.game, r.players, r.territories, player_id,
                                              from_territory, to_territory, army_count))
            if not transition:
                return False, error

            source, destination = transition.territories
            name = self._name(record, player_id)
            record.log_event(f"{name} moved {army_count} armies from {source.name} to {destination.name}")
            self.logger.log_game_event(
                'fortified', f"{name}: {army_count} armies {source.name} -> {destination.name}", game_id)
            return True, f"Moved {army_count} armies from {source.name} to {destination.name}"

    def end_turn(self, game_id: str, player_id: str) -> Tuple[bool, str]:
        with self._lock:
            record, transition, error = self._execute(
                game_id, 'end_turn',
                lambda r: self.engine.end_turn(r.game, r.players, r.territories, player_id))
            if not transition:
                return False, error

            next_player = record.get_current_player()
            record.log_event(f"{self._name(record, player_id)} ended their turn")
            record.log_event(f"{next_player.name} receives {transition.reinforcements} armies")
            self.logger.log_game_event(
                'turn_ended',
                f"Turn {record.game.current_turn}: {next_player.name} to play "
                f"with {transition.reinforcements} armies",
                game_id)
            return True, f"Turn ended. {next_player.name} receives {transition.reinforcements} armies"

    # -- computer players ----------------------------------------------------

    def play_ai_turn(self, game_id: str, player_id: str,
                     kind: StrategyKind = StrategyKind.BALANCED) -> Tuple[bool, str]:
        """
        Let a strategy play the rest of the player's turn.

        Every decision goes through the same actions a human would call. In
        setup any player with armies left may go, and a single placement is
        made per call.
        """
        with self._lock:
            record = self.get_game(game_id)
            if not record:
                return False, "Game not found"

            player = record.get_player(player_id)
            if not player:
                return False, "Player not found"

            if not record.territories:
                return False, "Game has not started"

            strategy = get_strategy(kind)
            rng = self.engine.rng

            if record.game.phase == GamePhase.SETUP:
                if player.armies_available == 0:
                    return False, "No armies left to place"
                decision = strategy.place(player, record.territories, self.world_map, rng)
                if not decision.placements:
                    return False, "No placement available"
                first = decision.placements[0]
                return self.place_armies(game_id, player_id, first.territory, first.army_count)

            current = record.get_current_player()
            if record.game.is_finished or not current or current.player_id != player_id:
                return False, "Not your turn"

            self.logger.log_info(f"AI ({kind.value}) playing for {player.name} in {record.game.phase.value} phase")

            if record.game.phase == GamePhase.REINFORCEMENT:
                decision = strategy.place(player, record.territories, self.world_map, rng)
                for placement in decision.placements:
                    success, message = self.place_armies(game_id, player_id, placement.territory,
                                                         placement.army_count)
                    if not success:
                        self.logger.log_warning(f"AI placement rejected: {message}")
                        return False, message

                success, message = self.start_attack_phase(game_id, player_id)
                if not success:
                    return False, message

            if record.game.phase == GamePhase.ATTACK:
                attacks = 0
                while attacks < self.settings.ai_max_attacks:
                    decision = strategy.attack(record.get_player(player_id), record.territories,
                                               self.world_map, rng)
                    if decision is None:
                        break
                    success, message = self.attack_territory(game_id, player_id,
                                                             decision.from_territory,
                                                             decision.to_territory)
                    if not success:
                        self.logger.log_warning(f"AI attack rejected: {message}")
                        break
                    attacks += 1
                    if record.game.is_finished:
                        return True, f"{player.name} won after {attacks} attacks"

                success, message = self.start_fortify_phase(game_id, player_id)
                if not success:
                    return False, message

            if record.game.phase == GamePhase.FORTIFY and not record.game.fortified_this_turn:
                decision = strategy.fortify(record.get_player(player_id), record.territories,
                                            self.world_map, rng)
                if decision is not None:
                    success, message = self.fortify_position(game_id, player_id,
                                                             decision.from_territory,
                                                             decision.to_territory,
                                                             decision.army_count)
                    if not success:
                        self.logger.log_warning(f"AI fortify rejected: {message}")

            return self.end_turn(game_id, player_id)

    # -- queries -------------------------------------------------------------

    def get_game_status(self, game_id: str) -> Optional[dict]:
        """Get current game status."""
        record = self.get_game(game_id)
        if not record:
            return None

        # nobody is "current" until the map has been dealt
        current_player = record.get_current_player() if record.territories else None
        winner = record.get_player(record.game.winner_id)
        actions = []
        if current_player:
            actions = self.engine.get_available_actions(
                record.game, record.players, record.territories, current_player.player_id)

        return {
            **record.game.to_dict(),
            'name': record.name,
            'max_players': record.max_players,
            'current_player': current_player.name if current_player else None,
            'current_player_id': current_player.player_id if current_player else None,
            'winner': winner.name if winner else None,
            'available_actions': actions,
            'players': [
                {**p.to_dict(), 'territory_count': sum(1 for t in record.territories if t.is_owned_by(p.player_id))}
                for p in record.players
            ],
            'recent_events': record.game_log[-10:],
            'created_at': record.created_at.isoformat()
        }

    def get_player_info(self, game_id: str, player_id: str) -> Optional[dict]:
        """Get detailed information for a specific player."""
        record = self.get_game(game_id)
        player = record.get_player(player_id) if record else None
        if not player:
            return None

        bonuses = continent_bonuses(player_id, record.territories, self.world_map)
        return {
            **player.to_dict(),
            'territories': sorted(t.name for t in record.territories if t.is_owned_by(player_id)),
            'continent_bonuses': bonuses,
            'total_continent_bonus': sum(bonuses.values()),
            'next_reinforcements': calculate_reinforcements(player, record.territories, self.world_map)
        }

    def list_active_games(self) -> List[dict]:
        """List all active games."""
        with self._lock:
            records = list(self.games.items())
        return [
            {
                'game_id': game_id,
                'name': record.name,
                'phase': record.game.phase.value,
                'players': [p.to_dict() for p in record.players],
                'max_players': record.max_players,
                'turn_number': record.game.current_turn,
                'created_at': record.created_at.isoformat()
            }
            for game_id, record in records
            if not record.game.is_finished
        ]

    def cleanup_finished_games(self) -> int:
        """Remove finished games from memory. Returns number of games removed."""
        with self._lock:
            finished_games = [
                game_id for game_id, record in self.games.items()
                if record.game.is_finished
            ]
            for game_id in finished_games:
                del self.games[game_id]

        if finished_games:
            self.logger.log_info(f"Removed {len(finished_games)} finished games")
        return len(finished_games)

    def get_game_count(self) -> int:
        return len(self.games)
