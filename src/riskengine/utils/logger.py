# -*- coding: utf-8 -*-
import logging
import sys
import time
from collections import deque
from datetime import datetime
from typing import Any, Dict, Optional


class Colors:
    """Console colours, one per kind of game event."""
    RESET = '\033[0m'

    CYAN = '\033[36m'
    WHITE = '\033[37m'
    YELLOW = '\033[33m'

    BRIGHT_RED = '\033[91m'
    BRIGHT_GREEN = '\033[92m'
    BRIGHT_YELLOW = '\033[93m'
    BRIGHT_BLUE = '\033[94m'
    BRIGHT_MAGENTA = '\033[95m'
    BRIGHT_CYAN = '\033[96m'


class ColorFormatter(logging.Formatter):
    """Prefix console records with the color chosen by the caller."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = getattr(record, 'color', None)
        if color is None and record.levelno >= logging.ERROR:
            color = Colors.BRIGHT_RED
        elif color is None and record.levelno >= logging.WARNING:
            color = Colors.BRIGHT_YELLOW
        return f"{color}{message}{Colors.RESET}" if color else message


class RiskLogger:
    """Logger for game sessions with colored console output and activity tracking."""

    EVENT_COLORS = {
        'game_created': Colors.BRIGHT_GREEN,
        'player_joined': Colors.BRIGHT_CYAN,
        'game_started': Colors.BRIGHT_GREEN,
        'battle': Colors.BRIGHT_RED,
        'territory_conquered': Colors.BRIGHT_YELLOW,
        'player_eliminated': Colors.BRIGHT_MAGENTA,
        'game_won': Colors.BRIGHT_GREEN,
        'fortified': Colors.BRIGHT_BLUE,
        'reinforcements': Colors.YELLOW,
        'turn_ended': Colors.CYAN
    }

    def __init__(self, name: str = 'riskengine', level: str = 'INFO',
                 log_file: Optional[str] = None, stream=None):
        self.start_time = time.time()
        self.activity_feed = deque(maxlen=10)
        self.game_stats = {
            'games_created': 0,
            'players_joined': 0,
            'battles_fought': 0,
            'territories_conquered': 0,
            'players_eliminated': 0,
            'rejected_actions': 0
        }
        self.logger = logging.getLogger(name)
        self.setup_logging(level, log_file, stream)

    def setup_logging(self, level: str = 'INFO', log_file: Optional[str] = None, stream=None):
        """Console handler at `level`, plus an optional DEBUG file handler."""
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)

        # Console handler with colors (stderr keeps stdout free for callers)
        console_handler = logging.StreamHandler(stream or sys.stderr)
        console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
        console_handler.setFormatter(ColorFormatter(
            '%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%H:%M:%S'
        ))
        self.logger.addHandler(console_handler)

        if log_file:
            try:
                file_handler = logging.FileHandler(log_file)
            except OSError as e:
                self.logger.warning(f"Cannot open log file {log_file}: {e}")
            else:
                file_handler.setLevel(logging.DEBUG)
                file_handler.setFormatter(logging.Formatter(
                    '%(asctime)s - %(levelname)s - %(message)s'
                ))
                self.logger.addHandler(file_handler)

    def _track(self, kind: str, **details: Any) -> None:
        self.activity_feed.append({
            'timestamp': datetime.now().strftime('%H:%M:%S'),
            'kind': kind,
            **details
        })

    def log_game_event(self, event_type: str, message: str, game_id: Optional[str] = None):
        """One line per state change the collaborator writes back."""
        game_info = f"[{game_id[:8]}] " if game_id else ""
        self.logger.info(
            f"{game_info}{event_type.upper()}: {message}",
            extra={'color': self.EVENT_COLORS.get(event_type, Colors.WHITE)}
        )
        self._track(event_type, message=message, game_id=game_id)

        if event_type == 'game_created':
            self.game_stats['games_created'] += 1
        elif event_type == 'player_joined':
            self.game_stats['players_joined'] += 1
        elif event_type == 'territory_conquered':
            self.game_stats['territories_conquered'] += 1
        elif event_type == 'player_eliminated':
            self.game_stats['players_eliminated'] += 1

    def log_combat_result(self, attacker: str, defender: str, from_territory: str,
                          to_territory: str, result: Any, game_id: str):
        """Dice, losses and outcome of one battle round."""
        attacker_dice = ', '.join(map(str, result.attacker_dice))
        defender_dice = ', '.join(map(str, result.defender_dice))

        if result.conquered:
            color = Colors.BRIGHT_YELLOW
            outcome = f"CONQUERED! {to_territory} taken by {attacker}"
        else:
            color = Colors.BRIGHT_RED
            outcome = f"DEFENDED! {to_territory} holds against {attacker}"

        self.logger.info(
            f"[{game_id[:8]}] BATTLE: {from_territory} -> {to_territory} | "
            f"Attacker ({attacker}): [{attacker_dice}] lost {result.attacker_losses} | "
            f"Defender ({defender}): [{defender_dice}] lost {result.defender_losses} | {outcome}",
            extra={'color': color}
        )
        self.game_stats['battles_fought'] += 1
        self._track('battle', game_id=game_id, conquered=result.conquered)

    def log_rejected_action(self, action: str, reason: str, game_id: Optional[str] = None):
        """Rule violations are expected traffic, not errors."""
        game_info = f"[{game_id[:8]}] " if game_id else ""
        self.logger.debug(f"{game_info}REJECTED {action}: {reason}")
        self.game_stats['rejected_actions'] += 1
        self._track('rejected', action=action, reason=reason, game_id=game_id)

    def log_error(self, error: str, context: str = ""):
        """Failures that are not rule violations, e.g. a broken map file."""
        context_str = f" ({context})" if context else ""
        self.logger.error(f"ERROR{context_str}: {error}")

    def log_info(self, message: str):
        self.logger.info(message, extra={'color': Colors.CYAN})

    def log_warning(self, message: str):
        self.logger.warning(f"WARNING: {message}")

    def get_stats(self) -> Dict[str, Any]:
        uptime = int(time.time() - self.start_time)
        return {**self.game_stats, 'uptime_seconds': uptime}
