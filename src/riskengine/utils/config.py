import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv


def _split_names(raw: str) -> List[str]:
    return [name.strip() for name in raw.split(',') if name.strip()]


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    log_file: Optional[str] = None
    map_file: Optional[str] = None
    battle_modifiers: List[str] = field(default_factory=list)
    ai_max_attacks: int = 15


def load_settings(dotenv: bool = True) -> Settings:
    """Read settings from the environment (and a .env file, if present)."""
    if dotenv:
        load_dotenv()

    try:
        ai_max_attacks = int(os.getenv('RISK_AI_MAX_ATTACKS', '15'))
    except ValueError:
        raise ValueError(f"RISK_AI_MAX_ATTACKS must be an integer, got {os.getenv('RISK_AI_MAX_ATTACKS')!r}") from None

    return Settings(
        log_level=os.getenv('RISK_LOG_LEVEL', 'INFO').upper(),
        log_file=os.getenv('RISK_LOG_FILE') or None,
        map_file=os.getenv('RISK_MAP_FILE') or None,
        battle_modifiers=_split_names(os.getenv('RISK_BATTLE_MODIFIERS', '')),
        ai_max_attacks=ai_max_attacks
    )
