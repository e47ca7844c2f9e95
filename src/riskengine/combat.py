import random
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .errors import InsufficientAttackerForce, InsufficientDefenderForce

MAX_ATTACKER_DICE = 3
MAX_DEFENDER_DICE = 2
DIE_FACES = 6

# OS entropy; randint() rejection-samples, so faces stay uniform.
_system_random = random.SystemRandom()


@dataclass(frozen=True)
class BattleOutcome:
    attacker_dice: List[int] = field(default_factory=list)
    defender_dice: List[int] = field(default_factory=list)
    attacker_losses: int = 0
    defender_losses: int = 0
    conquered: bool = False

    @property
    def comparisons(self) -> int:
        return min(len(self.attacker_dice), len(self.defender_dice))

    def to_dict(self) -> dict:
        """Convert combat result to dictionary."""
        return {
            'attacker_losses': self.attacker_losses,
            'defender_losses': self.defender_losses,
            'attacker_dice': list(self.attacker_dice),
            'defender_dice': list(self.defender_dice),
            'conquered': self.conquered
        }


def default_rng() -> random.Random:
    return _system_random


def roll_dice(count: int, rng: Optional[random.Random] = None) -> List[int]:
    """Roll the specified number of dice and return sorted results (highest first)."""
    rng = rng or _system_random
    dice = [rng.randint(1, DIE_FACES) for _ in range(count)]
    return sorted(dice, reverse=True)


def get_attacker_dice_count(army_count: int) -> int:
    """Attacker rolls up to 3 dice and must leave 1 army behind."""
    if army_count < 2:
        raise InsufficientAttackerForce(
            f"Attacker must have at least 2 armies to attack (has {army_count})")
    return min(MAX_ATTACKER_DICE, army_count - 1)


def get_defender_dice_count(army_count: int) -> int:
    if army_count < 1:
        raise InsufficientDefenderForce(
            f"Defender must have at least 1 army (has {army_count})")
    return min(MAX_DEFENDER_DICE, army_count)


def compare_dice(attacker_dice: List[int], defender_dice: List[int]) -> Tuple[int, int]:
    """
    Compare dice pairwise, highest against highest.
    Ties go to the defender.
    Returns (attacker_losses, defender_losses).
    """
    attacker_losses = 0
    defender_losses = 0

    for attack, defend in zip(attacker_dice, defender_dice):
        if attack > defend:
            defender_losses += 1
        else:
            attacker_losses += 1

    return attacker_losses, defender_losses


def resolve_dice(attacker_dice: List[int], defender_dice: List[int],
                 defending_armies: int) -> BattleOutcome:
    """Score already-rolled dice against the defending army count."""
    attacker_dice = sorted(attacker_dice, reverse=True)
    defender_dice = sorted(defender_dice, reverse=True)
    attacker_losses, defender_losses = compare_dice(attacker_dice, defender_dice)

    return BattleOutcome(
        attacker_dice=attacker_dice,
        defender_dice=defender_dice,
        attacker_losses=attacker_losses,
        defender_losses=defender_losses,
        conquered=(defending_armies - defender_losses) <= 0
    )


def resolve(attacking_armies: int, defending_armies: int,
            rng: Optional[random.Random] = None) -> BattleOutcome:
    """
    Conduct a single round of combat.

    Raises InsufficientAttackerForce / InsufficientDefenderForce when either
    side cannot legally roll.
    """
    attacker_dice_count = get_attacker_dice_count(attacking_armies)
    defender_dice_count = get_defender_dice_count(defending_armies)

    attacker_dice = roll_dice(attacker_dice_count, rng)
    defender_dice = roll_dice(defender_dice_count, rng)

    return resolve_dice(attacker_dice, defender_dice, defending_armies)


def simulate_full_attack(attacking_armies: int, defending_armies: int,
                         rng: Optional[random.Random] = None) -> List[BattleOutcome]:
    """
    Simulate rounds until the defender falls or the attacker is down to 1 army.
    Returns list of all battle results.
    """
    battles = []
    current_attacking = attacking_armies
    current_defending = defending_armies

    while current_attacking > 1 and current_defending > 0:
        result = resolve(current_attacking, current_defending, rng)
        battles.append(result)

        current_attacking -= result.attacker_losses
        current_defending -= result.defender_losses

        if result.conquered:
            break

    return battles


def format_battle_result(result: BattleOutcome, attacker_name: str, defender_name: str,
                         from_territory: str, to_territory: str) -> str:
    """Format a battle result into a readable string."""
    attacker_dice_str = ", ".join(map(str, result.attacker_dice))
    defender_dice_str = ", ".join(map(str, result.defender_dice))

    message = f"Battle: {attacker_name} attacks {to_territory} ({defender_name}) from {from_territory}\n"
    message += f"Attacker rolled: [{attacker_dice_str}]\n"
    message += f"Defender rolled: [{defender_dice_str}]\n"
    message += f"Losses - Attacker: {result.attacker_losses}, Defender: {result.defender_losses}"

    if result.conquered:
        message += f"\n{to_territory} has been conquered!"

    return message
