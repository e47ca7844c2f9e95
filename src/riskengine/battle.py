"""
Battle orchestration around the base dice resolver.

Modifiers are plain values holding pure functions: an applicability
predicate plus optional dice and loss transforms. The orchestrator picks the
modifiers that apply to a battle, runs their dice transforms before the
base comparison and their loss transforms after it, in ascending priority.
The comparison itself lives in `combat` and is never changed here.
"""
import random
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from . import combat
from .combat import BattleOutcome
from .player import Player
from .territory import Territory


@dataclass(frozen=True)
class BattleContext:
    attacker: Player
    defender: Player
    attacking_from: Territory
    defending_territory: Territory
    all_territories: Tuple[Territory, ...] = ()


@dataclass(frozen=True)
class DiceRoll:
    dice: List[int]
    roller_id: str  # player_id of who rolled


Predicate = Callable[[BattleContext], bool]
DiceTransform = Callable[[BattleContext, DiceRoll], List[int]]
LossTransform = Callable[[BattleContext, int, int], Tuple[int, int]]


@dataclass(frozen=True)
class BattleModifier:
    name: str
    description: str
    priority: int  # lower runs first
    applies_to: Predicate
    modify_dice: Optional[DiceTransform] = None
    modify_losses: Optional[LossTransform] = None


def bump_die(dice: Sequence[int], index: int, amount: int = 1) -> List[int]:
    """Raise one die (capped at 6) and re-sort descending."""
    modified = list(dice)
    if modified:
        modified[index] = min(combat.DIE_FACES, modified[index] + amount)
    return sorted(modified, reverse=True)


def _never(context: BattleContext) -> bool:
    return False


def _defender_highest_plus_one(context: BattleContext, roll: DiceRoll) -> List[int]:
    if roll.roller_id != context.defender.player_id:
        return list(roll.dice)
    return bump_die(roll.dice, 0)


def _attacker_lowest_plus_one(context: BattleContext, roll: DiceRoll) -> List[int]:
    if roll.roller_id != context.attacker.player_id:
        return list(roll.dice)
    return bump_die(roll.dice, len(roll.dice) - 1)


def _overwhelming_force(context: BattleContext) -> bool:
    return context.attacking_from.army_count >= context.defending_territory.army_count * 3


def _mountain_losses(context: BattleContext, attacker_losses: int,
                     defender_losses: int) -> Tuple[int, int]:
    return attacker_losses, max(0, defender_losses - 1)


def _fortified_losses(context: BattleContext, attacker_losses: int,
                      defender_losses: int) -> Tuple[int, int]:
    # a hit defender still loses at least one army
    return attacker_losses, (max(1, defender_losses - 1) if defender_losses > 0 else 0)


# Terrain and fortifications do not exist on the classic map yet, so these
# never apply.
FORTIFICATION = BattleModifier(
    name='Fortification Bonus',
    description='Defender gets +1 to highest die',
    priority=10,
    applies_to=_never,
    modify_dice=_defender_highest_plus_one,
)

MOUNTAIN_DEFENSE = BattleModifier(
    name='Mountain Defense',
    description='Defenders in mountains are harder to dislodge',
    priority=20,
    applies_to=_never,
    modify_losses=_mountain_losses,
)

DEFENSIVE_FORTIFICATIONS = BattleModifier(
    name='Defensive Fortifications',
    description='Fortifications reduce defender losses',
    priority=15,
    applies_to=_never,
    modify_losses=_fortified_losses,
)

# Opt-in variant rule; not part of the default ruleset.
BLITZ_ATTACK = BattleModifier(
    name='Blitz Attack',
    description='Overwhelming force gives +1 to lowest die',
    priority=5,
    applies_to=_overwhelming_force,
    modify_dice=_attacker_lowest_plus_one,
)

DEFAULT_MODIFIERS = (FORTIFICATION, MOUNTAIN_DEFENSE, DEFENSIVE_FORTIFICATIONS)
KNOWN_MODIFIERS = {m.name: m for m in DEFAULT_MODIFIERS + (BLITZ_ATTACK,)}


class RegistryFrozen(RuntimeError):
    pass


class ModifierRegistry:
    """
    Named modifiers available to battles.

    Writers are serialized by a lock and publish a fresh tuple; readers only
    ever read the current tuple, so they never block. Call `freeze()` once
    start-up registration is done to forbid writes during play.
    """

    def __init__(self, modifiers: Sequence[BattleModifier] = ()):
        self._lock = threading.Lock()
        self._modifiers: Tuple[BattleModifier, ...] = ()
        self._frozen = False
        for modifier in modifiers:
            self.register(modifier)

    @classmethod
    def default(cls) -> 'ModifierRegistry':
        return cls(DEFAULT_MODIFIERS)

    @classmethod
    def from_names(cls, names: Sequence[str]) -> 'ModifierRegistry':
        """Build a registry from modifier names, e.g. from configuration."""
        unknown = [n for n in names if n not in KNOWN_MODIFIERS]
        if unknown:
            raise KeyError(f"Unknown battle modifiers: {', '.join(unknown)}")
        return cls([KNOWN_MODIFIERS[n] for n in names])

    def register(self, modifier: BattleModifier) -> None:
        with self._lock:
            if self._frozen:
                raise RegistryFrozen(f"Cannot register '{modifier.name}': registry is frozen")
            kept = tuple(m for m in self._modifiers if m.name != modifier.name)
            self._modifiers = kept + (modifier,)

    def freeze(self) -> None:
        with self._lock:
            self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def clear(self) -> None:
        with self._lock:
            if self._frozen:
                raise RegistryFrozen("Cannot clear a frozen registry")
            self._modifiers = ()

    def get(self, name: str) -> Optional[BattleModifier]:
        return next((m for m in self._modifiers if m.name == name), None)

    def all(self) -> List[BattleModifier]:
        return list(self._modifiers)

    def applicable(self, context: BattleContext) -> List[BattleModifier]:
        """Modifiers that apply to this battle, lowest priority first."""
        snapshot = self._modifiers
        return sorted((m for m in snapshot if m.applies_to(context)), key=lambda m: m.priority)

    def __len__(self) -> int:
        return len(self._modifiers)


@dataclass(frozen=True)
class BattleOdds:
    conquest_probability: float
    avg_attacker_losses: float
    avg_defender_losses: float


class BattleOrchestrator:
    """Runs one round of land combat with the applicable modifiers composed around it."""

    def __init__(self, registry: Optional[ModifierRegistry] = None):
        self.registry = registry if registry is not None else ModifierRegistry.default()

    def execute(self, context: BattleContext,
                rng: Optional[random.Random] = None) -> BattleOutcome:
        attacking_armies = context.attacking_from.army_count
        defending_armies = context.defending_territory.army_count

        attacker_count = combat.get_attacker_dice_count(attacking_armies)
        defender_count = combat.get_defender_dice_count(defending_armies)

        modifiers = self.registry.applicable(context)

        attacker_dice = self._apply_dice_modifiers(
            modifiers, context, combat.roll_dice(attacker_count, rng), context.attacker.player_id)
        defender_dice = self._apply_dice_modifiers(
            modifiers, context, combat.roll_dice(defender_count, rng), context.defender.player_id)

        outcome = combat.resolve_dice(attacker_dice, defender_dice, defending_armies)
        if not any(m.modify_losses for m in modifiers):
            return outcome

        attacker_losses, defender_losses = outcome.attacker_losses, outcome.defender_losses
        for modifier in modifiers:
            if modifier.modify_losses:
                attacker_losses, defender_losses = modifier.modify_losses(
                    context, attacker_losses, defender_losses)
                attacker_losses = max(0, attacker_losses)
                defender_losses = max(0, defender_losses)

        defender_losses = min(defender_losses, defending_armies)
        conquered = (defending_armies - defender_losses) <= 0
        # one army stays home, and a conquest needs one more to move in
        attacker_losses = min(attacker_losses, attacking_armies - (2 if conquered else 1))

        return BattleOutcome(
            attacker_dice=outcome.attacker_dice,
            defender_dice=outcome.defender_dice,
            attacker_losses=attacker_losses,
            defender_losses=defender_losses,
            conquered=conquered
        )

    @staticmethod
    def _apply_dice_modifiers(modifiers: List[BattleModifier], context: BattleContext,
                              dice: List[int], roller_id: str) -> List[int]:
        for modifier in modifiers:
            if modifier.modify_dice:
                dice = modifier.modify_dice(context, DiceRoll(dice=list(dice), roller_id=roller_id))
                dice = sorted((max(1, min(combat.DIE_FACES, d)) for d in dice), reverse=True)
        return dice

    def simulate(self, context: BattleContext, simulations: int = 1000,
                 rng: Optional[random.Random] = None) -> BattleOdds:
        """Run the same single round many times for what-if analysis."""
        if simulations < 1:
            raise ValueError(f"simulations must be at least 1, got {simulations}")

        conquests = 0
        total_attacker_losses = 0
        total_defender_losses = 0

        for _ in range(simulations):
            result = self.execute(context, rng)
            if result.conquered:
                conquests += 1
            total_attacker_losses += result.attacker_losses
            total_defender_losses += result.defender_losses

        return BattleOdds(
            conquest_probability=conquests / simulations,
            avg_attacker_losses=total_attacker_losses / simulations,
            avg_defender_losses=total_defender_losses / simulations
        )

    @staticmethod
    def estimate_odds(attacker_armies: int, defender_armies: int) -> float:
        """Rough conquest estimate from the force ratio, no dice rolled."""
        if defender_armies <= 0:
            return 1.0
        ratio = attacker_armies / defender_armies
        if ratio < 1:
            return 0.1
        if ratio < 1.5:
            return 0.3
        if ratio < 2:
            return 0.5
        if ratio < 3:
            return 0.7
        return 0.9


def battle_context(attacker: Player, defender: Player, attacking_from: Territory,
                   defending_territory: Territory,
                   territories: Sequence[Territory] = ()) -> BattleContext:
    return BattleContext(
        attacker=attacker,
        defender=defender,
        attacking_from=attacking_from,
        defending_territory=defending_territory,
        all_territories=tuple(territories)
    )
