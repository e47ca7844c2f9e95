from __future__ import annotations

import random

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from riskengine import combat
from riskengine.errors import (
    InsufficientArmies,
    InsufficientAttackerForce,
    InsufficientDefenderForce,
    PreconditionViolation,
)
from tests.helpers.factories import ScriptedDice
from tests.helpers.strategies import army_counts, die_faces, seeds


def test_three_dice_against_two_scenario() -> None:
    outcome = combat.resolve(4, 3, ScriptedDice([2, 6, 4, 5, 3]))

    assert outcome.attacker_dice == [6, 4, 2]
    assert outcome.defender_dice == [5, 3]
    assert outcome.attacker_losses == 0
    assert outcome.defender_losses == 2
    assert not outcome.conquered


def test_ties_favor_defender() -> None:
    outcome = combat.resolve_dice([5, 3], [5, 3], defending_armies=2)
    assert outcome.attacker_losses == 2
    assert outcome.defender_losses == 0


def test_single_comparison_when_defender_has_one_die() -> None:
    outcome = combat.resolve_dice([6, 6, 6], [1], defending_armies=1)
    assert outcome.comparisons == 1
    assert (outcome.attacker_losses, outcome.defender_losses) == (0, 1)
    assert outcome.conquered


def test_dice_counts() -> None:
    assert combat.get_attacker_dice_count(2) == 1
    assert combat.get_attacker_dice_count(3) == 2
    assert combat.get_attacker_dice_count(4) == 3
    assert combat.get_attacker_dice_count(40) == 3
    assert combat.get_defender_dice_count(1) == 1
    assert combat.get_defender_dice_count(2) == 2
    assert combat.get_defender_dice_count(9) == 2


def test_attacker_needs_two_armies() -> None:
    with pytest.raises(InsufficientAttackerForce):
        combat.resolve(1, 3)


def test_defender_needs_an_army() -> None:
    with pytest.raises(InsufficientDefenderForce):
        combat.resolve(5, 0)


def test_force_errors_are_precondition_violations() -> None:
    assert issubclass(InsufficientAttackerForce, InsufficientArmies)
    assert issubclass(InsufficientDefenderForce, PreconditionViolation)


def test_default_rng_is_system_random() -> None:
    assert isinstance(combat.default_rng(), random.SystemRandom)


@given(attacking=army_counts(min_value=2), defending=army_counts(), seed=seeds())
@settings(max_examples=200)
def test_round_losses_sum_to_comparisons(attacking: int, defending: int, seed: int) -> None:
    outcome = combat.resolve(attacking, defending, random.Random(seed))

    assert len(outcome.attacker_dice) == min(3, attacking - 1)
    assert len(outcome.defender_dice) == min(2, defending)
    assert outcome.attacker_losses + outcome.defender_losses == outcome.comparisons
    assert outcome.attacker_losses >= 0 and outcome.defender_losses >= 0
    assert outcome.conquered == (defending - outcome.defender_losses <= 0)
    assert all(1 <= d <= 6 for d in outcome.attacker_dice + outcome.defender_dice)
    assert outcome.attacker_dice == sorted(outcome.attacker_dice, reverse=True)


@given(faces=die_faces(2))
def test_identical_rolls_always_cost_the_attacker(faces: list) -> None:
    outcome = combat.resolve_dice(list(faces), list(faces), defending_armies=5)
    assert outcome.defender_losses == 0
    assert outcome.attacker_losses == 2


@given(attacking=army_counts(min_value=2, max_value=30),
       defending=army_counts(max_value=30), seed=seeds())
@settings(max_examples=50)
def test_full_attack_ends_in_conquest_or_exhaustion(attacking: int, defending: int, seed: int) -> None:
    rounds = combat.simulate_full_attack(attacking, defending, random.Random(seed))

    attacker_left = attacking - sum(r.attacker_losses for r in rounds)
    defender_left = defending - sum(r.defender_losses for r in rounds)
    assert attacker_left >= 1
    assert defender_left >= 0
    assert defender_left == 0 or attacker_left == 1
    assert rounds[-1].conquered == (defender_left == 0)


def test_roll_distribution_is_roughly_uniform() -> None:
    rng = random.Random(1234)
    counts = {face: 0 for face in range(1, 7)}
    for face in combat.roll_dice(60000, rng):
        counts[face] += 1
    for count in counts.values():
        assert 9000 < count < 11000


def test_format_battle_result_mentions_conquest() -> None:
    outcome = combat.resolve_dice([6], [1], defending_armies=1)
    text = combat.format_battle_result(outcome, "Alice", "Bob", "Alaska", "Kamchatka")
    assert "Attacker rolled: [6]" in text
    assert "Kamchatka has been conquered!" in text


@given(st.integers(min_value=-5, max_value=1))
def test_attacker_dice_count_rejects_small_armies(armies: int) -> None:
    with pytest.raises(InsufficientAttackerForce):
        combat.get_attacker_dice_count(armies)
