"""
Combat resolution system.
Each round both sides roll, dice are paired highest against highest,
and each pair costs the loser one army. Ties go to the defender.
"""

import random
from dataclasses import dataclass

from conquest.engine import DICE_SIDES, MAX_ATTACK_DICE, MAX_DEFEND_DICE


@dataclass
class RoundResult:
    """Result of a single attack round."""
    attacker_rolls: list[int]  # sorted descending
    defender_rolls: list[int]  # sorted descending
    attacker_losses: int
    defender_losses: int

    def to_dict(self) -> dict:
        return {
            "attacker_rolls": self.attacker_rolls,
            "defender_rolls": self.defender_rolls,
            "attacker_losses": self.attacker_losses,
            "defender_losses": self.defender_losses,
        }


def attacker_dice_count(requested_dice: int, attacker_armies: int) -> int:
    """
    Dice the attacker may roll: capped by the request, by armies - 1 and by 3.
    Never negative, even if the source territory has no armies.
    """
    return max(0, min(requested_dice, attacker_armies - 1, MAX_ATTACK_DICE))


def defender_dice_count(defender_armies: int) -> int:
    return max(0, min(defender_armies, MAX_DEFEND_DICE))


def roll_dice(rng: random.Random, count: int) -> list[int]:
    """Roll count dice, returned in descending order."""
    return sorted((rng.randint(1, DICE_SIDES) for _ in range(count)), reverse=True)


def resolve_attack_round(attacker_rolls: list[int], defender_rolls: list[int]) -> RoundResult:
    """
    Compare rolls pairwise (best against best) up to the shorter side.
    An attacker die strictly higher than its pair kills a defender; otherwise the attacker loses one.
    """
    attacker_sorted = sorted(attacker_rolls, reverse=True)
    defender_sorted = sorted(defender_rolls, reverse=True)

    attacker_losses = 0
    defender_losses = 0
    for attack, defend in zip(attacker_sorted, defender_sorted):
        if attack > defend:
            defender_losses += 1
        else:
            attacker_losses += 1

    return RoundResult(
        attacker_rolls=attacker_sorted,
        defender_rolls=defender_sorted,
        attacker_losses=attacker_losses,
        defender_losses=defender_losses,
    )


def roll_attack_round(
    rng: random.Random,
    attacker_dice: int,
    defender_dice: int,
) -> RoundResult:
    """Roll both sides and resolve one round."""
    return resolve_attack_round(roll_dice(rng, attacker_dice), roll_dice(rng, defender_dice))
