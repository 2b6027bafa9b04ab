"""Dice-pool resolution for Scum and Villainy rolls.

A roll draws one six-sided die per dot of rating and keeps the highest face.
A pool of zero dice rolls two dice and keeps the lowest instead. The
controlling face decides the degree of success; two or more sixes in a pool of
at least two dice is a critical.
"""

from __future__ import annotations

import enum
import random
from dataclasses import dataclass
from typing import Literal, Optional, Protocol, Tuple

from scum_bot.utils.validators import validate_dice_count

__all__ = [
    "MAXIMUM_DICE",
    "ZERO_DICE_ROLLS",
    "Degree",
    "Entropy",
    "RollOutcome",
    "build_rng",
    "classify",
    "roll",
]

MAXIMUM_DICE = 100
ZERO_DICE_ROLLS = 2
DIE_FACES = 6


class Entropy(Protocol):
    """Anything that can draw a uniform integer in ``[a, b]``; ``random.Random`` fits."""

    def randint(self, a: int, b: int) -> int: ...


class Degree(str, enum.Enum):
    CRITICAL_SUCCESS = "CriticalSuccess"
    FULL_SUCCESS = "FullSuccess"
    PARTIAL_SUCCESS = "PartialSuccess"
    FAILURE = "Failure"


@dataclass(frozen=True)
class RollOutcome:
    """The result of one roll, returned once to the caller and never stored."""

    dice_rolled: int
    face_values: Tuple[int, ...]
    degree: Degree
    result: int
    operation: Literal["max", "min"]

    @property
    def is_critical(self) -> bool:
        return self.degree is Degree.CRITICAL_SUCCESS


def build_rng(*, seed: Optional[int] = None) -> random.Random:
    """Return a random generator, deterministic when *seed* is given."""
    return random.Random(seed)


def classify(result: int, critical: bool) -> Degree:
    """Map the controlling face onto a degree of success."""
    if critical:
        return Degree.CRITICAL_SUCCESS
    if result >= 6:
        return Degree.FULL_SUCCESS
    if result >= 4:
        return Degree.PARTIAL_SUCCESS
    return Degree.FAILURE


def _draw(count: int, rng: Entropy) -> Tuple[int, ...]:
    return tuple(rng.randint(1, DIE_FACES) for _ in range(count))


def roll(attribute_value: int, entropy_source: Entropy) -> RollOutcome:
    """Roll a pool sized by *attribute_value* using *entropy_source*.

    Negative ratings roll as zero dice. Pools above ``MAXIMUM_DICE`` raise
    ``InvalidDicePool``.
    """
    dice_count = validate_dice_count(max(attribute_value, 0), MAXIMUM_DICE)

    if dice_count == 0:
        faces = _draw(ZERO_DICE_ROLLS, entropy_source)
        result = min(faces)
        return RollOutcome(
            dice_rolled=ZERO_DICE_ROLLS,
            face_values=faces,
            degree=classify(result, critical=False),
            result=result,
            operation="min",
        )

    faces = _draw(dice_count, entropy_source)
    result = max(faces)
    critical = dice_count >= 2 and faces.count(DIE_FACES) >= 2
    return RollOutcome(
        dice_rolled=dice_count,
        face_values=faces,
        degree=classify(result, critical),
        result=result,
        operation="max",
    )
