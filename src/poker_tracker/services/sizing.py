"""Bet sizing helpers derived from a reference pot."""

import math
from dataclasses import dataclass
from enum import Enum

from poker_tracker.errors import InvalidArgumentError


@dataclass(frozen=True)
class BetFraction:
    """A named fraction of the pot."""

    label: str
    fraction: float


class SizingPreset(Enum):
    """Standard reference bet sizes."""

    THIRD = BetFraction("1/3", 0.33)
    HALF = BetFraction("1/2", 0.50)
    TWO_THIRDS = BetFraction("2/3", 0.67)
    POT = BetFraction("POT", 1.00)
    OVERBET = BetFraction("150%", 1.50)


def size_for(pot_size: float, fraction: float) -> int:
    """Return the whole-unit bet for a fraction of the pot."""
    if isinstance(pot_size, bool) or not isinstance(pot_size, int | float):
        raise InvalidArgumentError("Pot size must be a number")
    if not math.isfinite(pot_size):
        raise InvalidArgumentError("Pot size must be a finite number")
    if not math.isfinite(fraction):
        raise InvalidArgumentError("Fraction must be a finite number")
    amount = pot_size * fraction
    if not math.isfinite(amount):
        raise InvalidArgumentError("Bet size is out of range")
    return math.floor(amount)


def standard_sizes(pot_size: float) -> dict[str, int]:
    """Return every preset bet size for a pot, keyed by label."""
    return {
        preset.value.label: size_for(pot_size, preset.value.fraction)
        for preset in SizingPreset
    }
