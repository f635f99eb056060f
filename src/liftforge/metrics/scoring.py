"""Score primitives shared by every gamification handler (1RM, levels)."""

import math
from dataclasses import dataclass
from typing import Optional


XP_PER_LEVEL_UNIT = 100


@dataclass(frozen=True)
class LevelSnapshot:
    """Level derived from a total XP amount."""

    level: int
    total_xp: int
    xp_for_next_level: int
    xp_to_next_level: int

    @property
    def xp_for_current_level(self) -> int:
        """Total XP at which the current level started."""
        return (self.level - 1) ** 2 * XP_PER_LEVEL_UNIT

    @property
    def xp_into_level(self) -> int:
        return self.total_xp - self.xp_for_current_level

    @property
    def progress_percent(self) -> float:
        span = self.xp_for_next_level - self.xp_for_current_level
        if span <= 0:
            return 100.0
        return round(self.xp_into_level / span * 100, 1)

    def to_dict(self) -> dict:
        return {
            "level": self.level,
            "total_xp": self.total_xp,
            "xp_for_next_level": self.xp_for_next_level,
            "xp_to_next_level": self.xp_to_next_level,
            "progress_percent": self.progress_percent,
        }


def estimated_1rm(weight: Optional[float], reps: Optional[int]) -> float:
    """
    Estimate a one-rep max from a single set.

    Uses the simplified Epley form ``weight * (1 + reps / 30)``. A single
    rep is its own max and a set with no reps carries no strength signal.

    Args:
        weight: Total weight lifted in kg
        reps: Repetitions completed

    Returns:
        Estimated 1RM in kg (0 for missing or non-positive inputs)
    """
    if weight is None or reps is None:
        return 0.0
    if weight <= 0 or reps <= 0:
        return 0.0
    if reps == 1:
        return float(weight)
    return weight * (1 + reps / 30)


def level_from_total_xp(total_xp: int) -> LevelSnapshot:
    """
    Calculate level information from total XP.

    level = floor(sqrt(xp / 100)) + 1, so level 2 starts at 100 XP,
    level 3 at 400 XP and level n at (n - 1)^2 * 100 XP.

    Args:
        total_xp: Lifetime XP (negative values are treated as 0)

    Returns:
        LevelSnapshot with the level and XP remaining to the next one
    """
    xp = max(0, int(total_xp))
    level = math.isqrt(xp // XP_PER_LEVEL_UNIT) + 1
    xp_for_next_level = level ** 2 * XP_PER_LEVEL_UNIT

    return LevelSnapshot(
        level=level,
        total_xp=xp,
        xp_for_next_level=xp_for_next_level,
        xp_to_next_level=max(0, xp_for_next_level - xp),
    )
