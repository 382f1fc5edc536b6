"""Leveling curve and EXP awards.

Level is a pure function of cumulative EXP. It is recomputed from level 1
on every EXP change, so stored levels never drift from the curve below.
"""

from dataclasses import dataclass

from fitness_rpg.services.ranks import Rank, get_rank_for_level

# 1 hour of exercise = 1000 EXP
EXP_PER_HOUR = 1000
SECONDS_PER_HOUR = 3600

STEP_LEVEL = 200
EXP_PER_LEVEL_LOW = 50_000
EXP_PER_LEVEL_HIGH = 100_000


def exp_threshold_for_level(level: int) -> int:
    """EXP needed to advance from ``level`` to ``level + 1``."""
    return EXP_PER_LEVEL_LOW if level <= STEP_LEVEL else EXP_PER_LEVEL_HIGH


def cumulative_exp_for_level(level: int) -> int:
    """Total EXP at which ``level`` is reached (0 for level 1)."""
    if level <= 1:
        return 0
    completed = level - 1
    low = min(completed, STEP_LEVEL)
    high = completed - low
    return low * EXP_PER_LEVEL_LOW + high * EXP_PER_LEVEL_HIGH


def level_for_cumulative_exp(total_exp: int) -> int:
    """Level reached with ``total_exp`` EXP, walking the curve from level 1."""
    if total_exp < 0:
        raise ValueError("total_exp must be >= 0")
    
    level = 1
    next_level_at = exp_threshold_for_level(level)
    while total_exp >= next_level_at:
        level += 1
        next_level_at += exp_threshold_for_level(level)
    return level


def exp_for_duration(duration_seconds: int) -> int:
    """EXP awarded for a workout: prorated hours, floored.

    Integer arithmetic, so 90 seconds is exactly 25 EXP.
    """
    if duration_seconds <= 0:
        return 0
    return duration_seconds * EXP_PER_HOUR // SECONDS_PER_HOUR


@dataclass(frozen=True)
class LevelProgress:
    level: int
    rank: Rank
    exp: int
    exp_into_level: int
    exp_for_next_level: int
    
    @property
    def percent(self) -> float:
        return round(self.exp_into_level / self.exp_for_next_level * 100, 2)


def level_progress(total_exp: int) -> LevelProgress:
    """Progress bar data for a profile with ``total_exp`` EXP."""
    level = level_for_cumulative_exp(total_exp)
    return LevelProgress(
        level=level,
        rank=get_rank_for_level(level),
        exp=total_exp,
        exp_into_level=total_exp - cumulative_exp_for_level(level),
        exp_for_next_level=exp_threshold_for_level(level),
    )
