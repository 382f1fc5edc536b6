"""Rank table: named tiers covering contiguous level ranges."""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Rank:
    """A rank covers levels in ``[min_level, max_level)``."""
    
    name: str
    min_level: int
    max_level: float
    
    def contains(self, level: int) -> bool:
        return self.min_level <= level < self.max_level
    
    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "min_level": self.min_level,
            "max_level": None if math.isinf(self.max_level) else int(self.max_level),
        }


# Ascending, gap-free, covering [1, inf)
RANKS = (
    Rank("E Rank", 1, 20),
    Rank("D Rank", 20, 40),
    Rank("C Rank", 40, 60),
    Rank("B Rank", 60, 80),
    Rank("A Rank", 80, 120),
    Rank("S Rank", 120, 200),
    Rank("National Level", 200, 300),
    Rank("Mid Tier Monarch", 300, 400),
    Rank("Yogumunt", 400, 500),
    Rank("Architect", 500, 650),
    Rank("Amtares", 650, 800),
    Rank("Ashborn", 800, 1500),
    Rank("Sung Jinwo", 1500, math.inf),
)


def get_rank_for_level(level: int) -> Rank:
    """Return the rank whose level range contains ``level``.

    Levels start at 1 and the table covers every level from there, so a miss
    is a programming error rather than bad input.
    """
    for rank in RANKS:
        if rank.contains(level):
            return rank
    raise AssertionError(f"No rank covers level {level!r}")
