"""Rank table and level debug router."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from fitness_rpg.config import Settings
from fitness_rpg.routers.deps import get_settings
from fitness_rpg.schemas import LevelInfo, LevelTable, RankResponse
from fitness_rpg.services.leveling import cumulative_exp_for_level, exp_threshold_for_level
from fitness_rpg.services.ranks import RANKS, get_rank_for_level

router = APIRouter(tags=["ranks"])

# Sample levels spanning every rank
DEBUG_LEVELS = [
    1, 10, 20, 30, 40, 50, 60, 70, 80, 100, 120, 150,
    200, 250, 300, 350, 400, 450, 500, 575, 650, 725, 800,
    1000, 1500, 2000,
]


@router.get("/ranks", response_model=List[RankResponse])
def list_ranks():
    """All ranks in ascending level order."""
    return [rank.to_dict() for rank in RANKS]


@router.get("/debug/levels", response_model=LevelTable)
def debug_levels(settings: Settings = Depends(get_settings)):
    """Rank and EXP requirements for sample levels (debug builds only)."""
    if not settings.debug:
        raise HTTPException(status_code=404, detail="Not Found")
    
    levels = []
    for level in DEBUG_LEVELS:
        rank = get_rank_for_level(level).to_dict()
        levels.append(LevelInfo(
            level=level,
            rank=rank["name"],
            exp_for_next_level=exp_threshold_for_level(level),
            cumulative_exp=cumulative_exp_for_level(level),
            min_level=rank["min_level"],
            max_level=rank["max_level"],
        ))
    
    return LevelTable(
        levels=levels,
        all_ranks=[rank.to_dict() for rank in RANKS],
    )
