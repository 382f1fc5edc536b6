"""Routers package."""

from fitness_rpg.routers.ranks import router as ranks_router
from fitness_rpg.routers.users import router as users_router
from fitness_rpg.routers.workouts import router as workouts_router

__all__ = [
    "ranks_router",
    "users_router",
    "workouts_router",
]
