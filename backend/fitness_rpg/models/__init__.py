"""Database models package."""

from fitness_rpg.models.user import User
from fitness_rpg.models.workout import Workout

__all__ = [
    "User",
    "Workout",
]
