"""Pydantic schemas for API request/response validation.

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import date, datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from fitness_rpg.services.leveling import level_progress


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


# ============== Current Workout Schemas ==============

class CurrentWorkout(CamelModel):
    """In-progress timer as saved by the client heartbeat."""

    name: str = Field(..., min_length=1, max_length=255)
    start_time: int = Field(..., ge=0, description="Epoch milliseconds")
    elapsed_seconds: int = Field(0, ge=0)


class CurrentWorkoutUpdate(CamelModel):
    workout: Optional[CurrentWorkout]


class ResumedTimer(CamelModel):
    name: str
    start_time: int
    elapsed_seconds: int


class StartWorkoutRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)


# ============== User Schemas ==============

class UserCreate(CamelModel):
    id: str = Field(..., min_length=1, max_length=128)
    email: EmailStr
    username: Optional[str] = Field(None, max_length=255)


class UsernameUpdate(CamelModel):
    username: str = Field(..., min_length=1, max_length=255)


class UserResponse(CamelModel):
    id: str
    email: str
    username: str
    level: int
    exp: int
    total_workout_seconds: int
    current_workout: Optional[CurrentWorkout] = None

    # Derived from exp
    rank: str
    exp_into_level: int
    exp_for_next_level: int

    @classmethod
    def from_user(cls, user) -> "UserResponse":
        progress = level_progress(user.exp or 0)

        current = None
        if user.current_workout:
            try:
                current = CurrentWorkout.model_validate(user.current_workout)
            except PydanticValidationError:
                current = None

        return cls(
            id=user.id,
            email=user.email,
            username=user.username,
            level=user.level,
            exp=user.exp or 0,
            total_workout_seconds=user.total_workout_seconds or 0,
            current_workout=current,
            rank=progress.rank.name,
            exp_into_level=progress.exp_into_level,
            exp_for_next_level=progress.exp_for_next_level,
        )


# ============== Workout Schemas ==============

class WorkoutCreate(CamelModel):
    user_id: str = Field(..., min_length=1, max_length=128)
    name: str = Field(..., min_length=1, max_length=255)
    duration_seconds: int
    started_at: datetime
    ended_at: datetime


class WorkoutResponse(CamelModel):
    id: str
    user_id: str
    name: str
    duration_seconds: int
    exp_gained: int
    started_at: datetime
    ended_at: datetime

    @field_validator("started_at", "ended_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class WorkoutRecordedResponse(CamelModel):
    workout: WorkoutResponse
    user: UserResponse
    exp_gained: int
    leveled_up: bool

    @classmethod
    def from_result(cls, result) -> "WorkoutRecordedResponse":
        return cls(
            workout=WorkoutResponse.model_validate(result.workout),
            user=UserResponse.from_user(result.user),
            exp_gained=result.exp_gained,
            leveled_up=result.leveled_up,
        )


class DailySummary(CamelModel):
    day: date
    logged_seconds: int
    remaining_seconds: int
    limit_seconds: int


# ============== Rank Schemas ==============

class RankResponse(CamelModel):
    name: str
    min_level: int
    max_level: Optional[int] = None  # None for the open-ended top rank


class LevelInfo(CamelModel):
    level: int
    rank: str
    exp_for_next_level: int
    cumulative_exp: int
    min_level: int
    max_level: Optional[int] = None


class LevelTable(CamelModel):
    levels: List[LevelInfo]
    all_ranks: List[RankResponse]
