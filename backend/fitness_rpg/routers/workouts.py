"""Workouts API router."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from fitness_rpg.routers.deps import authorize, get_identity, get_workout_service
from fitness_rpg.schemas import (
    DailySummary,
    WorkoutCreate,
    WorkoutRecordedResponse,
    WorkoutResponse,
)
from fitness_rpg.services.workout_service import RECENT_WORKOUTS_LIMIT, WorkoutService

router = APIRouter(prefix="/workouts", tags=["workouts"])


@router.post(
    "",
    response_model=WorkoutRecordedResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_workout(
    workout_data: WorkoutCreate,
    identity: Optional[str] = Depends(get_identity),
    workouts: WorkoutService = Depends(get_workout_service),
):
    """Record a finished workout and return it with the updated profile."""
    authorize(identity, workout_data.user_id)
    result = workouts.record_workout(
        workout_data.user_id,
        workout_data.name,
        workout_data.duration_seconds,
        workout_data.started_at,
        workout_data.ended_at,
    )
    return WorkoutRecordedResponse.from_result(result)


@router.get("/{user_id}", response_model=List[WorkoutResponse])
def list_workouts(
    user_id: str,
    limit: int = Query(RECENT_WORKOUTS_LIMIT, ge=1, le=RECENT_WORKOUTS_LIMIT),
    identity: Optional[str] = Depends(get_identity),
    workouts: WorkoutService = Depends(get_workout_service),
):
    """Most recent workouts, newest first."""
    authorize(identity, user_id)
    return workouts.list_recent_workouts(user_id, limit)


@router.get("/{user_id}/today", response_model=DailySummary)
def get_daily_summary(
    user_id: str,
    identity: Optional[str] = Depends(get_identity),
    workouts: WorkoutService = Depends(get_workout_service),
):
    """Seconds logged today and what remains under the 6-hour cap."""
    authorize(identity, user_id)
    return workouts.daily_summary(user_id)
