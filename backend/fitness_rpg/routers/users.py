"""Users and workout timer API router."""

from typing import Optional

from fastapi import APIRouter, Depends, Response, status

from fitness_rpg.routers.deps import (
    authorize,
    get_identity,
    get_timer_service,
    get_user_service,
)
from fitness_rpg.schemas import (
    CurrentWorkoutUpdate,
    ResumedTimer,
    StartWorkoutRequest,
    UserCreate,
    UserResponse,
    UsernameUpdate,
    WorkoutRecordedResponse,
)
from fitness_rpg.services.timer_service import TimerService
from fitness_rpg.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserResponse)
def get_or_create_user(
    user_data: UserCreate,
    response: Response,
    identity: Optional[str] = Depends(get_identity),
    users: UserService = Depends(get_user_service),
):
    """Return the profile for an identity-provider id, creating it on first login."""
    authorize(identity, user_data.id)
    user, created = users.get_or_create_user(
        user_data.id, user_data.email, user_data.username
    )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return UserResponse.from_user(user)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: str,
    identity: Optional[str] = Depends(get_identity),
    users: UserService = Depends(get_user_service),
):
    authorize(identity, user_id)
    return UserResponse.from_user(users.get_user(user_id))


@router.patch("/{user_id}/username", response_model=UserResponse)
def update_username(
    user_id: str,
    data: UsernameUpdate,
    identity: Optional[str] = Depends(get_identity),
    users: UserService = Depends(get_user_service),
):
    """Change the display name."""
    authorize(identity, user_id)
    return UserResponse.from_user(users.update_username(user_id, data.username))


# ============== Workout timer ==============

@router.patch("/{user_id}/current-workout", response_model=UserResponse)
def save_current_workout(
    user_id: str,
    data: CurrentWorkoutUpdate,
    identity: Optional[str] = Depends(get_identity),
    timers: TimerService = Depends(get_timer_service),
):
    """Heartbeat save of the running timer; ``{"workout": null}`` clears it."""
    authorize(identity, user_id)
    return UserResponse.from_user(timers.save_current_workout(user_id, data.workout))


@router.get("/{user_id}/current-workout", response_model=Optional[ResumedTimer])
def restore_current_workout(
    user_id: str,
    identity: Optional[str] = Depends(get_identity),
    users: UserService = Depends(get_user_service),
    timers: TimerService = Depends(get_timer_service),
):
    """Timer to resume after a reload, or null when there is none to resume."""
    authorize(identity, user_id)
    return timers.restore_current_workout(users.get_user(user_id))


@router.post("/{user_id}/current-workout/start", response_model=UserResponse)
def start_workout(
    user_id: str,
    data: StartWorkoutRequest,
    identity: Optional[str] = Depends(get_identity),
    timers: TimerService = Depends(get_timer_service),
):
    authorize(identity, user_id)
    return UserResponse.from_user(timers.start_workout(user_id, data.name))


@router.post(
    "/{user_id}/current-workout/stop",
    response_model=WorkoutRecordedResponse,
    status_code=status.HTTP_201_CREATED,
)
def stop_workout(
    user_id: str,
    identity: Optional[str] = Depends(get_identity),
    timers: TimerService = Depends(get_timer_service),
):
    """Record the running timer as a workout and award its EXP."""
    authorize(identity, user_id)
    return WorkoutRecordedResponse.from_result(timers.stop_workout(user_id))


@router.post("/{user_id}/current-workout/abandon", response_model=UserResponse)
def abandon_workout(
    user_id: str,
    identity: Optional[str] = Depends(get_identity),
    timers: TimerService = Depends(get_timer_service),
):
    """Drop the running timer without recording it."""
    authorize(identity, user_id)
    return UserResponse.from_user(timers.abandon_workout(user_id))
