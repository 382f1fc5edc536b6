"""Workout timer continuity.

The client keeps the running timer and saves it every few seconds
(``current_workout`` on the user). This service stores those heartbeats,
resumes a timer after a reload and turns a stopped timer into a recorded
workout through ``WorkoutService``. It never awards EXP on its own.
"""

import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fitness_rpg.exceptions import PersistenceError, ValidationError
from fitness_rpg.models import User
from fitness_rpg.schemas import CurrentWorkout, ResumedTimer
from fitness_rpg.services.locks import UserLocks, user_locks
from fitness_rpg.services.user_service import UserService
from fitness_rpg.services.workout_service import (
    DAILY_LIMIT_SECONDS,
    RecordedWorkout,
    WorkoutService,
)

logger = logging.getLogger(__name__)

# A timer started longer ago than this is abandoned, not resumed
STALE_AFTER_SECONDS = 6 * 3600
MAX_RESUMED_SECONDS = DAILY_LIMIT_SECONDS

# How far ahead of our clock a client-reported startTime may be
MAX_CLOCK_SKEW_SECONDS = 5 * 60


def now_ms() -> int:
    return int(time.time() * 1000)


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    ABANDONED = "abandoned"


def resumed_elapsed_seconds(saved_elapsed: int, start_time: int, now: int) -> int:
    """
    Elapsed seconds for a timer resumed at ``now`` (epoch ms).

    Wall-clock time since ``start_time`` covers the period the client was
    disconnected; the saved heartbeat value wins only when it is ahead of
    the wall clock. Capped at the daily limit.
    """
    wall_clock = max(0, (now - start_time) // 1000)
    return min(max(saved_elapsed, wall_clock), MAX_RESUMED_SECONDS)


def is_stale(start_time: int, now: int) -> bool:
    return now - start_time > STALE_AFTER_SECONDS * 1000


def is_in_future(start_time: int, now: int) -> bool:
    return start_time - now > MAX_CLOCK_SKEW_SECONDS * 1000


def is_abandoned(start_time: int, now: int) -> bool:
    """Too old to resume, or started at a time that has not come yet."""
    return is_stale(start_time, now) or is_in_future(start_time, now)


class TimerService:
    """Heartbeat storage and start/stop transitions for the workout timer."""

    def __init__(
        self,
        db: Session,
        timezone_name: str = "UTC",
        locks: Optional[UserLocks] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.db = db
        self.timezone_name = timezone_name
        self.locks = locks or user_locks
        self.clock = clock
        self.users = UserService(db, self.locks)

    def _load(self, user: User) -> Optional[CurrentWorkout]:
        if not user.current_workout:
            return None
        try:
            return CurrentWorkout.model_validate(user.current_workout)
        except PydanticValidationError:
            logger.warning("Discarding malformed current workout for user_id=%s", user.id)
            return None

    def save_current_workout(
        self, user_id: str, current: Optional[CurrentWorkout]
    ) -> User:
        """Upsert (or clear, with ``None``) the in-progress workout.

        Saving the value already stored is a no-op. A ``startTime`` further
        ahead of the server clock than ``MAX_CLOCK_SKEW_SECONDS`` is rejected.
        """
        if current is not None and is_in_future(current.start_time, self.clock()):
            raise ValidationError("startTime is in the future")

        stored = current.model_dump(by_alias=True) if current is not None else None

        with self.locks.hold(user_id):
            user = self.users.lock_user(user_id)
            if user.current_workout == stored:
                return user

            user.current_workout = stored
            try:
                self.db.commit()
                self.db.refresh(user)
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error("save_current_workout failed for user_id=%s: %s", user_id, e)
                raise PersistenceError("Could not save current workout") from e
            return user

    def timer_state(self, user: User) -> TimerState:
        current = self._load(user)
        if current is None:
            return TimerState.ABANDONED if user.current_workout else TimerState.IDLE
        if is_abandoned(current.start_time, self.clock()):
            return TimerState.ABANDONED
        return TimerState.RUNNING

    def restore_current_workout(self, user: User) -> Optional[ResumedTimer]:
        """
        Resume the user's timer after a reload.

        Abandoned timers (too old, in the future, or unreadable) are cleared and ``None`` is
        returned; nothing is recorded for them.
        """
        if not user.current_workout:
            return None

        now = self.clock()
        current = self._load(user)
        if current is None or is_abandoned(current.start_time, now):
            logger.info("Clearing abandoned workout for user_id=%s", user.id)
            self.save_current_workout(user.id, None)
            return None

        return ResumedTimer(
            name=current.name,
            start_time=current.start_time,
            elapsed_seconds=resumed_elapsed_seconds(
                current.elapsed_seconds, current.start_time, now
            ),
        )

    def start_workout(self, user_id: str, name: str) -> User:
        """Idle -> Running. A stale timer left behind is replaced."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Please enter a workout name")

        with self.locks.hold(user_id):
            user = self.users.lock_user(user_id)
            if self.timer_state(user) == TimerState.RUNNING:
                raise ValidationError("A workout is already in progress")

            current = CurrentWorkout(name=name, start_time=self.clock(), elapsed_seconds=0)
            return self.save_current_workout(user_id, current)

    def stop_workout(self, user_id: str) -> RecordedWorkout:
        """Running -> Idle: record the workout and clear the timer.

        The user's lock is held across the check and the recording, so two
        concurrent stops record at most one workout.
        """
        with self.locks.hold(user_id):
            user = self.users.lock_user(user_id)
            timer = self.restore_current_workout(user)
            if timer is None:
                raise ValidationError("No workout in progress")

            # A client clock slightly ahead of ours must not end before it starts
            end_time = max(self.clock(), timer.start_time)
            started_at = datetime.fromtimestamp(timer.start_time / 1000, tz=timezone.utc)
            ended_at = datetime.fromtimestamp(end_time / 1000, tz=timezone.utc)

            # The recorded duration never exceeds the wall-clock window
            duration = min(timer.elapsed_seconds, (end_time - timer.start_time) // 1000)

            workouts = WorkoutService(self.db, self.timezone_name, self.locks)
            return workouts.record_workout(
                user_id,
                timer.name,
                duration,
                started_at,
                ended_at,
            )

    def abandon_workout(self, user_id: str) -> User:
        """Running -> Idle without recording anything."""
        return self.save_current_workout(user_id, None)
