"""Workout accounting - validates finished workouts and awards EXP."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fitness_rpg.exceptions import (
    DailyLimitExceededError,
    FitnessRPGError,
    PersistenceError,
    ValidationError,
    WorkoutCapacityError,
)
from fitness_rpg.models import User, Workout
from fitness_rpg.services.leveling import exp_for_duration, level_for_cumulative_exp
from fitness_rpg.services.locks import UserLocks, user_locks
from fitness_rpg.services.user_service import UserService

logger = logging.getLogger(__name__)

MIN_WORKOUT_SECONDS = 30
DAILY_LIMIT_SECONDS = 6 * 3600
MAX_STORED_WORKOUTS = 500
RECENT_WORKOUTS_LIMIT = 10

# Clock skew allowed between the reported duration and endedAt - startedAt
DURATION_TOLERANCE_SECONDS = 60


def resolve_timezone(name: str) -> tzinfo:
    if not name or name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def to_utc_naive(value: datetime) -> datetime:
    """Normalize to the naive UTC datetimes stored in the database."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def day_window(moment: datetime, tz: tzinfo) -> Tuple[datetime, datetime]:
    """
    Naive UTC bounds ``[start, end)`` of the calendar day containing
    ``moment`` in ``tz``. Naive moments are taken as UTC.
    """
    aware = moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)
    local = aware.astimezone(tz)
    start = datetime(local.year, local.month, local.day, tzinfo=tz)
    next_day = local.date() + timedelta(days=1)
    end = datetime(next_day.year, next_day.month, next_day.day, tzinfo=tz)
    return to_utc_naive(start), to_utc_naive(end)


@dataclass
class RecordedWorkout:
    """Outcome of an accepted workout."""

    workout: Workout
    user: User
    exp_gained: int
    previous_level: int

    @property
    def leveled_up(self) -> bool:
        return self.user.level > self.previous_level


class WorkoutService:
    """Service for recording and querying completed workouts."""

    def __init__(
        self,
        db: Session,
        timezone_name: str = "UTC",
        locks: Optional[UserLocks] = None,
    ):
        self.db = db
        self.tz = resolve_timezone(timezone_name)
        self.locks = locks or user_locks
        self.users = UserService(db, self.locks)

    def record_workout(
        self,
        user_id: str,
        name: str,
        duration_seconds: int,
        started_at: datetime,
        ended_at: datetime,
    ) -> RecordedWorkout:
        """
        Accept a finished workout, award its EXP and recompute the level.

        Validation happens before anything is read. The daily-cap check, the
        capacity check, the insert and the profile update then run under the
        user's lock in a single transaction: either all of it is committed
        or none of it is.
        """
        name = self._validate(name, duration_seconds, started_at, ended_at)

        with self.locks.hold(user_id):
            try:
                user = self.users.lock_user(user_id)

                logged_today = self.daily_workout_seconds(user_id, started_at)
                if logged_today + duration_seconds > DAILY_LIMIT_SECONDS:
                    logger.info(
                        "Daily limit reached for user_id=%s (%ss logged, %ss requested)",
                        user_id, logged_today, duration_seconds,
                    )
                    raise DailyLimitExceededError(
                        logged_today, duration_seconds, DAILY_LIMIT_SECONDS
                    )

                stored = self.count_workouts(user_id)
                if stored >= MAX_STORED_WORKOUTS:
                    logger.info("Workout capacity reached for user_id=%s", user_id)
                    raise WorkoutCapacityError(stored, MAX_STORED_WORKOUTS)

                exp_gained = exp_for_duration(duration_seconds)
                workout = Workout(
                    user_id=user_id,
                    name=name,
                    duration_seconds=duration_seconds,
                    exp_gained=exp_gained,
                    started_at=to_utc_naive(started_at),
                    ended_at=to_utc_naive(ended_at),
                )
                self.db.add(workout)

                previous_level = user.level
                user.total_workout_seconds = (user.total_workout_seconds or 0) + duration_seconds
                user.exp = (user.exp or 0) + exp_gained
                user.level = level_for_cumulative_exp(user.exp)
                user.current_workout = None

                self.db.commit()
                self.db.refresh(workout)
                self.db.refresh(user)
            except FitnessRPGError:
                self.db.rollback()
                raise
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error("record_workout failed for user_id=%s: %s", user_id, e)
                raise PersistenceError("Could not save workout") from e

        if user.level > previous_level:
            logger.info("User %s reached level %s", user_id, user.level)

        return RecordedWorkout(
            workout=workout,
            user=user,
            exp_gained=exp_gained,
            previous_level=previous_level,
        )

    def _validate(
        self,
        name: str,
        duration_seconds: int,
        started_at: datetime,
        ended_at: datetime,
    ) -> str:
        if isinstance(duration_seconds, bool) or not isinstance(duration_seconds, int):
            raise ValidationError("Duration must be a valid number")
        if duration_seconds < MIN_WORKOUT_SECONDS:
            raise ValidationError(
                f"Workout must be at least {MIN_WORKOUT_SECONDS} seconds"
            )

        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required")

        if not isinstance(started_at, datetime):
            raise ValidationError("Invalid startedAt date")
        if not isinstance(ended_at, datetime):
            raise ValidationError("Invalid endedAt date")

        window = (to_utc_naive(ended_at) - to_utc_naive(started_at)).total_seconds()
        if window < 0:
            raise ValidationError("endedAt must not be before startedAt")
        if duration_seconds > window + DURATION_TOLERANCE_SECONDS:
            raise ValidationError(
                "Duration is longer than the time between startedAt and endedAt"
            )

        return name

    def daily_workout_seconds(self, user_id: str, day_of: datetime) -> int:
        """Seconds logged by the user on the calendar day containing ``day_of``."""
        start, end = day_window(day_of, self.tz)
        total = (
            self.db.query(func.coalesce(func.sum(Workout.duration_seconds), 0))
            .filter(
                Workout.user_id == user_id,
                Workout.started_at >= start,
                Workout.started_at < end,
            )
            .scalar()
        )
        return int(total or 0)

    def count_workouts(self, user_id: str) -> int:
        return (
            self.db.query(func.count(Workout.id))
            .filter(Workout.user_id == user_id)
            .scalar()
        ) or 0

    def list_recent_workouts(
        self, user_id: str, limit: int = RECENT_WORKOUTS_LIMIT
    ) -> List[Workout]:
        """Most recent workouts first, never more than ``RECENT_WORKOUTS_LIMIT``."""
        self.users.get_user(user_id)
        limit = max(1, min(limit, RECENT_WORKOUTS_LIMIT))

        return (
            self.db.query(Workout)
            .filter(Workout.user_id == user_id)
            .order_by(Workout.started_at.desc(), Workout.id.desc())
            .limit(limit)
            .all()
        )

    def daily_summary(self, user_id: str, now: Optional[datetime] = None) -> dict:
        """Seconds logged today and what is left under the daily cap."""
        self.users.get_user(user_id)
        now = now or datetime.now(timezone.utc)
        logged = self.daily_workout_seconds(user_id, now)
        local_day = (now if now.tzinfo else now.replace(tzinfo=timezone.utc)).astimezone(self.tz).date()

        return {
            "day": local_day,
            "logged_seconds": logged,
            "remaining_seconds": max(0, DAILY_LIMIT_SECONDS - logged),
            "limit_seconds": DAILY_LIMIT_SECONDS,
        }
