"""Errors raised by the progression services.

Validation and limit errors are expected outcomes of user input and carry a
message that is safe to show. Not-found and persistence errors end the
current request.
"""

from typing import Optional


class FitnessRPGError(Exception):
    """Base class for service errors."""

    status_code = 500
    error_type = "server_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(FitnessRPGError):
    """Input rejected before any write (short duration, empty name, bad dates)."""

    status_code = 400
    error_type = "validation_error"


class LimitExceededError(FitnessRPGError):
    """A per-user limit would be exceeded by the write."""

    status_code = 400
    error_type = "limit_exceeded"
    limit: Optional[str] = None


class DailyLimitExceededError(LimitExceededError):
    limit = "daily_duration"

    def __init__(self, logged_seconds: int, requested_seconds: int, limit_seconds: int):
        super().__init__(
            f"Daily workout limit ({limit_seconds // 3600} hours) exceeded"
        )
        self.logged_seconds = logged_seconds
        self.requested_seconds = requested_seconds
        self.limit_seconds = limit_seconds


class WorkoutCapacityError(LimitExceededError):
    limit = "stored_workouts"

    def __init__(self, stored: int, capacity: int):
        super().__init__(
            f"Workout history is full ({capacity} workouts); "
            "older workouts must be pruned first"
        )
        self.stored = stored
        self.capacity = capacity


class NotFoundError(FitnessRPGError):
    status_code = 404
    error_type = "not_found"


class PersistenceError(FitnessRPGError):
    """The store failed; the operation left no partial writes behind."""

    status_code = 500
    error_type = "persistence_error"
