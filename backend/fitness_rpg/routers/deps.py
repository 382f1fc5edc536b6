"""Shared router dependencies."""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from fitness_rpg.config import Settings
from fitness_rpg.database import get_db
from fitness_rpg.services.auth_service import AuthService
from fitness_rpg.services.locks import UserLocks
from fitness_rpg.services.timer_service import TimerService
from fitness_rpg.services.user_service import UserService
from fitness_rpg.services.workout_service import WorkoutService

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    """Settings the running app was built with."""
    return request.app.state.settings


def get_user_locks(request: Request) -> UserLocks:
    return request.app.state.user_locks


def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> Optional[str]:
    """User id from the bearer token, or None when auth is disabled."""
    if not settings.auth_enabled:
        return None
    
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid auth token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    
    user_id = AuthService(settings).user_id_from_token(credentials.credentials)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid auth token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id


def authorize(identity: Optional[str], user_id: str) -> None:
    """Reject requests acting on another user's data."""
    if identity is not None and identity != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to act on this user",
        )


def get_user_service(
    db: Session = Depends(get_db),
    locks: UserLocks = Depends(get_user_locks),
) -> UserService:
    return UserService(db, locks)


def get_workout_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    locks: UserLocks = Depends(get_user_locks),
) -> WorkoutService:
    return WorkoutService(db, settings.timezone, locks)


def get_timer_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    locks: UserLocks = Depends(get_user_locks),
) -> TimerService:
    return TimerService(db, settings.timezone, locks)
