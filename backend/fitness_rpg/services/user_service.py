"""User profile store."""

import logging
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from fitness_rpg.exceptions import NotFoundError, PersistenceError, ValidationError
from fitness_rpg.models import User
from fitness_rpg.services.locks import UserLocks, user_locks

logger = logging.getLogger(__name__)

DEFAULT_USERNAME = "User"


class UserService:
    """Lookup and profile updates for users keyed by their external id."""
    
    def __init__(self, db: Session, locks: Optional[UserLocks] = None):
        self.db = db
        self.locks = locks or user_locks
    
    def find_user(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()
    
    def get_user(self, user_id: str) -> User:
        """Get a user by id or raise ``NotFoundError``."""
        user = self.find_user(user_id)
        if not user:
            logger.warning("User not found: user_id=%s", user_id)
            raise NotFoundError("User not found")
        return user
    
    def lock_user(self, user_id: str) -> User:
        """Load the user row for update; call while holding the user's lock."""
        user = (
            self.db.query(User)
            .filter(User.id == user_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not user:
            logger.warning("User not found: user_id=%s", user_id)
            raise NotFoundError("User not found")
        return user
    
    def get_or_create_user(
        self, user_id: str, email: str, username: Optional[str] = None
    ) -> Tuple[User, bool]:
        """
        Return the user with this id, creating it on first sight.

        Returns ``(user, created)``. An existing profile is returned as-is;
        the email and username given here only seed new rows.
        """
        with self.locks.hold(user_id):
            user = self.find_user(user_id)
            if user:
                return user, False
            
            user = User(
                id=user_id,
                email=email,
                username=(username or "").strip() or DEFAULT_USERNAME,
                level=1,
                exp=0,
                total_workout_seconds=0,
                current_workout=None,
            )
            self.db.add(user)
            try:
                self.db.commit()
            except IntegrityError:
                # Another process created the same id first
                self.db.rollback()
                return self.get_user(user_id), False
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error("create_user failed for user_id=%s: %s", user_id, e)
                raise PersistenceError("Could not save changes") from e
            self.db.refresh(user)
            logger.info("Created user %s", user_id)
            return user, True
    
    def update_username(self, user_id: str, username: str) -> User:
        username = (username or "").strip()
        if not username:
            raise ValidationError("Username is required")
        
        with self.locks.hold(user_id):
            user = self.lock_user(user_id)
            user.username = username
            self._commit("update_username", user_id)
            self.db.refresh(user)
            return user
    
    def _commit(self, operation: str, user_id: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("%s failed for user_id=%s: %s", operation, user_id, e)
            raise PersistenceError("Could not save changes") from e
