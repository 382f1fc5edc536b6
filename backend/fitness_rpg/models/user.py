"""User model: profile plus progression counters."""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from fitness_rpg.database import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    """Player profile keyed by the identity provider's user id."""
    
    __tablename__ = "users"
    
    id = Column(String(128), primary_key=True)
    email = Column(String(255), nullable=False)
    username = Column(String(255), nullable=False)
    
    # Progression; level is always derived from exp
    level = Column(Integer, nullable=False, default=1)
    exp = Column(Integer, nullable=False, default=0)
    total_workout_seconds = Column(Integer, nullable=False, default=0)
    
    # In-progress timer: {"name", "startTime" (epoch ms), "elapsedSeconds"}
    current_workout = Column(JSON, nullable=True)
    
    # Timestamps
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)
    
    # Relationships
    workouts = relationship("Workout", back_populates="user", cascade="all, delete-orphan")
    
    def __repr__(self):
        return f"<User {self.id} lvl {self.level} ({self.exp} EXP)>"
