"""Completed workout records."""

import secrets
import time

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from fitness_rpg.database import Base
from fitness_rpg.models.user import utc_now


def generate_workout_id() -> str:
    """Millisecond timestamp (hex, fixed width) followed by 64 random bits."""
    return f"{int(time.time() * 1000):012x}{secrets.token_hex(8)}"


class Workout(Base):
    """A finished workout. Written once, never updated."""
    
    __tablename__ = "workouts"
    __table_args__ = (
        Index("ix_workouts_user_id_started_at", "user_id", "started_at"),
    )
    
    id = Column(String(32), primary_key=True, default=generate_workout_id)
    user_id = Column(String(128), ForeignKey("users.id"), nullable=False)
    name = Column(String(255), nullable=False)
    duration_seconds = Column(Integer, nullable=False)
    exp_gained = Column(Integer, nullable=False, default=0)
    
    # Naive UTC
    started_at = Column(DateTime, nullable=False)
    ended_at = Column(DateTime, nullable=False)
    
    created_at = Column(DateTime, default=utc_now)
    
    # Relationships
    user = relationship("User", back_populates="workouts")
    
    def __repr__(self):
        return f"<Workout {self.name} ({self.duration_seconds}s) - {self.user_id}>"
