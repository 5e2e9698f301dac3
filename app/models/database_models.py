"""SQLAlchemy ORM models for the workout log."""
from datetime import date, datetime, timezone
from uuid import uuid4

from sqlalchemy import Integer, Date, DateTime, String, Index
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def generate_workout_id() -> str:
    """Return a new opaque workout identifier."""
    return uuid4().hex


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite drops tzinfo on the way back anyway."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Workout(Base):
    """A single logged workout."""

    __tablename__ = "workouts"

    # Internal insertion counter, breaks created_at ties when listing
    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True, default=generate_workout_id)

    exercise_name: Mapped[str] = mapped_column(String(100), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)  # minutes
    calories_burned: Mapped[int] = mapped_column(Integer, nullable=False)
    workout_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_workouts_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Workout {self.id} {self.exercise_name!r} {self.workout_date}>"
