"""Pydantic models describing API payloads.

The wire format is camelCase (``exerciseName``, ``caloriesBurned``...) while
the Python side keeps snake_case attribute names; aliases bridge the two.
"""
from datetime import date, datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model exposing camelCase aliases on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _reject_bool(value: Any) -> Any:
    # bool is an int subclass; True must not sneak in as 1 minute
    if isinstance(value, bool):
        raise ValueError("Input should be a valid integer")
    return value


# Request Schemas
class WorkoutCreate(CamelModel):
    """Schema for logging a new workout.

    Only the shape is checked here; value constraints (minimum length,
    minimum duration...) are enforced by the store so they apply to every
    caller, not just HTTP ones.
    """

    exercise_name: str
    duration: int
    calories_burned: int
    workout_date: date

    @field_validator("duration", "calories_burned", mode="before")
    @classmethod
    def reject_bool(cls, value: Any) -> Any:
        return _reject_bool(value)


class WorkoutUpdate(CamelModel):
    """Schema for updating a workout. Omitted fields keep their stored values."""

    exercise_name: str | None = None
    duration: int | None = None
    calories_burned: int | None = None
    workout_date: date | None = None

    @field_validator("duration", "calories_burned", mode="before")
    @classmethod
    def reject_bool(cls, value: Any) -> Any:
        return _reject_bool(value)


# Response Schemas
class WorkoutResponse(CamelModel):
    """Canonical workout record as returned by the API."""

    id: str
    exercise_name: str
    duration: int
    calories_burned: int
    workout_date: date
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        """Stored timestamps are naive UTC; make that explicit on the wire."""

        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class WorkoutStatsResponse(CamelModel):
    """Totals across every logged workout."""

    total_workouts: int = Field(ge=0)
    total_duration: int = Field(ge=0, description="Minutes trained")
    total_calories: int = Field(ge=0)


# Envelopes
class Envelope(CamelModel):
    """Uniform wrapper returned by every workout endpoint."""

    success: bool = True
    message: str | None = None


class WorkoutEnvelope(Envelope):
    data: WorkoutResponse


class WorkoutListEnvelope(Envelope):
    count: int
    data: list[WorkoutResponse] = []


class WorkoutStatsEnvelope(Envelope):
    data: WorkoutStatsResponse


class ErrorEnvelope(CamelModel):
    """Failure wrapper; ``error`` is safe to show to end users."""

    success: bool = False
    error: str
