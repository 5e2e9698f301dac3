"""Exceptions raised by the workout store."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldViolation:
    """A single failed field constraint; ``field`` uses the wire name."""

    field: str
    reason: str


class WorkoutStoreError(Exception):
    """Base class for workout store errors."""


class ValidationError(WorkoutStoreError):
    """Raised when workout fields fail one or more constraints."""

    def __init__(self, violations: list[FieldViolation]):
        self.violations = list(violations)
        super().__init__("; ".join(v.reason for v in self.violations))

    @property
    def fields(self) -> list[str]:
        return [v.field for v in self.violations]


class NotFoundError(WorkoutStoreError):
    """Raised when no workout exists for the given id."""

    def __init__(self, workout_id: str):
        self.workout_id = workout_id
        super().__init__("Workout not found")


class StoreFault(WorkoutStoreError):
    """Underlying database failure (connectivity, integrity, unexpected)."""
