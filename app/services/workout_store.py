"""Persistence and constraint enforcement for logged workouts."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterator, Mapping

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.errors import FieldViolation, NotFoundError, StoreFault, ValidationError
from app.models.database_models import Workout, generate_workout_id, utcnow


logger = logging.getLogger(__name__)

EXERCISE_NAME_MIN_LENGTH = 2
EXERCISE_NAME_MAX_LENGTH = 100
MIN_DURATION_MINUTES = 1
MAX_DURATION_MINUTES = 24 * 60
MIN_CALORIES = 0
MAX_CALORIES = 100_000

# python name -> (wire name, label used in messages)
WORKOUT_FIELDS: dict[str, tuple[str, str]] = {
    "exercise_name": ("exerciseName", "Exercise name"),
    "duration": ("duration", "Duration"),
    "calories_burned": ("caloriesBurned", "Calories burned"),
    "workout_date": ("workoutDate", "Workout date"),
}
IMMUTABLE_FIELDS = frozenset({"id", "created_at", "seq"})


@dataclass(frozen=True)
class WorkoutStats:
    """Totals across all stored workouts."""

    total_workouts: int
    total_duration: int
    total_calories: int


def _as_int(value: Any) -> int | None:
    """Return value as an int, or None when it is not a whole number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _as_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_workout_fields(fields: Mapping[str, Any], partial: bool = False) -> list[FieldViolation]:
    """
    Check workout fields against the record constraints.

    Args:
        fields: Mapping keyed by python field names (``exercise_name``...)
        partial: When True, absent fields are skipped instead of reported
            as missing (used for updates)

    Returns:
        list[FieldViolation]: One entry per failed field, empty when valid
    """
    violations: list[FieldViolation] = []

    for name, (wire_name, label) in WORKOUT_FIELDS.items():
        if name not in fields or fields[name] is None:
            if not partial:
                violations.append(FieldViolation(wire_name, f"{label} is required"))
            continue

        value = fields[name]

        if name == "exercise_name":
            if not isinstance(value, str):
                violations.append(FieldViolation(wire_name, "Exercise name must be text"))
            elif _is_blank(value):
                violations.append(FieldViolation(wire_name, "Exercise name is required"))
            elif len(value.strip()) < EXERCISE_NAME_MIN_LENGTH:
                violations.append(
                    FieldViolation(wire_name, f"Exercise name must be at least {EXERCISE_NAME_MIN_LENGTH} characters")
                )
            elif len(value.strip()) > EXERCISE_NAME_MAX_LENGTH:
                violations.append(
                    FieldViolation(wire_name, f"Exercise name cannot exceed {EXERCISE_NAME_MAX_LENGTH} characters")
                )

        elif name == "duration":
            minutes = _as_int(value)
            if minutes is None:
                violations.append(FieldViolation(wire_name, "Duration must be a whole number of minutes"))
            elif minutes < MIN_DURATION_MINUTES:
                violations.append(FieldViolation(wire_name, "Duration must be at least 1 minute"))
            elif minutes > MAX_DURATION_MINUTES:
                violations.append(
                    FieldViolation(wire_name, f"Duration cannot exceed {MAX_DURATION_MINUTES} minutes")
                )

        elif name == "calories_burned":
            calories = _as_int(value)
            if calories is None:
                violations.append(FieldViolation(wire_name, "Calories burned must be a whole number"))
            elif calories < MIN_CALORIES:
                violations.append(FieldViolation(wire_name, "Calories cannot be negative"))
            elif calories > MAX_CALORIES:
                violations.append(FieldViolation(wire_name, f"Calories cannot exceed {MAX_CALORIES:,}"))

        elif name == "workout_date":
            if _is_blank(value):
                violations.append(FieldViolation(wire_name, "Workout date is required"))
            elif _as_date(value) is None:
                violations.append(FieldViolation(wire_name, "Workout date must be a valid date"))

    return violations


def normalize_workout_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Return the known, supplied fields in their stored form (trimmed name, int, date)."""
    values: dict[str, Any] = {}
    for name in WORKOUT_FIELDS:
        value = fields.get(name)
        if value is None:
            continue
        if name == "exercise_name":
            values[name] = value.strip()
        elif name in ("duration", "calories_burned"):
            values[name] = _as_int(value)
        else:
            values[name] = _as_date(value)
    return values


class WorkoutStore:
    """
    Create, list, update and delete workouts on top of a SQLAlchemy session.

    Every mutation validates first and commits on success, so a rejected
    call leaves the database untouched. Engine errors are rolled back and
    re-raised as ``StoreFault``.
    """

    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Database error while trying to %s workout", action)
            raise StoreFault(f"Failed to {action} workout") from exc
        except Exception:
            # Driver-level errors (e.g. sqlite3 OverflowError) bypass SQLAlchemy
            self.session.rollback()
            raise

    def _reject(self, action: str, violations: list[FieldViolation]) -> ValidationError:
        logger.warning(
            "Rejected workout %s: %s",
            action,
            ", ".join(f"{v.field}={v.reason}" for v in violations),
        )
        return ValidationError(violations)

    def create(self, fields: Mapping[str, Any]) -> Workout:
        """Validate and persist a new workout, returning the stored record."""
        violations = validate_workout_fields(fields)
        if violations:
            raise self._reject("create", violations)

        workout = Workout(
            id=generate_workout_id(),
            created_at=utcnow(),
            **normalize_workout_fields(fields),
        )
        with self._guard("log"):
            self.session.add(workout)
            self.session.commit()
            self.session.refresh(workout)

        logger.info("Logged workout: id=%s, exercise=%s", workout.id, workout.exercise_name)
        return workout

    def list(self) -> list[Workout]:
        """All workouts, most recently created first."""
        with self._guard("fetch"):
            return (
                self.session.query(Workout)
                .order_by(Workout.created_at.desc(), Workout.seq.desc())
                .all()
            )

    def get(self, workout_id: str) -> Workout:
        with self._guard("fetch"):
            workout = self.session.query(Workout).filter(Workout.id == workout_id).first()
        if workout is None:
            raise NotFoundError(workout_id)
        return workout

    def update(self, workout_id: str, fields: Mapping[str, Any]) -> Workout:
        """
        Replace the supplied mutable fields of an existing workout.

        Raises:
            NotFoundError: No workout with this id (checked before validation)
            ValidationError: A supplied field fails its constraint
        """
        workout = self.get(workout_id)

        changes = {k: v for k, v in fields.items() if k not in IMMUTABLE_FIELDS}
        violations = validate_workout_fields(changes, partial=True)
        if violations:
            raise self._reject("update", violations)

        values = normalize_workout_fields(changes)
        with self._guard("update"):
            for name, value in values.items():
                setattr(workout, name, value)
            self.session.commit()
            self.session.refresh(workout)

        logger.info("Updated workout: id=%s, fields=%s", workout.id, sorted(values))
        return workout

    def delete(self, workout_id: str) -> Workout:
        """Permanently remove a workout and return it."""
        workout = self.get(workout_id)
        with self._guard("delete"):
            self.session.delete(workout)
            self.session.commit()

        logger.info("Deleted workout: id=%s", workout_id)
        return workout

    def stats(self) -> WorkoutStats:
        with self._guard("fetch"):
            count, duration, calories = self.session.query(
                func.count(Workout.seq),
                func.coalesce(func.sum(Workout.duration), 0),
                func.coalesce(func.sum(Workout.calories_burned), 0),
            ).one()
        return WorkoutStats(
            total_workouts=int(count),
            total_duration=int(duration),
            total_calories=int(calories),
        )
