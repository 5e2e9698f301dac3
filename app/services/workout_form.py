"""Client-side workout form flow.

The form is a small state machine (idle, editing a record, submitting)
driven by user events and API responses. Every successful mutation is
followed by a re-fetch of the list so the local view never drifts from the
server. Feedback goes through a notification banner that dismisses itself
after a timeout via an APScheduler one-shot job.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Iterator
from uuid import uuid4

import httpx
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler

from app.config import get_settings
from app.services.workout_client import ApiError, WorkoutClient


logger = logging.getLogger(__name__)


class FormState(str, Enum):
    IDLE = "idle"
    EDITING = "editing"
    SUBMITTING = "submitting"


class InvalidTransition(RuntimeError):
    """Raised when an event is not allowed in the current form state."""


# (state, event) -> next state
TRANSITIONS: dict[tuple[FormState, str], FormState] = {
    (FormState.IDLE, "edit"): FormState.EDITING,
    (FormState.EDITING, "edit"): FormState.EDITING,
    (FormState.IDLE, "cancel"): FormState.IDLE,
    (FormState.EDITING, "cancel"): FormState.IDLE,
    (FormState.IDLE, "submit"): FormState.SUBMITTING,
    (FormState.EDITING, "submit"): FormState.SUBMITTING,
    (FormState.IDLE, "delete"): FormState.IDLE,
    (FormState.EDITING, "delete"): FormState.EDITING,
    (FormState.SUBMITTING, "succeeded"): FormState.IDLE,
}


class NotificationBanner:
    """Single notification slot that clears itself after ``timeout_seconds``."""

    def __init__(self, scheduler: BaseScheduler, timeout_seconds: float | None = None):
        self.scheduler = scheduler
        self.timeout_seconds = timeout_seconds or get_settings().notification_timeout_seconds
        self.job_id = f"notification-dismiss-{uuid4().hex}"
        self.message = ""
        self.kind = ""
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def visible(self) -> bool:
        return bool(self.message)

    def show(self, message: str, kind: str = "success") -> None:
        """Display a message, replacing any pending dismissal."""
        with self._lock:
            self._generation += 1
            self.message = message
            self.kind = kind
            generation = self._generation

        run_date = datetime.now(timezone.utc) + timedelta(seconds=self.timeout_seconds)
        self.scheduler.add_job(
            self._expire,
            "date",
            run_date=run_date,
            args=[generation],
            id=self.job_id,
            replace_existing=True,
        )

    def _expire(self, generation: int) -> None:
        with self._lock:
            # A newer show() owns the banner now
            if generation != self._generation:
                return
            self.message = ""
            self.kind = ""

    def dismiss(self) -> None:
        """Clear the banner now and drop the pending dismissal job."""
        with self._lock:
            self._generation += 1
            self.message = ""
            self.kind = ""
        try:
            self.scheduler.remove_job(self.job_id)
        except JobLookupError:
            pass


@dataclass
class FormFields:
    """Raw form inputs, kept as text the way a form holds them."""

    exercise_name: str = ""
    duration: str = ""
    calories_burned: str = ""
    workout_date: str = ""


class WorkoutFormController:
    """Drives the workout form: edit, submit, delete, refresh."""

    def __init__(self, client: WorkoutClient, banner: NotificationBanner):
        self.client = client
        self.banner = banner
        self.state = FormState.IDLE
        self.editing_id: str | None = None
        self.fields = FormFields()
        self.workouts: list[dict[str, Any]] = []
        self.stats: dict[str, int] = {"totalWorkouts": 0, "totalDuration": 0, "totalCalories": 0}
        self._resume_state = FormState.IDLE

    def _transition(self, event: str) -> FormState:
        target = TRANSITIONS.get((self.state, event))
        if target is None:
            raise InvalidTransition(f"Cannot {event} while {self.state.value}")
        logger.debug("Form %s --%s--> %s", self.state.value, event, target.value)
        self.state = target
        return target

    def _reset_form(self) -> None:
        self.fields = FormFields()
        self.editing_id = None

    def set_field(self, name: str, value: str) -> None:
        if self.state is FormState.SUBMITTING:
            raise InvalidTransition("Cannot edit fields while submitting")
        if name not in asdict(self.fields):
            raise KeyError(name)
        setattr(self.fields, name, value)

    def edit(self, record: dict[str, Any]) -> None:
        """Load a listed record into the form for editing."""
        self._transition("edit")
        self.editing_id = record["id"]
        self.fields = FormFields(
            exercise_name=record["exerciseName"],
            duration=str(record["duration"]),
            calories_burned=str(record["caloriesBurned"]),
            workout_date=str(record["workoutDate"])[:10],
        )

    def cancel(self) -> None:
        self._transition("cancel")
        self._reset_form()

    def check_fields(self) -> tuple[dict[str, Any] | None, str | None]:
        """
        Run the pre-submit checks on the raw inputs.

        Returns:
            tuple: (payload, None) when the form can be sent, or
                (None, error message) when it cannot
        """
        f = self.fields
        name = f.exercise_name.strip()
        if not name or not f.duration.strip() or not f.calories_burned.strip() or not f.workout_date.strip():
            return None, "Please fill in all required fields"
        if len(name) < 2:
            return None, "Exercise name must be at least 2 characters"

        try:
            duration = int(f.duration.strip())
        except ValueError:
            return None, "Duration must be a whole number"
        if duration < 1:
            return None, "Duration must be at least 1 minute"

        try:
            calories = int(f.calories_burned.strip())
        except ValueError:
            return None, "Calories burned must be a whole number"
        if calories < 0:
            return None, "Calories burned cannot be negative"

        payload = {
            "exerciseName": name,
            "duration": duration,
            "caloriesBurned": calories,
            "workoutDate": f.workout_date.strip(),
        }
        return payload, None

    def submit(self) -> bool:
        """Create or update depending on the state; re-fetch on success."""
        if self.state is FormState.SUBMITTING:
            raise InvalidTransition("Cannot submit while submitting")

        payload, error = self.check_fields()
        if error:
            self.banner.show(error, "error")
            return False

        self._resume_state = self.state
        self._transition("submit")
        try:
            if self.editing_id:
                self.client.update_workout(self.editing_id, payload)
                message = "Workout updated successfully!"
            else:
                self.client.create_workout(payload)
                message = "Workout logged successfully!"
        except ApiError as e:
            logger.warning("Workout submit failed: %s", e.message)
            self.state = self._resume_state
            self.banner.show(e.message, "error")
            return False
        except Exception:
            logger.exception("Unexpected error while submitting workout")
            self.state = self._resume_state
            raise

        self._transition("succeeded")
        self._reset_form()
        self.banner.show(message, "success")
        self.refresh()
        return True

    def delete(self, workout_id: str) -> bool:
        self._transition("delete")
        try:
            self.client.delete_workout(workout_id)
        except ApiError as e:
            logger.warning("Workout delete failed: %s", e.message)
            self.banner.show("Failed to delete workout. Please try again.", "error")
            return False

        if self.editing_id == workout_id:
            # The record being edited no longer exists
            self.state = FormState.IDLE
            self._reset_form()
        self.banner.show("Workout deleted successfully!", "success")
        self.refresh()
        return True

    def refresh(self) -> bool:
        """Replace the local list and totals with the server's."""
        try:
            self.workouts = self.client.list_workouts()
            self.stats = self.client.get_stats()
        except ApiError as e:
            logger.warning("Workout refresh failed: %s", e.message)
            self.banner.show("Failed to load workouts. Please try again.", "error")
            return False
        return True


@contextmanager
def open_form_controller(
    base_url: str | None = None,
    http: httpx.Client | None = None,
    timeout_seconds: float | None = None,
) -> Iterator[WorkoutFormController]:
    """
    Build a controller wired to a live API and a running background scheduler.

    The scheduler is shut down and a client created here is closed on exit;
    an ``http`` client passed in stays open for its owner.

    Example:
        >>> with open_form_controller("http://localhost:8000") as form:
        ...     form.refresh()
        ...     form.set_field("exercise_name", "Run")
    """
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.start()
    client = WorkoutClient(http=http, base_url=base_url)
    try:
        banner = NotificationBanner(scheduler, timeout_seconds=timeout_seconds)
        yield WorkoutFormController(client, banner)
    finally:
        scheduler.shutdown(wait=False)
        if http is None:
            client.close()
