"""Tests for the API client, form state machine and notification banner."""
from __future__ import annotations

import time
from typing import Any, Dict, List

import httpx
import pytest
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from fastapi.testclient import TestClient

from app.services.workout_client import ApiError, WorkoutClient
from app.services.workout_form import (
    FormState,
    InvalidTransition,
    NotificationBanner,
    WorkoutFormController,
    open_form_controller,
)


class FakeScheduler:
    """Records jobs instead of running them; ``fire`` runs a pending job."""

    def __init__(self):
        self.jobs: Dict[str, Dict[str, Any]] = {}
        self.added: List[Dict[str, Any]] = []

    def add_job(self, func, trigger, run_date=None, args=None, id=None, replace_existing=False):
        if id in self.jobs and not replace_existing:
            raise AssertionError(f"duplicate job {id}")
        job = {"func": func, "trigger": trigger, "run_date": run_date, "args": args or [], "id": id}
        self.jobs[id] = job
        self.added.append(job)

    def remove_job(self, job_id):
        if job_id not in self.jobs:
            raise JobLookupError(job_id)
        del self.jobs[job_id]

    def fire(self, job):
        self.jobs.pop(job["id"], None)
        job["func"](*job["args"])


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def banner(scheduler) -> NotificationBanner:
    return NotificationBanner(scheduler, timeout_seconds=3.0)


@pytest.fixture
def client(test_client: TestClient) -> WorkoutClient:
    return WorkoutClient(http=test_client)


@pytest.fixture
def controller(client, banner) -> WorkoutFormController:
    return WorkoutFormController(client, banner)


def _fill(controller: WorkoutFormController, name="Run", duration="30", calories="250", workout_date="2024-01-01"):
    controller.set_field("exercise_name", name)
    controller.set_field("duration", duration)
    controller.set_field("calories_burned", calories)
    controller.set_field("workout_date", workout_date)


# ============================================================================
# NotificationBanner
# ============================================================================

class TestNotificationBanner:

    def test_show_schedules_dismissal(self, banner, scheduler):
        banner.show("Saved", "success")

        assert banner.visible
        assert (banner.message, banner.kind) == ("Saved", "success")
        assert scheduler.added[-1]["trigger"] == "date"
        assert banner.job_id in scheduler.jobs

    def test_dismissal_fires_and_clears(self, banner, scheduler):
        banner.show("Saved")
        scheduler.fire(scheduler.jobs[banner.job_id])

        assert not banner.visible
        assert banner.kind == ""

    def test_new_show_replaces_pending_job(self, banner, scheduler):
        banner.show("First")
        stale = scheduler.jobs[banner.job_id]
        banner.show("Second", "error")

        assert len(scheduler.jobs) == 1
        # A stale timer firing late must not clear the newer message
        stale["func"](*stale["args"])
        assert banner.message == "Second"

        scheduler.fire(scheduler.jobs[banner.job_id])
        assert not banner.visible

    def test_dismiss_cancels_pending_job(self, banner, scheduler):
        banner.show("Saved")
        banner.dismiss()

        assert not banner.visible
        assert banner.job_id not in scheduler.jobs

    def test_dismiss_without_pending_job(self, banner):
        banner.dismiss()

        assert not banner.visible


# ============================================================================
# WorkoutClient
# ============================================================================

def test_client_crud_round_trip(client: WorkoutClient):
    created = client.create_workout(
        {"exerciseName": "Run", "duration": 30, "caloriesBurned": 250, "workoutDate": "2024-01-01"}
    )
    updated = client.update_workout(created["id"], {"duration": 40})

    assert updated["duration"] == 40
    assert [w["id"] for w in client.list_workouts()] == [created["id"]]
    assert client.get_stats() == {"totalWorkouts": 1, "totalDuration": 40, "totalCalories": 250}

    deleted = client.delete_workout(created["id"])
    assert deleted["id"] == created["id"]
    assert client.list_workouts() == []


def test_client_raises_server_error_message(client: WorkoutClient):
    with pytest.raises(ApiError) as exc_info:
        client.delete_workout("missing")

    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Workout not found"


def test_client_wraps_transport_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = WorkoutClient(http=httpx.Client(base_url="http://api.test", transport=httpx.MockTransport(handler)))

    with pytest.raises(ApiError) as exc_info:
        client.list_workouts()

    assert exc_info.value.status_code == 0
    assert exc_info.value.message == "Failed to load workouts. Please try again."


def test_client_handles_non_envelope_response():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="Bad Gateway")

    with WorkoutClient(http=httpx.Client(base_url="http://api.test", transport=httpx.MockTransport(handler))) as client:
        with pytest.raises(ApiError) as exc_info:
            client.create_workout({})

    assert exc_info.value.status_code == 502
    assert exc_info.value.message == "Failed to save workout. Please try again."


# ============================================================================
# WorkoutFormController
# ============================================================================

def test_submit_creates_and_refreshes(controller: WorkoutFormController, banner):
    _fill(controller, name="  Run ")

    assert controller.submit() is True

    assert controller.state is FormState.IDLE
    assert controller.fields.exercise_name == ""
    assert [w["exerciseName"] for w in controller.workouts] == ["Run"]
    assert controller.stats["totalWorkouts"] == 1
    assert banner.message == "Workout logged successfully!"


@pytest.mark.parametrize(
    "fields, message",
    [
        ({"name": ""}, "Please fill in all required fields"),
        ({"name": "a"}, "Exercise name must be at least 2 characters"),
        ({"duration": "0"}, "Duration must be at least 1 minute"),
        ({"duration": "ten"}, "Duration must be a whole number"),
        ({"calories": "-1"}, "Calories burned cannot be negative"),
    ],
)
def test_submit_client_side_checks(controller: WorkoutFormController, banner, client, fields, message):
    _fill(controller, **fields)

    assert controller.submit() is False

    assert controller.state is FormState.IDLE
    assert (banner.message, banner.kind) == (message, "error")
    assert client.list_workouts() == []


def test_edit_then_submit_updates(controller: WorkoutFormController, client, banner):
    record = client.create_workout(
        {"exerciseName": "Run", "duration": 30, "caloriesBurned": 250, "workoutDate": "2024-01-01"}
    )
    controller.refresh()

    controller.edit(controller.workouts[0])
    assert controller.state is FormState.EDITING
    assert controller.editing_id == record["id"]
    assert controller.fields.duration == "30"

    controller.set_field("duration", "45")
    assert controller.submit() is True

    assert controller.state is FormState.IDLE
    assert controller.editing_id is None
    assert controller.workouts[0]["duration"] == 45
    assert banner.message == "Workout updated successfully!"


def test_server_rejection_keeps_editing_state(controller: WorkoutFormController, client, banner):
    record = client.create_workout(
        {"exerciseName": "Run", "duration": 30, "caloriesBurned": 250, "workoutDate": "2024-01-01"}
    )
    controller.edit(record)
    client.delete_workout(record["id"])

    assert controller.submit() is False

    assert controller.state is FormState.EDITING
    assert controller.fields.exercise_name == "Run"
    assert (banner.message, banner.kind) == ("Workout not found", "error")


def test_cancel_resets_form(controller: WorkoutFormController):
    controller.edit({"id": "abc", "exerciseName": "Run", "duration": 30, "caloriesBurned": 1, "workoutDate": "2024-01-01"})

    controller.cancel()

    assert controller.state is FormState.IDLE
    assert controller.editing_id is None
    assert controller.fields.exercise_name == ""


def test_events_rejected_while_submitting(controller: WorkoutFormController):
    controller.state = FormState.SUBMITTING

    with pytest.raises(InvalidTransition):
        controller.submit()
    with pytest.raises(InvalidTransition):
        controller.cancel()
    with pytest.raises(InvalidTransition):
        controller.set_field("duration", "10")


def test_delete_refreshes_and_leaves_edit_mode(controller: WorkoutFormController, client, banner):
    record = client.create_workout(
        {"exerciseName": "Run", "duration": 30, "caloriesBurned": 250, "workoutDate": "2024-01-01"}
    )
    controller.refresh()
    controller.edit(record)

    assert controller.delete(record["id"]) is True

    assert controller.workouts == []
    assert controller.state is FormState.IDLE
    assert banner.message == "Workout deleted successfully!"


def test_delete_failure_notifies(controller: WorkoutFormController, banner):
    assert controller.delete("missing") is False

    assert (banner.message, banner.kind) == ("Failed to delete workout. Please try again.", "error")


def test_refresh_failure_notifies(banner):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"success": False, "error": "Failed to fetch workouts"})

    client = WorkoutClient(http=httpx.Client(base_url="http://api.test", transport=httpx.MockTransport(handler)))
    controller = WorkoutFormController(client, banner)

    assert controller.refresh() is False
    assert banner.message == "Failed to load workouts. Please try again."


def test_unexpected_submit_error_restores_state(controller: WorkoutFormController, monkeypatch):
    def broken_create(payload):
        raise KeyError("data")

    monkeypatch.setattr(controller.client, "create_workout", broken_create)
    _fill(controller)

    with pytest.raises(KeyError):
        controller.submit()

    assert controller.state is FormState.IDLE
    assert controller.fields.exercise_name == "Run"

    # The form still accepts events afterwards
    controller.cancel()
    assert controller.state is FormState.IDLE


# ============================================================================
# Real scheduler
# ============================================================================

def _wait_until(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


def test_banner_clears_on_background_scheduler():
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.start()
    try:
        banner = NotificationBanner(scheduler, timeout_seconds=0.5)
        banner.show("First")
        banner.show("Second", "error")

        assert len(scheduler.get_jobs()) == 1
        assert banner.message == "Second"
        assert _wait_until(lambda: not banner.visible)
        assert scheduler.get_jobs() == []
    finally:
        scheduler.shutdown(wait=False)


def test_open_form_controller_wires_live_scheduler(test_client: TestClient):
    with open_form_controller(http=test_client, timeout_seconds=1.0) as form:
        _fill(form)

        assert form.submit() is True
        assert form.banner.message == "Workout logged successfully!"
        assert [w["exerciseName"] for w in form.workouts] == ["Run"]
        assert _wait_until(lambda: not form.banner.visible)

    # Caller-owned transport stays usable after the controller closes
    assert test_client.get("/api/workouts").json()["count"] == 1
