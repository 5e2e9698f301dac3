"""HTTP client for the workout log API."""
from __future__ import annotations

import logging
from typing import Any

import httpx

from app.config import get_settings


logger = logging.getLogger(__name__)

WORKOUTS_PATH = "/api/workouts"


class ApiError(Exception):
    """Raised when the API answers with a failure envelope or cannot be reached."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class WorkoutClient:
    """
    Thin wrapper over the workout endpoints.

    Each method returns the envelope's ``data`` and raises ``ApiError`` with
    the server's user-facing ``error`` text on failure. Any ``httpx.Client``
    works as transport, including FastAPI's ``TestClient``.
    """

    def __init__(self, http: httpx.Client | None = None, base_url: str | None = None, timeout: float = 10.0):
        if http is None:
            http = httpx.Client(base_url=base_url or get_settings().api_base_url, timeout=timeout)
        self.http = http

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "WorkoutClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, fallback: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = self.http.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiError(0, fallback) from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if not isinstance(body, dict):
            raise ApiError(response.status_code, fallback)
        if response.is_error or not body.get("success"):
            raise ApiError(response.status_code, body.get("error") or fallback)
        return body

    def list_workouts(self) -> list[dict[str, Any]]:
        body = self._request("GET", WORKOUTS_PATH, "Failed to load workouts. Please try again.")
        return body.get("data", [])

    def get_stats(self) -> dict[str, int]:
        body = self._request("GET", f"{WORKOUTS_PATH}/stats", "Failed to load workout stats.")
        return body["data"]

    def create_workout(self, payload: dict[str, Any]) -> dict[str, Any]:
        body = self._request("POST", WORKOUTS_PATH, "Failed to save workout. Please try again.", json=payload)
        return body["data"]

    def update_workout(self, workout_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        body = self._request(
            "PUT",
            f"{WORKOUTS_PATH}/{workout_id}",
            "Failed to save workout. Please try again.",
            json=payload,
        )
        return body["data"]

    def delete_workout(self, workout_id: str) -> dict[str, Any]:
        body = self._request(
            "DELETE",
            f"{WORKOUTS_PATH}/{workout_id}",
            "Failed to delete workout. Please try again.",
        )
        return body["data"]
