"""Workout log CRUD endpoints."""
from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import NotFoundError, StoreFault, ValidationError
from app.models.schemas import (
    ErrorEnvelope,
    WorkoutCreate,
    WorkoutEnvelope,
    WorkoutListEnvelope,
    WorkoutResponse,
    WorkoutStatsEnvelope,
    WorkoutStatsResponse,
    WorkoutUpdate,
)
from app.services.workout_store import WorkoutStore


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/workouts", tags=["workouts"])

ERROR_RESPONSES = {
    400: {"model": ErrorEnvelope, "description": "Invalid workout fields"},
    404: {"model": ErrorEnvelope, "description": "Workout not found"},
    500: {"model": ErrorEnvelope, "description": "Unexpected failure"},
}


def get_store(db: Annotated[Session, Depends(get_db)]) -> WorkoutStore:
    """FastAPI dependency wrapping the request session in a WorkoutStore."""
    return WorkoutStore(db)


def error_response(status_code: int, message: str) -> JSONResponse:
    """Render the failure envelope."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorEnvelope(error=message).model_dump(by_alias=True),
    )


@router.post(
    "",
    response_model=WorkoutEnvelope,
    response_model_exclude_none=True,
    status_code=201,
    responses=ERROR_RESPONSES,
)
def create_workout(
    payload: WorkoutCreate,
    store: Annotated[WorkoutStore, Depends(get_store)],
):
    """
    Log a new workout.

    Returns:
        WorkoutEnvelope: The stored record with its generated id and createdAt
    """
    try:
        workout = store.create(payload.model_dump())
        return WorkoutEnvelope(
            message="Workout logged successfully",
            data=WorkoutResponse.model_validate(workout),
        )
    except ValidationError as e:
        return error_response(400, str(e))
    except StoreFault:
        return error_response(500, "Failed to log workout")
    except Exception:
        logger.exception("Failed to log workout")
        return error_response(500, "Failed to log workout")


@router.get(
    "",
    response_model=WorkoutListEnvelope,
    response_model_exclude_none=True,
    responses={500: ERROR_RESPONSES[500]},
)
def list_workouts(store: Annotated[WorkoutStore, Depends(get_store)]):
    """List every workout, most recently logged first."""
    try:
        workouts = store.list()
        logger.debug("Listed %d workouts", len(workouts))
        return WorkoutListEnvelope(
            count=len(workouts),
            data=[WorkoutResponse.model_validate(w) for w in workouts],
        )
    except StoreFault:
        return error_response(500, "Failed to fetch workouts")
    except Exception:
        logger.exception("Failed to fetch workouts")
        return error_response(500, "Failed to fetch workouts")


@router.get(
    "/stats",
    response_model=WorkoutStatsEnvelope,
    response_model_exclude_none=True,
    responses={500: ERROR_RESPONSES[500]},
)
def get_workout_stats(store: Annotated[WorkoutStore, Depends(get_store)]):
    """Totals for the dashboard: workouts logged, minutes trained, calories burned."""
    try:
        stats = store.stats()
        return WorkoutStatsEnvelope(data=WorkoutStatsResponse.model_validate(stats))
    except StoreFault:
        return error_response(500, "Failed to fetch workout stats")
    except Exception:
        logger.exception("Failed to fetch workout stats")
        return error_response(500, "Failed to fetch workout stats")


@router.get(
    "/{workout_id}",
    response_model=WorkoutEnvelope,
    response_model_exclude_none=True,
    responses={404: ERROR_RESPONSES[404], 500: ERROR_RESPONSES[500]},
)
def get_workout(
    workout_id: str,
    store: Annotated[WorkoutStore, Depends(get_store)],
):
    """Fetch a single workout by id."""
    try:
        workout = store.get(workout_id)
        return WorkoutEnvelope(data=WorkoutResponse.model_validate(workout))
    except NotFoundError as e:
        return error_response(404, str(e))
    except StoreFault:
        return error_response(500, "Failed to fetch workout")
    except Exception:
        logger.exception("Failed to fetch workout %s", workout_id)
        return error_response(500, "Failed to fetch workout")


@router.put(
    "/{workout_id}",
    response_model=WorkoutEnvelope,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
def update_workout(
    workout_id: str,
    payload: WorkoutUpdate,
    store: Annotated[WorkoutStore, Depends(get_store)],
):
    """
    Update a workout's exercise name, duration, calories or date.

    Args:
        workout_id: Workout id
        payload: Fields to change; omitted fields are left as they are

    Returns:
        WorkoutEnvelope: The updated record, id and createdAt unchanged
    """
    try:
        workout = store.update(workout_id, payload.model_dump(exclude_none=True))
        return WorkoutEnvelope(
            message="Workout updated successfully",
            data=WorkoutResponse.model_validate(workout),
        )
    except NotFoundError as e:
        return error_response(404, str(e))
    except ValidationError as e:
        return error_response(400, str(e))
    except StoreFault:
        return error_response(500, "Failed to update workout")
    except Exception:
        logger.exception("Failed to update workout %s", workout_id)
        return error_response(500, "Failed to update workout")


@router.delete(
    "/{workout_id}",
    response_model=WorkoutEnvelope,
    response_model_exclude_none=True,
    responses={404: ERROR_RESPONSES[404], 500: ERROR_RESPONSES[500]},
)
def delete_workout(
    workout_id: str,
    store: Annotated[WorkoutStore, Depends(get_store)],
):
    """Permanently delete a workout; the removed record is echoed back."""
    try:
        workout = store.delete(workout_id)
        return WorkoutEnvelope(
            message="Workout deleted successfully",
            data=WorkoutResponse.model_validate(workout),
        )
    except NotFoundError as e:
        return error_response(404, str(e))
    except StoreFault:
        return error_response(500, "Failed to delete workout")
    except Exception:
        logger.exception("Failed to delete workout %s", workout_id)
        return error_response(500, "Failed to delete workout")
