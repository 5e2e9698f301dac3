"""Pytest configuration for global fixtures and logging setup."""
from __future__ import annotations

import os
from typing import Any, Dict, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ["DATABASE_URL"] = os.environ.get("DATABASE_URL") or "sqlite://"
os.environ["LOG_LEVEL"] = os.environ.get("LOG_LEVEL") or "DEBUG"

from app.logging_config import configure_logging

configure_logging()

from app.database import Base, get_db
from app.main import app
from app.models.database_models import Workout  # noqa: F401  (registers the table)
from app.services.workout_store import WorkoutStore


@pytest.fixture
def db_engine() -> Iterator[Engine]:
    """Fresh in-memory SQLite database per test, shared across threads."""

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine: Engine) -> Iterator[Session]:
    """Session bound to the in-memory database."""

    session = sessionmaker(bind=db_engine, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def store(db_session: Session) -> WorkoutStore:
    return WorkoutStore(db_session)


@pytest.fixture
def test_client(db_engine: Engine) -> Iterator[TestClient]:
    """Provide a FastAPI test client backed by the in-memory database."""

    TestingSession = sessionmaker(bind=db_engine, autoflush=False)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def workout_payload() -> Dict[str, Any]:
    """A valid create payload in wire format."""

    return {
        "exerciseName": "Run",
        "duration": 30,
        "caloriesBurned": 250,
        "workoutDate": "2024-01-01",
    }
