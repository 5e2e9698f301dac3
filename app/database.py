"""Database session and base model setup."""
import sqlite3
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from app.config import get_settings


settings = get_settings()
# Sessions may be opened and closed on different threadpool workers
connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}
# SQL echo is driven by the sqlalchemy.engine logger level (see logging_config)
engine = create_engine(settings.database_url, future=True, connect_args=connect_args)


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Make SQLite writers wait for each other instead of failing with 'database is locked'."""
    if not isinstance(dbapi_conn, sqlite3.Connection):
        return
    cursor = dbapi_conn.cursor()
    cursor.execute(f"PRAGMA busy_timeout={int(settings.sqlite_busy_timeout_ms)}")
    cursor.close()


class Base(DeclarativeBase):
    """Declarative base for SQLAlchemy models."""


SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def get_db():
    """FastAPI dependency yielding a transactional database session."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def _alembic_config() -> Config:
    """Return a configured Alembic Config instance."""

    root = Path(__file__).resolve().parent.parent
    cfg = Config(str(root / "alembic.ini"))
    cfg.set_main_option("script_location", str(root / "migrations"))
    cfg.set_main_option("sqlalchemy.url", settings.database_url)
    return cfg


def run_migrations(target_revision: str = "head") -> None:
    """Apply Alembic migrations up to the specified revision."""

    cfg = _alembic_config()
    command.upgrade(cfg, target_revision)
