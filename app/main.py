"""FastAPI application entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import get_settings
from app.logging_config import configure_logging
from app.models.schemas import ErrorEnvelope
from app.routers import workouts


logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "Exercise name, duration, calories burned, and workout date are required"


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Fitness log API starting | database=%s", get_settings().database_url)
    yield
    logger.info("Fitness log API shutting down")


app = FastAPI(title="Fitness Log API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _envelope(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorEnvelope(error=message).model_dump(by_alias=True),
    )


def describe_request_errors(errors: list[dict]) -> str:
    """Turn pydantic request errors into a single user-facing sentence."""

    if any(err.get("type") == "json_invalid" for err in errors):
        return "Request body must be valid JSON"
    if any(err.get("type") == "missing" for err in errors):
        return REQUIRED_FIELDS_MESSAGE

    parts = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "body"
        parts.append(f"{field}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = describe_request_errors(list(exc.errors()))
    logger.warning("Rejected %s %s: %s", request.method, request.url.path, message)
    return _envelope(400, message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _envelope(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _envelope(500, "Internal server error")


@app.get("/", tags=["system"])
async def root() -> dict[str, str]:
    """Banner confirming the API is reachable."""
    return {"message": "Fitness Tracker API is running!"}


@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Liveness check for load balancers and process supervisors."""
    return {"status": "ok"}


# Include routers
app.include_router(workouts.router)
