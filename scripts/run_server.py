"""Run the workout log API with uvicorn."""
from __future__ import annotations

import argparse

import uvicorn

from app.config import get_settings
from app.logging_config import configure_logging


def parse_args() -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Run the fitness log API server")
    parser.add_argument("--host", default=settings.app_host, help=f"Bind address (default: {settings.app_host})")
    parser.add_argument("--port", type=int, default=settings.app_port, help=f"Port (default: {settings.app_port})")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    configure_logging()
    uvicorn.run(
        "app.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,  # keep the handlers from configure_logging()
    )


if __name__ == "__main__":
    main()
