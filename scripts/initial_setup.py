"""Create the data directory and bring the database schema up to date."""
from pathlib import Path

from app.config import get_settings
from app.database import run_migrations
from app.logging_config import configure_logging


def main() -> None:
    configure_logging()
    data_dir = Path("data")
    data_dir.mkdir(exist_ok=True)
    run_migrations()
    print("Database initialised at", get_settings().database_url)


if __name__ == "__main__":
    main()
