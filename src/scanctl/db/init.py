"""Database initialization for scanctl."""

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from scanctl.db.models import Base


def create_db_engine(db_path: Path) -> Engine:
    # Scans call back from worker threads, so the connection must not be thread-bound.
    return create_engine(
        f"sqlite:///{db_path}",
        echo=False,
        connect_args={"check_same_thread": False},
    )


def init_db(db_path: Path) -> None:
    """Initialize the SQLite database with all tables."""
    # Ensure parent directory exists
    db_path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_db_engine(db_path)
    Base.metadata.create_all(engine)
    engine.dispose()
