"""Database models for scanctl using SQLAlchemy."""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import declarative_base


def _utc_now() -> datetime:
    return datetime.now(UTC)


Base = declarative_base()


class ExcludedRegex(Base):
    """A URL pattern that active scans must not touch."""

    __tablename__ = "excluded_from_scan"

    id = Column(Integer, primary_key=True)
    pattern = Column(String, nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), default=_utc_now)
