"""Session state shared by all scans: the exclude-from-scan patterns."""

import logging
import re
import threading
from pathlib import Path

from sqlalchemy.orm import sessionmaker

from scanctl.db.init import create_db_engine
from scanctl.db.models import ExcludedRegex

logger = logging.getLogger(__name__)


class SessionManager:
    """Persists the URL patterns active scans must skip.

    Database errors (``sqlalchemy.exc.SQLAlchemyError``) are propagated to the caller.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.engine = create_db_engine(db_path)
        Session = sessionmaker(bind=self.engine)
        self.session = Session()
        self._lock = threading.Lock()
        self._compiled: list[re.Pattern[str]] | None = None

    def close(self) -> None:
        with self._lock:
            self.session.close()
            self.engine.dispose()

    def get_excluded_regexes(self) -> list[str]:
        """Return the exclusion patterns in insertion order."""
        with self._lock:
            rows = self.session.query(ExcludedRegex).order_by(ExcludedRegex.id).all()
            return [row.pattern for row in rows]

    def add_excluded_regex(self, regex: str) -> bool:
        """Add a pattern. Returns False if it was already present.

        Raises:
            ValueError: if ``regex`` is not a valid regular expression.
        """
        _compile(regex)
        with self._lock:
            exists = self.session.query(ExcludedRegex).filter_by(pattern=regex).first()
            if exists is not None:
                return False
            self.session.add(ExcludedRegex(pattern=regex))
            self._commit()
        logger.info("Excluded from scan: %s", regex)
        return True

    def set_excluded_regexes(self, regexes: list[str]) -> None:
        """Replace all patterns; nothing changes if any pattern is invalid."""
        for regex in regexes:
            _compile(regex)
        with self._lock:
            self.session.query(ExcludedRegex).delete()
            for regex in dict.fromkeys(regexes):
                self.session.add(ExcludedRegex(pattern=regex))
            self._commit()

    def clear_excluded_regexes(self) -> None:
        self.set_excluded_regexes([])
        logger.info("Cleared exclude-from-scan patterns")

    def is_excluded(self, url: str) -> bool:
        """True if the URL fully matches any exclusion pattern."""
        with self._lock:
            if self._compiled is None:
                rows = self.session.query(ExcludedRegex).order_by(ExcludedRegex.id).all()
                self._compiled = [_compile(row.pattern) for row in rows]
            patterns = self._compiled
        return any(pattern.fullmatch(url) for pattern in patterns)

    def _commit(self) -> None:
        self._compiled = None
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise


def _compile(regex: str) -> re.Pattern[str]:
    try:
        return re.compile(regex)
    except re.error as exc:
        raise ValueError(f"Invalid regex {regex!r}: {exc}") from exc
