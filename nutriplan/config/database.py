"""
SQL database connection using SQLAlchemy.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from nutriplan.models.database import Base

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Engine + session factory for the durable key-value table."""

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        self.engine: Engine = create_engine(database_url, echo=echo, future=True)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        self._initialize_schema()

    def _initialize_schema(self) -> None:
        Base.metadata.create_all(bind=self.engine)
        logger.info("✅ Database schema ready (driver=%s)", self.engine.dialect.name)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Session in a transaction; commits on success, rolls back on error."""
        session = self._session_factory()
        try:
            with session.begin():
                yield session
        finally:
            session.close()

    def health_check(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as exc:
            logger.exception("Database health_check failed: %s", exc)
            return False

    def diagnostics(self) -> Dict[str, Any]:
        """Non-sensitive info about the connection; never includes credentials."""
        diag: Dict[str, Any] = {"driver": self.engine.dialect.name, "database": None}
        try:
            diag["database"] = make_url(self.database_url).database
        except Exception:
            diag["database"] = "parse-error"
        return diag

    def dispose(self) -> None:
        self.engine.dispose()
