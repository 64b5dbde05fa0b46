"""SQLite engine and session plumbing for the registration store."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from coursereg.store.models import Base

if TYPE_CHECKING:
    from sqlalchemy import Engine

MEMORY = ":memory:"

_CONNECT_PRAGMAS = ("journal_mode=WAL", "foreign_keys=ON")


def _apply_pragmas(dbapi_connection: Any, _connection_record: object) -> None:
    cursor = dbapi_connection.cursor()
    for pragma in _CONNECT_PRAGMAS:
        cursor.execute(f"PRAGMA {pragma}")
    cursor.close()


class Database:
    """Lazily built engine plus a session factory that keeps objects loaded after commit.

    Every connection runs in WAL mode with foreign keys enforced. An in-memory
    database is pinned to a single shared connection so all sessions see it.
    """

    def __init__(self, db_path: str = "coursereg.db") -> None:
        self.db_path = db_path
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
            if self.db_path == MEMORY:
                options["poolclass"] = StaticPool
            else:
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self._engine = create_engine(f"sqlite:///{self.db_path}", **options)
            event.listen(self._engine, "connect", _apply_pragmas)
        return self._engine

    def create_tables(self) -> None:
        """Create all tables if they don't exist."""
        Base.metadata.create_all(self.engine)

    def get_session(self) -> Session:
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        return self._session_factory()

    def pragma(self, name: str) -> Any:
        """Read the current value of a SQLite pragma, e.g. ``journal_mode``."""
        with self.engine.connect() as conn:
            return conn.execute(text(f"PRAGMA {name}")).scalar()

    def close(self) -> None:
        """Dispose of the engine; the next access reconnects."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
