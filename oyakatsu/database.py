"""Database connection and lifecycle."""

import logging
from typing import Iterator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

# Import all models so SQLModel registers them
import oyakatsu.models  # noqa: F401

logger = logging.getLogger(__name__)


class Database:
    """Owns the engine for one process: open on startup, close on shutdown.

    Every transaction is opened with ``BEGIN IMMEDIATE`` so that the
    read-check-write sequences in the services (code re-issue, refresh
    rotation, family creation, join) hold the write lock from their first
    read. Unique indexes remain the backstop.
    """

    def __init__(self, url: str, echo: bool = False, busy_timeout: int = 30):
        self.url = url
        self.echo = echo
        self.busy_timeout = busy_timeout
        self._engine: Engine | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not open")
        return self._engine

    def open(self) -> None:
        """Create the engine and all tables."""
        if self._engine is not None:
            return
        engine = create_engine(
            self.url,
            echo=self.echo,
            connect_args={"check_same_thread": False, "timeout": self.busy_timeout},
        )
        event.listen(engine, "connect", _on_connect)
        event.listen(engine, "begin", _on_begin)
        SQLModel.metadata.create_all(engine)
        self._engine = engine
        logger.info("Database opened: %s", self.url)

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        logger.info("Database closed")

    def session(self) -> Session:
        return Session(self.engine)


def _on_connect(dbapi_connection, connection_record) -> None:
    # Take transaction control away from pysqlite; _on_begin emits BEGIN itself.
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _on_begin(conn) -> None:
    conn.exec_driver_sql("BEGIN IMMEDIATE")


def get_session(request: Request) -> Iterator[Session]:
    """FastAPI dependency: yields a database session."""
    with request.app.state.db.session() as session:
        yield session
