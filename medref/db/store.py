"""Relational store adapter.

Thin wrapper over a SQLAlchemy engine that owns schema creation and the
connection lifecycle. Each call opens its own connection and releases it before
returning; nothing is shared between calls.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Mapping, TypeVar

from sqlalchemy import MetaData, text
from sqlalchemy.engine import Row, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql.expression import Executable

from medref.core.config import settings
from medref.core.errors import StoreUnavailable
from medref.db import models  # noqa: F401  (registers tables on the metadata)
from medref.db.base import Base, HistoryBase
from medref.db.session import create_store_engine, is_sqlite_memory, make_session_factory

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RelationalStore:
    def __init__(self, database_uri: str, metadata: MetaData, *, echo: bool = False) -> None:
        self.database_uri = database_uri
        self.metadata = metadata
        self.engine = create_store_engine(database_uri, echo=echo)
        self._session_factory = make_session_factory(self.engine)

    @classmethod
    def for_medication_data(cls, database_uri: str | None = None) -> "RelationalStore":
        return cls(database_uri or settings.sqlalchemy_database_uri, Base.metadata, echo=settings.sql_echo)

    @classmethod
    def for_plan_history(cls, database_uri: str | None = None) -> "RelationalStore":
        return cls(
            database_uri or settings.plan_history_database_uri,
            HistoryBase.metadata,
            echo=settings.sql_echo,
        )

    @property
    def display_uri(self) -> str:
        return make_url(self.database_uri).render_as_string(hide_password=True)

    def ensure_schema(self) -> None:
        """Create this store's tables if they do not exist yet.

        Safe to call repeatedly. Raises StoreUnavailable when the database file
        (or its directory) cannot be created, opened, or written.
        """
        self._ensure_parent_dir()
        try:
            self.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            logger.exception("Failed to ensure schema at %s", self.display_uri)
            raise StoreUnavailable(f"cannot open or create schema at {self.display_uri}") from exc

    def run_transaction(self, fn: Callable[[Session], T]) -> T:
        """Run ``fn`` inside one transaction on a fresh connection.

        Commits when ``fn`` returns, rolls back and re-raises when anything in
        ``fn`` (or the commit itself) raises.
        """
        with self._session() as session:
            try:
                result = fn(session)
                session.commit()
            except Exception:
                session.rollback()
                logger.warning("Transaction rolled back on %s", self.display_uri)
                raise
            return result

    def read(self, fn: Callable[[Session], T]) -> T:
        with self._session() as session:
            try:
                return fn(session)
            finally:
                session.rollback()

    def query(self, sql: str | Executable, params: Mapping[str, Any] | None = None) -> list[Row]:
        statement = text(sql) if isinstance(sql, str) else sql

        def _execute(db: Session) -> list[Row]:
            if params:
                return db.execute(statement, dict(params)).all()
            return db.execute(statement).all()

        return self.read(_execute)

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            connection = self.engine.connect()
        except SQLAlchemyError as exc:
            logger.exception("Failed to open connection to %s", self.display_uri)
            raise StoreUnavailable(f"cannot open database at {self.display_uri}") from exc

        session = self._session_factory(bind=connection)
        try:
            yield session
        finally:
            session.close()
            connection.close()

    def _ensure_parent_dir(self) -> None:
        url = make_url(self.database_uri)
        if url.get_backend_name() != "sqlite" or is_sqlite_memory(self.database_uri):
            return

        parent = Path(url.database).parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.exception("Failed to create database directory %s", parent)
            raise StoreUnavailable(f"cannot create database directory {parent}") from exc
