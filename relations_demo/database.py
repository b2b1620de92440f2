from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

logger = logging.getLogger(__name__)


class StoreClosedError(RuntimeError):
    pass


class Store:
    """An open database: engine plus session factory.

    Created by ``open_store`` and released with ``close``. Components that
    need the database receive the store explicitly.
    """

    def __init__(self, engine: Engine):
        self._engine: Engine | None = engine
        self._sessionmaker = sessionmaker(
            bind=engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
        )

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise StoreClosedError("Store has been closed")
        return self._engine

    @property
    def closed(self) -> bool:
        return self._engine is None

    @property
    def database_name(self) -> str:
        return self.engine.url.database or self.engine.url.drivername

    def session(self) -> Session:
        return self._sessionmaker(bind=self.engine)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Provide a transactional scope around a series of operations."""
        session = self.session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def check_connection(self) -> None:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.exception("Connection couldn't be made to %s", self.database_name)
            raise
        logger.info("Connection made to database: %s", self.database_name)

    def create_schema(self, reset: bool = False) -> None:
        """Create all tables; with ``reset`` drop them first."""
        if reset:
            Base.metadata.drop_all(bind=self.engine)
        Base.metadata.create_all(bind=self.engine)

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def open_store(url: str, echo: bool = False) -> Store:
    """Create an engine for ``url`` and wrap it in a ``Store``.

    In-memory SQLite keeps a single shared connection so every session
    sees the same database.
    """
    parsed = make_url(url)
    kwargs = {"echo": echo}
    if parsed.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if parsed.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)
    return Store(engine)


def get_db(request: Request) -> Iterator[Session]:
    """Yield a session bound to the application's store and always close it.

    Endpoints are responsible for doing commit / rollback explicitly.
    """
    store: Store = request.app.state.store
    db = store.session()
    try:
        yield db
    finally:
        db.close()
