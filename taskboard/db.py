# PURPOSE: own the SQLAlchemy engine and Session factory with an explicit lifecycle.
# The app opens one Database at startup (lifespan) and closes it at shutdown;
# tests open their own against a temporary SQLite file.

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

logger = logging.getLogger(__name__)

# Base: parent class for all ORM models (tables)
Base = declarative_base()


class Database:
    """Engine + Session factory for one DATABASE_URL."""

    def __init__(self, url: str):
        self.url = url
        self._engine: Engine | None = None
        self._sessionmaker: sessionmaker | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not open")
        return self._engine

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self, *, create_schema: bool = False) -> "Database":
        if self._engine is not None:
            return self
        # SQLite-specific connect_args only when needed
        connect_args = {"check_same_thread": False} if self.url.startswith("sqlite") else {}
        self._engine = create_engine(self.url, connect_args=connect_args, pool_pre_ping=True)
        # one Session per request
        self._sessionmaker = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
        if create_schema:
            # import registers the tables on Base.metadata
            from . import db_models  # noqa: F401

            Base.metadata.create_all(bind=self._engine)
        logger.info("database opened url=%s", self._engine.url.render_as_string(hide_password=True))
        return self

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        logger.info("database closed")

    def new_session(self) -> Session:
        if self._sessionmaker is None:
            raise RuntimeError("Database is not open")
        return self._sessionmaker()

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self.new_session()
        try:
            yield db
        finally:
            db.close()
