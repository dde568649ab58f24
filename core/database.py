import os
import logging
import threading
from contextlib import contextmanager

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from core.config import load_settings

logger = logging.getLogger(__name__)

# Base class for all models
Base = declarative_base()

TABLE_NAMES = ("patients", "doctors", "sync_queue")


def ensure_schema(engine: Engine) -> None:
    """
    Create the patients, doctors and sync_queue tables if they are missing.

    Safe to call on every start: existing tables and their rows are left
    untouched. Errors from the storage engine (e.g. a read-only filesystem)
    propagate; the process cannot continue without its tables.
    """
    # Importing the models registers their tables on Base.metadata
    import models  # noqa: F401

    existing = set(inspect(engine).get_table_names())
    missing = [name for name in TABLE_NAMES if name not in existing]
    if not missing:
        return

    logger.info("Creating tables: %s", ", ".join(missing))
    Base.metadata.create_all(bind=engine)


def _ensure_sqlite_dir(url: str) -> None:
    database = make_url(url).database
    if database and database != ":memory:":
        folder = os.path.dirname(os.path.abspath(database))
        os.makedirs(folder, exist_ok=True)


class Database:
    """
    Owned storage handle.

    The engine is built on first use and keeps one SQLite connection for the
    lifetime of the handle. Write transactions go through ``transaction()``,
    which holds a lock from BEGIN to COMMIT/ROLLBACK so two writers never
    interleave on the shared connection.

    Usage:
        db = Database("sqlite:///data/records.db")
        with db.transaction() as session:
            session.add(...)
    """

    def __init__(self, url: str | None = None, echo: bool = False):
        self.url = url or load_settings().database_url
        self.echo = echo
        self._engine = None
        self._session_factory = None
        self._lock = threading.RLock()

    @property
    def engine(self) -> Engine:
        with self._lock:
            if self._engine is None:
                if self.url.startswith("sqlite"):
                    _ensure_sqlite_dir(self.url)
                engine = create_engine(
                    self.url,
                    echo=self.echo,
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool,
                )
                ensure_schema(engine)
                self._session_factory = sessionmaker(
                    bind=engine,
                    autocommit=False,
                    autoflush=False,
                    expire_on_commit=False,
                )
                self._engine = engine
                logger.info("Database ready at %s", engine.url)
            return self._engine

    def session(self) -> Session:
        """Return a raw session; the caller closes it."""
        self.engine  # builds the engine and schema on first use
        return self._session_factory()

    @contextmanager
    def session_scope(self):
        """Session for single-statement work; closed when the block exits."""
        with self._lock:
            db = self.session()
            try:
                yield db
            finally:
                db.close()

    @contextmanager
    def transaction(self):
        """
        Run the block as one transaction.

        Commits when the block exits normally; rolls back and re-raises on
        any exception.
        """
        with self._lock:
            db = self.session()
            try:
                yield db
                db.commit()
            except Exception:
                db.rollback()
                raise
            finally:
                db.close()

    def dispose(self) -> None:
        with self._lock:
            if self._engine is not None:
                self._engine.dispose()
                self._engine = None
                self._session_factory = None
