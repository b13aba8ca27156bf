"""Database connection object and session management"""

from sqlalchemy import create_engine, text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from fastapi import Request
from typing import Any, Dict, Generator, Optional
import logging

logger = logging.getLogger(__name__)

# Create base class for models
Base = declarative_base()

# Import models after Base is defined so metadata is populated.
from fadtrack import models  # noqa: E402,F401


class Database:
    """
    Explicit store connection.

    Owns the engine and the session factory. Constructed once at process
    start (or per test), opened before the first request and closed on
    shutdown.
    """

    def __init__(self, url: str, *, echo: bool = False, **engine_options: Any):
        self.url = url
        self.echo = echo
        self.engine_options: Dict[str, Any] = engine_options
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @classmethod
    def from_settings(cls, settings) -> "Database":
        url = settings.get_database_url()
        options: Dict[str, Any] = {}
        if not url.startswith("sqlite"):
            options.update(
                pool_size=settings.DATABASE_POOL_SIZE,
                max_overflow=settings.DATABASE_MAX_OVERFLOW,
                pool_timeout=30,
                pool_recycle=3600,
                pool_pre_ping=True,
            )
        else:
            options["connect_args"] = {"check_same_thread": False}
        return cls(url, echo=settings.DEBUG, **options)

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not open")
        return self._engine

    def open(self) -> "Database":
        """Create the engine and session factory (idempotent)."""
        if self._engine is None:
            self._engine = create_engine(self.url, echo=self.echo, **self.engine_options)
            self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
            logger.info("Database engine created (dialect=%s)", self._engine.dialect.name)
        return self

    def close(self) -> None:
        """Dispose pooled connections."""
        if self._engine is not None:
            self._engine.dispose()
            logger.info("Database engine disposed")
        self._engine = None
        self._session_factory = None

    def session(self) -> Session:
        if self._session_factory is None:
            raise RuntimeError("Database is not open")
        return self._session_factory()

    def create_all(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def init(self, mode: str, require_head: bool = True) -> None:
        """
        Initialize database according to configured strategy.

        DB_INIT_MODE:
          - migrate: require alembic_version table (migration-first discipline)
          - create_all: create tables from metadata, for local/dev bootstrap
          - off: skip initialization check
        """
        mode = mode.lower().strip()
        if mode == "off":
            logger.info("DB initialization check skipped (DB_INIT_MODE=off)")
            return

        if mode == "create_all":
            self.create_all()
            logger.warning("Using create_all database initialization (recommended only for local development).")
            return

        if mode == "migrate":
            with self.engine.connect() as conn:
                exists = "alembic_version" in inspect(conn).get_table_names()
            if require_head and not exists:
                raise RuntimeError(
                    "Migration table missing. Run Alembic migrations before starting the API."
                )
            logger.info("Migration metadata detected.")
            return

        raise RuntimeError(f"Unknown DB_INIT_MODE: {mode}")


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Dependency for getting database session

    Yields:
        Session: Database session bound to the application's store
    """
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
