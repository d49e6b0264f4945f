"""
VitaBalance API - Database Configuration.

SQLAlchemy engine, session factory, and declarative base for ORM models.
LAZY INITIALIZATION: the engine connects on first use, not at import time,
and is owned by an explicit Database object built once in the app lifespan.
"""

import threading
from contextlib import contextmanager
from typing import Iterator, Optional
import logging

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Declarative base for ORM models
Base = declarative_base()


class Database:
    """
    Row store connection manager.

    Wraps a lazily created engine and its session factory. One instance per
    process, created at startup and disposed at shutdown.

    Attributes:
        url: SQLAlchemy database URL.
    """

    def __init__(self, url: str):
        self.url = url
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        # Sessions on a single shared connection must not interleave
        self._shared_connection_lock = threading.RLock() if self.in_memory else None

    @property
    def in_memory(self) -> bool:
        return self.url.startswith("sqlite") and (":memory:" in self.url or self.url == "sqlite://")

    @property
    def engine(self) -> Engine:
        """
        Get or create the SQLAlchemy engine (lazy initialization).

        Returns:
            Engine: SQLAlchemy engine instance.
        """
        if self._engine is None:
            logger.info("Creating database engine...")
            try:
                if self.url.startswith("sqlite"):
                    kwargs = {"connect_args": {"check_same_thread": False}}
                    if self.in_memory:
                        # In-memory databases must share one connection across sessions
                        kwargs["poolclass"] = StaticPool
                    self._engine = create_engine(self.url, echo=False, **kwargs)
                else:
                    self._engine = create_engine(
                        self.url,
                        echo=False,
                        pool_size=5,
                        max_overflow=10,
                        pool_pre_ping=True,
                        pool_recycle=3600,
                        connect_args={
                            "connect_timeout": 10,
                            "application_name": "vitabalance-backend",
                        },
                    )
                logger.info("Database engine created successfully")
            except Exception as e:
                logger.error(f"Failed to create database engine: {e}")
                raise
        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        """
        Get or create the session factory (lazy initialization).

        Returns:
            sessionmaker: SQLAlchemy session factory.
        """
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                autocommit=False,
                autoflush=False,
                expire_on_commit=False,
            )
        return self._session_factory

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a session that is always closed, rolling back on error."""
        lock = self._shared_connection_lock
        if lock is None:
            with self._open_session() as db:
                yield db
        else:
            with lock, self._open_session() as db:
                yield db

    @contextmanager
    def _open_session(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def create_all(self) -> None:
        """Create every table registered on Base (idempotent)."""
        # Registers all models on Base.metadata
        import vitabalance.models  # noqa: F401

        Base.metadata.create_all(self.engine)

    def ping(self) -> bool:
        """Test store connectivity."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception:
            return False

    def dispose(self) -> None:
        """Close pooled connections."""
        if self._engine is not None:
            self._engine.dispose()
            logger.info("Database connections closed")
