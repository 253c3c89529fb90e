"""
Database Manager

Engine and session factory for the snapshot store.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.schemas.errors import PersistenceException
from core.storage.models import Base


logger = logging.getLogger(__name__)


def _is_memory_sqlite(database_url: str) -> bool:
    return database_url in ("sqlite://", "sqlite:///:memory:") or ":memory:" in database_url


class DatabaseManager:
    """Database manager"""

    def __init__(self, database_url: str, *, echo: bool = False):
        """
        Initialize database manager

        Args:
            database_url: SQLAlchemy connection URL
            echo: Log every SQL statement
        """
        self.database_url = database_url
        # In-memory SQLite must share one connection across threads
        if _is_memory_sqlite(database_url):
            self.engine = create_engine(
                database_url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        elif database_url.startswith("sqlite"):
            self.engine = create_engine(
                database_url,
                echo=echo,
                pool_pre_ping=True,
                connect_args={"check_same_thread": False},
            )
        else:
            self.engine = create_engine(
                database_url, echo=echo, pool_pre_ping=True, pool_size=10, max_overflow=20
            )
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine
        )

    def create_tables(self) -> None:
        """Create all tables"""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables ensured")

    def get_session(self) -> Session:
        """Get database session"""
        return self.SessionLocal()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """
        Transactional scope: commit on success, roll back on any error.

        Raises:
            PersistenceException: When the database raises SQLAlchemyError
        """
        session = self.get_session()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceException(f"Database error: {e}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        """Close database connection pool"""
        if hasattr(self, "engine"):
            self.engine.dispose()


__all__ = [
    "DatabaseManager",
]
