"""
Database connection management for the helpdesk workflow.
"""
import logging
from typing import Iterator, Optional
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session, DeclarativeBase
from sqlalchemy.pool import QueuePool
from contextlib import contextmanager

from src.config.settings import settings

logger = logging.getLogger(__name__)


# SQLAlchemy 2.0 base class for models
class Base(DeclarativeBase):
    pass


class DatabaseManager:
    """Database connection and session management"""

    def __init__(self, database_url: Optional[str] = None):
        self._database_url = database_url
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def database_url(self) -> str:
        return self._database_url or settings.database.database_url

    def initialize(self) -> None:
        """Initialize database connection and session factory"""
        try:
            if self.database_url.startswith('sqlite'):
                self._engine = create_engine(
                    self.database_url,
                    echo=settings.app.debug,
                    connect_args={"check_same_thread": False}
                )
            else:
                # PostgreSQL configuration with connection pooling
                self._engine = create_engine(
                    self.database_url,
                    poolclass=QueuePool,
                    pool_size=settings.database.database_pool_size,
                    max_overflow=settings.database.database_max_overflow,
                    pool_timeout=settings.database.database_pool_timeout,
                    pool_pre_ping=True,
                    echo=settings.app.debug,
                )

            self._session_factory = sessionmaker(
                bind=self._engine,
                expire_on_commit=False
            )

            logger.info("Database connection initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize database connection: {e}")
            raise

    def get_engine(self) -> Engine:
        """Get the database engine"""
        if self._engine is None:
            self.initialize()
        return self._engine

    def get_session_factory(self) -> sessionmaker:
        """Get the session factory"""
        if self._session_factory is None:
            self.initialize()
        return self._session_factory

    @contextmanager
    def get_session(self) -> Iterator[Session]:
        """Get a database session with automatic cleanup"""
        session = self.get_session_factory()()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        finally:
            session.close()

    def create_tables(self) -> None:
        """Create all tables registered on the declarative base"""
        # Model modules register their tables on import
        import src.security.models  # noqa: F401
        import src.ticket.models  # noqa: F401
        import src.notification.models  # noqa: F401

        Base.metadata.create_all(bind=self.get_engine())
        logger.info("Database tables created successfully")

    def test_connection(self) -> bool:
        """Test database connection"""
        try:
            with self.get_session() as session:
                result = session.execute(text("SELECT 1"))
                return result.scalar() == 1
        except Exception as e:
            logger.error(f"Database connection test failed: {e}")
            return False

    def close(self) -> None:
        """Close database connections"""
        if self._engine:
            self._engine.dispose()
            logger.info("Database connections closed")


# Global database manager instance
db_manager = DatabaseManager()


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """Commit the enclosed writes as one unit, rolling back on any error."""
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise


def get_db_session() -> Iterator[Session]:
    """Dependency function to get database session for FastAPI"""
    with db_manager.get_session() as session:
        yield session


def init_database() -> None:
    """Initialize database connection and create missing tables"""
    db_manager.initialize()
    db_manager.create_tables()


def test_database_connection() -> bool:
    """Test database connection"""
    return db_manager.test_connection()


def close_database() -> None:
    """Close database connections"""
    db_manager.close()
