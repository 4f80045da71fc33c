"""
Database Management and Connection Handling

Engine creation and session factories for the billing engine.
"""

from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from .config import settings
from .logging import get_logger

logger = get_logger(__name__)


class DatabaseManager:
    """Main database connection and session manager"""

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or settings.database.DATABASE_URL
        self.engine: Optional[Engine] = None
        self.session_factory: Optional[sessionmaker] = None

    def initialize(self) -> None:
        """Create the engine and session factory once"""
        if self.engine is not None:
            return

        self.engine = create_db_engine(self.database_url)
        self.session_factory = sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info("Database manager initialized", extra={
            "driver": self.engine.dialect.name,
        })

    def create_tables(self) -> None:
        """Create all tables known to the declarative base"""
        from challan_engine.models import Base

        self.initialize()
        Base.metadata.create_all(bind=self.engine)

    def get_session(self) -> Session:
        self.initialize()
        return self.session_factory()


def create_db_engine(database_url: str, echo: Optional[bool] = None) -> Engine:
    """Create a database engine with settings appropriate for the driver"""
    engine_kwargs = {
        "echo": settings.database.DB_ECHO if echo is None else echo,
        "future": True,
    }

    if database_url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs.update({
            "pool_size": settings.database.DB_POOL_SIZE,
            "max_overflow": settings.database.DB_MAX_OVERFLOW,
            "pool_recycle": settings.database.DB_POOL_RECYCLE,
            "pool_pre_ping": True,
        })

    engine = create_engine(database_url, **engine_kwargs)

    if database_url.startswith("sqlite"):
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    return engine


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


db_manager = DatabaseManager()


def init_db() -> None:
    """Create the schema (development and tests; use migrations in production)"""
    db_manager.create_tables()


def get_db() -> Iterator[Session]:
    """FastAPI dependency yielding a session per request"""
    session = db_manager.get_session()
    try:
        yield session
    finally:
        session.close()


__all__ = [
    "DatabaseManager",
    "create_db_engine",
    "db_manager",
    "init_db",
    "get_db",
]
