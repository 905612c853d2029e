"""
Caribbean BCP Database Connection
Content database connection management using SQLAlchemy.
"""

import logging
from contextlib import contextmanager
from typing import Optional
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from config.settings import get_settings
from database.models import Base

logger = logging.getLogger(__name__)

engine = None
SessionLocal = None


def _normalize_url(database_url: str) -> str:
    # Hosted Postgres hands out postgres:// but SQLAlchemy needs postgresql://
    if database_url.startswith("postgres://"):
        return database_url.replace("postgres://", "postgresql://", 1)
    return database_url


def init_db(database_url: Optional[str] = None):
    """Initialize database engine and create tables."""
    global engine, SessionLocal

    settings = get_settings()
    database_url = _normalize_url(database_url or settings.database_url)

    if not database_url:
        logger.error("DATABASE_URL not set!")
        raise ValueError("DATABASE_URL environment variable is required")

    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=False
        )
    else:
        engine = create_engine(
            database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_timeout=30,
            pool_recycle=1800,
            pool_pre_ping=True,
            echo=False
        )

    SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine
    )

    # Create all tables
    Base.metadata.create_all(bind=engine)
    logger.info("Database initialized successfully")

    return engine


@contextmanager
def get_session_context():
    """Context manager for database sessions."""
    if SessionLocal is None:
        init_db()

    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()



def ensure_db():
    """Initialize the database unless a session factory already exists."""
    if SessionLocal is None:
        init_db()
    return engine
