"""
Database connection and session management
"""

from typing import Generator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool
import structlog

from soilsense.core.config import Settings

logger = structlog.get_logger(__name__)

# Create base class for models
Base = declarative_base()


def build_engine(settings: Settings) -> Engine:
    """Create the engine described by the settings"""
    url = settings.database_url
    if url.startswith("sqlite"):
        # One shared connection so in-memory databases survive across sessions
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=settings.debug,
        )

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=300,
        echo=settings.debug
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    """Create session factory"""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_database(request: Request) -> Generator[Session, None, None]:
    """Get database session"""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def init_database(engine: Engine) -> None:
    """Initialize database tables"""
    try:
        # Import all models to ensure they are registered
        from soilsense.models import device, user  # noqa

        # Create all tables
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise
