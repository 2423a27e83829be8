"""Database session configuration.

WHAT:
    Provides the sync SQLAlchemy engine and session factory used to read the
    campaign/ad snapshot, and the FastAPI dependency yielding a session.

WHY:
    The chat service issues two read-only queries per request; a plain sync
    session (run in FastAPI's threadpool) is all it needs.

USAGE:
    from adinsight.database import get_db

    @router.post("/chat")
    def chat(db: Session = Depends(get_db)):
        ...

REFERENCES:
    - adinsight/services/dataset_loader.py (the only consumer of sessions)
"""

import logging
import os
from typing import Generator

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./adinsight.db"


def _get_database_url() -> str:
    """Get DATABASE_URL from environment, loading .env if needed.

    Falls back to a local SQLite file so the service starts without setup.
    """
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        # Developer convenience; never overrides exported variables
        if load_dotenv(override=False):
            logger.info("Loaded local .env file (existing variables were NOT overwritten)")
        database_url = os.getenv("DATABASE_URL")

    return database_url or DEFAULT_DATABASE_URL


DATABASE_URL = _get_database_url()

# SQLite engines (tests/dev) do not support pool_size/max_overflow.
if DATABASE_URL.startswith("sqlite"):
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
    )
else:
    engine = create_engine(
        DATABASE_URL,
        pool_size=10,
        max_overflow=20,
        pool_recycle=3600,      # Recycle connections every hour
        pool_pre_ping=True,     # Validate connections before use
    )

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for FastAPI dependency injection.

    Example:
        @app.get("/items")
        def get_items(db: Session = Depends(get_db)):
            return db.query(Item).all()
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
