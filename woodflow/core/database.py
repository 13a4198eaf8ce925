"""
Database Configuration
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session, declarative_base
from typing import Generator

from woodflow.core.config import settings

db_url = settings.database_url


def sqlite_connect_args(url: str) -> dict:
    """Writers wait on a locked SQLite file instead of failing straight away"""
    if "sqlite" not in url:
        return {}
    return {"check_same_thread": False, "timeout": settings.SQLITE_BUSY_TIMEOUT_SECONDS}


engine = create_engine(
    db_url,
    connect_args=sqlite_connect_args(db_url),
    echo=settings.DEBUG
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """
    Dependency that provides a database session.
    Ensures the session is closed after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Initialize database tables"""
    # Register every model on Base.metadata
    import woodflow.models  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
