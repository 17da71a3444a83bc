"""Engine and session factory"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from roast_api.core.config import settings


def build_engine(url: str):
    """Create an engine for *url*; SQLite gets thread-sharing enabled for dev/test use."""
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False, "timeout": 30})
    return create_engine(
        url,
        pool_size=10,
        max_overflow=20,
        pool_timeout=30,
        pool_pre_ping=True,  # handles stale connections
        pool_recycle=3600,
    )


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
