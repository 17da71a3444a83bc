"""Initialize database tables"""
import logging
from roast_api.db.base import Base
from roast_api.db.session import engine
import roast_api.models  # noqa: F401  registers every table on Base.metadata

logger = logging.getLogger(__name__)


def init_db(bind=None) -> None:
    """Create all database tables"""
    try:
        Base.metadata.create_all(bind=bind or engine)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error creating database tables: {str(e)}")
        raise
