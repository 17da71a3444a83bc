"""FastAPI dependencies"""
from typing import Iterator

from sqlalchemy.orm import Session

from roast_api.db.session import SessionLocal


def get_db() -> Iterator[Session]:
    """
    One session per request. Services commit their own units of work; anything
    left open when the request fails is rolled back before the session closes.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
