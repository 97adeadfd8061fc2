import logging
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from purchase_tracker.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(database_url: str):
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)


engine = build_engine(settings.database_url) if settings.database_url else None

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Optional[Session]]:
    """Yield a session per request, or None when no database is configured."""
    if engine is None:
        logger.warning("DATABASE_URL is not set, persistence is disabled")
        yield None
        return

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
