"""Database engine and request-scoped sessions."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from furips.core.config import settings
from furips.db.models import Base

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Lazily create the engine for DATABASE_URL."""
    url = make_url(settings.DATABASE_URL)
    connect_args = {}
    if url.get_backend_name() == "sqlite":
        connect_args["check_same_thread"] = False
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Creating database engine: backend={url.get_backend_name()}")
    return create_engine(
        url, echo=settings.DATABASE_ECHO, pool_pre_ping=True, connect_args=connect_args
    )


@lru_cache(maxsize=1)
def get_sessionmaker() -> sessionmaker:
    return sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)


def init_db(engine: Engine | None = None) -> None:
    """Create missing tables."""
    Base.metadata.create_all(bind=engine or get_engine())


def get_db() -> Iterator[Session]:
    """FastAPI dependency yielding one session per request."""
    db = get_sessionmaker()()
    try:
        yield db
    finally:
        db.close()
