from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from reviews_api.core.config import settings

SQLITE_BUSY_TIMEOUT_SECONDS = 15


def _make_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        # Concurrent creates queue on the writer lock instead of failing with "database is locked".
        connect_args = {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT_SECONDS}
        return create_engine(url, echo=False, future=True, connect_args=connect_args)
    return create_engine(url, echo=False, future=True, pool_pre_ping=True)


engine = _make_engine(settings.database_url)
# Reviews stay readable after commit; the manager builds responses from them.
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
