"""
Database configuration and session management.
Uses SQLAlchemy 2.0 patterns with a synchronous engine.
"""

import os
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker, Session

from shared.config.settings import DATABASE_URL


def _calculate_pool_size() -> int:
    """(2 * CPU cores) + 1, capped at 20."""
    cores = os.cpu_count() or 4
    return min(cores * 2 + 1, 20)


def _engine_options(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        # Local runs only; SQLite has no pool sizing and shares across threads
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": _calculate_pool_size(),
        "max_overflow": 15,
        "pool_timeout": 30,
        "pool_recycle": 1800,
        "connect_args": {"connect_timeout": 10},
    }


engine = create_engine(DATABASE_URL, echo=False, **_engine_options(DATABASE_URL))

# Session factory
SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency for database sessions.

    Usage:
        @router.get("/api/orders/{order_id}")
        def get_order(order_id: int, db: Session = Depends(get_db)):
            ...

    The session is closed after the request completes.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def safe_commit(db: Session) -> None:
    """
    Commit, rolling back on failure.

    Raises the original exception after rolling back so no partial state
    survives a failed mutation.
    """
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


@contextmanager
def atomic(db: Session) -> Generator[Session, None, None]:
    """
    Run a block as one transaction: commit on success, roll back on any error.

    A unique/check constraint violation at commit time is reported as a
    ConflictError so callers can retry.

    Usage:
        with atomic(db):
            order = lock_order(db, order_id)
            order.status = "ready"
    """
    from shared.utils.exceptions import ConflictError

    try:
        yield db
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("Concurrent update conflict, please retry", error=str(e.orig))
    except Exception:
        db.rollback()
        raise
