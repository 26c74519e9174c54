"""
Infrastructure module: database sessions and request correlation.
"""

from shared.infrastructure.db import (
    engine,
    SessionLocal,
    get_db,
    safe_commit,
    atomic,
)

__all__ = [
    "engine",
    "SessionLocal",
    "get_db",
    "safe_commit",
    "atomic",
]
