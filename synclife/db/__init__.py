"""Database module."""

from synclife.db.database import (
    Base,
    close_db,
    create_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_db,
)

__all__ = [
    "Base",
    "close_db",
    "create_tables",
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_db",
]
