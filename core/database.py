"""
core/database.py -- Shared SQLAlchemy Core engine and schema registry.

Uses SQLAlchemy Core (not ORM) so the dataclasses in auth/models.py and
posts/models.py stay the authoritative domain representation. Each store
declares its Table on the shared `metadata` below; create_app() calls
init_schema() once at startup so the posts.owner_id foreign key can resolve
against users.id.

SQLite is the default. Swapping to PostgreSQL is a connection string change.

Layer rule: core/ is the kernel. No imports from api/, auth/, or posts/.
"""

from __future__ import annotations

import logging

from sqlalchemy import MetaData, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger("quill.database")

metadata = MetaData()


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode and foreign key enforcement.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool. SQLite ignores FOREIGN KEY clauses unless
    foreign_keys is switched on for the connection.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(db_url: str) -> Engine:
    """Build an Engine for db_url with SQLite-specific connection setup."""
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


def init_schema(engine: Engine) -> None:
    """Create every table registered on `metadata`. Idempotent."""
    metadata.create_all(engine)


def check_database(engine: Engine) -> bool:
    """Return True if a trivial query succeeds. Used by GET /health."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        logger.exception("Database health probe failed")
        return False
