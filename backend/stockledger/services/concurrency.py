# Overview: Locking helpers for the sale write path.

from __future__ import annotations

from sqlalchemy import text

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def begin_write_transaction() -> None:
    """
    Take the database write lock up front on SQLite.

    SQLite has no row locks; BEGIN IMMEDIATE makes concurrent writers queue
    behind each other (up to the driver's busy timeout) so the stock read
    that follows sees the latest committed quantity. Other dialects rely on
    lock_for_update instead.
    """
    if db.engine.dialect.name == "sqlite" and not _sqlite_transaction_open():
        db.session.execute(text("BEGIN IMMEDIATE"))


def _sqlite_transaction_open() -> bool:
    # pysqlite only opens a real transaction before DML; SELECT-only work
    # in the current session leaves the connection in autocommit state.
    dbapi_conn = db.session.connection().connection.dbapi_connection
    return bool(getattr(dbapi_conn, "in_transaction", False))
