# Overview: Service-layer operations for concurrency; transaction boundaries, row locks and retries.

from __future__ import annotations

import time

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    On SQLite, begin_write_transaction() takes the database write lock instead.
    """
    return query.with_for_update()


def begin_write_transaction() -> None:
    """
    Start the current unit of work as a write transaction.

    SQLite only allows one writer; BEGIN IMMEDIATE takes the write lock up
    front so two checkouts serialize instead of deadlocking on lock upgrade.
    Other databases rely on row locks taken later in the transaction.
    """
    connection = db.session.connection()
    if connection.dialect.name != "sqlite":
        return
    # pysqlite opens its own transaction lazily before DML; only take the
    # write lock when none is open on this connection yet.
    if not connection.connection.dbapi_connection.in_transaction:
        connection.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1, retry_on: tuple = RETRYABLE_ERRORS):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts) by default. The session is rolled back
    before every retry and before the final error propagates.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except retry_on as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc
