# Overview: Transaction, locking and retry helpers for stock-mutating operations.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from .errors import ConsistencyFault

# Lock contention messages (SQLite, PostgreSQL, MySQL); other OperationalErrors are not retried
_TRANSIENT_MARKERS = (
    "database is locked",
    "database table is locked",
    "busy",
    "deadlock",
    "lock wait timeout",
    "could not obtain lock",
    "could not serialize",
)


def is_transient(exc: Exception) -> bool:
    """True for lock contention and optimistic version conflicts."""
    if isinstance(exc, StaleDataError):
        return True
    if isinstance(exc, OperationalError):
        message = str(exc.orig if exc.orig is not None else exc).lower()
        return any(marker in message for marker in _TRANSIENT_MARKERS)
    return False


def begin_write_transaction() -> None:
    """
    Take the write lock up front so read-check-write on stock is serialized.

    SQLite: BEGIN IMMEDIATE (database-level reserved lock).
    Other DBs: rows are locked with lock_for_update() by the caller.
    """
    if db.engine.dialect.name == "sqlite":
        db.session.execute(text("BEGIN IMMEDIATE"))


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def _retry_settings() -> tuple[int, float]:
    config = current_app.config
    return int(config.get("DB_RETRY_ATTEMPTS", 3)), float(config.get("DB_RETRY_BACKOFF", 0.1))


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float | None = None):
    """
    Execute a DB unit of work with retry on concurrency-related failures.

    Retries on lock contention (OperationalError) and StaleDataError
    (optimistic version conflicts). The session is rolled back before each
    retry so the next attempt starts from fresh state. Anything else,
    including a non-lock OperationalError, propagates after a rollback.
    """
    default_attempts, default_backoff = _retry_settings()
    attempts = max(1, attempts if attempts is not None else default_attempts)
    backoff_base = backoff_base if backoff_base is not None else default_backoff

    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if not is_transient(exc) or attempt >= attempts - 1:
                raise
            current_app.logger.warning(
                "Transient database conflict (attempt %s/%s): %s", attempt + 1, attempts, exc
            )
            time.sleep(backoff_base * (2 ** attempt))


def flush_or_fault(stage: str) -> None:
    """Flush pending writes; a non-transient failure is a consistency fault."""
    try:
        db.session.flush()
    except SQLAlchemyError as exc:
        if is_transient(exc):
            raise
        raise ConsistencyFault(f"Failed to write {stage}", details={"stage": stage}) from exc


def commit_or_fault(stage: str) -> None:
    """Commit the unit of work; a non-transient failure is a consistency fault."""
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        if is_transient(exc):
            raise
        raise ConsistencyFault(f"Failed to commit {stage}", details={"stage": stage}) from exc


def execute_or_fault(statement, stage: str):
    """Execute a write statement; a non-transient failure is a consistency fault."""
    try:
        return db.session.execute(statement)
    except SQLAlchemyError as exc:
        if is_transient(exc):
            raise
        raise ConsistencyFault(f"Failed to write {stage}", details={"stage": stage}) from exc
