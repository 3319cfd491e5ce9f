# Overview: Row locking, retry and time bounds for atomic units of work.

from __future__ import annotations

import logging
import time

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

logger = logging.getLogger(__name__)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; begin_atomic_unit takes the
    database write lock up front there instead.
    """
    return query.with_for_update()


def begin_atomic_unit(timeout_seconds: float | None = None) -> None:
    """
    Open the write transaction for one atomic unit, bounded by timeout_seconds.

    - sqlite: busy timeout, then BEGIN IMMEDIATE so concurrent writers
      serialize on the database lock before reading stock
    - postgresql: SET LOCAL statement/lock timeouts (reset at commit/rollback)
    - mysql: session lock wait timeout

    Must be the first statement of the unit.
    """
    dialect = db.engine.dialect.name
    timeout_ms = int(timeout_seconds * 1000) if timeout_seconds else None

    if dialect == "sqlite":
        if timeout_ms:
            db.session.execute(text(f"PRAGMA busy_timeout = {timeout_ms}"))
        db.session.execute(text("BEGIN IMMEDIATE"))
    elif dialect == "postgresql":
        if timeout_ms:
            db.session.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))
            db.session.execute(text(f"SET LOCAL lock_timeout = {timeout_ms}"))
    elif dialect in ("mysql", "mariadb"):
        if timeout_seconds:
            seconds = max(1, int(timeout_seconds))
            db.session.execute(text(f"SET SESSION innodb_lock_wait_timeout = {seconds}"))


def remaining_seconds(deadline: float | None) -> float | None:
    """Seconds left until a time.monotonic() deadline, never below one millisecond."""
    if deadline is None:
        return None
    return max(deadline - time.monotonic(), 0.001)


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1, deadline: float | None = None):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks, lock timeouts) and
    StaleDataError (optimistic locking conflicts). Every failed attempt is
    rolled back before the next one starts. With a deadline (time.monotonic()),
    no retry starts once the backoff would reach it.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            delay = backoff_base * (2 ** attempt)
            if attempt >= attempts - 1:
                raise
            if deadline is not None and time.monotonic() + delay >= deadline:
                logger.warning("giving up after concurrency failure, deadline reached: %s", exc)
                raise
            logger.warning("retrying after concurrency failure (attempt %s): %s", attempt + 1, exc)
            time.sleep(delay)
    if last_exc:
        raise last_exc
