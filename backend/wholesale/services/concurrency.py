# Overview: Retry and locking helpers for contended writes (order numbers, stock).

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Row-level lock for read-modify-write on products and orders.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; Postgres honors it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run func, retrying on lock/deadlock errors with exponential backoff.

    The session is rolled back before each retry, so func must rebuild
    whatever it needs from scratch.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError):
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
