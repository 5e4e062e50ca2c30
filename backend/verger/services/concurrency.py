# Overview: Retry helper for single database calls that can hit lock contention.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


RETRYABLE = (OperationalError, StaleDataError)


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float = 0.1):
    """
    Run one unit of database work, retrying while SQLite reports the file as
    locked or a row changed underneath an update.

    `attempts` defaults to PERSISTENCE_RETRY_ATTEMPTS. The session is rolled
    back before every retry; the last error is re-raised unchanged.
    """
    if attempts is None:
        attempts = current_app.config.get("PERSISTENCE_RETRY_ATTEMPTS", 3)
    attempts = max(1, attempts)

    attempt = 1
    while True:
        try:
            return func()
        except RETRYABLE as exc:
            db.session.rollback()
            if attempt >= attempts:
                raise
            delay = backoff_base * (2 ** (attempt - 1))
            current_app.logger.warning(
                "Database busy (%s), retry %s/%s in %.2fs", exc.__class__.__name__, attempt, attempts - 1, delay
            )
            time.sleep(delay)
            attempt += 1
