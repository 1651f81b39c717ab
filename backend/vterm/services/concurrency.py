# Overview: Transaction helper with retry for the contended bookkeeping row.

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

logger = logging.getLogger(__name__)


def run_in_transaction(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run func() and commit, retrying the whole unit on conflict.

    Retries on OperationalError (locks), StaleDataError (optimistic version
    mismatch: another writer committed first) and IntegrityError (two
    writers inserting the same singleton row). The session is rolled back
    between attempts so func() always re-reads current state.
    """
    for attempt in range(attempts):
        try:
            result = func()
            db.session.commit()
            return result
        except (OperationalError, StaleDataError, IntegrityError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            logger.warning("Transaction conflict (attempt %d/%d): %s", attempt + 1, attempts, exc)
            time.sleep(backoff_base * (2 ** attempt))
