# services/transactions.py
import logging
from typing import Callable, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from telofy.core.config import settings
from telofy.core.exceptions import ConcurrencyError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_serialized(db: Session, operation: Callable[[], T], label: str = "operation") -> T:
    """
    Run ``operation`` and commit; retry on lock/serialization failures.

    ``operation`` must re-read what it needs (under ``FOR UPDATE``) on every
    attempt, since a rollback discards the previous read.
    """
    attempts = max(1, settings.CONCURRENCY_RETRY_ATTEMPTS)
    for attempt in range(1, attempts + 1):
        try:
            result = operation()
            db.commit()
            return result
        except OperationalError as exc:
            db.rollback()
            logger.warning("%s conflicted (attempt %s/%s): %s", label, attempt, attempts, exc.orig)
        except Exception:
            db.rollback()
            raise
    raise ConcurrencyError(f"{label} could not be completed, please retry")
