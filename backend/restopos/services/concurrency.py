# Overview: Transaction boundaries, row locking and retry for multi-step writes.

from __future__ import annotations

import time
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import (
    ConstraintViolation,
    RestoposError,
    StorageUnavailableError,
    TransactionFailure,
)
from ..extensions import db

RETRYABLE_ERRORS = (StorageUnavailableError, StaleDataError)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


@contextmanager
def atomic():
    """
    Run the enclosed writes as one transaction.

    Commits on success. On any failure the session is rolled back and the
    error is surfaced as a typed error:
    - business rule errors raised inside the block propagate unchanged
    - IntegrityError -> ConstraintViolation (a ConflictError)
    - connection-level OperationalError -> StorageUnavailableError (retryable)
    - any other SQLAlchemyError -> TransactionFailure
    """
    try:
        yield db.session
        db.session.commit()
    except RestoposError:
        db.session.rollback()
        raise
    except IntegrityError as exc:
        db.session.rollback()
        raise ConstraintViolation(
            "The change conflicts with existing data",
            details={"constraint": str(exc.orig)},
        ) from exc
    except OperationalError as exc:
        db.session.rollback()
        if exc.connection_invalidated or _is_connectivity_error(exc):
            raise StorageUnavailableError("Database is unavailable, try again") from exc
        raise TransactionFailure("The operation could not be completed and was rolled back") from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise TransactionFailure("The operation could not be completed and was rolled back") from exc
    except Exception:
        db.session.rollback()
        raise


def _is_connectivity_error(exc: OperationalError) -> bool:
    message = str(exc.orig).lower() if exc.orig is not None else ""
    return any(
        marker in message
        for marker in ("could not connect", "connection refused", "server closed", "database is locked", "timeout")
    )


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1, retry_on=RETRYABLE_ERRORS):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on StorageUnavailableError (lost connections, locked database) and
    StaleDataError by default. Callers pass retry_on to widen the set, e.g.
    ConstraintViolation when a losing racer should re-evaluate its checks.
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
