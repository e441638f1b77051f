# Overview: Unit-of-work and row locking helpers shared by the ledger services.

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from ..errors import StorageError
from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    The optimistic version_id columns on the mutated counters cover SQLite.
    """
    return query.with_for_update()


@contextmanager
def unit_of_work():
    """
    One atomic ledger operation.

    Commits when the block completes; rolls back on every failure path.
    Validation and business errors propagate unchanged. Database failures
    (including optimistic-lock conflicts) surface as StorageError.

    No retry happens here; failures surface to the caller.
    """
    try:
        yield db.session
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StorageError(f"storage failure: {exc.__class__.__name__}") from exc
    except BaseException:
        db.session.rollback()
        raise
