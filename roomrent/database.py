import logging
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from roomrent import db
from roomrent.errors import ConflictError, PersistenceError, RentalError

logger = logging.getLogger(__name__)


@contextmanager
def atomic(conflict_message=None):
    """Run the block as one transaction on ``db.session``.

    Commits on success and rolls back on any error. Duplicate-key and other
    constraint failures become ``ConflictError``. Any other store failure is
    logged and re-raised as a generic ``PersistenceError``.
    """
    try:
        yield db.session
        db.session.commit()
    except RentalError:
        db.session.rollback()
        raise
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning('Integrity error: %s', exc.orig)
        raise ConflictError(conflict_message) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception('Database error')
        raise PersistenceError() from exc


@contextmanager
def reading():
    """Wrap read-only queries so store failures surface as ``PersistenceError``."""
    try:
        yield db.session
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception('Database error')
        raise PersistenceError() from exc
