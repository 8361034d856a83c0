# votebox/database/__init__.py

"""The datastore handle and its lifecycle.

``db`` is created unbound; :func:`init_db` attaches it to an app and
waits for the database to answer, :func:`close_db` releases pooled
connections. Services receive ``db.session`` explicitly.
"""

import logging
import time
from contextlib import contextmanager

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, TimeoutError as PoolTimeoutError

from votebox.errors import IntegrityConflict, StorageUnavailable

logger = logging.getLogger(__name__)

db = SQLAlchemy()


def init_db(app, create_all=None, wait=True):
    db.init_app(app)
    with app.app_context():
        # models must be imported so the metadata is populated
        from votebox.database import models  # noqa: F401

        if wait:
            wait_until_ready(
                retries=app.config.get('DB_CONNECT_RETRIES', 5),
                delay=1.0,
            )
        if create_all if create_all is not None else app.config.get('DB_CREATE_ALL'):
            db.create_all()


def ping():
    with storage_guard(db.session):
        db.session.execute(text("SELECT 1"))
        db.session.rollback()


def wait_until_ready(retries=5, delay=1.0):
    """Block until the database answers ``SELECT 1`` or retries run out."""
    attempt = 0
    while True:
        attempt += 1
        try:
            ping()
            logger.info("Database ready after %d attempt(s)", attempt)
            return
        except StorageUnavailable:
            if attempt >= retries:
                logger.error("Database not reachable after %d attempt(s)", attempt)
                raise
            logger.warning("Database not ready (attempt %d/%d), retrying in %.1fs", attempt, retries, delay)
            time.sleep(delay)


def close_db(app):
    with app.app_context():
        db.session.remove()
        db.engine.dispose()
    logger.info("Database connections closed")


@contextmanager
def storage_guard(session):
    """Translate connectivity failures into a retryable StorageUnavailable
    and constraint violations into IntegrityConflict."""
    try:
        yield session
    except (OperationalError, PoolTimeoutError) as e:
        session.rollback()
        logger.warning("Storage unavailable: %s", e)
        raise StorageUnavailable() from e
    except IntegrityError as e:
        # a concurrent writer got there first, e.g. a duplicate election entry
        session.rollback()
        logger.warning("Integrity conflict: %s", e.orig)
        raise IntegrityConflict() from e
    except DBAPIError as e:
        session.rollback()
        if e.connection_invalidated:
            logger.warning("Storage connection invalidated: %s", e)
            raise StorageUnavailable() from e
        raise
