"""Engine and transaction helpers for the SQL store."""

from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session
from sqlalchemy.pool import StaticPool

from ... import logging
from ...exceptions import DuplicateKey, StorageFailure
from ...rpc import Context

logger = logging.getLogger(__name__)


def new_engine(database_uri: str) -> Engine:
    """
    Create an engine for ``database_uri``.

    In-memory SQLite databases exist per connection, so they get a single
    shared connection.
    """
    params: Dict[str, Any] = {}
    if database_uri.startswith('sqlite'):
        params['connect_args'] = {'check_same_thread': False}
        if database_uri in ('sqlite://', 'sqlite:///:memory:'):
            params['poolclass'] = StaticPool
    return create_engine(database_uri, **params)


@contextmanager
def transaction(factory: sessionmaker, ctx: Optional[Context] = None) \
        -> Generator[Session, None, None]:
    """
    Context manager for a database transaction.

    Commits when the block exits cleanly (unless ``ctx`` was cancelled in
    the meantime) and rolls back otherwise. Database errors are re-raised
    as :class:`.DuplicateKey` or :class:`.StorageFailure`.
    """
    session = factory()
    try:
        yield session
        if ctx is not None:
            ctx.check()
        session.commit()
    except IntegrityError as e:
        logger.debug('Integrity error, rolling back: %s', str(e))
        session.rollback()
        raise DuplicateKey('user already exists') from e
    except SQLAlchemyError as e:
        logger.error('Commit failed, rolling back: %s', str(e))
        session.rollback()
        raise StorageFailure(f'storage: {e}') from e
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
