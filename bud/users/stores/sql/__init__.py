"""Persist user accounts in a relational database with SQLAlchemy."""

import threading
from contextlib import contextmanager, nullcontext
from datetime import datetime
from typing import ContextManager, Generator, List, Optional
from uuid import UUID

from pytz import UTC
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session
from sqlalchemy.pool import StaticPool

from ... import config, logging
from ...domain import Role, User, UserQuery
from ...exceptions import DuplicateKey, NotFound
from ...rpc import Context
from ..base import Storer
from . import util
from .models import Base, DBUser, DBUserRole

logger = logging.getLogger(__name__)


class SQLStore(Storer):
    """
    Stores users in the ``users`` and ``user_roles`` tables.

    Each operation runs in its own transaction. Uniqueness of ids and
    e-mail addresses is enforced by the database. When every session shares
    one connection (in-memory SQLite), transactions run one at a time.
    """

    def __init__(self, database_uri: str = config.USER_DATABASE_URI,
                 engine: Optional[Engine] = None) -> None:
        self.engine = engine if engine is not None \
            else util.new_engine(database_uri)
        self._sessions = sessionmaker(bind=self.engine,
                                      expire_on_commit=False)
        self._lock: ContextManager = threading.Lock() \
            if isinstance(self.engine.pool, StaticPool) else nullcontext()

    def create_all(self) -> None:
        """Create all tables in the database."""
        Base.metadata.create_all(self.engine)

    def drop_all(self) -> None:
        """Drop all tables in the database."""
        Base.metadata.drop_all(self.engine)

    @contextmanager
    def _transaction(self, ctx: Context) -> Generator[Session, None, None]:
        with self._lock:
            with util.transaction(self._sessions, ctx) as session:
                yield session

    def create(self, ctx: Context, user: User) -> User:
        ctx.check()
        with self._transaction(ctx) as session:
            if session.get(DBUser, str(user.id)) is not None:
                raise DuplicateKey(f'user {user.id} already exists')
            db_user = DBUser(user_id=str(user.id))
            _apply(db_user, user)
            session.add(db_user)
            session.flush()
            created = _to_domain(db_user)
        logger.debug('Created user %s', user.id)
        return created

    def update(self, ctx: Context, user: User) -> User:
        ctx.check()
        with self._transaction(ctx) as session:
            db_user = _load(session, user.id)
            _apply(db_user, user)
            session.flush()
            updated = _to_domain(db_user)
        logger.debug('Updated user %s', user.id)
        return updated

    def delete(self, ctx: Context, user_id: UUID) -> User:
        ctx.check()
        with self._transaction(ctx) as session:
            db_user = _load(session, user_id)
            deleted = _to_domain(db_user)
            session.delete(db_user)
        logger.debug('Deleted user %s', user_id)
        return deleted

    def query(self, ctx: Context, user_query: UserQuery) -> List[User]:
        ctx.check()
        with self._transaction(ctx) as session:
            q = session.query(DBUser)
            if user_query.enabled is not None:
                q = q.filter(DBUser.enabled == user_query.enabled)
            if user_query.department is not None:
                q = q.filter(DBUser.department == user_query.department)
            if user_query.role is not None:
                q = q.filter(
                    DBUser.roles.any(DBUserRole.role == user_query.role.value)
                )
            q = q.order_by(DBUser.date_created, DBUser.user_id) \
                .offset(user_query.offset) \
                .limit(user_query.rows_per_page)
            return [_to_domain(db_user) for db_user in q.all()]

    def query_by_id(self, ctx: Context, user_id: UUID) -> User:
        ctx.check()
        with self._transaction(ctx) as session:
            return _to_domain(_load(session, user_id))

    def query_by_email(self, ctx: Context, email: str) -> User:
        ctx.check()
        email = email.lower()
        with self._transaction(ctx) as session:
            db_user = session.query(DBUser) \
                .filter(DBUser.email == email) \
                .first()
            if db_user is None:
                raise NotFound('user not found')
            return _to_domain(db_user)


def _load(session: Session, user_id: UUID) -> DBUser:
    db_user: Optional[DBUser] = session.get(DBUser, str(user_id))
    if db_user is None:
        raise NotFound('user not found')
    return db_user


def _utc(value: datetime) -> datetime:
    return value.astimezone(UTC)


def _apply(db_user: DBUser, user: User) -> None:
    """Copy every mutable field of ``user`` onto ``db_user``."""
    db_user.name = user.name
    db_user.email = user.email
    db_user.password_hash = user.password_hash
    db_user.department = user.department
    db_user.enabled = user.enabled
    db_user.date_created = _utc(user.date_created)
    db_user.date_updated = _utc(user.date_updated)

    # Keep rows for roles that survive, so their keys are not reinserted.
    extant = {db_role.role: db_role for db_role in db_user.roles}
    db_roles = []
    for position, role in enumerate(user.roles):
        db_role = extant.get(role.value) or DBUserRole(role=role.value)
        db_role.position = position
        db_roles.append(db_role)
    db_user.roles = db_roles


def _to_domain(db_user: DBUser) -> User:
    return User(
        id=UUID(db_user.user_id),
        name=db_user.name,
        email=db_user.email,
        roles=[Role(db_role.role) for db_role in db_user.roles],
        password_hash=db_user.password_hash,
        department=db_user.department,
        enabled=db_user.enabled,
        date_created=db_user.date_created,
        date_updated=db_user.date_updated
    )
