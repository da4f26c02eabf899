"""In-process storage for user accounts."""

import threading
from typing import Dict, List
from uuid import UUID

from .. import logging
from ..domain import User, UserQuery
from ..exceptions import DuplicateKey, NotFound
from ..rpc import Context
from .base import Storer

logger = logging.getLogger(__name__)


class MemoryStore(Storer):
    """
    Keeps users in a dict, with a secondary index on e-mail address.

    All reads and writes happen under one lock, so each operation is atomic
    with respect to the others. Users are copied on the way in and on the
    way out; callers never share state with the store.
    """

    def __init__(self) -> None:
        self._users: Dict[UUID, User] = {}
        self._by_email: Dict[str, UUID] = {}
        self._lock = threading.Lock()

    def create(self, ctx: Context, user: User) -> User:
        ctx.check()
        with self._lock:
            if user.id in self._users:
                raise DuplicateKey(f'user {user.id} already exists')
            if user.email in self._by_email:
                raise DuplicateKey(f'email {user.email} already exists')
            self._users[user.id] = user.model_copy(deep=True)
            self._by_email[user.email] = user.id
            logger.debug('Created user %s', user.id)
            return user.model_copy(deep=True)

    def update(self, ctx: Context, user: User) -> User:
        ctx.check()
        with self._lock:
            current = self._get(user.id)
            owner = self._by_email.get(user.email)
            if owner is not None and owner != user.id:
                raise DuplicateKey(f'email {user.email} already exists')
            del self._by_email[current.email]
            self._users[user.id] = user.model_copy(deep=True)
            self._by_email[user.email] = user.id
            logger.debug('Updated user %s', user.id)
            return user.model_copy(deep=True)

    def delete(self, ctx: Context, user_id: UUID) -> User:
        ctx.check()
        with self._lock:
            user = self._get(user_id)
            del self._users[user_id]
            del self._by_email[user.email]
            logger.debug('Deleted user %s', user_id)
            return user

    def query(self, ctx: Context, user_query: UserQuery) -> List[User]:
        ctx.check()
        with self._lock:
            matching = sorted(
                (u for u in self._users.values() if user_query.matches(u)),
                key=lambda u: (u.date_created, str(u.id))
            )
            start = user_query.offset
            page = matching[start:start + user_query.rows_per_page]
            return [u.model_copy(deep=True) for u in page]

    def query_by_id(self, ctx: Context, user_id: UUID) -> User:
        ctx.check()
        with self._lock:
            return self._get(user_id).model_copy(deep=True)

    def query_by_email(self, ctx: Context, email: str) -> User:
        ctx.check()
        email = email.lower()
        with self._lock:
            if email not in self._by_email:
                raise NotFound('user not found')
            return self._users[self._by_email[email]].model_copy(deep=True)

    def _get(self, user_id: UUID) -> User:
        try:
            return self._users[user_id]
        except KeyError as e:
            raise NotFound('user not found') from e
