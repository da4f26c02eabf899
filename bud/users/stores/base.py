"""The storage contract for user accounts."""

from abc import ABC, abstractmethod
from typing import List
from uuid import UUID

from ..domain import User, UserQuery
from ..rpc import Context


class Storer(ABC):
    """
    Behavior the user service needs to persist and retrieve users.

    Users are keyed by :attr:`.User.id`. E-mail addresses are unique across
    records, regardless of case, and can be used for lookups, but never
    address a record for mutation. Implementations must be safe to call
    from several threads at once.

    Implementations must call :meth:`.Context.check` before doing any work
    so that cancelled requests abort promptly, and must report failures
    with the exceptions in :mod:`bud.users.exceptions`.
    """

    @abstractmethod
    def create(self, ctx: Context, user: User) -> User:
        """
        Persist a new user.

        Raises
        ------
        :class:`.DuplicateKey`
            If a user with the same id or e-mail address exists.

        """

    @abstractmethod
    def update(self, ctx: Context, user: User) -> User:
        """
        Replace the stored user that has the same id.

        Raises
        ------
        :class:`.NotFound`
            If there is no such user.
        :class:`.DuplicateKey`
            If the e-mail address belongs to another user.

        """

    @abstractmethod
    def delete(self, ctx: Context, user_id: UUID) -> User:
        """Remove a user, returning it as it was before removal."""

    @abstractmethod
    def query(self, ctx: Context, user_query: UserQuery) -> List[User]:
        """Get a page of users matching ``user_query``."""

    @abstractmethod
    def query_by_id(self, ctx: Context, user_id: UUID) -> User:
        """Get a user by id."""

    @abstractmethod
    def query_by_email(self, ctx: Context, email: str) -> User:
        """Get a user by e-mail address, ignoring case."""
