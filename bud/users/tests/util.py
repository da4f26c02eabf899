"""Testing helpers."""

from contextlib import contextmanager
from datetime import datetime
from typing import Generator, List, Optional
from uuid import uuid4

from pytz import UTC

from .. import domain, passwords, rpc
from ..auth import roles
from ..stores import SQLStore

NOW = datetime(2018, 10, 1, 0, 0, 0, tzinfo=UTC)

COST = 4
"""Lowest bcrypt cost, to keep the tests fast."""


def claims(user_id: str = '', *held: str) -> domain.Claims:
    """Claims for a caller holding ``held`` roles."""
    return domain.Claims(user_id=user_id, roles=list(held))


ADMIN = claims(str(uuid4()), roles.ADMIN)


def request(caller: Optional[domain.Claims] = None,
            now: datetime = NOW,
            ctx: Optional[rpc.Context] = None) -> rpc.GenericRequest:
    """A generic request as the transport would build it."""
    return rpc.new_request(claims=caller, now=now, ctx=ctx)


def new_user(name: str = 'John Doe', email: str = 'user@example.com',
             role_list: Optional[List[domain.Role]] = None,
             department: str = '', password: str = 'gophers') \
        -> domain.NewUser:
    return domain.NewUser(
        name=name,
        email=email,
        roles=role_list or [domain.Role.ADMIN],
        department=department,
        password=password,
        password_confirm=password
    )


def stored_user(email: str = 'user@example.com',
                role_list: Optional[List[domain.Role]] = None,
                department: str = '', enabled: bool = True,
                created: datetime = NOW) -> domain.User:
    """A user as a storer would hold it."""
    return domain.User(
        id=uuid4(),
        name='Jane Roe',
        email=email,
        roles=role_list or [domain.Role.USER],
        password_hash=passwords.hash_password('secret', COST),
        department=department,
        enabled=enabled,
        date_created=created,
        date_updated=created
    )


@contextmanager
def temporary_store(database_uri: str = 'sqlite:///:memory:') \
        -> Generator[SQLStore, None, None]:
    """Provide an in-memory sqlite store for testing purposes."""
    store = SQLStore(database_uri)
    store.create_all()
    try:
        yield store
    finally:
        store.drop_all()
        store.engine.dispose()
