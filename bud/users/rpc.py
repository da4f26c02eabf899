"""
Registration and dispatch of RPC methods.

A transport (HTTP, a message queue, ...) decodes an incoming call into a
service name, a method name, the caller's verified :class:`.Claims` and a
raw payload, and hands them to :meth:`Server.dispatch`. The server looks up
the :class:`RPCEndpoint` registered for the method, checks that the caller
holds at least one of the roles the endpoint allows, and only then invokes
its handler.

.. code-block:: python

   from bud.users import rpc, schemas
   from bud.users.service import UserService
   from bud.users.stores import SQLStore

   server = rpc.Server()
   UserService(SQLStore()).register(server)

   request = rpc.new_request(claims=claims)
   response = server.dispatch('UserService', 'QueryUserByID', request,
                              b'{"id": "..."}')
   body = schemas.encode(response)

Role checks live in one place, the registration table, so the allow-list
for every method can be read off :attr:`Server.endpoints`.
"""

import threading
import time
from datetime import datetime
from functools import wraps
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple, \
    Type

from pydantic import BaseModel, ValidationError
from pytz import UTC

from . import logging
from .domain import Claims
from .exceptions import Cancelled, NoSuchMethod, Unauthorized, \
    ValidationFailure

logger = logging.getLogger(__name__)


class Context:
    """
    Cancellation and deadline signal for a single call.

    The transport creates one per call and may cancel it from another
    thread, e.g. when the client disconnects. Anything doing work on
    behalf of the call should invoke :meth:`check` before each step.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        """
        Start a new context.

        Parameters
        ----------
        timeout : float
            Seconds from now after which the context is considered
            expired. If not provided, the context never expires.

        """
        self._cancelled = threading.Event()
        self._deadline = time.monotonic() + timeout \
            if timeout is not None else None

    def cancel(self) -> None:
        """Signal that the call should be abandoned."""
        self._cancelled.set()

    @property
    def expired(self) -> bool:
        """Whether the deadline, if any, has passed."""
        return self._deadline is not None \
            and time.monotonic() >= self._deadline

    @property
    def done(self) -> bool:
        """Whether the call has been cancelled or has expired."""
        return self._cancelled.is_set() or self.expired

    def check(self) -> None:
        """
        Raise if the call should not continue.

        Raises
        ------
        :class:`.Cancelled`

        """
        if self._cancelled.is_set():
            raise Cancelled('context canceled')
        if self.expired:
            raise Cancelled('context deadline exceeded')


class Values(NamedTuple):
    """Request-scoped values supplied by the transport."""

    now: datetime
    """
    The time of the request.

    Business logic reads the time from here, never from the clock.
    """


class GenericRequest(NamedTuple):
    """Everything a handler gets besides the payload."""

    ctx: Context
    claims: Claims
    values: Values


Handler = Callable[[GenericRequest, bytes], Any]


class RPCEndpoint(NamedTuple):
    """A handler together with the roles allowed to call it."""

    roles: List[str]
    """
    Callers must hold at least one of these roles.

    An empty list means that the endpoint is open to any caller, including
    anonymous ones.
    """

    handler: Handler


def new_request(claims: Optional[Claims] = None,
                now: Optional[datetime] = None,
                ctx: Optional[Context] = None) -> GenericRequest:
    """Build a :class:`GenericRequest`, filling in defaults."""
    return GenericRequest(
        ctx=ctx if ctx is not None else Context(),
        claims=claims if claims is not None else Claims(),
        values=Values(now=now if now is not None else datetime.now(tz=UTC))
    )


def handler(request_cls: Type[BaseModel],
            operation: Callable[[Any, GenericRequest], Any]) -> Handler:
    """
    Generate a handler for an operation.

    The handler decodes the JSON payload into ``request_cls`` and passes it
    to ``operation`` along with the :class:`GenericRequest`.

    Parameters
    ----------
    request_cls : type
        Pydantic model for the operation's request.
    operation : callable
        Called with ``(request, generic_request)``; its return value is the
        handler's return value.

    Returns
    -------
    function

    """
    @wraps(operation)
    def handle(gr: GenericRequest, payload: bytes) -> Any:
        """
        Decode and validate the payload, then call the operation.

        Raises
        ------
        :class:`.ValidationFailure`
            If the payload is not valid JSON, or does not satisfy
            ``request_cls``.

        """
        try:
            request = request_cls.model_validate_json(payload or b'{}')
        except ValidationError as e:
            logger.debug('Invalid %s: %s', request_cls.__name__, e)
            raise ValidationFailure(
                f'invalid {request_cls.__name__}: {e}'
            ) from e
        return operation(request, gr)
    return handle


class Server:
    """Registration table for RPC methods, and the gate in front of them."""

    def __init__(self) -> None:
        self._endpoints: Dict[Tuple[str, str], RPCEndpoint] = {}

    def register(self, service: str, method: str,
                 endpoint: RPCEndpoint) -> None:
        """
        Bind ``service.method`` to an endpoint.

        Raises
        ------
        ValueError
            If the method is already registered.

        """
        key = (service, method)
        if key in self._endpoints:
            raise ValueError(f'{service}.{method} is already registered')
        logger.debug('Registered %s.%s for roles %s', service, method,
                     endpoint.roles)
        self._endpoints[key] = endpoint

    @property
    def endpoints(self) -> Dict[Tuple[str, str], RPCEndpoint]:
        """A copy of the registration table."""
        return dict(self._endpoints)

    def dispatch(self, service: str, method: str, gr: GenericRequest,
                 payload: bytes) -> Any:
        """
        Authorize a call by role and pass it to the registered handler.

        Returns
        -------
        object
            Whatever the handler returns; for the user service, a response
            envelope from :mod:`bud.users.schemas`.

        Raises
        ------
        :class:`.NoSuchMethod`
            If nothing is registered for ``service.method``.
        :class:`.Unauthorized`
            If the caller holds none of the endpoint's roles. The handler
            is not called.
        :class:`.ValidationFailure`
            If the handler cannot decode the payload.

        """
        try:
            endpoint = self._endpoints[(service, method)]
        except KeyError as e:
            raise NoSuchMethod(f'no such method {service}.{method}') from e

        if endpoint.roles and not gr.claims.has_any_role(endpoint.roles):
            logger.debug('Caller lacks roles %s for %s.%s', endpoint.roles,
                         service, method)
            raise Unauthorized('Unauthorized action')

        return endpoint.handler(gr, payload)
