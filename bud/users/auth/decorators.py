"""
Ownership-based authorization of user service operations.

Role checks happen before an operation is dispatched (see
:mod:`bud.users.rpc`). Some operations also depend on *whose* record is
being acted upon; :func:`authorized` protects those with an authorizer
function with the signature ``(claims: Claims, request) -> bool``.

.. code-block:: python

   from bud.users.auth.decorators import authorized


   def is_owner(claims: Claims, request: Any) -> bool:
       '''Check whether the caller is the target of the request.'''
       return claims.user_id == str(request.id)


   class SomeService:
       @authorized(is_owner)
       def do_something(self, request, gr):
           ...

When the decorated method is called, the authorizer gets the caller's
claims (from the :class:`.GenericRequest`) and the request. If it returns
``False``, :class:`.Unauthorized` is raised and the method does not run.
"""

from functools import wraps
from typing import Any, Callable

from .. import logging
from ..domain import Claims
from ..exceptions import Unauthorized
from ..rpc import GenericRequest

logger = logging.getLogger(__name__)

UNAUTHORIZED = 'Unauthorized action'

Authorizer = Callable[[Claims, Any], bool]


def authorized(authorizer: Authorizer) -> Callable:
    """
    Generate a decorator that applies ``authorizer`` before an operation.

    Parameters
    ----------
    authorizer : function
        Called with the caller's :class:`.Claims` and the operation's
        request. Should return ``True`` if the caller may proceed.

    Returns
    -------
    function
        A decorator for service methods with the signature
        ``(self, request, gr: GenericRequest)``.

    """
    def protector(func: Callable) -> Callable:
        """Decorator that enforces the authorizer."""
        @wraps(func)
        def wrapper(self: Any, request: Any, gr: GenericRequest) -> Any:
            if not authorizer(gr.claims, request):
                logger.debug('Authorizer returned negative result for %s',
                             func.__name__)
                raise Unauthorized(UNAUTHORIZED)
            return func(self, request, gr)
        return wrapper
    return protector


def is_owner(claims: Claims, request: Any) -> bool:
    """Check whether the caller is the user that ``request`` targets."""
    return bool(claims.user_id) and claims.user_id == str(request.id)


def can_update_user(claims: Claims, request: Any) -> bool:
    """Administrators may update anyone; other users only themselves."""
    return claims.is_admin or is_owner(claims, request)
