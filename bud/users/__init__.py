"""
User accounts and their authorization.

This package provides a service for creating, updating, deleting, querying
and authenticating user accounts, exposed as RPC methods that are guarded
by role. It does not listen on the network; a transport hands decoded
calls to :class:`bud.users.rpc.Server`.

Quick start
-----------

1. Pick a storage backend from :mod:`bud.users.stores`.
2. Create a :class:`.UserService` and register it on a
   :class:`bud.users.rpc.Server`.
3. For each incoming call, build a :class:`bud.users.rpc.GenericRequest`
   with the caller's verified claims and dispatch it.

.. code-block:: python

   from bud.users import rpc, schemas
   from bud.users.service import UserService
   from bud.users.stores import SQLStore

   store = SQLStore('postgresql://...')
   store.create_all()

   server = rpc.Server()
   UserService(store).register(server)

   response = server.dispatch('UserService', 'CreateUser',
                              rpc.new_request(claims=admin_claims),
                              payload)
   body = schemas.encode(response)

Configuration is read from the environment; see :mod:`bud.users.config`.
"""

from .domain import Claims, NewUser, Role, UpdateUser, User, UserQuery, \
    UserView
