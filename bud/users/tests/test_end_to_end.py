"""Exercise a user's lifecycle through the service and the RPC server."""

import json
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from unittest import TestCase

from .. import domain, rpc, schemas, service
from ..auth import roles
from ..exceptions import Unauthorized
from ..schemas import CreateUserRequest, DeleteUserRequest, \
    QueryUserByIDRequest, QueryUserRequest, UpdateUserRequest
from ..stores import MemoryStore
from . import util


class LifecycleTests:
    """Create, update, forbid, delete and miss a user, in that order."""

    def make_store(self):
        raise NotImplementedError('Implement in child test case')

    def setUp(self):
        """Start with an empty store and a server with the service on it."""
        self.store = self.make_store()
        self.service = service.UserService(self.store, cost=util.COST)
        self.server = rpc.Server()
        self.service.register(self.server)

    def test_lifecycle(self):
        """Call each operation on the service directly."""
        response = self.service.create_user(
            CreateUserRequest(new_user=util.new_user()),
            util.request(util.claims())
        )
        self.assertIsNone(response.error)
        self.assertEqual(response.user.name, 'John Doe')
        created = response.user
        owner = util.claims(str(created.id), roles.USER)

        later = util.NOW + timedelta(hours=1)
        response = self.service.update_user(
            UpdateUserRequest(id=created.id,
                              update_user=domain.UpdateUser(name='JD')),
            util.request(owner, now=later)
        )
        self.assertIsNone(response.error)
        self.assertEqual(response.user.name, 'JD')
        updated = response.user

        stranger = util.claims('someone-else', roles.USER)
        response = self.service.update_user(
            UpdateUserRequest(id=created.id,
                              update_user=domain.UpdateUser(name='Mallory')),
            util.request(stranger, now=later + timedelta(hours=1))
        )
        self.assertEqual(response.error, 'Unauthorized action')
        unchanged = self.service.query_user_by_id(
            QueryUserByIDRequest(id=created.id), util.request(util.ADMIN)
        )
        self.assertEqual(unchanged.user, updated)

        response = self.service.delete_user(
            DeleteUserRequest(id=created.id), util.request(util.ADMIN)
        )
        self.assertIsNone(response.error)
        self.assertEqual(response.user, updated)

        response = self.service.query_user_by_id(
            QueryUserByIDRequest(id=created.id), util.request(util.ADMIN)
        )
        self.assertEqual(response.error, 'user not found')

    def test_lifecycle_over_rpc(self):
        """Dispatch each call with a JSON payload, as a transport would."""
        def call(method, caller, body, now=util.NOW):
            response = self.server.dispatch(
                service.SERVICE_NAME, method, util.request(caller, now=now),
                json.dumps(body).encode('utf-8')
            )
            encoded = schemas.encode(response)
            self.assertNotIn(b'passwordHash', encoded)
            self.assertNotIn(b'password_hash', encoded)
            return json.loads(encoded)

        data = call('CreateUser', util.ADMIN, {'newUser': {
            'name': 'John Doe',
            'email': 'user@example.com',
            'roles': ['ADMIN'],
            'password': 'gophers',
            'passwordConfirm': 'gophers'
        }})
        self.assertNotIn('error', data)
        self.assertEqual(data['user']['name'], 'John Doe')
        self.assertEqual(data['user']['roles'], ['ADMIN'])
        self.assertTrue(data['user']['enabled'])
        self.assertIn('dateCreated', data['user'])
        user_id = data['user']['id']

        data = call('Authenticate', None, {'email': 'user@example.com',
                                           'password': 'gophers'})
        self.assertEqual(data['claims'], {'userId': user_id,
                                          'roles': ['ADMIN']})

        owner = util.claims(user_id, roles.USER)
        later = util.NOW + timedelta(hours=1)
        data = call('UpdateUser', owner,
                    {'id': user_id, 'updateUser': {'name': 'JD'}}, later)
        self.assertNotIn('error', data)
        self.assertEqual(data['user']['name'], 'JD')

        stranger = util.claims('someone-else', roles.USER)
        data = call('UpdateUser', stranger,
                    {'id': user_id, 'updateUser': {'name': 'Mallory'}}, later)
        self.assertEqual(data, {'error': 'Unauthorized action'})

        data = call('DeleteUser', util.ADMIN, {'id': user_id})
        self.assertNotIn('error', data)
        self.assertEqual(data['user']['name'], 'JD')

        data = call('QueryUserByID', util.ADMIN, {'id': user_id})
        self.assertEqual(data, {'error': 'user not found'})

    def test_concurrent_callers(self):
        """Many callers creating users at once all succeed."""
        def create(i):
            return self.service.create_user(
                CreateUserRequest(
                    new_user=util.new_user(email=f'user{i}@example.com')
                ),
                util.request(util.ADMIN)
            )

        with ThreadPoolExecutor(max_workers=8) as pool:
            responses = list(pool.map(create, range(64)))
        self.assertEqual([r.error for r in responses if not r.ok], [])

        response = self.service.query_user(
            QueryUserRequest(query=domain.UserQuery(rows_per_page=100)),
            util.request(util.ADMIN)
        )
        self.assertEqual({u.id for u in response.users},
                         {r.user.id for r in responses})
        self.assertEqual(len(response.users), 64)

    def test_role_gate_over_rpc(self):
        """Standard users cannot reach admin-only methods."""
        with self.assertRaisesRegex(Unauthorized, 'Unauthorized action'):
            self.server.dispatch(
                service.SERVICE_NAME, 'QueryUser',
                util.request(util.claims('u1', roles.USER)), b'{}'
            )


class TestLifecycleInMemory(LifecycleTests, TestCase):
    """Lifecycle against :class:`.MemoryStore`."""

    def make_store(self):
        return MemoryStore()


class TestLifecycleInSQL(LifecycleTests, TestCase):
    """Lifecycle against :class:`.SQLStore` on in-memory sqlite."""

    def make_store(self):
        manager = util.temporary_store()
        store = manager.__enter__()
        self.addCleanup(manager.__exit__, None, None, None)
        return store
