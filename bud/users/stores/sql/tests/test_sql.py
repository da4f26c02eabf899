"""Tests for :class:`.SQLStore`."""

from unittest import TestCase, mock

from sqlalchemy.exc import OperationalError

from ....domain import Role, UserQuery
from ....exceptions import Cancelled, DuplicateKey, StorageFailure
from ....rpc import Context
from ....tests import util
from ... import sql
from ...tests.contract import StorerTests
from .. import SQLStore, _apply
from ..models import DBUser, DBUserRole


class TestSQLStore(StorerTests, TestCase):
    """:class:`.SQLStore` satisfies the storage contract."""

    def make_store(self):
        manager = util.temporary_store()
        store = manager.__enter__()
        self.addCleanup(manager.__exit__, None, None, None)
        return store

    def _role_rows(self):
        with self.store._sessions() as session:
            return sorted((r.user_id, r.role, r.position)
                          for r in session.query(DBUserRole).all())

    def test_role_rows(self):
        """Roles are kept one per row, with their position."""
        user = util.stored_user(role_list=[Role.USER, Role.ADMIN])
        self.store.create(self.ctx, user)
        self.assertEqual(self._role_rows(), [(str(user.id), 'ADMIN', 1),
                                             (str(user.id), 'USER', 0)])

        self.store.update(self.ctx, self._updated(user, roles=[Role.ADMIN]))
        self.assertEqual(self._role_rows(), [(str(user.id), 'ADMIN', 0)])

    def test_delete_removes_roles(self):
        """Deleting a user deletes its role rows."""
        user = util.stored_user(role_list=[Role.USER, Role.ADMIN])
        self.store.create(self.ctx, user)
        self.store.delete(self.ctx, user.id)
        self.assertEqual(self._role_rows(), [])

    def test_failed_update_rolls_back(self):
        """A rejected update leaves no partial changes behind."""
        user = util.stored_user(role_list=[Role.USER])
        other = util.stored_user(email='jd@example.com')
        self.store.create(self.ctx, user)
        self.store.create(self.ctx, other)
        rejected = self._updated(user, email='jd@example.com', name='JD',
                                 roles=[Role.ADMIN])
        with self.assertRaises(DuplicateKey):
            self.store.update(self.ctx, rejected)
        self.assertEqual(self.store.query_by_id(self.ctx, user.id), user)

    def test_storage_failure(self):
        """Database errors other than conflicts are reported as such."""
        error = OperationalError('SELECT 1', {}, Exception('gone away'))
        with mock.patch.object(self.store, '_sessions') as sessions:
            sessions.return_value.get.side_effect = error
            with self.assertRaises(StorageFailure):
                self.store.query_by_id(self.ctx, util.stored_user().id)
            sessions.return_value.rollback.assert_called_once()
            sessions.return_value.close.assert_called_once()

    def test_cancelled_before_commit(self):
        """A context cancelled mid-operation prevents the commit."""
        ctx = Context()

        def apply_then_cancel(db_user, user):
            _apply(db_user, user)
            ctx.cancel()

        user = util.stored_user()
        with mock.patch.object(sql, '_apply', side_effect=apply_then_cancel):
            with self.assertRaises(Cancelled):
                self.store.create(ctx, user)
        self.assertEqual(self.store.query(self.ctx, UserQuery()), [])


class TestTables(TestCase):
    """Tests for table management on :class:`.SQLStore`."""

    def test_create_and_drop(self):
        """Tables can be created and dropped."""
        store = SQLStore('sqlite://')
        store.create_all()
        with store._sessions() as session:
            self.assertEqual(session.query(DBUser).count(), 0)
        store.drop_all()
        store.engine.dispose()
