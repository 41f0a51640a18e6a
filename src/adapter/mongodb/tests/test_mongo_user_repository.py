"""Tests for MongoUserRepository against a mocked collection."""

import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from pymongo.errors import DuplicateKeyError, PyMongoError

from adapter.fake.clock import FakeClock
from adapter.mongodb.indexes import create_index_safe
from adapter.mongodb.user_repository import MongoUserRepository
from domain.model.errors import ConcurrentModificationError, DuplicateError, ValidationError
from domain.model.user import (
    TOKEN_FIELDS,
    DealershipApplicationStatus,
    Role,
    TokenPurpose,
    User,
    password_changed_after,
)


class MongoUserRepositoryTestCase(unittest.TestCase):

    def setUp(self):
        self.collection = MagicMock()
        db = MagicMock()
        db.__getitem__.return_value = self.collection
        self.now = datetime(2026, 1, 23, 12, 0, 0, tzinfo=timezone.utc)
        self.clock = FakeClock(self.now)
        self.repo = MongoUserRepository(db, clock=self.clock)
        self.doc = {
            '_id': 'user-1',
            'name': 'Alice Doe',
            'email': 'a@b.com',
            'role': 'dealer',
            'dealership_application_status': 'approved',
            'apply_for_dealership': True,
            'created_at': self.now,
            'updated_at': self.now,
        }


class TestInsert(MongoUserRepositoryTestCase):

    def test_insert_document(self):
        user = User.create(name='Alice Doe', email='a@b.com', password_hash='$2b$04$hash')

        self.assertTrue(self.repo.insert(user))

        doc = self.collection.insert_one.call_args[0][0]
        self.assertEqual(doc['_id'], user.id)
        self.assertEqual(doc['role'], 'user')
        self.assertEqual(doc['password_hash'], '$2b$04$hash')
        self.assertNotIn('id', doc)
        self.assertNotIn('password_reset_token', doc)
        self.assertNotIn('dealership_application_status', doc)

    def test_duplicate_email(self):
        self.collection.insert_one.side_effect = DuplicateKeyError('E11000 duplicate key error')
        user = User.create(name='Alice Doe', email='a@b.com', password_hash='x')
        with self.assertRaises(DuplicateError):
            self.repo.insert(user)

    def test_other_errors_return_false(self):
        self.collection.insert_one.side_effect = PyMongoError('boom')
        user = User.create(name='Alice Doe', email='a@b.com', password_hash='x')
        self.assertFalse(self.repo.insert(user))


class TestReads(MongoUserRepositoryTestCase):

    def test_get_by_email_excludes_secrets(self):
        self.collection.find_one.return_value = self.doc

        user = self.repo.get_by_email('a@b.com')

        query, projection = self.collection.find_one.call_args[0]
        self.assertEqual(query, {'email': 'a@b.com'})
        self.assertEqual(projection['password_hash'], 0)
        self.assertEqual(projection['password_reset_token'], 0)
        self.assertEqual(projection['user_confirmation_token_expires'], 0)
        self.assertEqual(user.id, 'user-1')
        self.assertEqual(user.role, Role.DEALER)
        self.assertEqual(user.dealership_application_status, DealershipApplicationStatus.APPROVED)
        self.assertFalse(user.is_user_confirmed)

    def test_default_read_keeps_password_changed_at(self):
        changed = datetime(2026, 1, 23, 11, 0, 0, tzinfo=timezone.utc)
        self.collection.find_one.return_value = dict(self.doc, password_changed_at=changed)

        user = self.repo.get_by_id('user-1')

        projection = self.collection.find_one.call_args[0][1]
        self.assertNotIn('password_changed_at', projection)
        self.assertEqual(user.password_changed_at, changed)
        self.assertTrue(password_changed_after(user, changed.timestamp() - 60))

    def test_get_by_id_with_secrets(self):
        self.collection.find_one.return_value = dict(self.doc, password_hash='h')

        user = self.repo.get_by_id('user-1', include_secrets=True)

        self.collection.find_one.assert_called_once_with({'_id': 'user-1'}, None)
        self.assertEqual(user.password_hash, 'h')

    def test_not_found(self):
        self.collection.find_one.return_value = None
        self.assertIsNone(self.repo.get_by_id('missing'))

    def test_read_error_returns_none(self):
        self.collection.find_one.side_effect = PyMongoError('down')
        self.assertIsNone(self.repo.get_by_email('a@b.com'))

    def test_find_by_token(self):
        self.collection.find_one.return_value = dict(self.doc, password_reset_token='h')
        fields = TOKEN_FIELDS[TokenPurpose.PASSWORD_RESET]

        user = self.repo.find_by_token(fields, 'h')

        self.collection.find_one.assert_called_once_with({'password_reset_token': 'h'}, None)
        self.assertEqual(user.password_reset_token, 'h')


class TestUpdate(MongoUserRepositoryTestCase):

    def test_set_and_unset(self):
        self.collection.update_one.return_value = MagicMock(matched_count=1)
        fields = {
            'dealership_application_status': DealershipApplicationStatus.PENDING,
            **TOKEN_FIELDS[TokenPurpose.USER_CONFIRMATION].clear(),
        }

        self.assertTrue(self.repo.update('user-1', fields, skip_validation=True))

        query, update = self.collection.update_one.call_args[0]
        self.assertEqual(query, {'_id': 'user-1'})
        self.assertEqual(update['$set']['dealership_application_status'], 'pending')
        self.assertEqual(update['$set']['updated_at'], self.now)
        self.assertEqual(
            update['$unset'],
            {'user_confirmation_token': '', 'user_confirmation_token_expires': ''},
        )

    def test_validation_runs_before_write(self):
        with self.assertRaises(ValidationError):
            self.repo.update('user-1', {'email': 'bad'})
        self.collection.update_one.assert_not_called()

    def test_conditional_update_filter(self):
        self.collection.update_one.return_value = MagicMock(matched_count=1)
        self.repo.update(
            'user-1',
            {'dealership_application_status': DealershipApplicationStatus.APPROVED},
            skip_validation=True,
            expected={'dealership_application_status': DealershipApplicationStatus.PENDING},
        )
        query = self.collection.update_one.call_args[0][0]
        self.assertEqual(query, {'_id': 'user-1', 'dealership_application_status': 'pending'})

    def test_conditional_update_lost_race(self):
        self.collection.update_one.return_value = MagicMock(matched_count=0)
        self.collection.count_documents.return_value = 1
        with self.assertRaises(ConcurrentModificationError):
            self.repo.update(
                'user-1', {'role': Role.DEALER}, skip_validation=True,
                expected={'dealership_application_status': None},
            )

    def test_missing_user_returns_false(self):
        self.collection.update_one.return_value = MagicMock(matched_count=0)
        self.collection.count_documents.return_value = 0
        self.assertFalse(self.repo.update(
            'missing', {'role': Role.DEALER}, expected={'dealership_application_status': None},
        ))

    def test_duplicate_email_on_update(self):
        self.collection.update_one.side_effect = DuplicateKeyError('E11000 duplicate key error')
        with self.assertRaises(DuplicateError):
            self.repo.update('user-1', {'email': 'taken@b.com'})


class TestEnsureIndexes(MongoUserRepositoryTestCase):

    def test_creates_unique_email_and_token_indexes(self):
        self.assertTrue(self.repo.ensure_indexes())
        calls = {c.kwargs['name']: c for c in self.collection.create_index.call_args_list}
        self.assertTrue(calls['idx_users_email'].kwargs['unique'])
        self.assertTrue(calls['idx_users_password_reset_token'].kwargs['sparse'])
        self.assertTrue(calls['idx_users_user_confirmation_token'].kwargs['sparse'])


class TestCreateIndexSafe(unittest.TestCase):

    def setUp(self):
        self.collection = MagicMock()
        self.collection.create_index.side_effect = [PyMongoError('Index already exists with a different name'), None]

    def test_rebuilds_same_keys_under_other_name(self):
        self.collection.index_information.return_value = {
            '_id_': {'key': [('_id', 1)]},
            'email_1': {'key': [('email', 1)]},
        }

        self.assertTrue(create_index_safe(self.collection, [('email', 1)], 'idx_users_email', unique=True))

        self.collection.drop_index.assert_called_once_with('email_1')
        self.assertEqual(self.collection.create_index.call_count, 2)

    def test_rebuilds_same_name_with_other_keys(self):
        self.collection.index_information.return_value = {
            'idx_users_email': {'key': [('email', -1)]},
        }

        self.assertTrue(create_index_safe(self.collection, [('email', 1)], 'idx_users_email'))

        self.collection.drop_index.assert_called_once_with('idx_users_email')

    def test_unresolvable_conflict(self):
        self.collection.index_information.return_value = {'_id_': {'key': [('_id', 1)]}}

        self.assertFalse(create_index_safe(self.collection, [('email', 1)], 'idx_users_email'))
        self.collection.drop_index.assert_not_called()

    def test_other_errors_propagate(self):
        self.collection.create_index.side_effect = PyMongoError('not authorized')
        with self.assertRaises(PyMongoError):
            create_index_safe(self.collection, [('email', 1)], 'idx_users_email')


if __name__ == '__main__':
    unittest.main()
