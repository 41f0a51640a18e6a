"""Unit tests for BcryptPasswordHasher."""

import unittest
from unittest.mock import patch

from adapter.crypto.bcrypt_hasher import DEFAULT_ROUNDS, BcryptPasswordHasher
from domain.model.errors import HashingError


class TestBcryptPasswordHasher(unittest.TestCase):

    def setUp(self):
        self.hasher = BcryptPasswordHasher(rounds=4)

    def test_default_work_factor(self):
        self.assertEqual(DEFAULT_ROUNDS, 13)
        self.assertEqual(BcryptPasswordHasher().rounds, 13)

    def test_round_trip(self):
        hashed = self.hasher.hash('Abcdef1!')
        self.assertTrue(hashed.startswith('$2b$04$'))
        self.assertTrue(self.hasher.verify('Abcdef1!', hashed))

    def test_salted(self):
        self.assertNotEqual(self.hasher.hash('Abcdef1!'), self.hasher.hash('Abcdef1!'))

    def test_wrong_password(self):
        self.assertFalse(self.hasher.verify('Abcdef1?', self.hasher.hash('Abcdef1!')))

    def test_malformed_hash_returns_false(self):
        for stored in (None, '', 'not-a-bcrypt-hash'):
            with self.subTest(stored=stored):
                self.assertFalse(self.hasher.verify('Abcdef1!', stored))

    def test_primitive_failure_raises_hashing_error(self):
        with patch('adapter.crypto.bcrypt_hasher.bcrypt.gensalt', side_effect=OSError("entropy")):
            with self.assertRaises(HashingError):
                self.hasher.hash('Abcdef1!')

    def test_rejects_invalid_rounds(self):
        with self.assertRaises(ValueError):
            BcryptPasswordHasher(rounds=3)


if __name__ == '__main__':
    unittest.main()
