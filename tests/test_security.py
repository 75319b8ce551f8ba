"""Tests for bcrypt hashing, verification and legacy prefix handling."""

import unittest

from app.core.security import hash_password, normalize_hash, verify_password


class TestHashPassword(unittest.TestCase):
    def test_round_trip_verifies(self) -> None:
        stored = hash_password("Abc12345!", rounds=4)
        self.assertTrue(verify_password("Abc12345!", stored))

    def test_wrong_password_fails(self) -> None:
        stored = hash_password("Abc12345!", rounds=4)
        self.assertFalse(verify_password("Abc12345?", stored))

    def test_hash_is_salted(self) -> None:
        self.assertNotEqual(hash_password("same", rounds=4), hash_password("same", rounds=4))

    def test_cost_factor_is_encoded(self) -> None:
        self.assertTrue(hash_password("x", rounds=5).startswith("$2b$05$"))

    def test_default_cost_comes_from_settings(self) -> None:
        # tests/__init__ sets BCRYPT_SALT_ROUNDS=4
        self.assertTrue(hash_password("x").startswith("$2b$04$"))

    def test_long_passwords_are_truncated_to_72_bytes(self) -> None:
        stored = hash_password("a" * 72, rounds=4)
        self.assertTrue(verify_password("a" * 100, stored))


class TestLegacyPrefixes(unittest.TestCase):
    def setUp(self) -> None:
        self.stored = hash_password("Abc12345!", rounds=4)
        self.body = self.stored[len("$2b$"):]

    def test_2y_prefix_verifies(self) -> None:
        self.assertTrue(verify_password("Abc12345!", "$2y$" + self.body))

    def test_2a_prefix_verifies(self) -> None:
        self.assertTrue(verify_password("Abc12345!", "$2a$" + self.body))

    def test_normalize_rewrites_only_the_prefix(self) -> None:
        self.assertEqual(normalize_hash("$2y$" + self.body), self.stored)
        self.assertEqual(normalize_hash(self.stored), self.stored)


class TestMalformedHash(unittest.TestCase):
    def test_empty_hash_raises(self) -> None:
        with self.assertRaises(ValueError):
            verify_password("anything", "")

    def test_garbage_hash_raises(self) -> None:
        with self.assertRaises(ValueError):
            verify_password("anything", "not-a-bcrypt-hash")
