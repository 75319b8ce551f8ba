"""Tests for password complexity and expiry rules."""

import unittest
from datetime import UTC, datetime, timedelta

from app.core.password_policy import (
    is_expired,
    is_password_expired_for,
    meets_complexity,
    password_age_days,
)

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)


class TestComplexity(unittest.TestCase):
    def test_too_short_lowercase_fails(self) -> None:
        self.assertFalse(meets_complexity("abc"))

    def test_all_clauses_pass(self) -> None:
        self.assertTrue(meets_complexity("Abc12345!"))

    def test_each_missing_clause_fails(self) -> None:
        for candidate in ("abc12345!", "ABC12345!", "Abcdefgh!", "Abc123456"):
            with self.subTest(candidate=candidate):
                self.assertFalse(meets_complexity(candidate))

    def test_exactly_eight_characters_passes(self) -> None:
        self.assertTrue(meets_complexity("Abc1234!"))

    def test_seven_characters_fails(self) -> None:
        self.assertFalse(meets_complexity("Ab1234!"))

    def test_none_and_empty_fail(self) -> None:
        self.assertFalse(meets_complexity(None))
        self.assertFalse(meets_complexity(""))

    def test_persian_letters_count_as_letters(self) -> None:
        self.assertTrue(meets_complexity("سلامabc12!"))


class TestExpiry(unittest.TestCase):
    def test_zero_max_age_disables_policy(self) -> None:
        self.assertFalse(is_expired(None, max_age_days=0, now=NOW))
        self.assertFalse(is_expired(NOW - timedelta(days=5000), max_age_days=0, now=NOW))

    def test_missing_timestamp_is_expired(self) -> None:
        self.assertTrue(is_expired(None, max_age_days=90, now=NOW))

    def test_unparseable_timestamp_is_expired(self) -> None:
        self.assertTrue(is_expired("yesterday-ish", max_age_days=90, now=NOW))

    def test_recent_change_is_not_expired(self) -> None:
        self.assertFalse(is_expired(NOW - timedelta(days=10), max_age_days=90, now=NOW))

    def test_boundary_uses_whole_days(self) -> None:
        self.assertFalse(is_expired(NOW - timedelta(days=90, hours=23), max_age_days=90, now=NOW))
        self.assertTrue(is_expired(NOW - timedelta(days=91), max_age_days=90, now=NOW))

    def test_naive_timestamp_is_treated_as_utc(self) -> None:
        naive = (NOW - timedelta(days=3)).replace(tzinfo=None)
        self.assertEqual(password_age_days(naive, now=NOW), 3)

    def test_iso_string_is_parsed(self) -> None:
        self.assertEqual(password_age_days("2026-05-01T12:00:00+00:00", now=NOW), 31)


class TestRoleExemption(unittest.TestCase):
    def test_system_admin_never_expires(self) -> None:
        self.assertFalse(is_password_expired_for("system-admin", None, 90, now=NOW))
        self.assertFalse(is_password_expired_for("System-Admin", NOW - timedelta(days=400), 90, now=NOW))

    def test_other_roles_expire(self) -> None:
        old = NOW - timedelta(days=400)
        self.assertTrue(is_password_expired_for("user", old, 90, now=NOW))
        self.assertTrue(is_password_expired_for("defense-admin", old, 90, now=NOW))
