"""Tests for the bearer-auth pipeline: token checks, identity hydration, expiry gate and role gate."""

from datetime import timedelta
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from app.api.deps import get_identity_store
from app.core.config import Settings, get_settings
from app.core.tokens import KeySource, SecretKey, TokenService
from app.main import app
from app.services.identity_store import IdentityStore
from tests.harness import NEW_STRONG_PASSWORD, STRONG_PASSWORD, ApiTestCase


def _unreachable_store() -> IdentityStore:
    session = MagicMock()
    session.query.side_effect = OperationalError("SELECT 1", {}, Exception("connection refused"))
    return IdentityStore(session)


class TestTokenChecks(ApiTestCase):
    def test_missing_header_is_no_token(self) -> None:
        resp = self.client.get("/api/incidents/mine")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["code"], "NO_TOKEN")
        self.assertEqual(resp.headers.get("WWW-Authenticate"), "Bearer")

    def test_non_bearer_scheme_is_no_token(self) -> None:
        resp = self.client.get("/api/incidents/mine", headers={"Authorization": "Basic abc"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["code"], "NO_TOKEN")

    def test_garbage_token_is_invalid(self) -> None:
        resp = self.client.get("/api/incidents/mine", headers={"Authorization": "Bearer nope"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["code"], "INVALID_ACCESS")

    def test_foreign_secret_is_invalid(self) -> None:
        user = self.create_user("alice")
        foreign = TokenService(
            access_keys=[SecretKey("some-other-secret", KeySource.PRIMARY, "x")],
            refresh_keys=[SecretKey("some-other-secret", KeySource.PRIMARY, "x")],
        )
        token = foreign.sign_access({"id": user.id, "role": user.role})
        resp = self.client.get("/api/incidents/mine", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["code"], "INVALID_ACCESS")

    def test_expired_token(self) -> None:
        user = self.create_user("alice")
        self.tokens.access_ttl = timedelta(seconds=-5)
        token = self.token_for(user)
        resp = self.client.get("/api/incidents/mine", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["code"], "EXPIRED_ACCESS")

    def test_token_without_subject_is_invalid(self) -> None:
        token = self.tokens.sign_access({"username": "ghost"})
        resp = self.client.get("/api/incidents/mine", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["code"], "INVALID_ACCESS")

    def test_valid_token_passes(self) -> None:
        user = self.create_user("alice")
        resp = self.client.get("/api/incidents/mine", headers=self.auth_headers(user))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), [])


class TestIdentityHydration(ApiTestCase):
    def test_deleted_user_is_forbidden(self) -> None:
        token = self.tokens.sign_access({"id": 4242, "username": "gone", "role": "user"})
        resp = self.client.get("/api/incidents/mine", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["message"], "User not found.")

    def test_stored_role_overrides_token_claims(self) -> None:
        user = self.create_user("mallory", role="user")
        token = self.tokens.sign_access({"id": user.id, "username": "mallory", "role": "system-admin"})
        resp = self.client.get("/api/users", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(resp.status_code, 403)

    def test_store_down_degrades_to_claims_for_system_admin(self) -> None:
        admin = self.create_user("root", role="system-admin")
        headers = self.auth_headers(admin)
        app.dependency_overrides[get_identity_store] = _unreachable_store
        resp = self.client.post("/api/auth/logout", headers=headers)
        self.assertEqual(resp.status_code, 200)

    def test_store_down_without_expiry_data_is_internal_error(self) -> None:
        user = self.create_user("alice")
        headers = self.auth_headers(user)
        app.dependency_overrides[get_identity_store] = _unreachable_store
        resp = self.client.post("/api/auth/logout", headers=headers)
        self.assertEqual(resp.status_code, 500)
        self.assertNotIn("connection refused", resp.text)

    def test_store_down_fail_closed_rejects(self) -> None:
        admin = self.create_user("root", role="system-admin")
        headers = self.auth_headers(admin)
        app.dependency_overrides[get_identity_store] = _unreachable_store
        app.dependency_overrides[get_settings] = lambda: Settings(
            _env_file=None, AUTH_FAIL_CLOSED_ON_STORE_ERROR=True
        )
        resp = self.client.post("/api/auth/logout", headers=headers)
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["code"], "INVALID_ACCESS")


class TestPasswordExpiryGate(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.user = self.create_user("stale", password_age_days=120)
        self.headers = self.auth_headers(self.user)

    def test_protected_route_is_blocked(self) -> None:
        resp = self.client.get("/api/incidents/mine", headers=self.headers)
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["code"], "PASSWORD_EXPIRED")

    def test_role_gated_listing_is_blocked(self) -> None:
        defense = self.create_user("stale-guard", role="defense-admin", password_age_days=120)
        resp = self.client.get("/api/incidents", headers=self.auth_headers(defense))
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["code"], "PASSWORD_EXPIRED")

    def test_role_gated_listing_reports_expiry_before_role(self) -> None:
        resp = self.client.get("/api/incidents", headers=self.headers)
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["code"], "PASSWORD_EXPIRED")

    def test_missing_change_timestamp_is_blocked(self) -> None:
        user = self.create_user("never-set", password_age_days=None)
        resp = self.client.get("/api/incidents/mine", headers=self.auth_headers(user))
        self.assertEqual(resp.json()["code"], "PASSWORD_EXPIRED")

    def test_whitelisted_routes_stay_reachable(self) -> None:
        self.assertEqual(self.client.get("/api/auth/me", headers=self.headers).status_code, 200)
        self.assertEqual(self.client.post("/api/auth/logout", headers=self.headers).status_code, 200)

    def test_change_password_then_other_routes_open(self) -> None:
        resp = self.client.patch(
            "/api/auth/password",
            json={"current_password": STRONG_PASSWORD, "new_password": NEW_STRONG_PASSWORD},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 200)
        # The same token works once the stored timestamp is fresh.
        self.assertEqual(self.client.get("/api/incidents/mine", headers=self.headers).status_code, 200)

    def test_whitelist_is_by_route_not_prefix(self) -> None:
        resp = self.client.patch(
            "/api/users/me/password",
            json={"current_password": STRONG_PASSWORD, "new_password": NEW_STRONG_PASSWORD},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["code"], "PASSWORD_EXPIRED")

    def test_system_admin_is_exempt(self) -> None:
        admin = self.create_user("root", role="system-admin", password_age_days=400)
        resp = self.client.get("/api/users", headers=self.auth_headers(admin))
        self.assertEqual(resp.status_code, 200)

    def test_zero_max_age_disables_gate(self) -> None:
        app.dependency_overrides[get_settings] = lambda: Settings(_env_file=None, PASSWORD_MAX_AGE_DAYS=0)
        resp = self.client.get("/api/incidents/mine", headers=self.headers)
        self.assertEqual(resp.status_code, 200)


class TestRoleGateOverHttp(ApiTestCase):
    def test_system_admin_passes_defense_admin_gate(self) -> None:
        admin = self.create_user("root", role="system-admin")
        resp = self.client.get("/api/incidents", headers=self.auth_headers(admin))
        self.assertEqual(resp.status_code, 200)

    def test_defense_admin_passes(self) -> None:
        defense = self.create_user("guard", role="defense-admin")
        resp = self.client.get("/api/incidents", headers=self.auth_headers(defense))
        self.assertEqual(resp.status_code, 200)

    def test_plain_user_is_forbidden(self) -> None:
        user = self.create_user("alice")
        resp = self.client.get("/api/incidents", headers=self.auth_headers(user))
        self.assertEqual(resp.status_code, 403)
        self.assertNotIn("code", resp.json())

    def test_unknown_stored_role_is_unauthenticated(self) -> None:
        odd = self.create_user("odd", role="auditor")
        resp = self.client.get("/api/incidents", headers=self.auth_headers(odd))
        self.assertEqual(resp.status_code, 401)

    def test_security_headers_present(self) -> None:
        resp = self.client.get("/api/incidents")
        self.assertEqual(resp.headers.get("X-Content-Type-Options"), "nosniff")
        self.assertEqual(resp.headers.get("X-Frame-Options"), "DENY")
        self.assertNotIn("Strict-Transport-Security", resp.headers)
