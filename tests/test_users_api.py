"""Tests for user administration endpoints."""

from tests.harness import NEW_STRONG_PASSWORD, STRONG_PASSWORD, ApiTestCase


class TestUserAdmin(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.admin = self.create_user("root", role="system-admin")
        self.headers = self.auth_headers(self.admin)

    def test_create_and_login(self) -> None:
        payload = {
            "username": "carol",
            "fullname": "Carol C",
            "role": "defense-admin",
            "password": STRONG_PASSWORD,
        }
        resp = self.client.post("/api/users", json=payload, headers=self.headers)
        self.assertEqual(resp.status_code, 201)
        self.assertNotIn("password_hash", resp.json())
        login = self.client.post("/api/auth/login", json={"username": "carol", "password": STRONG_PASSWORD})
        self.assertEqual(login.status_code, 200)

    def test_duplicate_username_conflicts(self) -> None:
        self.create_user("carol")
        payload = {"username": "carol", "fullname": "C", "role": "user", "password": STRONG_PASSWORD}
        self.assertEqual(self.client.post("/api/users", json=payload, headers=self.headers).status_code, 409)

    def test_weak_password_rejected(self) -> None:
        payload = {"username": "dave", "fullname": "D", "role": "user", "password": "password"}
        self.assertEqual(self.client.post("/api/users", json=payload, headers=self.headers).status_code, 400)

    def test_unknown_role_rejected(self) -> None:
        payload = {"username": "dave", "fullname": "D", "role": "auditor", "password": STRONG_PASSWORD}
        self.assertEqual(self.client.post("/api/users", json=payload, headers=self.headers).status_code, 422)

    def test_non_admin_cannot_list(self) -> None:
        defense = self.create_user("guard", role="defense-admin")
        self.assertEqual(self.client.get("/api/users", headers=self.auth_headers(defense)).status_code, 403)

    def test_list_filters(self) -> None:
        self.create_user("guard", role="defense-admin")
        self.create_user("alice")
        resp = self.client.get("/api/users?role=defense-admin", headers=self.headers)
        self.assertEqual([u["username"] for u in resp.json()], ["guard"])
        resp = self.client.get("/api/users?q=ali", headers=self.headers)
        self.assertEqual([u["username"] for u in resp.json()], ["alice"])

    def test_user_reads_self_but_not_others(self) -> None:
        alice = self.create_user("alice")
        headers = self.auth_headers(alice)
        self.assertEqual(self.client.get(f"/api/users/{alice.id}", headers=headers).status_code, 200)
        self.assertEqual(self.client.get(f"/api/users/{self.admin.id}", headers=headers).status_code, 403)

    def test_update_role_and_status(self) -> None:
        alice = self.create_user("alice")
        resp = self.client.put(
            f"/api/users/{alice.id}", json={"role": "defense-admin", "status": "inactive"}, headers=self.headers
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["role"], "defense-admin")
        self.assertEqual(resp.json()["status"], "inactive")

    def test_admin_password_reset(self) -> None:
        alice = self.create_user("alice", password_age_days=300)
        resp = self.client.patch(
            f"/api/users/{alice.id}/password", json={"password": NEW_STRONG_PASSWORD}, headers=self.headers
        )
        self.assertEqual(resp.status_code, 200)
        login = self.client.post("/api/auth/login", json={"username": "alice", "password": NEW_STRONG_PASSWORD})
        self.assertEqual(login.status_code, 200)

    def test_self_service_password_change(self) -> None:
        alice = self.create_user("alice")
        resp = self.client.patch(
            "/api/users/me/password",
            json={"current_password": STRONG_PASSWORD, "new_password": NEW_STRONG_PASSWORD},
            headers=self.auth_headers(alice),
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["user"]["username"], "alice")

    def test_delete_user_but_not_self(self) -> None:
        alice = self.create_user("alice")
        self.assertEqual(self.client.delete(f"/api/users/{alice.id}", headers=self.headers).status_code, 200)
        self.assertEqual(self.client.get(f"/api/users/{alice.id}", headers=self.headers).status_code, 404)
        self.assertEqual(self.client.delete(f"/api/users/{self.admin.id}", headers=self.headers).status_code, 400)

    def test_deleted_user_token_is_rejected(self) -> None:
        alice = self.create_user("alice")
        alice_headers = self.auth_headers(alice)
        self.client.delete(f"/api/users/{alice.id}", headers=self.headers)
        resp = self.client.get("/api/incidents/mine", headers=alice_headers)
        self.assertEqual(resp.status_code, 403)


class TestHealth(ApiTestCase):
    def test_health_reports_database_and_keys(self) -> None:
        resp = self.client.get("/api/health/")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["status"], "ok")
        self.assertEqual(body["database"], "connected")
        self.assertEqual(body["access_key_count"], 1)
