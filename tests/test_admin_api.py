"""Admin user management and site settings."""

import pytest

from conftest import auth_headers, make_policies, register
from linksite.app.api.admin.site_settings import clean_domains
from linksite.app.middleware.rate_limit import RateLimiter


def _signup(client, username: str) -> tuple[str, dict[str, str]]:
    body = register(client, username).json()
    return body["user"]["id"], auth_headers(body["token"])


@pytest.fixture
def admin(client, promote):
    user_id, headers = _signup(client, "root")
    assert promote("root@example.com") == "promoted"
    return user_id, headers


class TestAccessControl:
    def test_anonymous_rejected(self, client):
        assert client.get("/api/admin/users").status_code == 401

    def test_non_admin_rejected(self, client):
        _, headers = _signup(client, "alice")
        resp = client.get("/api/admin/users", headers=headers)
        assert resp.status_code == 403
        assert resp.json()["error"] == "permission_denied"

    def test_rejected_requests_do_not_spend_allowance(self, make_client, promote):
        client = make_client(RateLimiter(make_policies(auth_max=3)))
        ip = {"X-Forwarded-For": "8.8.8.8"}
        _, user_headers = _signup(client, "alice")
        headers = {**user_headers, **ip}
        payload = {"registration_enabled": False}
        for _ in range(5):
            resp = client.put("/api/admin/settings", json=payload, headers=headers)
            assert resp.status_code == 403

        promote("alice@example.com")
        assert client.put("/api/admin/settings", json=payload, headers=headers).status_code == 200


class TestUsers:
    def test_list_users(self, client, admin):
        _signup(client, "alice")
        resp = client.get("/api/admin/users", headers=admin[1])
        assert resp.status_code == 200
        assert [u["username"] for u in resp.json()] == ["root", "alice"]

    def test_listing_is_not_throttled(self, make_client, promote):
        client = make_client(RateLimiter(make_policies(auth_max=5)))
        _, headers = _signup(client, "root")
        promote("root@example.com")
        headers = {**headers, "X-Forwarded-For": "7.7.7.7"}

        statuses = [client.get("/api/admin/users", headers=headers).status_code for _ in range(8)]
        assert statuses == [200] * 8

    def test_mutations_use_auth_bucket(self, make_client, promote):
        client = make_client(RateLimiter(make_policies(auth_max=2)))
        _, headers = _signup(client, "root")
        promote("root@example.com")
        headers = {**headers, "X-Forwarded-For": "6.6.6.6"}

        statuses = [
            client.delete("/api/admin/users/missing", headers=headers).status_code
            for _ in range(3)
        ]
        assert statuses == [404, 404, 429]

    def test_delete_user(self, client, admin):
        alice_id, alice_headers = _signup(client, "alice")
        resp = client.delete(f"/api/admin/users/{alice_id}", headers=admin[1])
        assert resp.status_code == 200
        assert resp.json() == {"success": True}

        assert client.get("/api/settings", headers=alice_headers).status_code == 401
        assert client.get("/alice").status_code == 404

    def test_delete_missing_user(self, client, admin):
        assert client.delete("/api/admin/users/nope", headers=admin[1]).status_code == 404

    def test_cannot_delete_last_admin(self, client, admin):
        admin_id, headers = admin
        resp = client.delete(f"/api/admin/users/{admin_id}", headers=headers)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Cannot delete the last admin user"

    def test_grant_and_revoke_admin(self, client, admin):
        admin_id, headers = admin
        alice_id, alice_headers = _signup(client, "alice")

        resp = client.post(f"/api/admin/users/{alice_id}/admin", json={"is_admin": True}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["is_admin"] is True
        assert client.get("/api/admin/users", headers=alice_headers).status_code == 200

        # With two admins either may step down
        resp = client.post(f"/api/admin/users/{admin_id}/admin", json={"is_admin": False}, headers=alice_headers)
        assert resp.status_code == 200
        assert client.get("/api/admin/users", headers=headers).status_code == 403

    def test_cannot_revoke_last_admin(self, client, admin):
        admin_id, headers = admin
        resp = client.post(f"/api/admin/users/{admin_id}/admin", json={"is_admin": False}, headers=headers)
        assert resp.status_code == 400


class TestSiteSettings:
    def test_defaults(self, client, admin):
        resp = client.get("/api/admin/settings", headers=admin[1])
        assert resp.status_code == 200
        assert resp.json() == {"registration_enabled": True, "disallowed_domains": []}

    def test_update_cleans_domains(self, client, admin):
        resp = client.put(
            "/api/admin/settings",
            json={"disallowed_domains": [" Spam.TEST ", "bad", "a b.com", "spam.test", "x.io"]},
            headers=admin[1],
        )
        assert resp.status_code == 200
        assert resp.json()["disallowed_domains"] == ["spam.test", "x.io"]
        assert register(client, "mallory", email="m@spam.test").status_code == 403

    def test_close_registration(self, client, admin):
        resp = client.put("/api/admin/settings", json={"registration_enabled": False}, headers=admin[1])
        assert resp.json()["registration_enabled"] is False
        assert register(client, "late").status_code == 403
        assert client.get("/api/admin/settings", headers=admin[1]).json()["registration_enabled"] is False

    def test_empty_update(self, client, admin):
        resp = client.put("/api/admin/settings", json={}, headers=admin[1])
        assert resp.status_code == 400
        assert resp.json()["detail"] == "No valid fields to update"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ([], []),
        (["EXAMPLE.com", "example.com"], ["example.com"]),
        (["a.b", "abc", "with space.com"], []),
        (["  mail.example.org  "], ["mail.example.org"]),
    ],
)
def test_clean_domains(raw, expected):
    assert clean_domains(raw) == expected
