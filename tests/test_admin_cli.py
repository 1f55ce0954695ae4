import asyncio

import pytest

from conftest import auth_headers, register
from linksite.app import admin_cli
from linksite.app.admin_cli import PromoteResult, main, set_first_admin


def test_promote_results(client, promote):
    register(client, "alice")
    assert promote("alice@example.com") == PromoteResult.PROMOTED.value
    assert promote("ALICE@example.com") == PromoteResult.ALREADY_ADMIN.value
    assert promote("ghost@example.com") == PromoteResult.NOT_FOUND.value


def test_set_first_admin_against_database_url(client, db_url):
    token = register(client, "alice").json()["token"]
    assert asyncio.run(set_first_admin("alice@example.com", db_url)) is PromoteResult.PROMOTED

    resp = client.get("/api/admin/users", headers=auth_headers(token))
    assert resp.status_code == 200


def test_set_first_admin_creates_missing_tables(tmp_path):
    url = f"sqlite+aiosqlite:////{str(tmp_path / 'empty.db').lstrip('/')}"
    assert asyncio.run(set_first_admin("nobody@example.com", url)) is PromoteResult.NOT_FOUND


@pytest.mark.parametrize(
    ("result", "exit_code"),
    [
        (PromoteResult.PROMOTED, 0),
        (PromoteResult.ALREADY_ADMIN, 0),
        (PromoteResult.NOT_FOUND, 1),
    ],
)
def test_main_exit_codes(monkeypatch, result, exit_code):
    seen = {}

    async def fake_set_first_admin(email, database_url=None):
        seen["args"] = (email, database_url)
        return result

    monkeypatch.setattr(admin_cli, "set_first_admin", fake_set_first_admin)
    assert main(["root@example.com", "--database-url", "sqlite+aiosqlite://"]) == exit_code
    assert seen["args"] == ("root@example.com", "sqlite+aiosqlite://")


def test_main_requires_email():
    with pytest.raises(SystemExit):
        main([])
