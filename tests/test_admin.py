"""Admin endpoints: user listing, global role changes and the audit trail."""

from datetime import datetime, timedelta, timezone

import pytest

from core.exceptions import Forbidden, InvalidRole, ValidationError
from storage.user_manager import UserManager


@pytest.fixture
def admin(client_for, promote):
    client = client_for("root")
    promote(client.user["id"])
    return client


def test_non_admin_is_refused(client_for):
    alice = client_for("alice")
    for path in ("/api/admin/users", "/api/admin/audit-logs"):
        resp = alice.get(path)
        assert resp.status_code == 403
        assert resp.json()["code"] == "forbidden"
    resp = alice.put(f"/api/admin/users/{alice.user['id']}/role", json={"role": "admin"})
    assert resp.status_code == 403


def test_anonymous_is_unauthenticated(anon_client):
    assert anon_client.get("/api/admin/users").status_code == 401


def test_list_users_hides_password_hash(admin, client_for):
    client_for("alice")
    users = admin.get("/api/admin/users").json()["users"]
    assert {u["username"] for u in users} == {"root", "alice"}
    assert all("password_hash" not in u for u in users)


def test_promote_then_demote(admin, client_for):
    alice = client_for("alice")
    uid = alice.user["id"]

    resp = admin.put(f"/api/admin/users/{uid}/role", json={"role": "admin"})
    assert resp.status_code == 200
    assert resp.json()["role"] == "admin"
    assert alice.get("/api/admin/users").status_code == 200

    admin.put(f"/api/admin/users/{uid}/role", json={"role": "user"})
    assert alice.get("/api/admin/users").status_code == 403


def test_role_change_guards(admin, client_for):
    alice = client_for("alice")
    bad = admin.put(f"/api/admin/users/{alice.user['id']}/role", json={"role": "superuser"})
    assert bad.status_code == 400
    assert bad.json()["code"] == "invalid_role"

    own = admin.put(f"/api/admin/users/{admin.user['id']}/role", json={"role": "user"})
    assert own.status_code == 400

    missing = admin.put("/api/admin/users/9999/role", json={"role": "admin"})
    assert missing.status_code == 404


def test_audit_trail_records_membership_changes(admin, client_for):
    mod, bob = client_for("mod"), client_for("bob")
    cohort_id = mod.post("/api/cohorts", json={"name": "Night Owls"}).json()["id"]
    mod.post("/api/cohort-membership", json={"cohort_id": cohort_id, "user_id": bob.user["id"]})

    logs = admin.get("/api/admin/audit-logs", params={"cohort_id": cohort_id}).json()["logs"]
    assert [row["action"] for row in logs] == ["add_member", "create_cohort"]
    assert logs[0]["actor_username"] == "mod"
    assert logs[0]["target_username"] == "bob"

    by_bob = admin.get("/api/admin/audit-logs", params={"usernames": ["bob"]}).json()["logs"]
    assert {row["action"] for row in by_bob} == {"register", "add_member"}

    limited = admin.get("/api/admin/audit-logs", params={"limit": 1}).json()["logs"]
    assert len(limited) == 1


def test_change_role_storage_guards(db, make_user):
    root = make_user("root", role="admin")
    plain = make_user("plain")
    users = UserManager(db)

    with pytest.raises(Forbidden):
        users.change_role(plain, root.id, "user")
    with pytest.raises(InvalidRole):
        users.change_role(root, plain.id, "owner")
    with pytest.raises(ValidationError):
        users.change_role(root, root.id, "user")

    assert users.change_role(root, plain.id, "admin").role == "admin"


def test_audit_log_bounds_with_utc_offset(admin, client_for):
    client_for("alice")
    now = datetime.now(timezone.utc)
    east = timezone(timedelta(hours=5))
    west = timezone(timedelta(hours=-5))

    window = admin.get("/api/admin/audit-logs", params={
        "usernames": ["alice"],
        "since": (now - timedelta(minutes=1)).astimezone(east).isoformat(),
        "until": (now + timedelta(minutes=1)).astimezone(west).isoformat(),
    }).json()["logs"]
    assert [row["action"] for row in window] == ["register"]

    future = admin.get("/api/admin/audit-logs", params={
        "usernames": ["alice"],
        "since": (now + timedelta(minutes=1)).astimezone(west).isoformat(),
    }).json()["logs"]
    assert future == []
