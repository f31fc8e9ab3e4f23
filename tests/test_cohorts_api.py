"""Cohort and membership endpoints, including the moderator delegation scenario."""


def _members(client, cohort_id):
    resp = client.get(f"/api/cohorts/{cohort_id}/members")
    assert resp.status_code == 200, resp.text
    return {row["username"]: row for row in resp.json()}


def _create_cohort(client, name="NYC Parents"):
    resp = client.post("/api/cohorts", json={"name": name, "description": "Parents in NYC"})
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_moderator_delegation_scenario(client_for):
    a, b, c = client_for("amy"), client_for("bob"), client_for("cal")

    cohort = _create_cohort(a)
    cid = cohort["id"]
    assert a.get(f"/api/cohorts/{cid}/is-moderator").json()["is_moderator"] is True

    # A adds B as member
    resp = a.post("/api/cohort-membership", json={"cohort_id": cid, "user_id": b.user["id"]})
    assert resp.status_code == 201
    b_membership = resp.json()["id"]
    assert _members(a, cid)["bob"]["role"] == "member"

    # B cannot add C yet
    resp = b.post("/api/cohort-membership", json={"cohort_id": cid, "user_id": c.user["id"]})
    assert resp.status_code == 403
    assert resp.json()["code"] == "forbidden"

    # A promotes B
    resp = a.put(f"/api/cohort-membership/{b_membership}", json={"role": "moderator"})
    assert resp.status_code == 200
    assert resp.json()["role"] == "moderator"

    # B adds C, then removes C
    resp = b.post("/api/cohort-membership", json={"cohort_id": cid, "user_id": c.user["id"]})
    assert resp.status_code == 201
    c_membership = resp.json()["id"]
    assert "cal" in _members(b, cid)

    resp = b.delete(f"/api/cohort-membership/{c_membership}")
    assert resp.json() == {"success": True}
    assert "cal" not in _members(a, cid)

    moderators = {row["username"] for row in a.get(f"/api/cohorts/{cid}/moderators").json()}
    assert moderators == {"amy", "bob"}


def test_non_moderator_always_forbidden(client_for):
    a, b = client_for("amy"), client_for("bob")
    cid = _create_cohort(a)["id"]
    membership = a.post("/api/cohort-membership", json={"cohort_id": cid, "user_id": b.user["id"]}).json()

    assert b.post("/api/cohort-membership", json={"cohort_id": cid, "user_id": b.user["id"]}).status_code == 403
    assert b.put(f"/api/cohort-membership/{membership['id']}", json={"role": "moderator"}).status_code == 403
    assert b.delete(f"/api/cohort-membership/{membership['id']}").status_code == 403


def test_admin_can_manage_any_cohort(client_for, promote):
    a, root, d = client_for("amy"), client_for("root"), client_for("dee")
    promote(root.user["id"])
    cid = _create_cohort(a)["id"]

    check = root.get(f"/api/cohorts/{cid}/is-moderator").json()
    assert check == {"is_moderator": False, "can_manage": True}

    resp = root.post("/api/cohort-membership", json={"cohort_id": cid, "user_id": d.user["id"]})
    assert resp.status_code == 201


def test_add_member_by_email_and_find_by_email(client_for):
    a, b = client_for("amy"), client_for("bob")
    cid = _create_cohort(a)["id"]

    found = a.get("/api/user/find-by-email", params={"email": "bob@example.com"})
    assert found.status_code == 200
    assert found.json() == {"id": b.user["id"], "username": "bob", "full_name": "Bob Parent"}

    missing = a.get("/api/user/find-by-email", params={"email": "ghost@example.com"})
    assert missing.status_code == 404
    assert missing.json()["code"] == "user_not_found"

    resp = a.post("/api/cohort-membership", json={"cohort_id": cid, "email": "bob@example.com"})
    assert resp.status_code == 201
    assert resp.json()["user_id"] == b.user["id"]


def test_duplicate_membership_is_409(client_for):
    a, b = client_for("amy"), client_for("bob")
    cid = _create_cohort(a)["id"]
    payload = {"cohort_id": cid, "user_id": b.user["id"]}
    assert a.post("/api/cohort-membership", json=payload).status_code == 201
    resp = a.post("/api/cohort-membership", json=payload)
    assert resp.status_code == 409
    assert resp.json()["code"] == "duplicate_membership"


def test_invalid_role_is_400(client_for):
    a, b = client_for("amy"), client_for("bob")
    cid = _create_cohort(a)["id"]
    resp = a.post("/api/cohort-membership", json={"cohort_id": cid, "user_id": b.user["id"], "role": "king"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_role"


def test_last_moderator_removal_is_409(client_for):
    a = client_for("amy")
    cid = _create_cohort(a)["id"]
    own = _members(a, cid)["amy"]["membership_id"]
    resp = a.delete(f"/api/cohort-membership/{own}")
    assert resp.status_code == 409
    assert resp.json()["code"] == "last_moderator"


def test_user_cohorts_and_listing(client_for):
    a, b = client_for("amy"), client_for("bob")
    nyc = _create_cohort(a, "NYC Parents")
    sf = _create_cohort(b, "SF Parents")
    b.post("/api/cohort-membership", json={"cohort_id": sf["id"], "user_id": a.user["id"]})

    mine = {row["name"]: row["role"] for row in a.get("/api/user/cohorts").json()}
    assert mine == {"NYC Parents": "moderator", "SF Parents": "member"}

    all_names = [row["name"] for row in b.get("/api/cohorts").json()]
    assert all_names == ["NYC Parents", "SF Parents"]

    detail = b.get(f"/api/cohorts/{nyc['id']}").json()
    assert detail["creator_id"] == a.user["id"]
    assert detail["description"] == "Parents in NYC"


def test_missing_resources_are_404(client_for):
    a = client_for("amy")
    assert a.get("/api/cohorts/999").json()["code"] == "cohort_not_found"
    assert a.get("/api/cohorts/999/members").status_code == 404
    assert a.get("/api/cohorts/999/babies").status_code == 404


def test_missing_membership_id_is_forbidden_to_non_admins(client_for, promote):
    outsider, root = client_for("otto"), client_for("root")
    promote(root.user["id"])

    put = outsider.put("/api/cohort-membership/99999", json={"role": "member"})
    delete = outsider.delete("/api/cohort-membership/99999")
    assert put.status_code == delete.status_code == 403
    assert put.json()["code"] == delete.json()["code"] == "forbidden"

    put = root.put("/api/cohort-membership/99999", json={"role": "member"})
    delete = root.delete("/api/cohort-membership/99999")
    assert put.status_code == delete.status_code == 404
    assert put.json()["code"] == "membership_not_found"


def test_existing_and_missing_memberships_look_alike_to_outsiders(client_for):
    mod, bob, otto = client_for("mod"), client_for("bob"), client_for("otto")
    cid = _create_cohort(mod)["id"]
    real = mod.post("/api/cohort-membership", json={"cohort_id": cid, "user_id": bob.user["id"]}).json()["id"]

    existing = otto.delete(f"/api/cohort-membership/{real}")
    missing = otto.delete("/api/cohort-membership/99999")
    assert existing.status_code == missing.status_code == 403
    assert existing.json() == missing.json()
    assert "bob" in _members(mod, cid)
