# tests/test_marketing_teams_api.py

"""
Tests for the /marketing-teams endpoints.
"""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def manager(make_user):
    _, profile, token = make_user("mo@example.com", roles=["marketing_officer"])
    return profile, token


def create_member(client, token, auth_header, email="member@example.com"):
    return client.post(
        "/marketing-teams/members",
        json={"email": email, "password": "password123", "full_name": "Team Member"},
        headers=auth_header(token),
    )


def test_create_member_links_to_caller(client: TestClient, fake, manager, auth_header):
    profile, token = manager

    response = create_member(client, token, auth_header)

    assert response.status_code == 201
    member_id = response.json()["profile_id"]
    assert fake.rows("marketing_teams", manager_id=profile["id"], team_member_id=member_id)
    assert fake.rows("user_roles", user_id=member_id)[0]["role_id"] == "role-marketing_team_member"
    assert fake.rows("app_users", id=member_id)[0]["organization_id"] == profile["organization_id"]


def test_create_member_forbidden_for_agent(client: TestClient, fake, make_user, auth_header):
    _, _, token = make_user("agent@example.com", roles=["agent"])

    response = create_member(client, token, auth_header)

    assert response.status_code == 403
    assert fake.writes("app_users") == []


def test_create_member_team_link_failure(client: TestClient, fake, manager, auth_header):
    _, token = manager
    fake.fail("marketing_teams", "insert")

    response = create_member(client, token, auth_header)

    assert response.status_code == 207
    assert response.json()["missing_step"] == "team_relationship"


def test_link_retry_after_partial(client: TestClient, fake, manager, auth_header):
    profile, token = manager
    fake.fail("marketing_teams", "insert")
    member_id = create_member(client, token, auth_header).json()["profile_id"]
    del fake.failures[("marketing_teams", "insert")]

    response = client.post(f"/marketing-teams/members/{member_id}/link", headers=auth_header(token))

    assert response.status_code == 201
    assert fake.rows("marketing_teams", manager_id=profile["id"], team_member_id=member_id)


def test_cannot_link_self(client: TestClient, manager, auth_header):
    profile, token = manager
    response = client.post(f"/marketing-teams/members/{profile['id']}/link", headers=auth_header(token))
    assert response.status_code == 400


def test_deactivate_and_reactivate(client: TestClient, fake, manager, auth_header):
    profile, token = manager
    member_id = create_member(client, token, auth_header).json()["profile_id"]

    response = client.post(f"/marketing-teams/members/{member_id}/deactivate", headers=auth_header(token))
    assert response.status_code == 200
    assert response.json()["is_active"] is False
    assert fake.rows("app_users", id=member_id)[0]["is_active"] is False
    assert client.get("/marketing-teams/members", headers=auth_header(token)).json()["data"] == []

    response = client.post(f"/marketing-teams/members/{member_id}/reactivate", headers=auth_header(token))
    assert response.status_code == 200
    assert fake.rows("app_users", id=member_id)[0]["is_active"] is True
    listed = client.get("/marketing-teams/members", headers=auth_header(token)).json()["data"]
    assert [m["id"] for m in listed] == [member_id]


def test_deactivate_unknown_member(client: TestClient, manager, auth_header):
    _, token = manager
    response = client.post("/marketing-teams/members/nope/deactivate", headers=auth_header(token))
    assert response.status_code == 404


def test_deactivate_partial(client: TestClient, fake, manager, auth_header):
    _, token = manager
    member_id = create_member(client, token, auth_header).json()["profile_id"]
    fake.fail("app_users", "update")

    response = client.post(f"/marketing-teams/members/{member_id}/deactivate", headers=auth_header(token))

    assert response.status_code == 207
    data = response.json()
    assert data["relationship_updated"] is True
    assert data["profile_updated"] is False


def test_toggle_requires_team_manager(client: TestClient, make_user, auth_header):
    _, _, token = make_user("emp@example.com", roles=["employee"])
    response = client.post("/marketing-teams/members/x/deactivate", headers=auth_header(token))
    assert response.status_code == 403
    assert response.json()["detail"]["required_roles"] == ["super_admin", "marketing_officer"]


def test_assignable_and_overview(client: TestClient, fake, manager, auth_header):
    profile, token = manager
    member_id = create_member(client, token, auth_header).json()["profile_id"]
    fake.seed("leads", {"assigned_to": member_id, "status": "converted"})
    fake.seed("leads", {"assigned_to": profile["id"], "status": "new"})

    assignable = client.get("/marketing-teams/members/assignable", headers=auth_header(token)).json()["data"]
    assert assignable[0]["full_name"] == "Me (Manager)"
    assert assignable[0]["email"] == "mo@example.com"
    assert [m["id"] for m in assignable[1:]] == [member_id]

    overview = client.get("/marketing-teams/overview", headers=auth_header(token)).json()["data"]
    assert overview["team_size"] == 1
    assert overview["total_leads"] == 2
    assert overview["active_leads"] == 1
    assert overview["conversion_rate"] == "50.0"


def test_cannot_link_admin_from_another_org(client: TestClient, fake, manager, make_user, auth_header):
    _, token = manager
    _, admin, _ = make_user("root@example.com", roles=["super_admin"], organization_id="org-2")

    response = client.post(f"/marketing-teams/members/{admin['id']}/link", headers=auth_header(token))
    assert response.status_code == 404

    response = client.post(f"/marketing-teams/members/{admin['id']}/deactivate", headers=auth_header(token))
    assert response.status_code == 404
    assert fake.rows("app_users", id=admin["id"])[0]["is_active"] is True
    assert fake.rows("marketing_teams", team_member_id=admin["id"]) == []


def test_cannot_link_privileged_colleague(client: TestClient, fake, manager, make_user, auth_header):
    _, token = manager
    _, hr, _ = make_user("hr@example.com", roles=["hr_manager"])

    response = client.post(f"/marketing-teams/members/{hr['id']}/link", headers=auth_header(token))

    assert response.status_code == 403
    assert response.json()["outcome"] == "unauthorized"
    assert fake.rows("marketing_teams", team_member_id=hr["id"]) == []
