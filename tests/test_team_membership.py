# tests/test_team_membership.py

"""
Tests for the deactivate / reactivate toggle and the team listings.
"""

import pytest

from models.enums import ProvisioningOutcome
from models.profile import Profile
from services.team_membership import TeamMembershipService, conversion_rate


@pytest.fixture
def team(fake, make_user):
    _, manager_row, _ = make_user("mo@example.com", roles=["marketing_officer"])
    _, member_row, _ = make_user("member@example.com", roles=["marketing_team_member"])
    fake.seed("marketing_teams", {
        "organization_id": manager_row["organization_id"],
        "manager_id": manager_row["id"],
        "team_member_id": member_row["id"],
        "assigned_by": manager_row["id"],
        "is_active": True,
        "assigned_at": "2026-01-05T09:00:00+00:00",
    })
    return Profile(**manager_row), member_row


def link(fake, manager, member):
    return fake.rows("marketing_teams", manager_id=manager.id, team_member_id=member["id"])[0]


# ============================================================
# Toggle
# ============================================================
def test_deactivate_then_reactivate(fake, team):
    manager, member = team
    service = TeamMembershipService(fake)

    result = service.deactivate_member(manager, member["id"])
    assert result.outcome == ProvisioningOutcome.success
    assert result.status_code == 200
    assert result.relationship_updated and result.profile_updated
    assert link(fake, manager, member)["is_active"] is False
    assert fake.rows("app_users", id=member["id"])[0]["is_active"] is False

    result = service.reactivate_member(manager, member["id"])
    assert result.outcome == ProvisioningOutcome.success
    assert result.is_active is True
    assert link(fake, manager, member)["is_active"] is True
    assert fake.rows("app_users", id=member["id"])[0]["is_active"] is True


def test_profile_failure_after_relationship_is_partial(fake, team):
    manager, member = team
    fake.fail("app_users", "update")

    result = TeamMembershipService(fake).deactivate_member(manager, member["id"])

    assert result.outcome == ProvisioningOutcome.partial_success
    assert result.status_code == 207
    assert result.relationship_updated is True
    assert result.profile_updated is False
    # Phase 1 is not rolled back
    assert link(fake, manager, member)["is_active"] is False
    assert fake.rows("app_users", id=member["id"])[0]["is_active"] is True


def test_relationship_failure_touches_nothing(fake, team):
    manager, member = team
    fake.fail("marketing_teams", "update")

    result = TeamMembershipService(fake).deactivate_member(manager, member["id"])

    assert result.outcome == ProvisioningOutcome.failed
    assert not result.relationship_updated
    assert fake.writes("app_users") == []


def test_member_of_another_manager_is_not_found(fake, make_user, team):
    _, member = team
    _, other_row, _ = make_user("other-mo@example.com", roles=["marketing_officer"])

    result = TeamMembershipService(fake).deactivate_member(Profile(**other_row), member["id"])

    assert result.outcome == ProvisioningOutcome.not_found
    assert result.status_code == 404
    assert fake.rows("app_users", id=member["id"])[0]["is_active"] is True
    assert fake.writes("app_users") == []


# ============================================================
# Listings
# ============================================================
def seed_leads(fake, assignee_id, *statuses):
    for status in statuses:
        fake.seed("leads", {"assigned_to": assignee_id, "status": status})


def test_list_members_with_stats(fake, team):
    manager, member = team
    seed_leads(fake, member["id"], "new", "contacted", "converted", "lost")

    members = TeamMembershipService(fake).list_members(manager)

    assert len(members) == 1
    entry = members[0]
    assert entry["id"] == member["id"]
    assert entry["email"] == "member@example.com"
    assert entry["assigned_at"] == "2026-01-05T09:00:00+00:00"
    assert entry["stats"] == {
        "total_leads": 4,
        "active_leads": 2,
        "converted_leads": 1,
        "conversion_rate": "25.0",
    }


def test_inactive_members_are_not_listed(fake, team):
    manager, member = team
    service = TeamMembershipService(fake)
    service.deactivate_member(manager, member["id"])

    assert service.list_members(manager) == []


def test_assignable_members_start_with_manager(fake, team):
    manager, member = team

    members = TeamMembershipService(fake).assignable_members(manager, "mo@example.com")

    assert members[0] == {"id": manager.id, "full_name": "Me (Manager)", "email": "mo@example.com"}
    assert [m["id"] for m in members[1:]] == [member["id"]]


def test_team_overview_counts_manager_and_members(fake, team):
    manager, member = team
    seed_leads(fake, manager.id, "converted")
    seed_leads(fake, member["id"], "new", "qualified", "converted")

    overview = TeamMembershipService(fake).team_overview(manager)

    assert overview["team_size"] == 1
    assert overview["total_leads"] == 4
    assert overview["converted_leads"] == 2
    assert overview["conversion_rate"] == "50.0"


@pytest.mark.parametrize("converted,total,expected", [
    (0, 0, "0"),
    (1, 3, "33.3"),
    (2, 2, "100.0"),
])
def test_conversion_rate(converted, total, expected):
    assert conversion_rate(converted, total) == expected
