# services/team_membership.py

from typing import Dict, List, Optional

from supabase import Client

from core.errors import extract_supabase_error
from core.logging_config import logger
from models.enums import ACTIVE_LEAD_STATUSES, LeadStatus, ProvisioningOutcome
from models.profile import Profile
from models.provisioning import ToggleResult


TEAM_MEMBER_COLUMNS = (
    "id, is_active, assigned_at, "
    "team_member:app_users!marketing_teams_team_member_id_fkey"
    "(id, email, full_name, phone, avatar_url, is_active)"
)

ASSIGNABLE_COLUMNS = (
    "team_member:app_users!marketing_teams_team_member_id_fkey(id, full_name, email)"
)


def conversion_rate(converted: int, total: int) -> str:
    if not total:
        return "0"
    return f"{converted / total * 100:.1f}"


class TeamMembershipService:
    """
    Marketing manager ↔ member links (marketing_teams) plus the lead stats
    shown on the team pages.
    """

    def __init__(self, client: Client):
        self.client = client

    # =====================================================
    # DEACTIVATE / REACTIVATE
    # =====================================================
    def deactivate_member(self, manager: Profile, team_member_id: str) -> ToggleResult:
        return self._set_active(manager, team_member_id, False)

    def reactivate_member(self, manager: Profile, team_member_id: str) -> ToggleResult:
        return self._set_active(manager, team_member_id, True)

    def _set_active(self, manager: Profile, team_member_id: str, active: bool) -> ToggleResult:
        verb = "reactivate" if active else "deactivate"

        # Phase 1: team relationship (scoped to this manager)
        try:
            result = (
                self.client.table("marketing_teams")
                .update({"is_active": active})
                .eq("manager_id", manager.id)
                .eq("team_member_id", team_member_id)
                .execute()
            )
        except Exception as e:
            detail = extract_supabase_error(e)
            logger.error(f"Error trying to {verb} team member {team_member_id}: {detail}")
            return ToggleResult(
                outcome=ProvisioningOutcome.failed,
                team_member_id=team_member_id,
                is_active=not active,
                message=f"Failed to {verb} team member",
                error_detail=detail,
            )

        if not result.data:
            return ToggleResult(
                outcome=ProvisioningOutcome.not_found,
                team_member_id=team_member_id,
                is_active=not active,
                message="Team member not found in your team",
            )

        # Phase 2: profile flag, not rolled back if it fails
        try:
            (
                self.client.table("app_users")
                .update({"is_active": active})
                .eq("id", team_member_id)
                .execute()
            )
        except Exception as e:
            detail = extract_supabase_error(e)
            logger.error(f"Team link for {team_member_id} set to is_active={active} but profile update failed: {detail}")
            return ToggleResult(
                outcome=ProvisioningOutcome.partial_success,
                team_member_id=team_member_id,
                is_active=active,
                relationship_updated=True,
                profile_updated=False,
                message=f"Team membership updated, but the user account could not be {verb}d. Re-check the member.",
                error_detail=detail,
            )

        logger.info(f"Manager {manager.id} {verb}d team member {team_member_id}")
        return ToggleResult(
            outcome=ProvisioningOutcome.success,
            team_member_id=team_member_id,
            is_active=active,
            relationship_updated=True,
            profile_updated=True,
            message=f"Team member {verb}d successfully",
        )

    # =====================================================
    # LISTINGS
    # =====================================================
    def _active_links(self, manager: Profile, columns: str) -> List[dict]:
        result = (
            self.client.table("marketing_teams")
            .select(columns)
            .eq("manager_id", manager.id)
            .eq("is_active", True)
            .execute()
        )
        return result.data or []

    def list_members(self, manager: Profile) -> List[dict]:
        members = []
        for link in self._active_links(manager, TEAM_MEMBER_COLUMNS):
            member = link.get("team_member")
            if not member:
                continue

            stats = self._lead_stats([member["id"]])
            members.append({
                **member,
                "team_relationship_id": link["id"],
                "assigned_at": link.get("assigned_at"),
                "stats": stats,
            })

        return members

    def assignable_members(self, manager: Profile, manager_email: Optional[str]) -> List[dict]:
        members = [{
            "id": manager.id,
            "full_name": "Me (Manager)",
            "email": manager_email or manager.email,
        }]
        for link in self._active_links(manager, ASSIGNABLE_COLUMNS):
            if link.get("team_member"):
                members.append(link["team_member"])
        return members

    def team_overview(self, manager: Profile) -> dict:
        result = (
            self.client.table("marketing_teams")
            .select("team_member_id")
            .eq("manager_id", manager.id)
            .eq("is_active", True)
            .execute()
        )
        member_ids = [row["team_member_id"] for row in (result.data or [])]

        stats = self._lead_stats([manager.id, *member_ids])
        return {
            "team_size": len(member_ids),
            **stats,
        }

    # =====================================================
    # LEAD STATS
    # =====================================================
    def _count_leads(self, assignee_ids: List[str], statuses: Optional[List[str]] = None) -> int:
        query = (
            self.client.table("leads")
            .select("id", count="exact")
            .in_("assigned_to", assignee_ids)
        )
        if statuses:
            query = query.in_("status", statuses)

        return query.execute().count or 0

    def _lead_stats(self, assignee_ids: List[str]) -> Dict[str, object]:
        total = self._count_leads(assignee_ids)
        active = self._count_leads(assignee_ids, ACTIVE_LEAD_STATUSES)
        converted = self._count_leads(assignee_ids, [LeadStatus.converted.value])

        return {
            "total_leads": total,
            "active_leads": active,
            "converted_leads": converted,
            "conversion_rate": conversion_rate(converted, total),
        }
