# services/role_resolution.py

from typing import Dict, List, Optional

from supabase import Client

from core.errors import extract_supabase_error
from core.logging_config import logger
from models.profile import Profile, RoleGrant, ResolvedRoles


# Embedded join: user_roles → roles + organizations
ROLE_GRANT_COLUMNS = "user_id, role:roles(name, description), organization:organizations(name)"


# ============================================================
# Role Resolution
# ============================================================
class RoleResolver:
    """
    Principal id → (profile, role grants).

    An unknown principal resolves to an empty result, never an exception.
    Store errors degrade to the same empty result: no roles means denied.
    """

    def __init__(self, client: Client):
        self.client = client

    # -----------------------------------------------------
    # Main entry point
    # -----------------------------------------------------
    def resolve(self, principal_id: Optional[str]) -> ResolvedRoles:
        if not principal_id:
            return ResolvedRoles()

        profile = self.get_profile_for_principal(principal_id)
        if profile is None:
            logger.info(f"Principal {principal_id} has no app_users profile (unprovisioned)")
            return ResolvedRoles()

        return ResolvedRoles(profile=profile, roles=self.get_role_grants(profile.id))

    def highest_role_for(self, principal_id: Optional[str]) -> Optional[str]:
        role = self.resolve(principal_id).highest_priority_role()
        return role.value if role else None

    # -----------------------------------------------------
    # Profiles
    # -----------------------------------------------------
    def get_profile_for_principal(self, principal_id: str) -> Optional[Profile]:
        try:
            result = (
                self.client.table("app_users")
                .select("*")
                .eq("user_id", principal_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Profile lookup failed for principal {principal_id}: {extract_supabase_error(e)}")
            return None

        rows = result.data or []
        return Profile(**rows[0]) if rows else None

    def get_profile(self, profile_id: str) -> Optional[Profile]:
        """Lookup by app_users.id. Store errors propagate to the caller."""
        result = (
            self.client.table("app_users")
            .select("*")
            .eq("id", profile_id)
            .limit(1)
            .execute()
        )
        rows = result.data or []
        return Profile(**rows[0]) if rows else None

    # -----------------------------------------------------
    # Role grants
    # -----------------------------------------------------
    def get_role_grants(self, profile_id: str) -> List[RoleGrant]:
        try:
            result = (
                self.client.table("user_roles")
                .select(ROLE_GRANT_COLUMNS)
                .eq("user_id", profile_id)
                .execute()
            )
        except Exception as e:
            logger.error(f"Role lookup failed for profile {profile_id}: {extract_supabase_error(e)}")
            return []

        return [RoleGrant.from_row(row) for row in (result.data or [])]

    def get_role_grants_for_profiles(self, profile_ids: List[str]) -> Dict[str, List[RoleGrant]]:
        """Batch variant for user listings; one query for all profiles."""
        grants: Dict[str, List[RoleGrant]] = {pid: [] for pid in profile_ids}
        if not profile_ids:
            return grants

        result = (
            self.client.table("user_roles")
            .select(ROLE_GRANT_COLUMNS)
            .in_("user_id", profile_ids)
            .execute()
        )

        for row in result.data or []:
            grants.setdefault(row["user_id"], []).append(RoleGrant.from_row(row))

        return grants
