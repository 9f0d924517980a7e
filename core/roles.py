# ============================================
# ROLE PRECEDENCE + ALLOW-LISTS
# ============================================
# Role names are static reference data (`roles` table).
# Nothing here is configurable at runtime.

from typing import FrozenSet

from models.enums import RoleName


# =====================================================
# PRECEDENCE: highest first, used by highest_priority_role()
# =====================================================
ROLE_PRECEDENCE = (
    RoleName.super_admin,
    RoleName.executive,
    RoleName.hr_manager,
    RoleName.project_manager,
    RoleName.marketing_officer,
    RoleName.facility_manager,
    RoleName.inventory_officer,
    RoleName.procurement_officer,
    RoleName.site_engineer,
    RoleName.marketing_team_member,
    RoleName.agent,
    RoleName.employee,
)


# =====================================================
# ALLOW-LISTS
# =====================================================

# Create accounts (auth user + profile + role)
USER_ADMIN_ROLES: FrozenSet[RoleName] = frozenset({
    RoleName.super_admin,
})

# Edit profiles, replace / retry role assignments, list users
USER_EDITOR_ROLES: FrozenSet[RoleName] = frozenset({
    RoleName.super_admin,
    RoleName.hr_manager,
})

# Marketing managers building their own teams
TEAM_MANAGER_ROLES: FrozenSet[RoleName] = frozenset({
    RoleName.super_admin,
    RoleName.marketing_officer,
})

# Role given to everyone created through the marketing team flow
TEAM_MEMBER_ROLE = RoleName.marketing_team_member


def normalize_allow_list(allowed) -> FrozenSet[RoleName]:
    """
    Accepts enum members or raw strings. `unknown` is dropped so it can never grant access.
    """
    normalized = {RoleName.parse(r) for r in allowed}
    normalized.discard(RoleName.unknown)
    return frozenset(normalized)
