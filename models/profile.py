# models/profile.py

from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel

from models.enums import RoleName


# ===============================================================
# PRINCIPAL: Supabase Auth user (referenced, never owned)
# ===============================================================
class Principal(BaseModel):
    id: str
    email: Optional[str] = None


# ===============================================================
# PROFILE: app_users row
# ===============================================================
class Profile(BaseModel):
    """
    One person inside one organization.
    user_id is None for a team member provisioned before they signed up.
    """
    id: str
    user_id: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    organization_id: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


# ===============================================================
# ROLE GRANT: user_roles → roles(name) + organizations(name)
# ===============================================================
class RoleGrant(BaseModel):
    role_name: str                         # raw name from the roles table
    role: RoleName = RoleName.unknown
    description: Optional[str] = None
    organization_name: Optional[str] = None  # None = global role

    @classmethod
    def from_row(cls, row: dict) -> "RoleGrant":
        role = row.get("role") or {}
        organization = row.get("organization")
        raw_name = role.get("name") or ""

        return cls(
            role_name=raw_name,
            role=RoleName.parse(raw_name),
            description=role.get("description"),
            organization_name=organization.get("name") if organization else None,
        )


# ===============================================================
# RESOLVED ROLES: output of role resolution
# ===============================================================
class ResolvedRoles(BaseModel):
    profile: Optional[Profile] = None
    roles: List[RoleGrant] = []

    @property
    def is_provisioned(self) -> bool:
        return self.profile is not None

    def role_set(self) -> frozenset:
        return frozenset(g.role for g in self.roles if g.role is not RoleName.unknown)

    def role_names(self) -> List[str]:
        return [g.role_name for g in self.roles]

    def has_role(self, name) -> bool:
        wanted = str(name)
        return any(g.role_name == wanted for g in self.roles)

    def is_super_admin(self) -> bool:
        return self.has_role(RoleName.super_admin)

    def highest_priority_role(self) -> Optional[RoleName]:
        from core.roles import ROLE_PRECEDENCE

        held = self.role_set()
        for role in ROLE_PRECEDENCE:
            if role in held:
                return role
        return None
