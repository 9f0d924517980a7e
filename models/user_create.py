from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from models.enums import RoleName


class ProvisionUserRequest(BaseModel):
    """
    Input of the provisioning workflow.

    - password omitted → no Supabase Auth user is created; the profile waits
      for the person to sign up (user_id stays null)
    - organization_id omitted → the caller's organization
    - manager_id set → a marketing_teams row links the new profile to that manager
    """

    email: EmailStr
    password: Optional[str] = Field(None, min_length=8)
    full_name: Optional[str] = None
    phone: Optional[str] = None
    organization_id: Optional[str] = None
    role: RoleName = RoleName.employee
    is_active: bool = True
    manager_id: Optional[str] = None


class AdminCreateUser(BaseModel):
    """
    Payload of POST /admin/users.
    """

    email: EmailStr
    password: Optional[str] = Field(None, min_length=8)
    full_name: Optional[str] = None
    phone: Optional[str] = None
    organization_id: Optional[str] = None
    role: RoleName = RoleName.employee
    is_active: bool = True


class TeamMemberCreate(BaseModel):
    """
    Payload of POST /marketing-teams/members.
    The role is always marketing_team_member and the manager is the caller.
    """

    email: EmailStr
    password: Optional[str] = Field(None, min_length=8)
    full_name: str
    phone: Optional[str] = None
