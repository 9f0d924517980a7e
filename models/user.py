# models/user.py

from typing import Optional
from pydantic import BaseModel

from models.enums import RoleName


class AdminUpdateUser(BaseModel):
    """
    Partial update of an app_users row (super_admin / hr_manager).
    When role is given, the user's role assignments are replaced by that one role.
    """
    full_name: Optional[str] = None
    phone: Optional[str] = None
    organization_id: Optional[str] = None
    is_active: Optional[bool] = None
    role: Optional[RoleName] = None


class RoleAssignmentRequest(BaseModel):
    """Retry the role step for an existing profile."""
    role: RoleName
    organization_id: Optional[str] = None
