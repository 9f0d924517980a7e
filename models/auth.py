from typing import List, Optional
from pydantic import BaseModel, EmailStr

from models.profile import Profile, RoleGrant


# -----------------------------------------------------
# LOGIN REQUEST (using Supabase email/password)
# -----------------------------------------------------
class LoginRequest(BaseModel):
    email: EmailStr
    password: str


# -----------------------------------------------------
# TOKEN RESPONSE (Supabase session JWT)
# -----------------------------------------------------
class TokenResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    token_type: str = "bearer"


# -----------------------------------------------------
# /auth/me
# -----------------------------------------------------
class MeResponse(BaseModel):
    principal_id: str
    email: Optional[str] = None
    provisioned: bool
    profile: Optional[Profile] = None
    roles: List[RoleGrant] = []
    highest_role: Optional[str] = None
