
# -------------------------
# Enums
# -------------------------
from .enums import (
    BaseStrEnum,
    RoleName,
    AccessStatus,
    ProvisioningOutcome,
    MissingStep,
    LeadStatus,
)

# -------------------------
# Principal / Profile / Roles
# -------------------------
from .profile import (
    Principal,
    Profile,
    RoleGrant,
    ResolvedRoles,
)

# -------------------------
# User payloads
# -------------------------
from .user_create import (
    ProvisionUserRequest,
    AdminCreateUser,
    TeamMemberCreate,
)

from .user import (
    AdminUpdateUser,
    RoleAssignmentRequest,
)

# -------------------------
# Auth
# -------------------------
from .auth import (
    LoginRequest,
    TokenResponse,
    MeResponse,
)

# -------------------------
# Workflow results
# -------------------------
from .provisioning import (
    ProvisioningResult,
    ToggleResult,
    OUTCOME_STATUS_CODES,
)
