
from enum import Enum


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]


# -----------------------------------------------------
# ROLE NAME
# -----------------------------------------------------
class RoleName(BaseStrEnum):
    """Known rows of the `roles` reference table."""

    super_admin = "super_admin"
    executive = "executive"
    hr_manager = "hr_manager"
    project_manager = "project_manager"
    site_engineer = "site_engineer"
    marketing_officer = "marketing_officer"
    marketing_team_member = "marketing_team_member"
    agent = "agent"
    procurement_officer = "procurement_officer"
    inventory_officer = "inventory_officer"
    facility_manager = "facility_manager"
    employee = "employee"

    # Anything the reference table holds that this API does not know about
    unknown = "unknown"

    @classmethod
    def parse(cls, raw) -> "RoleName":
        if not raw:
            return cls.unknown
        try:
            role = cls(str(raw).strip())
        except ValueError:
            return cls.unknown
        return role

    @classmethod
    def list(cls):
        return [item.value for item in cls if item is not cls.unknown]


# -----------------------------------------------------
# ROLE GATE STATUS
# -----------------------------------------------------
class AccessStatus(BaseStrEnum):
    """Outcome of checking a role set against an allow-list."""

    pending = "pending"      # roles not resolved yet
    granted = "granted"
    forbidden = "forbidden"


# -----------------------------------------------------
# PROVISIONING OUTCOME
# -----------------------------------------------------
class ProvisioningOutcome(BaseStrEnum):
    """Structured result of a provisioning / user-admin operation."""

    success = "success"
    partial_success = "partial_success"
    unauthorized = "unauthorized"
    duplicate_email = "duplicate_email"
    credential_creation_failed = "credential_creation_failed"
    profile_creation_failed = "profile_creation_failed"
    not_found = "not_found"
    failed = "failed"


# -----------------------------------------------------
# MISSING STEP (partial success)
# -----------------------------------------------------
class MissingStep(BaseStrEnum):
    """Which follow-up step an administrator needs to retry."""

    role_assignment = "role_assignment"
    team_relationship = "team_relationship"
    profile_update = "profile_update"


# -----------------------------------------------------
# LEAD STATUS (read-only, team stats)
# -----------------------------------------------------
class LeadStatus(BaseStrEnum):
    new = "new"
    contacted = "contacted"
    qualified = "qualified"
    negotiating = "negotiating"
    converted = "converted"
    lost = "lost"


ACTIVE_LEAD_STATUSES = [
    LeadStatus.new.value,
    LeadStatus.contacted.value,
    LeadStatus.qualified.value,
    LeadStatus.negotiating.value,
]
