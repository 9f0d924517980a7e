# models/provisioning.py

from typing import Optional
from pydantic import BaseModel

from models.enums import ProvisioningOutcome, MissingStep


# HTTP status per outcome (routers translate results with this)
OUTCOME_STATUS_CODES = {
    ProvisioningOutcome.success: 201,
    ProvisioningOutcome.partial_success: 207,
    ProvisioningOutcome.unauthorized: 403,
    ProvisioningOutcome.duplicate_email: 409,
    ProvisioningOutcome.credential_creation_failed: 502,
    ProvisioningOutcome.profile_creation_failed: 502,
    ProvisioningOutcome.not_found: 404,
    ProvisioningOutcome.failed: 502,
}


class ProvisioningResult(BaseModel):
    """
    Every failure path says whether anything was written.
    profile_id is set as soon as a profile exists, so the missing step can be retried.
    """
    outcome: ProvisioningOutcome
    profile_id: Optional[str] = None
    principal_id: Optional[str] = None
    missing_step: Optional[MissingStep] = None
    message: str = ""
    error_detail: Optional[str] = None
    compensation_failed: bool = False

    @property
    def ok(self) -> bool:
        return self.outcome == ProvisioningOutcome.success

    @property
    def status_code(self) -> int:
        return OUTCOME_STATUS_CODES.get(self.outcome, 500)


class ToggleResult(BaseModel):
    """Result of the two-phase deactivate / reactivate toggle."""
    outcome: ProvisioningOutcome
    team_member_id: str
    is_active: bool
    relationship_updated: bool = False
    profile_updated: bool = False
    message: str = ""
    error_detail: Optional[str] = None

    @property
    def status_code(self) -> int:
        if self.outcome == ProvisioningOutcome.success:
            return 200
        return OUTCOME_STATUS_CODES.get(self.outcome, 500)
