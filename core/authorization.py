# core/authorization.py

from typing import Iterable, List, Optional

from pydantic import BaseModel

from core.roles import ROLE_PRECEDENCE, normalize_allow_list
from models.enums import AccessStatus, RoleName
from models.profile import ResolvedRoles


DEFAULT_DENIED_MESSAGE = "You don't have permission to access this resource."
PENDING_MESSAGE = "Checking permissions..."


class GateResult(BaseModel):
    status: AccessStatus
    required_roles: List[str] = []
    held_roles: List[str] = []
    message: Optional[str] = None

    @property
    def permitted(self) -> bool:
        return self.status == AccessStatus.granted


def _ordered(roles) -> List[str]:
    return [r.value for r in ROLE_PRECEDENCE if r in roles]


# -----------------------------------------------------
# Set check: held ∩ allowed ≠ ∅
# -----------------------------------------------------
def is_permitted(held: Iterable, allowed: Iterable) -> bool:
    held_set = {RoleName.parse(r) for r in held}
    held_set.discard(RoleName.unknown)
    return bool(held_set & normalize_allow_list(allowed))


# -----------------------------------------------------
# Gate evaluation
# -----------------------------------------------------
def evaluate_access(
    resolved: Optional[ResolvedRoles],
    allowed: Iterable,
    fallback: Optional[str] = None,
) -> GateResult:
    """
    resolved=None means role resolution has not finished: the answer is
    `pending`, neither granted nor denied. A missing principal resolves to
    an empty role set and is denied like anyone else without roles.
    """
    allow_list = normalize_allow_list(allowed)
    required = _ordered(allow_list)

    if resolved is None:
        return GateResult(
            status=AccessStatus.pending,
            required_roles=required,
            message=PENDING_MESSAGE,
        )

    held_names = resolved.role_names()

    if is_permitted(resolved.role_set(), allow_list):
        return GateResult(
            status=AccessStatus.granted,
            required_roles=required,
            held_roles=held_names,
        )

    return GateResult(
        status=AccessStatus.forbidden,
        required_roles=required,
        held_roles=held_names,
        message=fallback or DEFAULT_DENIED_MESSAGE,
    )
