# services/provisioning.py

from datetime import datetime, timezone
from typing import Iterable, List, Optional

from supabase import Client

from core.authorization import evaluate_access
from core.errors import extract_supabase_error, is_unique_violation
from core.logging_config import logger
from core.roles import USER_ADMIN_ROLES, USER_EDITOR_ROLES, TEAM_MANAGER_ROLES, TEAM_MEMBER_ROLE
from models.enums import MissingStep, ProvisioningOutcome, RoleName
from models.profile import Principal, Profile, ResolvedRoles
from models.provisioning import ProvisioningResult
from models.user import AdminUpdateUser
from models.user_create import ProvisionUserRequest
from services.role_resolution import RoleResolver


LIST_USERS_PAGE_SIZE = 1000


class ProvisioningStepError(Exception):
    """A workflow step got an empty / unusable response from Supabase."""


# -----------------------------------------------------
# Normalize Supabase list_users() result
# -----------------------------------------------------
def extract_user_list(result):
    if isinstance(result, list):
        return result
    if isinstance(result, dict) and "users" in result:
        return result["users"]
    users_attr = getattr(result, "users", None)
    if users_attr is not None:
        return users_attr
    return []


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ============================================================
# User Provisioning Workflow
# ============================================================
class UserProvisioner:
    """
    auth user → app_users row → user_roles row → (marketing_teams row)

    Steps run strictly in that order. Only the auth user is ever compensated
    (when the profile insert fails). Role and team failures leave the profile
    in place and come back as partial_success with the profile id.

    Supabase offers no transaction spanning GoTrue and PostgREST, so the
    compensation is a single best-effort delete.
    """

    def __init__(self, client: Client):
        self.client = client
        self.resolver = RoleResolver(client)

    # =====================================================
    # PROVISION
    # =====================================================
    def provision(
        self,
        caller: ResolvedRoles,
        request: ProvisionUserRequest,
        allowed_roles: Iterable = USER_ADMIN_ROLES,
    ) -> ProvisioningResult:
        email = request.email.strip().lower()

        # -------------------------------------------------
        # 1) Authorize caller before any write
        # -------------------------------------------------
        denied = self.authorize(caller, allowed_roles, f"provision {email}")
        if denied:
            return denied

        organization_id = request.organization_id
        if organization_id is None and caller.profile is not None:
            organization_id = caller.profile.organization_id

        creates_principal = bool(request.password)

        # -------------------------------------------------
        # 2) Duplicate email pre-check (not transactional)
        # -------------------------------------------------
        try:
            taken = self._email_taken(email, organization_id, check_principal=creates_principal)
        except Exception as e:
            detail = extract_supabase_error(e)
            logger.error(f"Duplicate check failed for {email}: {detail}")
            return ProvisioningResult(
                outcome=ProvisioningOutcome.failed,
                message="Could not verify that the email is free. Nothing was created.",
                error_detail=detail,
            )

        if taken:
            logger.warning(f"Provisioning rejected: {email} already exists in organization {organization_id}")
            return self._duplicate(email)

        # -------------------------------------------------
        # 3) Create auth user (optional)
        # -------------------------------------------------
        principal_id = None
        if creates_principal:
            try:
                principal_id = self._create_principal(email, request.password, request.full_name)
            except Exception as e:
                detail = extract_supabase_error(e)
                if is_unique_violation(e):
                    logger.warning(f"Auth user for {email} already exists (constraint): {detail}")
                    return self._duplicate(email, detail)

                logger.error(f"Error creating auth user for {email}: {detail}")
                return ProvisioningResult(
                    outcome=ProvisioningOutcome.credential_creation_failed,
                    message="Failed to create the login account. Nothing was created.",
                    error_detail=detail,
                )

            logger.info(f"Created auth user {principal_id} for {email}")

        # -------------------------------------------------
        # 4) Create profile, compensate auth user on failure
        # -------------------------------------------------
        try:
            profile = self._create_profile(email, principal_id, organization_id, request)
        except Exception as e:
            detail = extract_supabase_error(e)
            logger.error(f"Error creating app_user for {email}: {detail}")

            compensation_failed = False
            if principal_id:
                compensation_failed = not self._delete_principal(principal_id, email)

            if is_unique_violation(e):
                result = self._duplicate(email, detail)
            else:
                result = ProvisioningResult(
                    outcome=ProvisioningOutcome.profile_creation_failed,
                    message=f"Failed to create user profile: {detail}",
                    error_detail=detail,
                )

            result.compensation_failed = compensation_failed
            if compensation_failed:
                result.principal_id = principal_id
                result.message += f" The login account {principal_id} could not be removed and needs manual cleanup."
            return result

        profile_id = profile.id
        logger.info(f"Created app_user {profile_id} for {email}")

        # -------------------------------------------------
        # 5) Assign role (never rolled back)
        # -------------------------------------------------
        try:
            self._assign_role(profile_id, request.role, organization_id)
        except Exception as e:
            detail = extract_supabase_error(e)
            logger.error(f"Error assigning role {request.role} to {profile_id}: {detail}")
            return ProvisioningResult(
                outcome=ProvisioningOutcome.partial_success,
                profile_id=profile_id,
                principal_id=principal_id,
                missing_step=MissingStep.role_assignment,
                message="Profile created, but the role could not be assigned. Please assign a role manually.",
                error_detail=detail,
            )

        logger.info(f"Assigned role {request.role} to {profile_id}")

        # -------------------------------------------------
        # 6) Team relationship, optional (never rolled back)
        # -------------------------------------------------
        if request.manager_id:
            try:
                self._create_team_relationship(request.manager_id, profile_id, organization_id)
            except Exception as e:
                detail = extract_supabase_error(e)
                logger.error(f"Error creating team relationship {request.manager_id} → {profile_id}: {detail}")
                return ProvisioningResult(
                    outcome=ProvisioningOutcome.partial_success,
                    profile_id=profile_id,
                    principal_id=principal_id,
                    missing_step=MissingStep.team_relationship,
                    message="User created, but could not be added to the team. Please link the team member manually.",
                    error_detail=detail,
                )

            logger.info(f"Linked {profile_id} to manager {request.manager_id}")

        return ProvisioningResult(
            outcome=ProvisioningOutcome.success,
            profile_id=profile_id,
            principal_id=principal_id,
            message="User created successfully",
        )

    # =====================================================
    # RETRY: ROLE ASSIGNMENT
    # =====================================================
    def retry_role_assignment(
        self,
        caller: ResolvedRoles,
        profile_id: str,
        role: RoleName,
        organization_id: Optional[str] = None,
    ) -> ProvisioningResult:
        denied = self.authorize(caller, USER_EDITOR_ROLES, f"assign role to {profile_id}")
        if denied:
            return denied

        profile, failure = self._load_profile(profile_id)
        if failure:
            return failure

        try:
            self._assign_role(profile.id, role, organization_id or profile.organization_id)
        except Exception as e:
            detail = extract_supabase_error(e)
            logger.error(f"Retry of role {role} for {profile.id} failed: {detail}")
            return ProvisioningResult(
                outcome=ProvisioningOutcome.failed,
                profile_id=profile.id,
                missing_step=MissingStep.role_assignment,
                message=f"Failed to assign role: {detail}",
                error_detail=detail,
            )

        logger.info(f"Assigned role {role} to {profile.id} (retry)")
        return ProvisioningResult(
            outcome=ProvisioningOutcome.success,
            profile_id=profile.id,
            principal_id=profile.user_id,
            message="Role assigned",
        )

    # =====================================================
    # RETRY: TEAM RELATIONSHIP
    # =====================================================
    def retry_team_relationship(self, caller: ResolvedRoles, member_id: str) -> ProvisioningResult:
        denied = self.authorize(caller, TEAM_MANAGER_ROLES, f"link team member {member_id}")
        if denied:
            return denied

        member, failure = self._load_profile(member_id)
        if failure:
            return failure

        manager = caller.profile
        if member.organization_id != manager.organization_id:
            logger.warning(f"Unauthorized: {manager.id} tried to link {member.id} from another organization")
            return ProvisioningResult(
                outcome=ProvisioningOutcome.not_found,
                message=f"User profile {member_id} not found",
            )

        # Only plain team members can be linked; the toggle rewrites their is_active
        member_roles = {g.role for g in self.resolver.get_role_grants(member.id)}
        if member_roles != {TEAM_MEMBER_ROLE}:
            logger.warning(
                f"Unauthorized: {manager.id} tried to link {member.id} holding {sorted(str(r) for r in member_roles)}"
            )
            return ProvisioningResult(
                outcome=ProvisioningOutcome.unauthorized,
                profile_id=member.id,
                message=f"Only users with the {TEAM_MEMBER_ROLE} role can be linked to a team.",
            )

        try:
            self._create_team_relationship(manager.id, member.id, manager.organization_id)
        except Exception as e:
            detail = extract_supabase_error(e)
            logger.error(f"Retry of team link {manager.id} → {member.id} failed: {detail}")
            return ProvisioningResult(
                outcome=ProvisioningOutcome.failed,
                profile_id=member.id,
                missing_step=MissingStep.team_relationship,
                message=f"Failed to create team relationship: {detail}",
                error_detail=detail,
            )

        return ProvisioningResult(
            outcome=ProvisioningOutcome.success,
            profile_id=member.id,
            principal_id=member.user_id,
            message="Team member linked",
        )

    # =====================================================
    # UPDATE USER (profile fields + role replacement)
    # =====================================================
    def update_user(self, caller: ResolvedRoles, profile_id: str, update: AdminUpdateUser) -> ProvisioningResult:
        denied = self.authorize(caller, USER_EDITOR_ROLES, f"update {profile_id}")
        if denied:
            return denied

        profile, failure = self._load_profile(profile_id)
        if failure:
            return failure

        fields = update.model_dump(exclude_none=True, exclude={"role"})
        if fields:
            try:
                (
                    self.client.table("app_users")
                    .update(fields)
                    .eq("id", profile.id)
                    .execute()
                )
            except Exception as e:
                detail = extract_supabase_error(e)
                logger.error(f"Error updating app_user {profile.id}: {detail}")
                return ProvisioningResult(
                    outcome=ProvisioningOutcome.failed,
                    profile_id=profile.id,
                    message=f"Failed to update user: {detail}",
                    error_detail=detail,
                )

        if update.role is not None:
            organization_id = fields.get("organization_id", profile.organization_id)
            try:
                self.client.table("user_roles").delete().eq("user_id", profile.id).execute()
                self._assign_role(profile.id, update.role, organization_id)
            except Exception as e:
                detail = extract_supabase_error(e)
                logger.error(f"Error replacing roles for {profile.id}: {detail}")
                return ProvisioningResult(
                    outcome=ProvisioningOutcome.partial_success,
                    profile_id=profile.id,
                    principal_id=profile.user_id,
                    missing_step=MissingStep.role_assignment,
                    message=f"User updated but failed to update role: {detail}",
                    error_detail=detail,
                )

        logger.info(f"Updated app_user {profile.id}")
        return ProvisioningResult(
            outcome=ProvisioningOutcome.success,
            profile_id=profile.id,
            principal_id=profile.user_id,
            message="User updated",
        )

    # =====================================================
    # CLAIM PENDING PROFILES (self-registration after pre-provisioning)
    # =====================================================
    def claim_pending_profiles(self, principal: Principal) -> List[Profile]:
        """
        Link profiles created without an auth user (user_id null) to the
        principal that now signed up with the same email.
        """
        if not principal.email:
            return []

        email = principal.email.strip().lower()
        result = (
            self.client.table("app_users")
            .update({"user_id": principal.id})
            .eq("email", email)
            .is_("user_id", "null")
            .execute()
        )

        claimed = [Profile(**row) for row in (result.data or [])]
        for profile in claimed:
            logger.info(f"Principal {principal.id} claimed pending profile {profile.id}")
        return claimed

    # =====================================================
    # STEP HELPERS
    # =====================================================
    def authorize(self, caller: Optional[ResolvedRoles], allowed_roles, action: str) -> Optional[ProvisioningResult]:
        gate = evaluate_access(caller or ResolvedRoles(), allowed_roles)
        if gate.permitted:
            return None

        caller_id = caller.profile.id if caller and caller.profile else None
        logger.warning(f"Unauthorized: {caller_id} tried to {action} (requires one of {gate.required_roles})")
        return ProvisioningResult(
            outcome=ProvisioningOutcome.unauthorized,
            message=f"Unauthorized: requires one of {', '.join(gate.required_roles)}",
        )

    def _duplicate(self, email: str, detail: Optional[str] = None) -> ProvisioningResult:
        return ProvisioningResult(
            outcome=ProvisioningOutcome.duplicate_email,
            message=f"A user with email {email} already exists.",
            error_detail=detail,
        )

    def _load_profile(self, profile_id: str):
        try:
            profile = self.resolver.get_profile(profile_id)
        except Exception as e:
            detail = extract_supabase_error(e)
            logger.error(f"Profile lookup failed for {profile_id}: {detail}")
            return None, ProvisioningResult(
                outcome=ProvisioningOutcome.failed,
                message="Could not load the user profile.",
                error_detail=detail,
            )

        if profile is None:
            return None, ProvisioningResult(
                outcome=ProvisioningOutcome.not_found,
                message=f"User profile {profile_id} not found",
            )

        return profile, None

    def _email_taken(self, email: str, organization_id: Optional[str], check_principal: bool) -> bool:
        query = self.client.table("app_users").select("id").eq("email", email)
        if organization_id is None:
            query = query.is_("organization_id", "null")
        else:
            query = query.eq("organization_id", organization_id)

        if query.limit(1).execute().data:
            return True

        if check_principal:
            return self._find_principal_by_email(email) is not None

        return False

    def _find_principal_by_email(self, email: str):
        page = 1
        while True:
            raw = self.client.auth.admin.list_users(page=page, per_page=LIST_USERS_PAGE_SIZE)
            users = extract_user_list(raw)

            for u in users:
                if (getattr(u, "email", None) or "").lower() == email:
                    return u

            if len(users) < LIST_USERS_PAGE_SIZE:
                return None
            page += 1

    def _create_principal(self, email: str, password: str, full_name: Optional[str]) -> str:
        resp = self.client.auth.admin.create_user(
            {
                "email": email,
                "password": password,
                "email_confirm": True,  # no verification step
                "user_metadata": {"full_name": full_name},
            }
        )

        user = getattr(resp, "user", None)
        user_id = getattr(user, "id", None)
        if not user_id:
            raise ProvisioningStepError("Failed to create auth user")
        return user_id

    def _delete_principal(self, principal_id: str, email: str) -> bool:
        try:
            self.client.auth.admin.delete_user(principal_id)
        except Exception as e:
            logger.error(
                f"COMPENSATION FAILED: auth user {principal_id} ({email}) was not deleted "
                f"after the profile insert failed: {extract_supabase_error(e)}"
            )
            return False

        logger.info(f"Compensated: deleted auth user {principal_id} ({email})")
        return True

    def _create_profile(
        self,
        email: str,
        principal_id: Optional[str],
        organization_id: Optional[str],
        request: ProvisionUserRequest,
    ) -> Profile:
        result = (
            self.client.table("app_users")
            .insert({
                "user_id": principal_id,
                "email": email,
                "full_name": request.full_name,
                "phone": request.phone or None,
                "organization_id": organization_id,
                "is_active": request.is_active,
            })
            .execute()
        )

        if not result.data:
            raise ProvisioningStepError("Profile insert returned no row")
        return Profile(**result.data[0])

    def _assign_role(self, profile_id: str, role: RoleName, organization_id: Optional[str]):
        role_result = (
            self.client.table("roles")
            .select("id")
            .eq("name", str(role))
            .limit(1)
            .execute()
        )
        if not role_result.data:
            raise ProvisioningStepError(f"Role '{role}' not found. Please run database migrations.")

        (
            self.client.table("user_roles")
            .insert({
                "user_id": profile_id,
                "role_id": role_result.data[0]["id"],
                "organization_id": organization_id,
            })
            .execute()
        )

    def _create_team_relationship(self, manager_id: str, member_id: str, organization_id: Optional[str]):
        (
            self.client.table("marketing_teams")
            .insert({
                "organization_id": organization_id,
                "manager_id": manager_id,
                "team_member_id": member_id,
                "assigned_by": manager_id,
                "is_active": True,
                "assigned_at": _now(),
            })
            .execute()
        )
