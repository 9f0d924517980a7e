# routers/marketing_teams.py

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from supabase import Client

from core.errors import handle_supabase_error
from core.roles import TEAM_MANAGER_ROLES, TEAM_MEMBER_ROLE
from core.session import UserSession
from dependencies.auth import get_db, get_session, requires_role
from models.provisioning import ProvisioningResult, ToggleResult
from models.user_create import ProvisionUserRequest, TeamMemberCreate
from routers.admin import result_response
from services.provisioning import UserProvisioner
from services.team_membership import TeamMembershipService


router = APIRouter(
    prefix="/marketing-teams",
    tags=["Marketing Teams"],
)


def toggle_response(result: ToggleResult) -> JSONResponse:
    return JSONResponse(
        status_code=result.status_code,
        content=result.model_dump(mode="json"),
    )


# -----------------------------------------------------
# CREATE TEAM MEMBER (manager = caller)
# -----------------------------------------------------
@router.post(
    "/members",
    summary="Create a marketing team member",
    response_model=ProvisioningResult,
    status_code=201,
)
def create_team_member(
    payload: TeamMemberCreate,
    session: UserSession = Depends(get_session),
    client: Client = Depends(get_db),
):
    caller = session.roles()

    request = ProvisionUserRequest(
        **payload.model_dump(),
        role=TEAM_MEMBER_ROLE,
        organization_id=caller.profile.organization_id if caller.profile else None,
        manager_id=caller.profile.id if caller.profile else None,
    )

    result = UserProvisioner(client).provision(caller, request, TEAM_MANAGER_ROLES)
    return result_response(result)


# -----------------------------------------------------
# LIST TEAM MEMBERS (with lead stats)
# -----------------------------------------------------
@router.get("/members", summary="Active team members with lead stats")
def list_team_members(
    session: UserSession = Depends(requires_role(TEAM_MANAGER_ROLES)),
    client: Client = Depends(get_db),
):
    try:
        members = TeamMembershipService(client).list_members(session.profile)
    except Exception as e:
        raise handle_supabase_error(e, "Failed to fetch team members")

    return {"success": True, "data": members}


@router.get("/members/assignable", summary="Team members for lead assignment")
def list_assignable_members(
    session: UserSession = Depends(requires_role(TEAM_MANAGER_ROLES)),
    client: Client = Depends(get_db),
):
    try:
        members = TeamMembershipService(client).assignable_members(
            session.profile, session.principal.email
        )
    except Exception as e:
        raise handle_supabase_error(e, "Failed to fetch team members")

    return {"success": True, "data": members}


@router.get("/overview", summary="Team lead totals")
def team_overview(
    session: UserSession = Depends(requires_role(TEAM_MANAGER_ROLES)),
    client: Client = Depends(get_db),
):
    try:
        overview = TeamMembershipService(client).team_overview(session.profile)
    except Exception as e:
        raise handle_supabase_error(e, "Failed to load team overview")

    return {"success": True, "data": overview}


# -----------------------------------------------------
# DEACTIVATE / REACTIVATE
# -----------------------------------------------------
@router.post(
    "/members/{team_member_id}/deactivate",
    summary="Deactivate a team member (soft)",
    response_model=ToggleResult,
)
def deactivate_team_member(
    team_member_id: str,
    session: UserSession = Depends(requires_role(TEAM_MANAGER_ROLES)),
    client: Client = Depends(get_db),
):
    result = TeamMembershipService(client).deactivate_member(session.profile, team_member_id)
    return toggle_response(result)


@router.post(
    "/members/{team_member_id}/reactivate",
    summary="Reactivate a team member",
    response_model=ToggleResult,
)
def reactivate_team_member(
    team_member_id: str,
    session: UserSession = Depends(requires_role(TEAM_MANAGER_ROLES)),
    client: Client = Depends(get_db),
):
    result = TeamMembershipService(client).reactivate_member(session.profile, team_member_id)
    return toggle_response(result)


# -----------------------------------------------------
# RETRY TEAM LINK (after partial success)
# -----------------------------------------------------
@router.post(
    "/members/{team_member_id}/link",
    summary="Link an existing profile to the caller's team",
    response_model=ProvisioningResult,
)
def link_team_member(
    team_member_id: str,
    session: UserSession = Depends(get_session),
    client: Client = Depends(get_db),
):
    if session.profile is not None and session.profile.id == team_member_id:
        raise HTTPException(400, "You cannot add yourself to your own team.")

    result = UserProvisioner(client).retry_team_relationship(session.roles(), team_member_id)
    return result_response(result)
