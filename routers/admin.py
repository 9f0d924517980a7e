# routers/admin.py

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from supabase import Client

from core.errors import handle_supabase_error
from core.roles import USER_ADMIN_ROLES, USER_EDITOR_ROLES
from core.session import UserSession
from dependencies.auth import get_db, get_session, requires_role
from models.enums import RoleName
from models.provisioning import ProvisioningResult
from models.user import AdminUpdateUser, RoleAssignmentRequest
from models.user_create import AdminCreateUser, ProvisionUserRequest
from services.provisioning import UserProvisioner
from services.role_resolution import RoleResolver


router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
)


def result_response(result: ProvisioningResult) -> JSONResponse:
    return JSONResponse(
        status_code=result.status_code,
        content=result.model_dump(mode="json"),
    )


# -----------------------------------------------------
# 1️⃣ CREATE USER (auth user → profile → role)
# -----------------------------------------------------
@router.post(
    "/users",
    summary="Admin: Create user account",
    response_model=ProvisioningResult,
    status_code=201,
)
def admin_create_user(
    payload: AdminCreateUser,
    session: UserSession = Depends(get_session),
    client: Client = Depends(get_db),
):
    caller = session.roles()
    provisioner = UserProvisioner(client)

    # Authorization comes before any payload check (super_admin only)
    denied = provisioner.authorize(caller, USER_ADMIN_ROLES, f"provision {payload.email}")
    if denied:
        return result_response(denied)

    if payload.role == RoleName.unknown:
        raise HTTPException(400, "Invalid role: unknown")

    request = ProvisionUserRequest(**payload.model_dump())
    result = provisioner.provision(caller, request, USER_ADMIN_ROLES)
    return result_response(result)


# -----------------------------------------------------
# 2️⃣ LIST USERS (caller's organization, with roles)
# -----------------------------------------------------
@router.get(
    "/users",
    summary="Admin: List users",
)
def list_users(
    role: Optional[RoleName] = None,
    session: UserSession = Depends(requires_role(USER_EDITOR_ROLES)),
    client: Client = Depends(get_db),
):
    profile = session.profile

    try:
        query = client.table("app_users").select("*").order("created_at", desc=True)
        if profile.organization_id:
            query = query.eq("organization_id", profile.organization_id)
        users = query.execute().data or []

        grants = RoleResolver(client).get_role_grants_for_profiles([u["id"] for u in users])
    except Exception as e:
        raise handle_supabase_error(e, "Failed to list users")

    results = []
    for u in users:
        user_grants = grants.get(u["id"], [])
        if role is not None and not any(g.role == role for g in user_grants):
            continue

        results.append({
            **u,
            "roles": [g.model_dump(mode="json") for g in user_grants],
        })

    return {"success": True, "data": results}


# -----------------------------------------------------
# 3️⃣ UPDATE USER (profile fields + role replacement)
# -----------------------------------------------------
@router.patch(
    "/users/{user_id}",
    summary="Admin: Update user",
    response_model=ProvisioningResult,
)
def update_user(
    user_id: str,
    payload: AdminUpdateUser,
    session: UserSession = Depends(get_session),
    client: Client = Depends(get_db),
):
    if not payload.model_dump(exclude_none=True):
        raise HTTPException(400, "No fields provided to update.")

    result = UserProvisioner(client).update_user(session.roles(), user_id, payload)
    if result.ok:
        return JSONResponse(status_code=200, content=result.model_dump(mode="json"))
    return result_response(result)


# -----------------------------------------------------
# 4️⃣ RETRY ROLE ASSIGNMENT
# -----------------------------------------------------
@router.post(
    "/users/{user_id}/roles",
    summary="Admin: Assign a role to an existing profile",
    response_model=ProvisioningResult,
)
def assign_role(
    user_id: str,
    payload: RoleAssignmentRequest,
    session: UserSession = Depends(get_session),
    client: Client = Depends(get_db),
):
    caller = session.roles()
    provisioner = UserProvisioner(client)

    denied = provisioner.authorize(caller, USER_EDITOR_ROLES, f"assign role to {user_id}")
    if denied:
        return result_response(denied)

    if payload.role == RoleName.unknown:
        raise HTTPException(400, "Invalid role: unknown")

    result = provisioner.retry_role_assignment(caller, user_id, payload.role, payload.organization_id)
    return result_response(result)


# -----------------------------------------------------
# 5️⃣ ROLES (with user counts)
# -----------------------------------------------------
@router.get(
    "/roles",
    summary="Admin: List roles",
    dependencies=[Depends(requires_role(USER_ADMIN_ROLES))],
)
def list_roles(client: Client = Depends(get_db)):
    try:
        roles = client.table("roles").select("*").order("name").execute().data or []

        for r in roles:
            count_result = (
                client.table("user_roles")
                .select("id", count="exact")
                .eq("role_id", r["id"])
                .execute()
            )
            r["user_count"] = count_result.count or 0
    except Exception as e:
        raise handle_supabase_error(e, "Failed to list roles")

    return {"success": True, "data": roles}
