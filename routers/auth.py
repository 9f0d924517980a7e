from fastapi import APIRouter, HTTPException, Depends
from supabase import Client

from core.logging_config import logger
from core.session import UserSession
from dependencies.auth import get_auth_client, get_db, get_session
from models.auth import LoginRequest, MeResponse, TokenResponse
from services.provisioning import UserProvisioner


router = APIRouter(
    prefix="/auth",
    tags=["Auth"],
)


# ============================================================
# LOGIN (SUPABASE AUTH)
# ============================================================
@router.post("/login", response_model=TokenResponse, summary="Authenticate user")
def login(payload: LoginRequest, client: Client = Depends(get_auth_client)):

    email = payload.email.strip().lower()

    try:
        response = client.auth.sign_in_with_password(
            {"email": email, "password": payload.password}
        )
    except Exception as e:
        # Log the error for debugging but don't expose details to user
        logger.warning(f"Login attempt failed for {email}: {type(e).__name__}")
        raise HTTPException(
            status_code=401,
            detail="Invalid email or password"
        )

    session = getattr(response, "session", None)
    if not session or not session.access_token:
        raise HTTPException(401, "Invalid email or password")

    return TokenResponse(
        access_token=session.access_token,
        refresh_token=getattr(session, "refresh_token", None),
        expires_in=getattr(session, "expires_in", None),
    )


# ============================================================
# LOGOUT: revoke token + drop cached roles
# ============================================================
@router.post("/logout", summary="Sign out")
def logout(
    session: UserSession = Depends(get_session),
    client: Client = Depends(get_db),
):
    principal_id = session.principal.id

    try:
        client.auth.admin.sign_out(session.access_token)
    except Exception as e:
        logger.warning(f"Supabase sign-out failed for {principal_id}: {e}")

    session.sign_out()
    return {"success": True}


# ============================================================
# CURRENT USER (profile + roles)
# ============================================================
@router.get("/me", response_model=MeResponse, summary="Current user, profile and roles")
def read_me(session: UserSession = Depends(get_session)):
    resolved = session.roles()
    highest = resolved.highest_priority_role()

    # No profile is a valid state: the frontend shows "contact an administrator"
    return MeResponse(
        principal_id=session.principal.id,
        email=session.principal.email,
        provisioned=resolved.is_provisioned,
        profile=resolved.profile,
        roles=resolved.roles,
        highest_role=highest.value if highest else None,
    )


# ============================================================
# CLAIM PRE-PROVISIONED PROFILE
# ============================================================
@router.post("/claim-profile", response_model=MeResponse, summary="Link a pending profile to this account")
def claim_profile(
    session: UserSession = Depends(get_session),
    client: Client = Depends(get_db),
):
    if session.roles().is_provisioned:
        return read_me(session)

    claimed = UserProvisioner(client).claim_pending_profiles(session.principal)
    if not claimed:
        raise HTTPException(404, "No pending profile found for this email")

    session.refresh()
    return read_me(session)
