from typing import Iterable, Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from supabase import Client

from core.authorization import evaluate_access
from core.logging_config import logger
from core.session import UserSession
from core.supabase_client import get_supabase_client, get_anon_client
from models.profile import Principal, ResolvedRoles
from services.role_resolution import RoleResolver


bearer_scheme = HTTPBearer(auto_error=False)


# ============================================================
# Supabase clients as dependencies (overridable in tests)
# ============================================================
def get_db() -> Client:
    client = get_supabase_client()
    if not client:
        raise HTTPException(500, "Supabase client not configured")
    return client


def get_auth_client() -> Client:
    client = get_anon_client()
    if not client:
        raise HTTPException(500, "Supabase auth client not configured")
    return client


# ============================================================
# AUTH DECODING (Supabase: validates JWT)
# ============================================================
def authenticate_token(client: Client, token: Optional[str]) -> Optional[Principal]:
    """
    Validate a Supabase access token via GoTrue.
    Returns None for a missing, invalid or expired token.
    """
    if not token:
        return None

    try:
        auth_resp = client.auth.get_user(token)
    except Exception as e:
        logger.info(f"Token rejected by Supabase: {type(e).__name__}")
        return None

    auth_user = getattr(auth_resp, "user", None) if auth_resp else None
    if not auth_user or not auth_user.id:
        return None

    return Principal(id=auth_user.id, email=auth_user.email)


def _unauthenticated(allowed: Optional[Iterable] = None) -> HTTPException:
    # Same payload shape as a gate denial; 401 tells the client to sign in
    detail = evaluate_access(ResolvedRoles(), allowed or []).model_dump(mode="json")
    detail["message"] = "Invalid or expired authentication token"
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# ============================================================
# SESSION (one per request)
# ============================================================
def get_optional_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    client: Client = Depends(get_db),
) -> Optional[UserSession]:
    token = credentials.credentials if credentials else None
    principal = authenticate_token(client, token)
    if principal is None:
        return None

    session = UserSession(RoleResolver(client))
    session.sign_in(principal, access_token=token)
    return session


def get_session(session: Optional[UserSession] = Depends(get_optional_session)) -> UserSession:
    if session is None:
        raise _unauthenticated()
    return session


def get_caller_roles(session: UserSession = Depends(get_session)) -> ResolvedRoles:
    return session.roles()


# ============================================================
# ROLE GATE (allow-list guard)
# ============================================================
def requires_role(allowed_roles: Iterable):
    """
    Usage:
        @router.get("/", dependencies=[Depends(requires_role(USER_EDITOR_ROLES))])

    Denials come back as 403 with the structured gate result as detail.
    """
    allowed_roles = list(allowed_roles)

    def checker(session: Optional[UserSession] = Depends(get_optional_session)) -> UserSession:
        if session is None:
            raise _unauthenticated(allowed_roles)

        result = evaluate_access(session.roles(), allowed_roles)
        if not result.permitted:
            logger.warning(
                f"Access denied for {session.principal.id}: "
                f"requires {result.required_roles}, has {result.held_roles}"
            )
            raise HTTPException(status_code=403, detail=result.model_dump(mode="json"))
        return session

    return checker
