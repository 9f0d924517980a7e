# core/session.py

from typing import Optional

from core.cache import SimpleCache
from core.config import settings
from core.logging_config import logger
from models.profile import Principal, Profile, ResolvedRoles


class UserSession:
    """
    Explicit per-caller session: who is signed in, and their resolved roles.

    Lifecycle:
        sign_in(principal)  → starts (or switches) the session
        roles()             → resolves once, then served from the session cache
        refresh()           → forces a re-query
        sign_out()          → drops principal + cache

    Switching to a different principal clears the cache before anything
    can be resolved for the new one.
    """

    def __init__(self, resolver, ttl_seconds: Optional[int] = None):
        self.resolver = resolver
        self._principal: Optional[Principal] = None
        self._cache = SimpleCache(
            default_ttl=ttl_seconds if ttl_seconds is not None else settings.ROLE_CACHE_TTL_SECONDS
        )
        self.access_token: Optional[str] = None

    # -----------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------
    def sign_in(self, principal: Principal, access_token: Optional[str] = None):
        if self._principal is not None and self._principal.id != principal.id:
            logger.info(f"Session principal switched {self._principal.id} → {principal.id}; clearing role cache")
            self._cache.clear()

        self._principal = principal
        self.access_token = access_token

    def sign_out(self):
        self._cache.clear()
        self._principal = None
        self.access_token = None

    # -----------------------------------------------------
    # Accessors
    # -----------------------------------------------------
    @property
    def principal(self) -> Optional[Principal]:
        return self._principal

    @property
    def is_authenticated(self) -> bool:
        return self._principal is not None

    def _cache_key(self) -> str:
        return f"roles:{self._principal.id}"

    def roles(self) -> ResolvedRoles:
        if self._principal is None:
            return ResolvedRoles()

        key = self._cache_key()
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        resolved = self.resolver.resolve(self._principal.id)
        self._cache.set(key, resolved)
        return resolved

    def refresh(self) -> ResolvedRoles:
        if self._principal is not None:
            self._cache.delete(self._cache_key())
        return self.roles()

    @property
    def profile(self) -> Optional[Profile]:
        return self.roles().profile
