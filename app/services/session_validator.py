from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Optional

from pydantic import ValidationError

from app.core.config import settings
from app.repository.profile_repository import ProfileLookupError, ProfileRepository
from app.schemas.session import Session
from app.services.token_extractor import extract_access_token
from app.utils.auth_service_client import AuthServiceClient, AuthServiceClientError
from app.utils.ttl_cache import TTLCache

logger = logging.getLogger(__name__)


class SessionValidator:
    """
    Turns a request's bearer credential into a Session.

    Every failure mode (missing, malformed, expired or revoked token, auth
    service or profile store errors, timeouts) yields None. Callers cannot
    tell an error from an anonymous request, and neither can the requester.
    """

    def __init__(
        self,
        auth_client: AuthServiceClient,
        profiles: ProfileRepository,
        *,
        timeout: Optional[float] = None,
        cache_ttl: Optional[float] = None,
        cache_max_entries: Optional[int] = None,
        project_ref: Optional[str] = None,
    ) -> None:
        self._auth_client = auth_client
        self._profiles = profiles
        self._timeout = timeout if timeout is not None else settings.SESSION_VALIDATION_TIMEOUT_SECONDS
        self._cache = TTLCache(
            cache_ttl if cache_ttl is not None else settings.SESSION_CACHE_TTL_SECONDS,
            max_entries=cache_max_entries if cache_max_entries is not None else settings.SESSION_CACHE_MAX_ENTRIES,
        )
        self._project_ref = project_ref

    @classmethod
    async def from_default(cls) -> "SessionValidator":
        profiles = await ProfileRepository.from_default()
        return cls(AuthServiceClient(), profiles)

    async def validate(
        self,
        cookies: Mapping[str, str],
        headers: Mapping[str, str],
    ) -> Optional[Session]:
        token = extract_access_token(cookies, headers, self._project_ref)
        if not token:
            return None
        return await self.validate_token(token)

    async def validate_token(self, token: str) -> Optional[Session]:
        cached = self._cache.get(token)
        if not TTLCache.is_missing(cached):
            return cached

        try:
            session = await asyncio.wait_for(self._load_session(token), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Session validation timed out after {self._timeout}s")
            return None
        except (AuthServiceClientError, ProfileLookupError) as exc:
            logger.warning(f"Session validation failed: {exc}")
            return None
        except Exception as exc:
            logger.exception(f"Unexpected session validation error: {exc}")
            return None

        if session is not None:
            self._cache.set(token, session)
        return session

    async def _load_session(self, token: str) -> Optional[Session]:
        user = await self._auth_client.get_user(token)
        user_id = str(user["id"])

        profile = await self._profiles.get_profile(user_id)
        if not profile:
            logger.warning(f"No live profile for authenticated user | user_id={user_id}")
            return None

        roles = await self._profiles.get_role_names(user_id)
        institute_id = profile.get("institute_id")

        try:
            return Session(
                user_id=user_id,
                email=profile.get("email") or user.get("email") or "",
                roles=frozenset(roles),
                tenant_id=str(institute_id) if institute_id else None,
                must_change_password=bool(profile.get("must_change_password", False)),
            )
        except ValidationError as exc:
            logger.warning(f"Rejecting inconsistent session | user_id={user_id} error={exc.errors()}")
            return None
