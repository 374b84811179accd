from __future__ import annotations

import asyncio
import logging
from typing import Optional

from app.core.access_policy import is_reserved_subdomain
from app.core.config import settings
from app.repository.tenant_repository import TenantLookupError, TenantRepository
from app.schemas.tenant import TenantResolution, TenantStatus
from app.utils.ttl_cache import TTLCache

logger = logging.getLogger(__name__)


class TenantResolver:
    """
    Maps a host label to an institute.

    Registry failures and timeouts resolve to NOT_FOUND so a broken lookup can
    never admit a request as a platform level or tenant request.
    """

    def __init__(
        self,
        repository: TenantRepository,
        *,
        timeout: Optional[float] = None,
        cache_ttl: Optional[float] = None,
        cache_max_entries: Optional[int] = None,
    ) -> None:
        self._repository = repository
        self._timeout = timeout if timeout is not None else settings.TENANT_LOOKUP_TIMEOUT_SECONDS
        self._cache = TTLCache(
            cache_ttl if cache_ttl is not None else settings.TENANT_CACHE_TTL_SECONDS,
            max_entries=cache_max_entries if cache_max_entries is not None else settings.TENANT_CACHE_MAX_ENTRIES,
        )

    @classmethod
    async def from_default(cls) -> "TenantResolver":
        repository = await TenantRepository.from_default()
        return cls(repository)

    async def resolve(self, identifier: Optional[str]) -> TenantResolution:
        if identifier is None:
            return TenantResolution.platform()

        key = identifier.lower()
        if is_reserved_subdomain(key):
            return TenantResolution.reserved()

        cached = self._cache.get(key)
        if not TTLCache.is_missing(cached):
            return cached

        try:
            tenant = await asyncio.wait_for(self._repository.get_by_key(key), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.error(f"Institute lookup timed out | key={key} timeout={self._timeout}s")
            return TenantResolution.not_found()
        except TenantLookupError as exc:
            logger.error(f"Institute lookup failed | key={key} error={exc}")
            return TenantResolution.not_found()
        except Exception as exc:
            logger.exception(f"Unexpected institute lookup error | key={key} error={exc}")
            return TenantResolution.not_found()

        if tenant is None:
            logger.info(f"Unknown institute | key={key}")
            resolution = TenantResolution.not_found()
        elif tenant.status != TenantStatus.ACTIVE:
            logger.info(f"Institute not active | key={key} status={tenant.status.value}")
            resolution = TenantResolution.suspended()
        else:
            resolution = TenantResolution.found(tenant)

        # lookup failures are never cached
        self._cache.set(key, resolution)
        return resolution

    async def tenant_key_for(self, tenant_id: str) -> Optional[str]:
        """Subdomain key of a live institute, or None on miss, error or timeout."""
        try:
            return await asyncio.wait_for(self._repository.get_key_by_id(tenant_id), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.error(f"Institute key lookup timed out | tenant_id={tenant_id}")
        except TenantLookupError as exc:
            logger.error(f"Institute key lookup failed | tenant_id={tenant_id} error={exc}")
        except Exception as exc:
            logger.exception(f"Unexpected institute key lookup error | tenant_id={tenant_id} error={exc}")
        return None
