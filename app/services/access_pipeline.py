from __future__ import annotations

import logging
from typing import Mapping, NamedTuple, Optional

from app.core.config import settings
from app.schemas.access import RequestContext, RouteDecision
from app.schemas.tenant import ResolutionKind
from app.services.context_injector import inject
from app.services.host_parser import parse_host
from app.services.route_authorizer import authorize, needs_home_tenant_key
from app.services.session_validator import SessionValidator
from app.services.tenant_resolver import TenantResolver

logger = logging.getLogger(__name__)


class Admission(NamedTuple):
    decision: RouteDecision
    context: Optional[RequestContext] = None


class AccessPipeline:
    """
    Admission pipeline run once per request.

    host parser -> tenant resolver -> session validator -> route authorizer
    -> context injector. Each step only consumes the outputs of the earlier
    ones. A context is produced only for ALLOW decisions.
    """

    def __init__(
        self,
        tenant_resolver: TenantResolver,
        session_validator: SessionValidator,
        *,
        platform_domain: Optional[str] = None,
    ) -> None:
        self._tenants = tenant_resolver
        self._sessions = session_validator
        self._platform_domain = platform_domain if platform_domain is not None else settings.PLATFORM_DOMAIN

    @classmethod
    async def from_default(cls) -> "AccessPipeline":
        return cls(
            await TenantResolver.from_default(),
            await SessionValidator.from_default(),
        )

    @property
    def tenant_resolver(self) -> TenantResolver:
        return self._tenants

    @property
    def session_validator(self) -> SessionValidator:
        return self._sessions

    async def admit(
        self,
        host: Optional[str],
        path: str,
        cookies: Mapping[str, str],
        headers: Mapping[str, str],
    ) -> Admission:
        identifier = parse_host(host, self._platform_domain)
        resolution = await self._tenants.resolve(identifier)

        # Reserved and unknown hosts are terminal; skip the auth round trip
        if resolution.kind == ResolutionKind.RESERVED or resolution.is_unavailable:
            decision = authorize(path, resolution, None)
            logger.info(
                f"Request rejected before authentication | host={host} path={path} "
                f"resolution={resolution.kind.value} decision={decision.kind.value}"
            )
            return Admission(decision)

        session = await self._sessions.validate(cookies, headers)

        home_tenant_key = None
        if needs_home_tenant_key(path, resolution, session):
            home_tenant_key = await self._tenants.tenant_key_for(session.tenant_id)

        decision = authorize(path, resolution, session, home_tenant_key)
        if not decision.allowed:
            logger.info(
                f"Request redirected | host={host} path={path} resolution={resolution.kind.value} "
                f"user={session.user_id if session else None} decision={decision.kind.value}"
            )
            return Admission(decision)

        return Admission(decision, inject(decision, resolution, session))
