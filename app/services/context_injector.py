from __future__ import annotations

from typing import Optional

from app.schemas.access import RequestContext, RouteDecision
from app.schemas.session import Session
from app.schemas.tenant import ResolutionKind, TenantResolution


def inject(
    decision: RouteDecision,
    resolution: TenantResolution,
    session: Optional[Session],
) -> RequestContext:
    """
    Build the trusted context for an admitted request.

    Values come only from the resolved tenant and the validated session,
    never from anything the client sent.

    Raises:
        ValueError: If the decision is not ALLOW
    """
    if not decision.allowed:
        raise ValueError(f"cannot inject context for a {decision.kind.value} decision")

    fields = {}
    if resolution.kind == ResolutionKind.FOUND and resolution.tenant is not None:
        tenant = resolution.tenant
        fields.update(tenant_id=tenant.id, tenant_key=tenant.key, tenant_status=tenant.status.value)

    if session is not None:
        fields.update(
            user_id=session.user_id,
            email=session.email,
            roles=tuple(sorted(session.roles)),
        )

    return RequestContext(**fields)
