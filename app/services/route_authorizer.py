"""
Route authorization state machine.

authorize() is a pure function of its inputs. Rules are evaluated in a fixed
order and the first match wins; reordering them changes security behaviour.

    1. reserved host label            -> platform root
    2. unknown or inactive institute  -> institute not found
    3. forced password change pending -> change password
    4. public path                    -> allow
    5. no session                     -> login
    6. session from another institute -> unauthorized
    7. institute user on platform root
       requesting an institute page   -> their institute subdomain
    8. no role overlap with the guard -> unauthorized
    9.                                -> allow

SUPER_ADMIN sessions are exempt from rules 6 and 7.
"""

from __future__ import annotations

from typing import Optional

from app.core.access_policy import (
    find_route_guard,
    is_password_change_path,
    is_public_path,
    is_tenant_scoped_path,
)
from app.schemas.access import RouteDecision
from app.schemas.session import Session
from app.schemas.tenant import ResolutionKind, TenantResolution


def needs_home_tenant_key(
    path: str,
    resolution: TenantResolution,
    session: Optional[Session],
) -> bool:
    """
    Whether rule 7 could fire, i.e. whether the caller should look up the
    session's institute key before calling authorize().
    """
    return (
        resolution.kind == ResolutionKind.PLATFORM
        and session is not None
        and not session.is_super_admin
        and session.tenant_id is not None
        and not session.must_change_password
        and not is_public_path(path)
        and is_tenant_scoped_path(path)
    )


def authorize(
    path: str,
    resolution: TenantResolution,
    session: Optional[Session],
    home_tenant_key: Optional[str] = None,
) -> RouteDecision:
    """
    Decide whether a request may proceed.

    Args:
        path: Request path without query string
        resolution: Outcome of resolving the host's institute
        session: Validated session, or None for anonymous requests
        home_tenant_key: Subdomain key of session.tenant_id, when known

    Returns:
        The first matching RouteDecision
    """
    if resolution.kind == ResolutionKind.RESERVED:
        return RouteDecision.redirect_tenant_home()

    if resolution.is_unavailable:
        return RouteDecision.redirect_tenant_not_found()

    if session is not None and session.must_change_password and not is_password_change_path(path):
        return RouteDecision.redirect_password_change()

    if is_public_path(path):
        return RouteDecision.allow()

    if session is None:
        return RouteDecision.redirect_login(return_path=path)

    if (
        resolution.kind == ResolutionKind.FOUND
        and not session.is_super_admin
        and session.tenant_id != resolution.tenant.id
    ):
        return RouteDecision.redirect_unauthorized()

    if (
        home_tenant_key
        and resolution.kind == ResolutionKind.PLATFORM
        and not session.is_super_admin
        and session.tenant_id is not None
        and is_tenant_scoped_path(path)
    ):
        return RouteDecision.redirect_tenant_home(home_tenant_key)

    guard = find_route_guard(path)
    if guard is not None and not session.has_any_role(guard.allowed_roles):
        return RouteDecision.redirect_unauthorized()

    return RouteDecision.allow()
