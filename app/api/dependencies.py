"""
Request context dependencies for downstream route handlers.

Handlers read identity and institute from the context injected by the access
middleware. They never re-derive it from the Host header or the credential.
"""

from fastapi import HTTPException, Request, status

from app.schemas.access import RequestContext


def get_request_context(request: Request) -> RequestContext:
    """Context injected by the access middleware, or an empty one when absent."""
    context = getattr(request.state, "context", None)
    if isinstance(context, RequestContext):
        return context
    # client headers are only trustworthy after the middleware rewrote them
    return RequestContext()


def require_session_context(request: Request) -> RequestContext:
    """
    Context of an authenticated caller.

    Raises:
        HTTPException 401: If the request carries no authenticated user
    """
    context = get_request_context(request)
    if not context.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return context


def require_tenant_api_context(request: Request) -> RequestContext:
    """
    Context of an authenticated caller on an institute subdomain.

    Raises:
        HTTPException 401: If the user or the institute is missing
    """
    context = require_session_context(request)
    if context.is_platform:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Institute context required",
        )
    return context
