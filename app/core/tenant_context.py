"""
Request context management using contextvars for multi-tenant support.

The access middleware binds the trusted RequestContext here once a request
has been admitted. The context propagates through async call chains without
explicit parameter passing, and is cleared when the request completes.
"""

from contextvars import ContextVar
from typing import Optional
import logging

from app.schemas.access import RequestContext

logger = logging.getLogger(__name__)

# Each async task gets its own isolated copy
_request_context: ContextVar[Optional[RequestContext]] = ContextVar('request_context', default=None)


def set_request_context(context: RequestContext) -> None:
    """
    Bind the admitted request's context to the current async context.

    Args:
        context: Context built by the context injector
    """
    if context is None:
        raise ValueError("context cannot be None")

    _request_context.set(context)
    logger.debug(f"Request context set: tenant={context.tenant_id} user={context.user_id}")


def get_request_context() -> Optional[RequestContext]:
    """
    Get the current request context.

    Returns:
        The bound RequestContext, or None outside an admitted request
    """
    return _request_context.get()


def clear_request_context() -> None:
    """
    Clear request context.

    Should be called in finally blocks to prevent context leakage
    between requests.
    """
    context = _request_context.get()
    if context:
        logger.debug(f"Clearing request context: tenant={context.tenant_id}")
    _request_context.set(None)
