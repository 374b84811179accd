from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.api.dependencies import require_session_context, require_tenant_api_context
from app.core.access_policy import dashboard_path_for
from app.schemas.access import RequestContext

logger = logging.getLogger(__name__)

router = APIRouter()


class ContextResponse(BaseModel):
    """Response model describing the caller as seen by the access middleware."""
    user_id: str
    email: Optional[str] = None
    roles: List[str] = Field(default_factory=list)
    tenant_id: Optional[str] = None
    tenant_key: Optional[str] = None
    tenant_status: Optional[str] = None
    dashboard_path: str = "/"


def _to_response(context: RequestContext) -> ContextResponse:
    return ContextResponse(
        user_id=context.user_id,
        email=context.email,
        roles=list(context.roles),
        tenant_id=context.tenant_id,
        tenant_key=context.tenant_key,
        tenant_status=context.tenant_status,
        dashboard_path=dashboard_path_for(context.roles),
    )


@router.get("/", response_model=ContextResponse, summary="Caller identity and institute")
async def current_context(
    context: RequestContext = Depends(require_session_context),
) -> ContextResponse:
    return _to_response(context)


@router.get("/institute", response_model=ContextResponse, summary="Caller within an institute")
async def institute_context(
    context: RequestContext = Depends(require_tenant_api_context),
) -> ContextResponse:
    logger.debug("[ContextAPI] institute context requested for tenant=%s", context.tenant_id)
    return _to_response(context)
