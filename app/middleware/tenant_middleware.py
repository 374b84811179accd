"""
Tenant access middleware: the trust boundary for every request.

This middleware:
1. Resolves the institute from the Host header
2. Validates the caller's session
3. Authorizes the route for the caller's roles and institute
4. Redirects on any non-allow decision
5. Injects the trusted tenant/user context for downstream handlers
6. Clears context after request completes
"""

from typing import Optional
from urllib.parse import urlencode

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse
from app.core.access_policy import (
    LOGIN_PATH,
    LOGIN_RETURN_PARAM,
    PASSWORD_CHANGE_PATH,
    TENANT_NOT_FOUND_PATH,
    UNAUTHORIZED_PATH,
    is_excluded_path,
)
from app.core.config import settings
from app.core.tenant_context import set_request_context, clear_request_context
from app.schemas.access import CONTEXT_HEADER_PREFIXES, DecisionKind, RequestContext, RouteDecision
from app.services.access_pipeline import AccessPipeline
from app.services.host_parser import platform_root_host
import logging

logger = logging.getLogger(__name__)


class TenantAccessMiddleware(BaseHTTPMiddleware):
    """
    Runs the admission pipeline and turns its decision into a response.

    Policy outcomes are always redirects, never raw error statuses. The
    pipeline comes from the constructor or from app.state.access_pipeline,
    which the application lifespan populates.
    """

    def __init__(self, app, pipeline: Optional[AccessPipeline] = None, platform_domain: Optional[str] = None):
        super().__init__(app)
        self._pipeline = pipeline
        self._platform_domain = platform_domain if platform_domain is not None else settings.PLATFORM_DOMAIN

    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        # Static assets, docs and health checks bypass admission but never
        # carry client supplied context headers
        if is_excluded_path(path):
            self._inject_headers(request, RequestContext())
            return await call_next(request)

        host = request.headers.get("host", "")

        try:
            pipeline = self._pipeline or request.app.state.access_pipeline
            admission = await pipeline.admit(host, path, request.cookies, request.headers)
        except Exception as exc:
            logger.exception(
                f"Admission pipeline failed, failing closed | "
                f"host={host} path={path} error={exc}"
            )
            admission = None

        if admission is None:
            return self._redirect(request, RouteDecision.redirect_login(return_path=path))

        if not admission.decision.allowed:
            return self._redirect(request, admission.decision)

        context = admission.context or RequestContext()
        self._inject_headers(request, context)
        request.state.context = context
        set_request_context(context)

        try:
            return await call_next(request)
        finally:
            clear_request_context()

    @staticmethod
    def _inject_headers(request: Request, context: RequestContext) -> None:
        """Replace any client supplied context headers with the trusted values."""
        headers = [
            (name, value)
            for name, value in request.scope["headers"]
            if not name.decode("latin-1").lower().startswith(CONTEXT_HEADER_PREFIXES)
        ]
        headers.extend(
            (name.encode("latin-1"), value.encode("latin-1"))
            for name, value in context.to_headers()
        )
        request.scope["headers"] = headers

    def _redirect(self, request: Request, decision: RouteDecision) -> RedirectResponse:
        url = self.redirect_url(request, decision)
        logger.debug(f"Redirecting | decision={decision.kind.value} target={url}")
        return RedirectResponse(url, status_code=307)

    def redirect_url(self, request: Request, decision: RouteDecision) -> str:
        scheme = request.url.scheme
        host = request.headers.get("host", "")
        root = platform_root_host(host, self._platform_domain)

        if decision.kind == DecisionKind.REDIRECT_LOGIN:
            query = urlencode({LOGIN_RETURN_PARAM: decision.return_path or "/"})
            return f"{LOGIN_PATH}?{query}"

        if decision.kind == DecisionKind.REDIRECT_UNAUTHORIZED:
            return UNAUTHORIZED_PATH

        if decision.kind == DecisionKind.REDIRECT_PASSWORD_CHANGE:
            return PASSWORD_CHANGE_PATH

        if decision.kind == DecisionKind.REDIRECT_TENANT_NOT_FOUND:
            # on the platform root, so an unknown subdomain cannot loop
            return f"{scheme}://{root}{TENANT_NOT_FOUND_PATH}"

        if decision.kind == DecisionKind.REDIRECT_TENANT_HOME and decision.tenant_key:
            query = f"?{request.url.query}" if request.url.query else ""
            return f"{scheme}://{decision.tenant_key}.{root}{request.url.path}{query}"

        return f"{scheme}://{root}/"
