from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Tuple
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field


class DecisionKind(str, Enum):
    ALLOW = "allow"
    REDIRECT_LOGIN = "redirect_login"
    REDIRECT_UNAUTHORIZED = "redirect_unauthorized"
    REDIRECT_PASSWORD_CHANGE = "redirect_password_change"
    REDIRECT_TENANT_HOME = "redirect_tenant_home"
    REDIRECT_TENANT_NOT_FOUND = "redirect_tenant_not_found"


class RouteDecision(BaseModel):
    """
    Admission decision for one request.

    return_path is only set for REDIRECT_LOGIN. tenant_key is only set for
    REDIRECT_TENANT_HOME, where None means the bare platform root.
    """
    model_config = ConfigDict(frozen=True)

    kind: DecisionKind
    return_path: Optional[str] = None
    tenant_key: Optional[str] = None

    @classmethod
    def allow(cls) -> "RouteDecision":
        return cls(kind=DecisionKind.ALLOW)

    @classmethod
    def redirect_login(cls, return_path: str) -> "RouteDecision":
        return cls(kind=DecisionKind.REDIRECT_LOGIN, return_path=return_path)

    @classmethod
    def redirect_unauthorized(cls) -> "RouteDecision":
        return cls(kind=DecisionKind.REDIRECT_UNAUTHORIZED)

    @classmethod
    def redirect_password_change(cls) -> "RouteDecision":
        return cls(kind=DecisionKind.REDIRECT_PASSWORD_CHANGE)

    @classmethod
    def redirect_tenant_home(cls, tenant_key: Optional[str] = None) -> "RouteDecision":
        return cls(kind=DecisionKind.REDIRECT_TENANT_HOME, tenant_key=tenant_key)

    @classmethod
    def redirect_tenant_not_found(cls) -> "RouteDecision":
        return cls(kind=DecisionKind.REDIRECT_TENANT_NOT_FOUND)

    @property
    def allowed(self) -> bool:
        return self.kind == DecisionKind.ALLOW


# Propagated request headers read by downstream handlers
HEADER_TENANT_ID = "x-institute-id"
HEADER_TENANT_KEY = "x-institute-subdomain"
HEADER_TENANT_STATUS = "x-institute-status"
HEADER_USER_ID = "x-user-id"
HEADER_USER_EMAIL = "x-user-email"
HEADER_USER_ROLES = "x-user-roles"

CONTEXT_HEADER_PREFIXES = ("x-institute-", "x-user-")
# Left unescaped in header values
HEADER_VALUE_SAFE = "@+,:"


class RequestContext(BaseModel):
    """
    Trusted identity and tenant metadata for downstream handlers.

    Built only from a resolved Tenant and a validated Session. A missing
    tenant_id means a platform level request, a missing user_id means an
    unauthenticated one.
    """
    model_config = ConfigDict(frozen=True)

    tenant_id: Optional[str] = None
    tenant_key: Optional[str] = None
    tenant_status: Optional[str] = None
    user_id: Optional[str] = None
    email: Optional[str] = None
    roles: Tuple[str, ...] = Field(default_factory=tuple)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_platform(self) -> bool:
        return self.tenant_id is None

    def to_headers(self) -> List[Tuple[str, str]]:
        """
        Header pairs for downstream handlers.

        Values are percent-encoded UTF-8 so they always fit a header, which
        matters for internationalized email addresses.
        """
        headers: List[Tuple[str, str]] = []
        if self.tenant_id is not None:
            headers.append((HEADER_TENANT_ID, self.tenant_id))
            headers.append((HEADER_TENANT_KEY, self.tenant_key or ""))
            headers.append((HEADER_TENANT_STATUS, self.tenant_status or ""))
        if self.user_id is not None:
            headers.append((HEADER_USER_ID, self.user_id))
            headers.append((HEADER_USER_EMAIL, self.email or ""))
            headers.append((HEADER_USER_ROLES, ",".join(self.roles)))
        return [(name, quote(value, safe=HEADER_VALUE_SAFE)) for name, value in headers]

    def log_fields(self) -> Dict[str, str]:
        return {
            "tenant_id": self.tenant_id or "NO_TENANT",
            "user_id": self.user_id or "ANONYMOUS",
        }
