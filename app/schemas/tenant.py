from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TenantStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    PENDING = "pending"


class Tenant(BaseModel):
    """An institute account, routed to by its subdomain key."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    key: str = Field(..., min_length=1, description="Subdomain label used for routing")
    status: TenantStatus


class ResolutionKind(str, Enum):
    PLATFORM = "platform"
    RESERVED = "reserved"
    NOT_FOUND = "not_found"
    SUSPENDED = "suspended"
    FOUND = "found"


class TenantResolution(BaseModel):
    """
    Outcome of resolving a host label to an institute.

    Only FOUND carries a tenant. NOT_FOUND and SUSPENDED are kept apart for
    logging, but callers must treat them identically towards the requester.
    """
    model_config = ConfigDict(frozen=True)

    kind: ResolutionKind
    tenant: Optional[Tenant] = None

    @classmethod
    def platform(cls) -> "TenantResolution":
        return cls(kind=ResolutionKind.PLATFORM)

    @classmethod
    def reserved(cls) -> "TenantResolution":
        return cls(kind=ResolutionKind.RESERVED)

    @classmethod
    def not_found(cls) -> "TenantResolution":
        return cls(kind=ResolutionKind.NOT_FOUND)

    @classmethod
    def suspended(cls) -> "TenantResolution":
        return cls(kind=ResolutionKind.SUSPENDED)

    @classmethod
    def found(cls, tenant: Tenant) -> "TenantResolution":
        return cls(kind=ResolutionKind.FOUND, tenant=tenant)

    @property
    def is_unavailable(self) -> bool:
        return self.kind in (ResolutionKind.NOT_FOUND, ResolutionKind.SUSPENDED)
