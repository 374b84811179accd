from __future__ import annotations

from enum import Enum
from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Role(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    INSTITUTE_ADMIN = "INSTITUTE_ADMIN"
    TEACHER = "TEACHER"
    STUDENT = "STUDENT"


class Session(BaseModel):
    """
    Authenticated actor for a single request.

    Rebuilt from the bearer credential on every request and never persisted.
    Only SUPER_ADMIN accounts may exist without an institute affiliation.
    """
    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1)
    email: str
    roles: FrozenSet[str] = Field(default_factory=frozenset)
    tenant_id: Optional[str] = None
    must_change_password: bool = False

    @model_validator(mode="after")
    def check_tenant_affiliation(self) -> "Session":
        if self.tenant_id is None and not self.is_super_admin:
            raise ValueError("non SUPER_ADMIN sessions require a tenant_id")
        return self

    @property
    def is_super_admin(self) -> bool:
        return Role.SUPER_ADMIN.value in self.roles

    def has_any_role(self, roles) -> bool:
        return not self.roles.isdisjoint(roles)
