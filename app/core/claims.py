from enum import StrEnum
from typing import Literal

from pydantic import BaseModel


class Role(StrEnum):
    SUPER_ADMIN = "SUPER_ADMIN"
    SCHOOL_ADMIN = "SCHOOL_ADMIN"


class FullClaim(BaseModel):
    """Verified identity attached to a request that passed authentication."""

    model_config = {"frozen": True}

    kind: Literal["full"] = "full"
    subject_id: str
    role: Role
    school_id: str | None = None

    @property
    def is_super_admin(self) -> bool:
        return self.role == Role.SUPER_ADMIN


class PreAuthClaim(BaseModel):
    """Password was verified but the one-time code step is still pending."""

    model_config = {"frozen": True}

    kind: Literal["pre_auth"] = "pre_auth"
    subject_id: str
    mfa_pending: Literal[True] = True


Claim = FullClaim | PreAuthClaim
