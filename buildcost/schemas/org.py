"""Organization and membership schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from buildcost.db.enums import OrganizationType, Role


class OrgCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: OrganizationType

    model_config = {"str_strip_whitespace": True}


class OrgUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    type: OrganizationType | None = None

    model_config = {"str_strip_whitespace": True}


class OrgRead(BaseModel):
    """Organization as seen by one of its members."""
    id: UUID
    name: str
    type: OrganizationType
    role: Role | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class OrgCounts(BaseModel):
    members: int = 0
    projects: int = 0
    budgets: int = 0
    items: int = 0


class OrgDetail(OrgRead):
    updated_at: datetime
    counts: OrgCounts


class OrgLimits(BaseModel):
    """Remaining organizations the user may create (None = unlimited)."""
    remaining: int | None


# =============================================================================
# Members
# =============================================================================

class MemberInvite(BaseModel):
    user_id: UUID
    role: Role = Role.MEMBER


class MemberRoleUpdate(BaseModel):
    role: Role


class MemberRead(BaseModel):
    id: UUID
    user_id: UUID
    organization_id: UUID
    email: str
    display_name: str
    role: Role
    created_at: datetime
