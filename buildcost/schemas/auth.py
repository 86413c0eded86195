"""Authentication-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel, Field

from buildcost.db.enums import Role


class TokenPayload(BaseModel):
    """Decoded JWT payload structure."""
    sub: UUID  # user_id
    org_id: UUID | None = None
    token_version: int


class RequestContext(BaseModel):
    """
    Explicit caller context for every service call.

    Built by the get_request_context dependency from the session token and the
    membership table. ``memberships`` maps organization id to the caller's role
    there; ``active_org_id`` is the organization bound to the session, if any.
    """
    user_id: UUID
    active_org_id: UUID | None = None
    memberships: dict[UUID, Role] = Field(default_factory=dict)

    def role_in(self, org_id: UUID) -> Role | None:
        return self.memberships.get(org_id)


class SwitchOrgRequest(BaseModel):
    organization_id: UUID


class MembershipSummary(BaseModel):
    organization_id: UUID
    organization_name: str
    organization_type: str
    role: Role


class MeResponse(BaseModel):
    """Response schema for GET /auth/me endpoint."""
    user_id: UUID
    email: str
    display_name: str
    active_org_id: UUID | None
    memberships: list[MembershipSummary]
