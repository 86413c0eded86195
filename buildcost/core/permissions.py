"""Organization access control - centralized role and tenant checks.

Every service call receives an explicit RequestContext. Checks here answer:
- is the caller a member of the organization, and with which role
- does the role allow the action (ROLES_CAN_* sets in db.enums)
- is the organization of the type the resource belongs to

All failures raise domain errors (Forbidden / NotFound / ValidationError).
"""

from uuid import UUID

from sqlalchemy.orm import Session

from buildcost.core.errors import Forbidden, NotFound, ValidationError
from buildcost.db.enums import (
    ROLES_CAN_EDIT, ROLES_CAN_MANAGE_ORG, ROLES_CAN_VIEW, OrganizationType, Role,
)
from buildcost.db.models import Organization
from buildcost.schemas.auth import RequestContext


def resolve_org_id(ctx: RequestContext, organization_id: UUID | None) -> UUID:
    """Explicit organization id, else the session's active organization."""
    org_id = organization_id or ctx.active_org_id
    if org_id is None:
        raise ValidationError("organization_id is required (no active organization)")
    return org_id


def require_member(ctx: RequestContext, org_id: UUID) -> Role:
    role = ctx.role_in(org_id)
    if role not in ROLES_CAN_VIEW:
        raise Forbidden("You are not a member of this organization")
    return role


def require_editor(ctx: RequestContext, org_id: UUID) -> Role:
    """ADMIN or MEMBER of the organization."""
    role = require_member(ctx, org_id)
    if role not in ROLES_CAN_EDIT:
        raise Forbidden(f"Role '{role.value}' not authorized for this action")
    return role


def require_admin(ctx: RequestContext, org_id: UUID) -> Role:
    role = require_member(ctx, org_id)
    if role not in ROLES_CAN_MANAGE_ORG:
        raise Forbidden("Only organization admins can perform this action")
    return role


def can_edit(ctx: RequestContext, org_id: UUID) -> bool:
    return ctx.role_in(org_id) in ROLES_CAN_EDIT


def get_organization(db: Session, org_id: UUID) -> Organization:
    org = db.get(Organization, org_id)
    if not org:
        raise NotFound("Organization not found")
    return org


def require_org_type(
    db: Session,
    org_id: UUID,
    org_type: OrganizationType,
    what: str,
) -> Organization:
    """
    Ensure the organization is of the given type.

    ``what`` names the resource for the error message, e.g. "materials".
    """
    org = get_organization(db, org_id)
    if org.type != org_type.value:
        raise Forbidden(
            f"Only {org_type.value.lower()} organizations can manage {what}"
        )
    return org
