"""Organization service - tenant creation, lookup and settings."""

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from buildcost.core import permissions
from buildcost.core.config import settings
from buildcost.core.errors import Conflict, Forbidden
from buildcost.db.enums import OrganizationType, Role
from buildcost.db.models import Budget, Item, Membership, Organization, Project, User
from buildcost.schemas.auth import RequestContext
from buildcost.schemas.org import OrgCounts, OrgCreate, OrgDetail, OrgRead, OrgUpdate

logger = logging.getLogger(__name__)


# =============================================================================
# Creation limits
# =============================================================================

def count_admin_orgs(db: Session, user_id: UUID) -> int:
    """Organizations the user administers (i.e. created or was promoted in)."""
    return db.scalar(
        select(func.count())
        .select_from(Membership)
        .where(Membership.user_id == user_id, Membership.role == Role.ADMIN.value)
    ) or 0


def remaining_org_quota(db: Session, user_id: UUID) -> int | None:
    """How many more organizations the user may create; None when unlimited."""
    if settings.MAX_ADMIN_ORGANIZATIONS <= 0:
        return None
    return max(settings.MAX_ADMIN_ORGANIZATIONS - count_admin_orgs(db, user_id), 0)


# =============================================================================
# CRUD
# =============================================================================

def create_org(db: Session, user: User, data: OrgCreate) -> Organization:
    """Create an organization with the creator as its ADMIN, in one flush."""
    remaining = remaining_org_quota(db, user.id)
    if remaining is not None and remaining <= 0:
        raise Forbidden(
            "Organization limit reached",
            details={"max_admin_organizations": settings.MAX_ADMIN_ORGANIZATIONS},
        )

    org = Organization(name=data.name, type=data.type.value)
    org.memberships.append(Membership(user_id=user.id, role=Role.ADMIN.value))
    db.add(org)
    db.flush()
    logger.info(
        "Created organization",
        extra={"org_id": str(org.id), "user_id": str(user.id), "type": org.type},
    )
    return org


def list_user_orgs(db: Session, user_id: UUID) -> list[OrgRead]:
    rows = db.execute(
        select(Organization, Membership.role)
        .join(Membership, Membership.organization_id == Organization.id)
        .where(Membership.user_id == user_id)
        .order_by(Organization.created_at, Organization.id)
    ).all()
    return [
        OrgRead(id=org.id, name=org.name, type=org.type, role=role, created_at=org.created_at)
        for org, role in rows
    ]


def _count(db: Session, model, org_id: UUID) -> int:
    return db.scalar(
        select(func.count()).select_from(model).where(model.organization_id == org_id)
    ) or 0


def get_org(db: Session, ctx: RequestContext, org_id: UUID) -> OrgDetail:
    role = permissions.require_member(ctx, org_id)
    org = permissions.get_organization(db, org_id)
    counts = OrgCounts(
        members=_count(db, Membership, org_id),
        projects=_count(db, Project, org_id),
        budgets=_count(db, Budget, org_id),
        items=_count(db, Item, org_id),
    )
    return OrgDetail(
        id=org.id,
        name=org.name,
        type=org.type,
        role=role,
        created_at=org.created_at,
        updated_at=org.updated_at,
        counts=counts,
    )


def update_org(
    db: Session,
    ctx: RequestContext,
    org_id: UUID,
    data: OrgUpdate,
) -> Organization:
    """
    Rename or change the type of an organization (ADMIN only).

    A contractor with projects cannot become a store, and a store with items
    cannot become a contractor.
    """
    permissions.require_admin(ctx, org_id)
    org = permissions.get_organization(db, org_id)

    if data.type is not None and data.type.value != org.type:
        if data.type == OrganizationType.STORE and _count(db, Project, org_id):
            raise Conflict(
                "Cannot change to STORE type because this organization has projects. "
                "Please delete all projects first."
            )
        if data.type == OrganizationType.CONTRACTOR and _count(db, Item, org_id):
            raise Conflict(
                "Cannot change to CONTRACTOR type because this organization has items. "
                "Please delete all items first."
            )
        org.type = data.type.value

    if data.name is not None:
        org.name = data.name

    db.flush()
    return org
