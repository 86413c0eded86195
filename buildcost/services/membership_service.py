"""Organization membership service - list, invite, role change, removal."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from buildcost.core import permissions
from buildcost.core.errors import Conflict, NotFound, ValidationError
from buildcost.db.enums import Role
from buildcost.db.models import Membership, Project, ProjectViewer, User
from buildcost.schemas.auth import RequestContext
from buildcost.schemas.org import MemberRead
from buildcost.services import user_service

logger = logging.getLogger(__name__)


def _to_read(membership: Membership, user: User) -> MemberRead:
    return MemberRead(
        id=membership.id,
        user_id=user.id,
        organization_id=membership.organization_id,
        email=user.email,
        display_name=user.display_name,
        role=membership.role,
        created_at=membership.created_at,
    )


def get_membership(db: Session, org_id: UUID, user_id: UUID) -> Membership | None:
    return db.scalar(
        select(Membership).where(
            Membership.organization_id == org_id,
            Membership.user_id == user_id,
        )
    )


def list_members(db: Session, ctx: RequestContext, org_id: UUID) -> list[MemberRead]:
    permissions.require_member(ctx, org_id)
    rows = db.execute(
        select(Membership, User)
        .join(User, User.id == Membership.user_id)
        .where(Membership.organization_id == org_id)
        .order_by(Membership.created_at, User.email)
    ).all()
    return [_to_read(m, u) for m, u in rows]


def invite_member(
    db: Session,
    ctx: RequestContext,
    org_id: UUID,
    user_id: UUID,
    role: Role,
) -> MemberRead:
    """Add an existing user to the organization (ADMIN only)."""
    permissions.require_admin(ctx, org_id)
    user = user_service.get_user(db, user_id)
    if get_membership(db, org_id, user.id):
        raise Conflict("User is already a member of this organization")

    membership = Membership(organization_id=org_id, user_id=user.id, role=role.value)
    db.add(membership)
    db.flush()
    logger.info(
        "Added organization member",
        extra={"org_id": str(org_id), "user_id": str(user.id), "role": role.value},
    )
    return _to_read(membership, user)


def _load_member(db: Session, org_id: UUID, member_id: UUID) -> Membership:
    membership = db.get(Membership, member_id)
    if not membership or membership.organization_id != org_id:
        raise NotFound("Member not found")
    return membership


def update_member_role(
    db: Session,
    ctx: RequestContext,
    org_id: UUID,
    member_id: UUID,
    role: Role,
) -> MemberRead:
    permissions.require_admin(ctx, org_id)
    membership = _load_member(db, org_id, member_id)
    if membership.user_id == ctx.user_id:
        raise ValidationError("You cannot update your own role")

    membership.role = role.value
    db.flush()
    return _to_read(membership, membership.user)


def remove_member(db: Session, ctx: RequestContext, org_id: UUID, member_id: UUID) -> None:
    permissions.require_admin(ctx, org_id)
    membership = _load_member(db, org_id, member_id)
    if membership.user_id == ctx.user_id:
        raise ValidationError("You cannot remove yourself from the organization")

    # Project grants are scoped to the organization and go with the membership
    project_ids = select(Project.id).where(Project.organization_id == org_id)
    for grant in db.scalars(
        select(ProjectViewer).where(
            ProjectViewer.user_id == membership.user_id,
            ProjectViewer.project_id.in_(project_ids),
        )
    ).all():
        db.delete(grant)
    db.delete(membership)
    db.flush()
    logger.info(
        "Removed organization member",
        extra={"org_id": str(org_id), "user_id": str(membership.user_id)},
    )
