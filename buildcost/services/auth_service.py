"""Session service - session tokens bound to an active organization."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from buildcost.core.errors import Forbidden
from buildcost.core.security import create_session_token
from buildcost.db.models import Membership, Organization, User
from buildcost.schemas.auth import MembershipSummary, MeResponse, RequestContext

logger = logging.getLogger(__name__)


def default_org_id(db: Session, user_id: UUID) -> UUID | None:
    """Oldest membership's organization, used when no org is chosen yet."""
    return db.scalar(
        select(Membership.organization_id)
        .where(Membership.user_id == user_id)
        .order_by(Membership.created_at, Membership.id)
        .limit(1)
    )


def issue_session(db: Session, user: User, org_id: UUID | None = None) -> str:
    """
    Mint a session token for the user.

    With an explicit organization the user must be a member of it; without
    one the oldest membership is used (or none for users without orgs).
    """
    if org_id is None:
        org_id = default_org_id(db, user.id)
    elif not db.scalar(
        select(Membership.id).where(
            Membership.user_id == user.id, Membership.organization_id == org_id
        )
    ):
        raise Forbidden("You are not a member of this organization")
    return create_session_token(user.id, org_id, user.token_version)


def switch_active_org(db: Session, user: User, org_id: UUID) -> str:
    token = issue_session(db, user, org_id)
    logger.info(
        "Switched active organization",
        extra={"user_id": str(user.id), "org_id": str(org_id)},
    )
    return token


def build_me(db: Session, user: User, ctx: RequestContext) -> MeResponse:
    rows = db.execute(
        select(Membership, Organization)
        .join(Organization, Organization.id == Membership.organization_id)
        .where(Membership.user_id == user.id)
        .order_by(Membership.created_at, Membership.id)
    ).all()
    return MeResponse(
        user_id=user.id,
        email=user.email,
        display_name=user.display_name,
        active_org_id=ctx.active_org_id,
        memberships=[
            MembershipSummary(
                organization_id=org.id,
                organization_name=org.name,
                organization_type=org.type,
                role=m.role,
            )
            for m, org in rows
        ],
    )
