"""Organization and membership endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from buildcost.core.deps import get_db, get_request_context, require_csrf_header
from buildcost.db.enums import Role
from buildcost.schemas.auth import RequestContext
from buildcost.schemas.org import (
    MemberInvite, MemberRoleUpdate, OrgCreate, OrgLimits, OrgRead, OrgUpdate,
)
from buildcost.schemas.upa import UPAListItem
from buildcost.services import (
    budget_service, membership_service, org_service, upa_service, user_service,
)

router = APIRouter()


# =============================================================================
# Organizations
# =============================================================================

@router.get("")
def list_organizations(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Organizations the caller belongs to, with the remaining creation quota."""
    return {
        "organizations": org_service.list_user_orgs(db, ctx.user_id),
        "limits": OrgLimits(remaining=org_service.remaining_org_quota(db, ctx.user_id)),
    }


@router.get("/remaining")
def remaining_organizations(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> OrgLimits:
    return OrgLimits(remaining=org_service.remaining_org_quota(db, ctx.user_id))


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_csrf_header)],
)
def create_organization(
    data: OrgCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Create an organization; the caller becomes its ADMIN."""
    user = user_service.get_user(db, ctx.user_id)
    org = org_service.create_org(db, user, data)
    db.commit()
    return {
        "organization": OrgRead(
            id=org.id, name=org.name, type=org.type, role=Role.ADMIN, created_at=org.created_at
        )
    }


@router.get("/{org_id}")
def get_organization(
    org_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return {"organization": org_service.get_org(db, ctx, org_id)}


@router.patch("/{org_id}", dependencies=[Depends(require_csrf_header)])
def update_organization(
    org_id: UUID,
    data: OrgUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Rename or retype the organization (ADMIN only)."""
    org_service.update_org(db, ctx, org_id, data)
    db.commit()
    return {"organization": org_service.get_org(db, ctx, org_id)}


# =============================================================================
# Members
# =============================================================================

@router.get("/{org_id}/members")
def list_members(
    org_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return {"members": membership_service.list_members(db, ctx, org_id)}


@router.post(
    "/{org_id}/invite",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_csrf_header)],
)
def invite_member(
    org_id: UUID,
    data: MemberInvite,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Add an existing user to the organization (ADMIN only)."""
    member = membership_service.invite_member(db, ctx, org_id, data.user_id, data.role)
    db.commit()
    return {"member": member}


@router.patch("/{org_id}/members/{member_id}", dependencies=[Depends(require_csrf_header)])
def update_member(
    org_id: UUID,
    member_id: UUID,
    data: MemberRoleUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    member = membership_service.update_member_role(db, ctx, org_id, member_id, data.role)
    db.commit()
    return {"member": member}


@router.delete(
    "/{org_id}/members/{member_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_csrf_header)],
)
def remove_member(
    org_id: UUID,
    member_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    membership_service.remove_member(db, ctx, org_id, member_id)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Org-scoped listings
# =============================================================================

@router.get("/{org_id}/budgets")
def list_org_budgets(
    org_id: UUID,
    is_template: bool | None = None,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    budgets = budget_service.list_budgets(db, ctx, org_id, is_template=is_template)
    return {"budgets": [budget_service.to_read(b) for b in budgets]}


@router.get("/{org_id}/unit-price-analyses")
def list_org_upas(
    org_id: UUID,
    is_public: bool | None = None,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    upas = upa_service.list_upas(db, ctx, org_id, is_public=is_public)
    return {"unit_price_analyses": [UPAListItem.model_validate(u) for u in upas]}
