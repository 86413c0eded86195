"""Unit price analysis endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from buildcost.core.deps import get_db, get_request_context, require_csrf_header
from buildcost.schemas.auth import RequestContext
from buildcost.schemas.upa import UPACreate, UPAListItem, UPARead, UPAUpdate
from buildcost.services import upa_service

router = APIRouter()


@router.get("")
def list_upas(
    organization_id: UUID | None = None,
    is_public: bool | None = None,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """
    List UPAs of one organization, or every public UPA when no
    organization_id is given.
    """
    upas = upa_service.list_upas(db, ctx, organization_id, is_public=is_public)
    return {"unit_price_analyses": [UPAListItem.model_validate(u) for u in upas]}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_csrf_header)],
)
def create_upa(
    data: UPACreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    upa = upa_service.create_upa(db, ctx, data)
    db.commit()
    return {"unit_price_analysis": UPARead.model_validate(upa)}


@router.get("/{upa_id}")
def get_upa(
    upa_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    upa = upa_service.get_upa(db, ctx, upa_id)
    return {"unit_price_analysis": UPARead.model_validate(upa)}


@router.patch("/{upa_id}", dependencies=[Depends(require_csrf_header)])
def update_upa(
    upa_id: UUID,
    data: UPAUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Patch header fields; any line category sent replaces the stored one."""
    upa = upa_service.update_upa(db, ctx, upa_id, data)
    db.commit()
    return {"unit_price_analysis": UPARead.model_validate(upa)}


@router.delete(
    "/{upa_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_csrf_header)],
)
def delete_upa(
    upa_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    upa_service.delete_upa(db, ctx, upa_id)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
