"""Store item endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from buildcost.core.deps import get_db, get_request_context, require_csrf_header
from buildcost.schemas.auth import RequestContext
from buildcost.schemas.item import ItemCreate, ItemRead, ItemUpdate
from buildcost.services import item_service

router = APIRouter()


@router.get("")
def list_items(
    organization_id: UUID | None = None,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    items = item_service.list_items(db, ctx, organization_id)
    return {"items": [ItemRead.model_validate(i) for i in items]}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_csrf_header)],
)
def create_item(
    data: ItemCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    item = item_service.create_item(db, ctx, data)
    db.commit()
    return {"item": ItemRead.model_validate(item)}


@router.get("/{item_id}")
def get_item(
    item_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return {"item": ItemRead.model_validate(item_service.get_item(db, ctx, item_id))}


@router.patch("/{item_id}", dependencies=[Depends(require_csrf_header)])
def update_item(
    item_id: UUID,
    data: ItemUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    item = item_service.update_item(db, ctx, item_id, data)
    db.commit()
    return {"item": ItemRead.model_validate(item)}


@router.delete(
    "/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_csrf_header)],
)
def delete_item(
    item_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    item_service.delete_item(db, ctx, item_id)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
