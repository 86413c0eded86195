"""Store item service - sellable items owned by STORE organizations."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from buildcost.core import permissions
from buildcost.core.errors import NotFound, ResourceInUse, ValidationError
from buildcost.db.enums import OrganizationType
from buildcost.db.models import BudgetItem, Item
from buildcost.schemas.auth import RequestContext
from buildcost.schemas.item import ItemCreate, ItemUpdate


def get_item_or_404(db: Session, item_id: UUID) -> Item:
    item = db.get(Item, item_id)
    if not item:
        raise NotFound("Item not found")
    return item


def list_items(
    db: Session,
    ctx: RequestContext,
    organization_id: UUID | None = None,
) -> list[Item]:
    org_id = permissions.resolve_org_id(ctx, organization_id)
    permissions.require_member(ctx, org_id)
    permissions.require_org_type(db, org_id, OrganizationType.STORE, "items")
    return list(
        db.scalars(
            select(Item)
            .where(Item.organization_id == org_id)
            .order_by(Item.updated_at.desc(), Item.id)
        ).all()
    )


def get_item(db: Session, ctx: RequestContext, item_id: UUID) -> Item:
    item = get_item_or_404(db, item_id)
    permissions.require_member(ctx, item.organization_id)
    return item


def create_item(db: Session, ctx: RequestContext, data: ItemCreate) -> Item:
    org_id = permissions.resolve_org_id(ctx, data.organization_id)
    permissions.require_editor(ctx, org_id)
    permissions.require_org_type(db, org_id, OrganizationType.STORE, "items")

    item = Item(organization_id=org_id, **data.model_dump(exclude={"organization_id"}))
    db.add(item)
    db.flush()
    return item


def update_item(db: Session, ctx: RequestContext, item_id: UUID, data: ItemUpdate) -> Item:
    """Existing budget lines keep their price_at_time snapshot."""
    item = get_item_or_404(db, item_id)
    permissions.require_editor(ctx, item.organization_id)
    patch = data.model_dump(exclude_unset=True)
    for field in ("name", "unit", "price"):
        if field in patch and patch[field] is None:
            raise ValidationError(f"{field} cannot be null")
    for field, value in patch.items():
        setattr(item, field, value)
    db.flush()
    return item


def delete_item(db: Session, ctx: RequestContext, item_id: UUID) -> None:
    item = get_item_or_404(db, item_id)
    permissions.require_editor(ctx, item.organization_id)
    count = db.scalar(
        select(func.count()).select_from(BudgetItem).where(BudgetItem.item_id == item.id)
    ) or 0
    if count:
        raise ResourceInUse(
            f"Cannot delete item that is used in {count} budget lines", usage_count=count
        )
    db.delete(item)
    db.flush()
