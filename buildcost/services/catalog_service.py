"""Component library service: org-scoped materials, labor and equipment.

Kinds are resolved through the registry in services.components; every
function takes the ComponentKind explicitly.
"""

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from buildcost.core import permissions
from buildcost.core.errors import Forbidden, NotFound, ResourceInUse, ValidationError
from buildcost.db.enums import ComponentKind, OrganizationType
from buildcost.schemas.auth import RequestContext
from buildcost.services import propagation_service
from buildcost.services.components import ComponentSpec, get_spec

logger = logging.getLogger(__name__)


def usage_count(db: Session, spec: ComponentSpec, component_id: UUID) -> int:
    """Number of UPA lines of the same kind referencing the component."""
    return db.scalar(
        select(func.count()).select_from(spec.line_model).where(spec.ref == component_id)
    ) or 0


def _check_required_text(spec: ComponentSpec, values: dict) -> None:
    for field in (spec.label_field, "unit"):
        if field in values and not (values[field] or "").strip():
            raise ValidationError(f"{field} must not be empty")


def _load(db: Session, spec: ComponentSpec, component_id: UUID):
    component = db.get(spec.model, component_id)
    if not component:
        raise NotFound(f"{spec.label} not found")
    return component


# =============================================================================
# Queries
# =============================================================================

def list_components(
    db: Session,
    ctx: RequestContext,
    kind: ComponentKind,
    organization_id: UUID | None = None,
    is_public: bool | None = None,
) -> list[tuple[object, int]]:
    """
    List an organization's components with their usage counts.

    Returns (component, usage_count) pairs, most recently updated first.
    """
    spec = get_spec(kind)
    org_id = permissions.resolve_org_id(ctx, organization_id)
    permissions.require_member(ctx, org_id)
    permissions.require_org_type(db, org_id, OrganizationType.CONTRACTOR, spec.list_key)

    usage = (
        select(spec.ref.label("component_id"), func.count().label("usage_count"))
        .where(spec.ref.is_not(None))
        .group_by(spec.ref)
        .subquery()
    )
    stmt = (
        select(spec.model, func.coalesce(usage.c.usage_count, 0))
        .outerjoin(usage, usage.c.component_id == spec.model.id)
        .where(spec.model.organization_id == org_id)
        .order_by(spec.model.updated_at.desc(), spec.model.id)
    )
    if is_public is not None:
        stmt = stmt.where(spec.model.is_public == is_public)

    return [(component, int(count)) for component, count in db.execute(stmt).all()]


def get_component(
    db: Session,
    ctx: RequestContext,
    kind: ComponentKind,
    component_id: UUID,
) -> tuple[object, int]:
    """Owning org members may read any component; public ones are readable by all."""
    spec = get_spec(kind)
    component = _load(db, spec, component_id)
    if not component.is_public and ctx.role_in(component.organization_id) is None:
        raise Forbidden(f"You do not have access to this {spec.label.lower()}")
    return component, usage_count(db, spec, component.id)


# =============================================================================
# Mutations
# =============================================================================

def create_component(db: Session, ctx: RequestContext, kind: ComponentKind, data):
    spec = get_spec(kind)
    values = data.model_dump(exclude={"organization_id"})
    org_id = permissions.resolve_org_id(ctx, data.organization_id)
    permissions.require_editor(ctx, org_id)
    permissions.require_org_type(db, org_id, OrganizationType.CONTRACTOR, spec.list_key)
    _check_required_text(spec, values)

    component = spec.model(organization_id=org_id, **values)
    db.add(component)
    db.flush()
    logger.info(
        "Created %s",
        kind.value,
        extra={"component_id": str(component.id), "org_id": str(org_id)},
    )
    return component


def update_component(
    db: Session,
    ctx: RequestContext,
    kind: ComponentKind,
    component_id: UUID,
    data,
) -> tuple[object, int]:
    """
    Partially update a component.

    A unit_price in the patch is propagated to every referencing UPA line
    within the same transaction.
    """
    spec = get_spec(kind)
    component = _load(db, spec, component_id)
    permissions.require_editor(ctx, component.organization_id)

    patch = data.model_dump(exclude_unset=True)
    # Required columns cannot be cleared
    for field in (spec.label_field, "unit", "unit_price", "is_public"):
        if field in patch and patch[field] is None:
            raise ValidationError(f"{field} cannot be null")
    _check_required_text(spec, patch)

    for field, value in patch.items():
        setattr(component, field, value)
    db.flush()

    if "unit_price" in patch:
        propagation_service.on_catalog_price_change(
            db, kind, component.id, patch["unit_price"]
        )

    return component, usage_count(db, spec, component.id)


def delete_component(
    db: Session,
    ctx: RequestContext,
    kind: ComponentKind,
    component_id: UUID,
) -> None:
    spec = get_spec(kind)
    component = _load(db, spec, component_id)
    permissions.require_editor(ctx, component.organization_id)

    count = usage_count(db, spec, component.id)
    if count > 0:
        raise ResourceInUse(
            f"Cannot delete {spec.label.lower()} that is used in {count} unit price analyses",
            usage_count=count,
        )
    db.delete(component)
    db.flush()
