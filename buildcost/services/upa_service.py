"""Unit price analysis service: header plus three ordered line categories."""

import logging
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from buildcost.core import permissions
from buildcost.core.errors import Forbidden, NotFound, ValidationError
from buildcost.db.enums import OrganizationType
from buildcost.db.models import UnitPriceAnalysis
from buildcost.schemas.auth import RequestContext
from buildcost.schemas.upa import UPACreate, UPAUpdate
from buildcost.services import pricing
from buildcost.services.components import COMPONENTS, ComponentSpec

logger = logging.getLogger(__name__)

LINE_FIELDS = tuple(spec.upa_relationship for spec in COMPONENTS.values())


def all_lines(upa: UnitPriceAnalysis) -> list:
    """Every line of the UPA across the three categories."""
    lines = []
    for field in LINE_FIELDS:
        lines.extend(getattr(upa, field))
    return lines


def refresh_upa_total(upa: UnitPriceAnalysis) -> Decimal:
    upa.total_price = pricing.recompute_total(all_lines(upa))
    return upa.total_price


def _build_lines(db: Session, spec: ComponentSpec, org_id: UUID, items: list) -> list:
    """
    Turn validated line inputs into ORM lines.

    Line totals are recomputed; a back-reference must point at a component of
    the same kind owned by the organization or marked public.
    """
    lines = []
    for position, item in enumerate(items):
        values = item.model_dump(exclude={"total_price"})
        ref_id = values.get(spec.ref_column)
        if ref_id is not None:
            component = db.get(spec.model, ref_id)
            if component is None or (
                component.organization_id != org_id and not component.is_public
            ):
                raise ValidationError(
                    f"{spec.label} {ref_id} is not available to this organization",
                    details={"field": f"{spec.upa_relationship}[{position}].{spec.ref_column}"},
                )
        lines.append(
            spec.line_model(
                position=position,
                total_price=pricing.line_total(item.quantity, item.unit_price),
                **values,
            )
        )
    return lines


def _load(db: Session, upa_id: UUID, for_update: bool = False) -> UnitPriceAnalysis:
    """
    Load a UPA with its lines.

    With for_update the header row is locked (FOR UPDATE, as price propagation
    does) and the lines are re-read under that lock, replacing any copies
    already in the session.
    """
    stmt = (
        select(UnitPriceAnalysis)
        .where(UnitPriceAnalysis.id == upa_id)
        .options(*(selectinload(getattr(UnitPriceAnalysis, f)) for f in LINE_FIELDS))
    )
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    upa = db.scalar(stmt)
    if not upa:
        raise NotFound("Unit price analysis not found")
    return upa


# =============================================================================
# Queries
# =============================================================================

def list_upas(
    db: Session,
    ctx: RequestContext,
    organization_id: UUID | None = None,
    is_public: bool | None = None,
) -> list[UnitPriceAnalysis]:
    """
    With an organization: its UPAs (members only), optionally filtered by
    is_public. Without one: public UPAs of every organization.
    """
    stmt = select(UnitPriceAnalysis)
    if organization_id is None:
        stmt = stmt.where(UnitPriceAnalysis.is_public.is_(True))
    else:
        permissions.require_member(ctx, organization_id)
        stmt = stmt.where(UnitPriceAnalysis.organization_id == organization_id)
        if is_public is not None:
            stmt = stmt.where(UnitPriceAnalysis.is_public == is_public)
    stmt = stmt.order_by(UnitPriceAnalysis.updated_at.desc(), UnitPriceAnalysis.id)
    return list(db.scalars(stmt).all())


def get_upa(db: Session, ctx: RequestContext, upa_id: UUID) -> UnitPriceAnalysis:
    upa = _load(db, upa_id)
    if not upa.is_public and ctx.role_in(upa.organization_id) is None:
        raise Forbidden("You do not have access to this unit price analysis")
    return upa


# =============================================================================
# Mutations
# =============================================================================

def create_upa(db: Session, ctx: RequestContext, data: UPACreate) -> UnitPriceAnalysis:
    """Insert header and all lines; total is the sum of recomputed line totals."""
    org_id = permissions.resolve_org_id(ctx, data.organization_id)
    permissions.require_editor(ctx, org_id)
    permissions.require_org_type(
        db, org_id, OrganizationType.CONTRACTOR, "unit price analyses"
    )

    header = data.model_dump(
        exclude={"organization_id", "total_price", *LINE_FIELDS}
    )
    upa = UnitPriceAnalysis(organization_id=org_id, **header)
    for spec in COMPONENTS.values():
        items = getattr(data, spec.upa_relationship)
        setattr(upa, spec.upa_relationship, _build_lines(db, spec, org_id, items))
    refresh_upa_total(upa)

    db.add(upa)
    db.flush()
    logger.info(
        "Created unit price analysis",
        extra={"upa_id": str(upa.id), "org_id": str(org_id), "lines": len(all_lines(upa))},
    )
    return upa


def update_upa(
    db: Session,
    ctx: RequestContext,
    upa_id: UUID,
    data: UPAUpdate,
) -> UnitPriceAnalysis:
    """
    Patch header fields and replace any line category present in the body.

    Back-references on replacement lines are kept as sent, so later catalog
    price changes still reach them.
    """
    upa = _load(db, upa_id, for_update=True)
    permissions.require_editor(ctx, upa.organization_id)

    header = data.model_dump(exclude_unset=True, exclude={"total_price", *LINE_FIELDS})
    for field in ("title", "unit", "has_annual_maintenance", "is_public"):
        if field in header and header[field] is None:
            raise ValidationError(f"{field} cannot be null")
    for field, value in header.items():
        setattr(upa, field, value)

    replaced = []
    for spec in COMPONENTS.values():
        field = spec.upa_relationship
        items = getattr(data, field)
        if field not in data.model_fields_set or items is None:
            continue
        setattr(upa, field, _build_lines(db, spec, upa.organization_id, items))
        replaced.append(field)

    refresh_upa_total(upa)
    db.flush()
    logger.info(
        "Updated unit price analysis",
        extra={"upa_id": str(upa.id), "replaced": ",".join(replaced)},
    )
    return upa


def delete_upa(db: Session, ctx: RequestContext, upa_id: UUID) -> None:
    upa = _load(db, upa_id, for_update=True)
    permissions.require_editor(ctx, upa.organization_id)
    db.delete(upa)
    db.flush()
