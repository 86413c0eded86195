"""Catalog price propagation into unit price analyses.

When a catalog component's unit price changes, every UPA line referencing it
is repriced and each owning UPA's total is recomputed from all of its lines.
Runs inside the caller's transaction: the router commits, and any error
leaves nothing written.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from buildcost.core.errors import NotFound, ValidationError
from buildcost.db.enums import ComponentKind
from buildcost.db.models import UnitPriceAnalysis
from buildcost.services import pricing
from buildcost.services.components import get_spec
from buildcost.services.upa_service import LINE_FIELDS, refresh_upa_total

logger = logging.getLogger(__name__)


@dataclass
class PropagationResult:
    lines_updated: int = 0
    upas_updated: int = 0


def on_catalog_price_change(
    db: Session,
    kind: ComponentKind,
    component_id: UUID,
    new_unit_price: Decimal,
) -> PropagationResult:
    """
    Reprice referencing UPA lines and recompute the owning UPA totals.

    Affected UPAs are locked (FOR UPDATE, id order) before their lines are
    touched so concurrent propagations serialize per UPA.
    """
    spec = get_spec(kind)
    new_unit_price = Decimal(new_unit_price)
    if new_unit_price < 0:
        raise ValidationError("unit_price must be greater than or equal to 0")

    if db.get(spec.model, component_id) is None:
        raise NotFound(f"{spec.label} not found")

    upa_ids = db.scalars(
        select(spec.line_model.unit_price_analysis_id)
        .where(spec.ref == component_id)
        .distinct()
    ).all()
    result = PropagationResult()
    if not upa_ids:
        return result

    upas = db.scalars(
        select(UnitPriceAnalysis)
        .where(UnitPriceAnalysis.id.in_(upa_ids))
        .order_by(UnitPriceAnalysis.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).all()

    for upa in upas:
        # Reload line collections read under the lock
        db.expire(upa, list(LINE_FIELDS))
        for line in getattr(upa, spec.upa_relationship):
            if getattr(line, spec.ref_column) != component_id:
                continue
            line.unit_price = pricing.to_money(new_unit_price)
            line.total_price = pricing.line_total(line.quantity, new_unit_price)
            result.lines_updated += 1
        refresh_upa_total(upa)
        result.upas_updated += 1

    db.flush()
    logger.info(
        "Propagated %s price change",
        kind.value,
        extra={
            "component_id": str(component_id),
            "lines_updated": result.lines_updated,
            "upas_updated": result.upas_updated,
        },
    )
    return result
