"""Budget endpoints, including item lines and apply-to-project."""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from buildcost.core.deps import get_db, get_request_context, require_csrf_header
from buildcost.schemas.auth import RequestContext
from buildcost.schemas.budget import (
    ApplyBudgetRequest, BudgetCreate, BudgetItemAdd, BudgetUpdate,
)
from buildcost.services import budget_service

router = APIRouter()


@router.get("")
def list_budgets(
    organization_id: UUID | None = None,
    is_template: bool | None = None,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    budgets = budget_service.list_budgets(db, ctx, organization_id, is_template=is_template)
    return {"budgets": [budget_service.to_read(b) for b in budgets]}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_csrf_header)],
)
def create_budget(
    data: BudgetCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    budget = budget_service.create_budget(db, ctx, data)
    db.commit()
    return {"budget": budget_service.to_detail(budget)}


@router.get("/{budget_id}")
def get_budget(
    budget_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    budget = budget_service.get_budget(db, ctx, budget_id)
    return {"budget": budget_service.to_detail(budget)}


@router.patch("/{budget_id}", dependencies=[Depends(require_csrf_header)])
def update_budget(
    budget_id: UUID,
    data: BudgetUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    budget = budget_service.update_budget(db, ctx, budget_id, data)
    db.commit()
    return {"budget": budget_service.to_detail(budget)}


@router.delete(
    "/{budget_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_csrf_header)],
)
def delete_budget(
    budget_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    budget_service.delete_budget(db, ctx, budget_id)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{budget_id}/apply", dependencies=[Depends(require_csrf_header)])
def apply_budget(
    budget_id: UUID,
    data: ApplyBudgetRequest,
    response: Response,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """
    Link the budget (or a copy of it) to a project.

    201 when a link was created, 200 when it already existed.
    """
    result = budget_service.apply_budget_to_project(
        db, ctx, budget_id, data.project_id, create_copy=data.create_copy
    )
    db.commit()
    response.status_code = status.HTTP_201_CREATED if result.created else status.HTTP_200_OK
    return result


# =============================================================================
# Item lines
# =============================================================================

@router.post(
    "/{budget_id}/items",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_csrf_header)],
)
def add_budget_item(
    budget_id: UUID,
    data: BudgetItemAdd,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Add an item line priced at the item's current price."""
    budget = budget_service.add_item(db, ctx, budget_id, data.item_id, data.quantity)
    db.commit()
    return {"budget": budget_service.to_detail(budget)}


@router.delete(
    "/{budget_id}/items/{budget_item_id}",
    dependencies=[Depends(require_csrf_header)],
)
def remove_budget_item(
    budget_id: UUID,
    budget_item_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    budget = budget_service.remove_item(db, ctx, budget_id, budget_item_id)
    db.commit()
    return {"budget": budget_service.to_detail(budget)}
