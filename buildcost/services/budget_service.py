"""Budget service - budgets, item lines and project association."""

import logging
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from buildcost.core import permissions
from buildcost.core.errors import Conflict, Forbidden, NotFound, ValidationError
from buildcost.db.enums import OrganizationType
from buildcost.db.models import Budget, BudgetItem, BudgetProject, Project
from buildcost.schemas.auth import RequestContext
from buildcost.schemas.budget import (
    ApplyBudgetResult, BudgetCreate, BudgetDetail, BudgetItemRead,
    BudgetProjectRead, BudgetRead, BudgetUpdate,
)
from buildcost.services import item_service, pricing, project_service

logger = logging.getLogger(__name__)


# =============================================================================
# Serialization
# =============================================================================

def budget_total(budget: Budget) -> Decimal:
    return pricing.to_money(
        sum(
            (Decimal(line.quantity) * Decimal(line.price_at_time) for line in budget.budget_items),
            Decimal("0"),
        )
    )


def to_read(budget: Budget) -> BudgetRead:
    return BudgetRead(
        id=budget.id,
        title=budget.title,
        description=budget.description,
        is_template=budget.is_template,
        organization_id=budget.organization_id,
        project_ids=[bp.project_id for bp in budget.budget_projects],
        total=budget_total(budget),
        created_at=budget.created_at,
        updated_at=budget.updated_at,
    )


def to_detail(budget: Budget) -> BudgetDetail:
    items = [
        BudgetItemRead(
            id=line.id,
            item_id=line.item_id,
            name=line.item.name,
            unit=line.item.unit,
            quantity=line.quantity,
            price_at_time=line.price_at_time,
            total=pricing.line_total(line.quantity, line.price_at_time),
            created_at=line.created_at,
        )
        for line in budget.budget_items
    ]
    return BudgetDetail(**to_read(budget).model_dump(), items=items)


# =============================================================================
# Access helpers
# =============================================================================

def _load(db: Session, budget_id: UUID) -> Budget:
    budget = db.scalar(
        select(Budget)
        .where(Budget.id == budget_id)
        .options(
            selectinload(Budget.budget_items).selectinload(BudgetItem.item),
            selectinload(Budget.budget_projects),
        )
    )
    if not budget:
        raise NotFound("Budget not found")
    return budget


def _readable(db: Session, ctx: RequestContext, budget_id: UUID) -> Budget:
    budget = _load(db, budget_id)
    permissions.require_member(ctx, budget.organization_id)
    return budget


def _editable(db: Session, ctx: RequestContext, budget_id: UUID) -> Budget:
    budget = _load(db, budget_id)
    permissions.require_editor(ctx, budget.organization_id)
    permissions.require_org_type(
        db, budget.organization_id, OrganizationType.CONTRACTOR, "budgets"
    )
    return budget


def project_has_budget(db: Session, project_id: UUID) -> bool:
    return db.scalar(
        select(BudgetProject.id).where(BudgetProject.project_id == project_id).limit(1)
    ) is not None


# =============================================================================
# CRUD
# =============================================================================

def list_budgets(
    db: Session,
    ctx: RequestContext,
    organization_id: UUID | None = None,
    is_template: bool | None = None,
) -> list[Budget]:
    org_id = permissions.resolve_org_id(ctx, organization_id)
    permissions.require_member(ctx, org_id)
    stmt = (
        select(Budget)
        .where(Budget.organization_id == org_id)
        .options(
            selectinload(Budget.budget_items),
            selectinload(Budget.budget_projects),
        )
        .order_by(Budget.updated_at.desc(), Budget.id)
    )
    if is_template is not None:
        stmt = stmt.where(Budget.is_template == is_template)
    return list(db.scalars(stmt).all())


def get_budget(db: Session, ctx: RequestContext, budget_id: UUID) -> Budget:
    return _readable(db, ctx, budget_id)


def create_budget(db: Session, ctx: RequestContext, data: BudgetCreate) -> Budget:
    """Create a budget, optionally attached to a project that has none yet."""
    org_id = permissions.resolve_org_id(ctx, data.organization_id)
    permissions.require_editor(ctx, org_id)
    permissions.require_org_type(db, org_id, OrganizationType.CONTRACTOR, "budgets")

    budget = Budget(
        title=data.title,
        description=data.description,
        is_template=data.is_template,
        organization_id=org_id,
    )
    if data.project_id:
        project = db.get(Project, data.project_id)
        if not project or project.organization_id != org_id:
            raise NotFound("Project not found or doesn't belong to this organization")
        if project_has_budget(db, project.id):
            raise Conflict("This project already has a budget")
        budget.budget_projects.append(BudgetProject(project_id=project.id))

    db.add(budget)
    db.flush()
    logger.info("Created budget", extra={"budget_id": str(budget.id), "org_id": str(org_id)})
    return budget


def update_budget(
    db: Session,
    ctx: RequestContext,
    budget_id: UUID,
    data: BudgetUpdate,
) -> Budget:
    budget = _editable(db, ctx, budget_id)
    patch = data.model_dump(exclude_unset=True)
    if "title" in patch and patch["title"] is None:
        raise ValidationError("title cannot be null")
    for field, value in patch.items():
        setattr(budget, field, value)
    db.flush()
    return budget


def delete_budget(db: Session, ctx: RequestContext, budget_id: UUID) -> None:
    budget = _editable(db, ctx, budget_id)
    db.delete(budget)
    db.flush()


# =============================================================================
# Budget items
# =============================================================================

def add_item(
    db: Session,
    ctx: RequestContext,
    budget_id: UUID,
    item_id: UUID,
    quantity: Decimal,
) -> Budget:
    """Add an item line, snapshotting the item's current price."""
    budget = _editable(db, ctx, budget_id)
    item = item_service.get_item_or_404(db, item_id)
    budget.budget_items.append(
        BudgetItem(item=item, quantity=quantity, price_at_time=item.price)
    )
    db.flush()
    return budget


def remove_item(
    db: Session,
    ctx: RequestContext,
    budget_id: UUID,
    budget_item_id: UUID,
) -> Budget:
    budget = _editable(db, ctx, budget_id)
    line = next((b for b in budget.budget_items if b.id == budget_item_id), None)
    if line is None:
        raise NotFound("Budget item not found")
    budget.budget_items.remove(line)
    db.flush()
    return budget


# =============================================================================
# Project association
# =============================================================================

def list_project_budgets(db: Session, ctx: RequestContext, project_id: UUID) -> list[Budget]:
    project_service.get_viewable_project(db, ctx, project_id)
    return list(
        db.scalars(
            select(Budget)
            .join(BudgetProject, BudgetProject.budget_id == Budget.id)
            .where(BudgetProject.project_id == project_id)
            .options(
                selectinload(Budget.budget_items),
                selectinload(Budget.budget_projects),
            )
            .order_by(Budget.updated_at.desc(), Budget.id)
        ).all()
    )


def apply_budget_to_project(
    db: Session,
    ctx: RequestContext,
    budget_id: UUID,
    project_id: UUID,
    create_copy: bool = False,
) -> ApplyBudgetResult:
    """
    Link a budget to a project, or link a fresh copy of it.

    An existing link is returned unchanged with created=False. Templates are
    only ever applied as copies.
    """
    budget = _load(db, budget_id)
    project = db.get(Project, project_id)
    if not project:
        raise NotFound("Project not found")
    if not (
        permissions.can_edit(ctx, budget.organization_id)
        and permissions.can_edit(ctx, project.organization_id)
    ):
        raise Forbidden("You don't have permission to perform this action")

    existing = db.scalar(
        select(BudgetProject).where(
            BudgetProject.budget_id == budget.id,
            BudgetProject.project_id == project.id,
        )
    )
    if existing:
        return ApplyBudgetResult(
            created=False,
            budget=to_read(budget),
            budget_project=BudgetProjectRead.model_validate(existing),
        )

    if not create_copy:
        if budget.is_template:
            raise ValidationError("Templates can only be applied as a copy (create_copy=true)")
        link = BudgetProject(project_id=project.id)
        budget.budget_projects.append(link)
        db.flush()
        logger.info(
            "Applied budget to project",
            extra={"budget_id": str(budget.id), "project_id": str(project.id)},
        )
        return ApplyBudgetResult(
            created=True,
            budget=to_read(budget),
            budget_project=BudgetProjectRead.model_validate(link),
        )

    copy = Budget(
        title=f"{budget.title} - Copy for {project.name}",
        description=budget.description,
        is_template=False,
        organization_id=budget.organization_id,
    )
    for line in budget.budget_items:
        copy.budget_items.append(
            BudgetItem(
                item_id=line.item_id,
                quantity=line.quantity,
                price_at_time=line.price_at_time,
            )
        )
    link = BudgetProject(project_id=project.id)
    copy.budget_projects.append(link)
    db.add(copy)
    db.flush()
    logger.info(
        "Copied budget to project",
        extra={
            "budget_id": str(budget.id),
            "copy_id": str(copy.id),
            "project_id": str(project.id),
        },
    )
    return ApplyBudgetResult(
        created=True,
        budget=to_read(copy),
        budget_project=BudgetProjectRead.model_validate(link),
    )
