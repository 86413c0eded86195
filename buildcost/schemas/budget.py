"""Budget, budget item and project association schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class BudgetCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    is_template: bool = False
    organization_id: UUID | None = None
    project_id: UUID | None = None

    model_config = {"str_strip_whitespace": True}


class BudgetUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None

    model_config = {"str_strip_whitespace": True}


class BudgetItemAdd(BaseModel):
    item_id: UUID
    quantity: Decimal = Field(..., gt=0, max_digits=14, decimal_places=4)


class BudgetItemRead(BaseModel):
    id: UUID
    item_id: UUID
    name: str
    unit: str
    quantity: Decimal
    price_at_time: Decimal
    total: Decimal
    created_at: datetime


class BudgetRead(BaseModel):
    id: UUID
    title: str
    description: str | None
    is_template: bool
    organization_id: UUID
    project_ids: list[UUID] = []
    total: Decimal
    created_at: datetime
    updated_at: datetime


class BudgetDetail(BudgetRead):
    items: list[BudgetItemRead] = []


class ApplyBudgetRequest(BaseModel):
    project_id: UUID
    create_copy: bool = False


class BudgetProjectRead(BaseModel):
    id: UUID
    budget_id: UUID
    project_id: UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class ApplyBudgetResult(BaseModel):
    """created is False when the budget was already linked to the project."""
    created: bool
    budget: BudgetRead
    budget_project: BudgetProjectRead
