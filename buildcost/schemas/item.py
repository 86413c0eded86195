"""Store item schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class ItemCreate(BaseModel):
    code: str | None = Field(None, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    unit: str = Field(..., min_length=1, max_length=50)
    price: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2)
    organization_id: UUID | None = None

    model_config = {"str_strip_whitespace": True}


class ItemUpdate(BaseModel):
    code: str | None = Field(None, max_length=100)
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    unit: str | None = Field(None, min_length=1, max_length=50)
    price: Decimal | None = Field(None, ge=0, max_digits=14, decimal_places=2)

    model_config = {"str_strip_whitespace": True}


class ItemRead(BaseModel):
    id: UUID
    code: str | None
    name: str
    description: str | None
    unit: str
    price: Decimal
    organization_id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
