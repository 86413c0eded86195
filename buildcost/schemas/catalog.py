"""Pydantic schemas for catalog components (materials, labor, equipment)."""

from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field


# =============================================================================
# Shared fields
# =============================================================================

class _ComponentFields(BaseModel):
    code: str | None = Field(None, max_length=100)
    description: str | None = None
    unit: str = Field(..., min_length=1, max_length=50)
    unit_price: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2)
    is_public: bool = False

    model_config = {"str_strip_whitespace": True}


class _ComponentPatch(BaseModel):
    code: str | None = Field(None, max_length=100)
    description: str | None = None
    unit: str | None = Field(None, min_length=1, max_length=50)
    unit_price: Decimal | None = Field(None, ge=0, max_digits=14, decimal_places=2)
    is_public: bool | None = None

    model_config = {"str_strip_whitespace": True}


class _ComponentRead(BaseModel):
    id: UUID
    code: str | None
    description: str | None
    unit: str
    unit_price: Decimal
    is_public: bool
    organization_id: UUID
    created_at: datetime
    updated_at: datetime
    usage_count: int = 0
    in_use: bool = False

    model_config = {"from_attributes": True}


# =============================================================================
# Material
# =============================================================================

class MaterialCreate(_ComponentFields):
    name: str = Field(..., min_length=1, max_length=255)
    organization_id: UUID | None = None


class MaterialUpdate(_ComponentPatch):
    name: str | None = Field(None, min_length=1, max_length=255)


class MaterialRead(_ComponentRead):
    kind: Literal["material"] = "material"
    name: str


# =============================================================================
# Labor
# =============================================================================

class LaborCreate(_ComponentFields):
    role: str = Field(..., min_length=1, max_length=255)
    organization_id: UUID | None = None


class LaborUpdate(_ComponentPatch):
    role: str | None = Field(None, min_length=1, max_length=255)


class LaborRead(_ComponentRead):
    kind: Literal["labor"] = "labor"
    role: str


# =============================================================================
# Equipment
# =============================================================================

class EquipmentCreate(_ComponentFields):
    name: str = Field(..., min_length=1, max_length=255)
    organization_id: UUID | None = None


class EquipmentUpdate(_ComponentPatch):
    name: str | None = Field(None, min_length=1, max_length=255)


class EquipmentRead(_ComponentRead):
    kind: Literal["equipment"] = "equipment"
    name: str
