"""Pydantic schemas for unit price analyses and their lines."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


# =============================================================================
# Lines
# =============================================================================

class _LineIn(BaseModel):
    code: str | None = Field(None, max_length=100)
    description: str | None = None
    quantity: Decimal = Field(..., gt=0, max_digits=14, decimal_places=4)
    unit: str = Field(..., min_length=1, max_length=50)
    unit_price: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2)
    # Accepted for client convenience, always recomputed server-side
    total_price: Decimal | None = None

    model_config = {"str_strip_whitespace": True}


class UPAMaterialIn(_LineIn):
    name: str = Field(..., min_length=1, max_length=255)
    material_id: UUID | None = None


class UPALaborIn(_LineIn):
    role: str = Field(..., min_length=1, max_length=255)
    labor_id: UUID | None = None


class UPAEquipmentIn(_LineIn):
    name: str = Field(..., min_length=1, max_length=255)
    equipment_id: UUID | None = None


class _LineRead(BaseModel):
    id: UUID
    position: int
    code: str | None
    description: str | None
    quantity: Decimal
    unit: str
    unit_price: Decimal
    total_price: Decimal

    model_config = {"from_attributes": True}


class UPAMaterialRead(_LineRead):
    name: str
    material_id: UUID | None


class UPALaborRead(_LineRead):
    role: str
    labor_id: UUID | None


class UPAEquipmentRead(_LineRead):
    name: str
    equipment_id: UUID | None


# =============================================================================
# Header
# =============================================================================

class UPACreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    code: str | None = Field(None, max_length=100)
    unit: str = Field(..., min_length=1, max_length=50)
    has_annual_maintenance: bool = False
    maintenance_years: int | None = Field(None, gt=0)
    annual_maintenance_rate: Decimal | None = Field(None, ge=0, le=100)
    is_public: bool = False
    organization_id: UUID | None = None
    # Ignored: the total is always the sum of the line totals
    total_price: Decimal | None = None
    materials: list[UPAMaterialIn] = Field(default_factory=list)
    labor: list[UPALaborIn] = Field(default_factory=list)
    equipment: list[UPAEquipmentIn] = Field(default_factory=list)

    model_config = {"str_strip_whitespace": True}


class UPAUpdate(BaseModel):
    """
    Partial update.

    A line category present in the body replaces all existing lines of that
    category ([] clears it); an omitted category is left untouched.
    """
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    code: str | None = Field(None, max_length=100)
    unit: str | None = Field(None, min_length=1, max_length=50)
    has_annual_maintenance: bool | None = None
    maintenance_years: int | None = Field(None, gt=0)
    annual_maintenance_rate: Decimal | None = Field(None, ge=0, le=100)
    is_public: bool | None = None
    total_price: Decimal | None = None
    materials: list[UPAMaterialIn] | None = None
    labor: list[UPALaborIn] | None = None
    equipment: list[UPAEquipmentIn] | None = None

    model_config = {"str_strip_whitespace": True}


class UPARead(BaseModel):
    id: UUID
    title: str
    description: str | None
    code: str | None
    unit: str
    total_price: Decimal
    has_annual_maintenance: bool
    maintenance_years: int | None
    annual_maintenance_rate: Decimal | None
    is_public: bool
    organization_id: UUID
    created_at: datetime
    updated_at: datetime
    materials: list[UPAMaterialRead] = []
    labor: list[UPALaborRead] = []
    equipment: list[UPAEquipmentRead] = []

    model_config = {"from_attributes": True}


class UPAListItem(BaseModel):
    id: UUID
    title: str
    code: str | None
    unit: str
    total_price: Decimal
    is_public: bool
    organization_id: UUID
    updated_at: datetime

    model_config = {"from_attributes": True}
