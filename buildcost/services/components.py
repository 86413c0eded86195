"""Registry of catalog component kinds.

Each ComponentKind resolves once to the ORM models, UPA line back-reference
and schemas that serve it, so services and routers never branch on kind.
"""

from dataclasses import dataclass

from pydantic import BaseModel

from buildcost.db.enums import ComponentKind
from buildcost.db.models import (
    Equipment, Labor, Material, UPAEquipment, UPALabor, UPAMaterial,
)
from buildcost.schemas.catalog import (
    EquipmentCreate, EquipmentRead, EquipmentUpdate,
    LaborCreate, LaborRead, LaborUpdate,
    MaterialCreate, MaterialRead, MaterialUpdate,
)


@dataclass(frozen=True)
class ComponentSpec:
    kind: ComponentKind
    model: type
    line_model: type
    ref_column: str  # back-reference attribute on the line model
    upa_relationship: str  # line collection attribute on UnitPriceAnalysis
    label: str
    entity_key: str  # response envelope keys
    list_key: str
    create_schema: type[BaseModel]
    update_schema: type[BaseModel]
    read_schema: type[BaseModel]

    @property
    def label_field(self) -> str:
        return self.kind.label_field

    @property
    def ref(self):
        """Mapped back-reference column on the line model."""
        return getattr(self.line_model, self.ref_column)


COMPONENTS: dict[ComponentKind, ComponentSpec] = {
    ComponentKind.MATERIAL: ComponentSpec(
        kind=ComponentKind.MATERIAL,
        model=Material,
        line_model=UPAMaterial,
        ref_column="material_id",
        upa_relationship="materials",
        label="Material",
        entity_key="material",
        list_key="materials",
        create_schema=MaterialCreate,
        update_schema=MaterialUpdate,
        read_schema=MaterialRead,
    ),
    ComponentKind.LABOR: ComponentSpec(
        kind=ComponentKind.LABOR,
        model=Labor,
        line_model=UPALabor,
        ref_column="labor_id",
        upa_relationship="labor",
        label="Labor",
        entity_key="labor",
        list_key="labor",
        create_schema=LaborCreate,
        update_schema=LaborUpdate,
        read_schema=LaborRead,
    ),
    ComponentKind.EQUIPMENT: ComponentSpec(
        kind=ComponentKind.EQUIPMENT,
        model=Equipment,
        line_model=UPAEquipment,
        ref_column="equipment_id",
        upa_relationship="equipment",
        label="Equipment",
        entity_key="equipment",
        list_key="equipment",
        create_schema=EquipmentCreate,
        update_schema=EquipmentUpdate,
        read_schema=EquipmentRead,
    ),
}


def get_spec(kind: ComponentKind | str) -> ComponentSpec:
    return COMPONENTS[ComponentKind(kind)]
