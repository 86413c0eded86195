"""Component library endpoints: /materials, /labor and /equipment.

One router per ComponentKind, built from the registry so the three kinds
share a single implementation.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from buildcost.core.deps import get_db, get_request_context, require_csrf_header
from buildcost.db.enums import ComponentKind
from buildcost.schemas.auth import RequestContext
from buildcost.services import catalog_service
from buildcost.services.components import ComponentSpec, get_spec


def _to_read(spec: ComponentSpec, component, usage_count: int):
    data = spec.read_schema.model_validate(component)
    data.usage_count = usage_count
    data.in_use = usage_count > 0
    return data


def build_router(kind: ComponentKind) -> APIRouter:
    spec = get_spec(kind)
    router = APIRouter()

    @router.get("", name=f"list_{spec.list_key}")
    def list_components(
        organization_id: UUID | None = None,
        is_public: bool | None = None,
        ctx: RequestContext = Depends(get_request_context),
        db: Session = Depends(get_db),
    ):
        rows = catalog_service.list_components(
            db, ctx, kind, organization_id=organization_id, is_public=is_public
        )
        return {spec.list_key: [_to_read(spec, c, n) for c, n in rows]}

    @router.post(
        "",
        name=f"create_{spec.entity_key}",
        status_code=status.HTTP_201_CREATED,
        dependencies=[Depends(require_csrf_header)],
    )
    def create_component(
        data: spec.create_schema,
        ctx: RequestContext = Depends(get_request_context),
        db: Session = Depends(get_db),
    ):
        component = catalog_service.create_component(db, ctx, kind, data)
        db.commit()
        return {spec.entity_key: _to_read(spec, component, 0)}

    @router.get("/{component_id}", name=f"get_{spec.entity_key}")
    def get_component(
        component_id: UUID,
        ctx: RequestContext = Depends(get_request_context),
        db: Session = Depends(get_db),
    ):
        component, usage = catalog_service.get_component(db, ctx, kind, component_id)
        return {spec.entity_key: _to_read(spec, component, usage)}

    @router.patch(
        "/{component_id}",
        name=f"update_{spec.entity_key}",
        dependencies=[Depends(require_csrf_header)],
    )
    def update_component(
        component_id: UUID,
        data: spec.update_schema,
        ctx: RequestContext = Depends(get_request_context),
        db: Session = Depends(get_db),
    ):
        """Partial update; a new unit_price is propagated to referencing UPAs."""
        component, usage = catalog_service.update_component(db, ctx, kind, component_id, data)
        db.commit()
        return {spec.entity_key: _to_read(spec, component, usage)}

    @router.delete(
        "/{component_id}",
        name=f"delete_{spec.entity_key}",
        status_code=status.HTTP_204_NO_CONTENT,
        dependencies=[Depends(require_csrf_header)],
    )
    def delete_component(
        component_id: UUID,
        ctx: RequestContext = Depends(get_request_context),
        db: Session = Depends(get_db),
    ):
        catalog_service.delete_component(db, ctx, kind, component_id)
        db.commit()
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


materials_router = build_router(ComponentKind.MATERIAL)
labor_router = build_router(ComponentKind.LABOR)
equipment_router = build_router(ComponentKind.EQUIPMENT)
