"""Tests for unit price analyses."""

from decimal import Decimal

import pytest
from sqlalchemy import update

from buildcost.core.errors import Forbidden, ValidationError
from buildcost.db.enums import ComponentKind, Role
from buildcost.db.models import UnitPriceAnalysis, UPALabor, UPAMaterial
from buildcost.schemas.catalog import MaterialCreate
from buildcost.schemas.upa import (
    UPACreate, UPAEquipmentIn, UPALaborIn, UPAMaterialIn, UPAUpdate,
)
from buildcost.services import catalog_service, upa_service

from conftest import context_for, make_org, make_user


def _material_line(quantity="2", price="10.00", **kwargs):
    return UPAMaterialIn(
        name="Brick", unit="unit", quantity=Decimal(quantity), unit_price=Decimal(price), **kwargs
    )


def _create(db, ctx, **kwargs):
    data = {"title": "Brick wall", "unit": "m2", **kwargs}
    return upa_service.create_upa(db, ctx, UPACreate(**data))


def test_total_is_sum_of_all_lines(db, admin_ctx):
    upa = _create(
        db,
        admin_ctx,
        materials=[_material_line("2", "10.00"), _material_line("0.5", "3.33")],
        labor=[UPALaborIn(role="Mason", unit="hour", quantity=Decimal("1.5"),
                          unit_price=Decimal("20.00"))],
        equipment=[UPAEquipmentIn(name="Scaffold", unit="day", quantity=Decimal("1"),
                                  unit_price=Decimal("7.25"))],
    )
    # 20.00 + 1.67 (half-up) + 30.00 + 7.25
    assert upa.total_price == Decimal("58.92")
    assert [line.position for line in upa.materials] == [0, 1]


def test_caller_totals_are_ignored(db, admin_ctx):
    upa = _create(
        db,
        admin_ctx,
        total_price=Decimal("9999"),
        materials=[_material_line("2", "10.00", total_price=Decimal("1"))],
    )
    assert upa.materials[0].total_price == Decimal("20.00")
    assert upa.total_price == Decimal("20.00")


def test_update_replaces_sent_category(db, admin_ctx):
    upa = _create(
        db,
        admin_ctx,
        materials=[_material_line("1"), _material_line("2")],
        labor=[UPALaborIn(role="Mason", unit="hour", quantity=Decimal("1"),
                          unit_price=Decimal("20.00"))],
    )

    upa = upa_service.update_upa(
        db, admin_ctx, upa.id, UPAUpdate(materials=[_material_line("5", "1.00")])
    )

    assert len(upa.materials) == 1
    assert upa.materials[0].quantity == Decimal("5")
    assert len(upa.labor) == 1
    assert upa.total_price == Decimal("25.00")
    assert db.query(UPAMaterial).count() == 1


def test_update_empty_list_clears_category(db, admin_ctx):
    upa = _create(db, admin_ctx, materials=[_material_line()])
    upa = upa_service.update_upa(db, admin_ctx, upa.id, UPAUpdate(materials=[]))
    assert upa.materials == []
    assert upa.total_price == Decimal("0.00")


def test_update_header_only_keeps_lines(db, admin_ctx):
    upa = _create(db, admin_ctx, materials=[_material_line()])
    upa = upa_service.update_upa(db, admin_ctx, upa.id, UPAUpdate(title="Renamed"))
    assert upa.title == "Renamed"
    assert len(upa.materials) == 1
    assert upa.total_price == Decimal("20.00")


def test_update_rejects_null_title(db, admin_ctx):
    upa = _create(db, admin_ctx)
    with pytest.raises(ValidationError):
        upa_service.update_upa(db, admin_ctx, upa.id, UPAUpdate(title=None))


def test_update_rereads_lines_changed_elsewhere(db, admin_ctx):
    upa = _create(
        db,
        admin_ctx,
        materials=[_material_line("1")],
        labor=[UPALaborIn(role="Mason", unit="hour", quantity=Decimal("2"),
                          unit_price=Decimal("20.00"))],
    )
    assert upa.labor[0].total_price == Decimal("40.00")

    # A committed price propagation the session has not seen
    db.execute(
        update(UPALabor)
        .where(UPALabor.unit_price_analysis_id == upa.id)
        .values(unit_price=Decimal("25.00"), total_price=Decimal("50.00"))
        .execution_options(synchronize_session=False)
    )

    upa = upa_service.update_upa(
        db, admin_ctx, upa.id, UPAUpdate(materials=[_material_line("5", "1.00")])
    )

    assert upa.labor[0].unit_price == Decimal("25.00")
    assert upa.total_price == Decimal("55.00")


def test_back_reference_to_private_foreign_component_rejected(db, admin_ctx):
    other_org = make_org(db, "Other Contractor")
    other_admin = make_user(db, other_org, Role.ADMIN)
    foreign = catalog_service.create_component(
        db,
        context_for(db, other_admin, other_org),
        ComponentKind.MATERIAL,
        MaterialCreate(name="Secret mix", unit="kg", unit_price=Decimal("4.00")),
    )

    with pytest.raises(ValidationError) as exc_info:
        _create(db, admin_ctx, materials=[_material_line(material_id=foreign.id)])
    assert exc_info.value.details["field"] == "materials[0].material_id"

    foreign.is_public = True
    db.flush()
    upa = _create(db, admin_ctx, materials=[_material_line(material_id=foreign.id)])
    assert upa.materials[0].material_id == foreign.id


def test_list_without_org_returns_public_only(db, admin_ctx):
    _create(db, admin_ctx, title="Private")
    public = _create(db, admin_ctx, title="Shared", is_public=True)

    upas = upa_service.list_upas(db, admin_ctx)
    assert [u.id for u in upas] == [public.id]


def test_list_org_requires_membership(db, admin_ctx):
    other_org = make_org(db, "Other Contractor")
    with pytest.raises(Forbidden):
        upa_service.list_upas(db, admin_ctx, other_org.id)


def test_private_upa_hidden_from_non_members(db, admin_ctx):
    upa = _create(db, admin_ctx)
    other_org = make_org(db, "Other Contractor")
    outsider = make_user(db, other_org, Role.ADMIN)
    with pytest.raises(Forbidden):
        upa_service.get_upa(db, context_for(db, outsider, other_org), upa.id)


def test_viewer_can_read_but_not_write(db, admin_ctx, viewer_ctx):
    upa = _create(db, admin_ctx)
    assert upa_service.get_upa(db, viewer_ctx, upa.id).id == upa.id
    with pytest.raises(Forbidden):
        upa_service.update_upa(db, viewer_ctx, upa.id, UPAUpdate(title="Nope"))


def test_delete_removes_lines(db, admin_ctx):
    upa = _create(db, admin_ctx, materials=[_material_line(), _material_line()])
    upa_service.delete_upa(db, admin_ctx, upa.id)
    assert db.get(UnitPriceAnalysis, upa.id) is None
    assert db.query(UPAMaterial).count() == 0


# =============================================================================
# API
# =============================================================================

async def test_create_and_fetch_api(authed_client):
    response = await authed_client.post(
        "/unit-price-analyses",
        json={
            "title": "Plaster",
            "unit": "m2",
            "total_price": "1.00",
            "materials": [
                {"name": "Plaster", "unit": "kg", "quantity": "4", "unit_price": "2.50"},
            ],
        },
    )
    assert response.status_code == 201
    upa = response.json()["unit_price_analysis"]
    assert Decimal(upa["total_price"]) == Decimal("10.00")

    response = await authed_client.get(f"/unit-price-analyses/{upa['id']}")
    assert response.status_code == 200
    assert response.json()["unit_price_analysis"]["materials"][0]["name"] == "Plaster"


async def test_list_api_envelope(db, authed_client, admin_ctx, test_org):
    _create(db, admin_ctx, title="Mine")
    response = await authed_client.get(
        "/unit-price-analyses", params={"organization_id": str(test_org.id)}
    )
    assert response.status_code == 200
    assert [u["title"] for u in response.json()["unit_price_analyses"]] == ["Mine"]


async def test_zero_quantity_rejected(authed_client):
    response = await authed_client.post(
        "/unit-price-analyses",
        json={
            "title": "Bad",
            "unit": "m2",
            "materials": [{"name": "X", "unit": "kg", "quantity": "0", "unit_price": "1"}],
        },
    )
    assert response.status_code == 400
