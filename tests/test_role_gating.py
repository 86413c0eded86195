"""Role gating across resources, exercised through the API."""

from decimal import Decimal

import pytest

from buildcost.db.enums import ComponentKind, Role
from buildcost.schemas.budget import BudgetCreate
from buildcost.schemas.catalog import EquipmentCreate, LaborCreate, MaterialCreate
from buildcost.schemas.project import ProjectCreate
from buildcost.schemas.upa import UPACreate
from buildcost.services import budget_service, catalog_service, project_service, upa_service

from conftest import make_org, make_user


MUTATIONS = [
    ("post", "/materials", {"name": "Rebar", "unit": "kg", "unit_price": "2.50"}),
    ("post", "/labor", {"role": "Mason", "unit": "hour", "unit_price": "20"}),
    ("post", "/equipment", {"name": "Mixer", "unit": "day", "unit_price": "80"}),
    ("post", "/unit-price-analyses", {"title": "Wall", "unit": "m2"}),
    ("post", "/projects", {"name": "House"}),
    ("post", "/budgets", {"title": "Kitchen"}),
]

# (record, collection url, field checked afterwards, patch body)
EDITS = [
    ("material", "/materials", "unit_price", {"unit_price": "9.99"}),
    ("labor", "/labor", "unit_price", {"unit_price": "99"}),
    ("equipment", "/equipment", "unit_price", {"unit_price": "1"}),
    ("upa", "/unit-price-analyses", "title", {"title": "Renamed"}),
    ("project", "/projects", "name", {"name": "Renamed"}),
    ("budget", "/budgets", "title", {"title": "Renamed"}),
]


def _admin_records(db, ctx) -> dict:
    """One record of every editable resource, created by an ADMIN."""
    return {
        "material": catalog_service.create_component(
            db, ctx, ComponentKind.MATERIAL,
            MaterialCreate(name="Rebar", unit="kg", unit_price=Decimal("2.50")),
        ),
        "labor": catalog_service.create_component(
            db, ctx, ComponentKind.LABOR,
            LaborCreate(role="Mason", unit="hour", unit_price=Decimal("20")),
        ),
        "equipment": catalog_service.create_component(
            db, ctx, ComponentKind.EQUIPMENT,
            EquipmentCreate(name="Mixer", unit="day", unit_price=Decimal("80")),
        ),
        "upa": upa_service.create_upa(db, ctx, UPACreate(title="Wall", unit="m2")),
        "project": project_service.create_project(db, ctx, ProjectCreate(name="House")),
        "budget": budget_service.create_budget(db, ctx, BudgetCreate(title="Kitchen")),
    }


@pytest.mark.parametrize("method,url,body", MUTATIONS)
async def test_viewer_cannot_mutate(client_for, viewer_user, test_org, method, url, body):
    client = client_for(viewer_user, test_org)
    response = await getattr(client, method)(url, json=body)
    assert response.status_code == 403
    assert response.json()["error"]["kind"] == "forbidden"


@pytest.mark.parametrize("method,url,body", MUTATIONS)
async def test_member_can_mutate(client_for, member_user, test_org, method, url, body):
    client = client_for(member_user, test_org)
    response = await getattr(client, method)(url, json=body)
    assert response.status_code == 201


@pytest.mark.parametrize("key,url,field,body", EDITS)
async def test_viewer_cannot_update(
    db, client_for, admin_ctx, viewer_user, test_org, key, url, field, body
):
    record = _admin_records(db, admin_ctx)[key]
    before = getattr(record, field)

    client = client_for(viewer_user, test_org)
    response = await client.patch(f"{url}/{record.id}", json=body)

    assert response.status_code == 403
    assert response.json()["error"]["kind"] == "forbidden"
    db.refresh(record)
    assert getattr(record, field) == before


@pytest.mark.parametrize("key,url", [(key, url) for key, url, _, _ in EDITS])
async def test_viewer_cannot_delete(db, client_for, admin_ctx, viewer_user, test_org, key, url):
    record = _admin_records(db, admin_ctx)[key]

    client = client_for(viewer_user, test_org)
    response = await client.delete(f"{url}/{record.id}")

    assert response.status_code == 403
    assert response.json()["error"]["kind"] == "forbidden"
    db.expire_all()
    assert db.get(type(record), record.id) is not None


@pytest.mark.parametrize("method,url,body", MUTATIONS)
async def test_store_org_cannot_hold_contractor_resources(
    db, client_for, store_org, method, url, body
):
    client = client_for(make_user(db, store_org, Role.ADMIN), store_org)
    response = await getattr(client, method)(url, json=body)
    assert response.status_code == 403


async def test_no_active_org_requires_explicit_org(db, client_for):
    client = client_for(make_user(db))
    response = await client.post("/projects", json={"name": "House"})
    assert response.status_code == 400
    assert response.json()["error"]["kind"] == "validation_error"


async def test_explicit_foreign_org_forbidden(db, authed_client):
    other = make_org(db, "Other Contractor")
    response = await authed_client.post(
        "/projects", json={"name": "House", "organization_id": str(other.id)}
    )
    assert response.status_code == 403


async def test_viewer_reads_catalog(client_for, viewer_user, test_org):
    client = client_for(viewer_user, test_org)
    response = await client.get("/materials")
    assert response.status_code == 200
    assert response.json() == {"materials": []}


async def test_member_cannot_manage_org(client_for, member_user, test_org):
    client = client_for(member_user, test_org)
    response = await client.patch(f"/organizations/{test_org.id}", json={"name": "Mine now"})
    assert response.status_code == 403
