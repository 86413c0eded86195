"""Tests for store items."""

from decimal import Decimal

import pytest

from buildcost.core.errors import Forbidden, ResourceInUse
from buildcost.db.enums import Role
from buildcost.db.models import Item
from buildcost.schemas.budget import BudgetCreate
from buildcost.schemas.item import ItemCreate, ItemUpdate
from buildcost.services import budget_service, item_service

from conftest import context_for, make_user


@pytest.fixture
def store_ctx(db, store_org):
    return context_for(db, make_user(db, store_org, Role.MEMBER), store_org)


def _item(db, ctx, name="Tiles", price="12.00"):
    return item_service.create_item(
        db, ctx, ItemCreate(name=name, unit="m2", price=Decimal(price))
    )


def test_store_member_creates_item(db, store_ctx, store_org):
    item = _item(db, store_ctx)
    assert item.organization_id == store_org.id
    assert [i.id for i in item_service.list_items(db, store_ctx)] == [item.id]


def test_contractor_cannot_create_items(db, admin_ctx):
    with pytest.raises(Forbidden) as exc_info:
        _item(db, admin_ctx)
    assert exc_info.value.message == "Only store organizations can manage items"


def test_price_update_keeps_budget_snapshot(db, store_ctx, admin_ctx):
    item = _item(db, store_ctx)
    budget = budget_service.create_budget(db, admin_ctx, BudgetCreate(title="Floor"))
    budget_service.add_item(db, admin_ctx, budget.id, item.id, Decimal("2"))

    item_service.update_item(db, store_ctx, item.id, ItemUpdate(price=Decimal("15.00")))

    assert item.price == Decimal("15.00")
    assert budget_service.to_read(budget).total == Decimal("24.00")


def test_delete_item_used_by_budget(db, store_ctx, admin_ctx):
    item = _item(db, store_ctx)
    budget = budget_service.create_budget(db, admin_ctx, BudgetCreate(title="Floor"))
    budget_service.add_item(db, admin_ctx, budget.id, item.id, Decimal("1"))

    with pytest.raises(ResourceInUse):
        item_service.delete_item(db, store_ctx, item.id)


def test_delete_unused_item(db, store_ctx):
    item = _item(db, store_ctx)
    item_service.delete_item(db, store_ctx, item.id)
    assert db.get(Item, item.id) is None


def test_items_readable_by_members_only(db, store_ctx, admin_ctx):
    item = _item(db, store_ctx)
    with pytest.raises(Forbidden):
        item_service.get_item(db, admin_ctx, item.id)


async def test_item_api(db, client_for, store_org):
    user = make_user(db, store_org, Role.ADMIN)
    client = client_for(user, store_org)

    response = await client.post(
        "/items", json={"name": "Grout", "unit": "kg", "price": "3.20"}
    )
    assert response.status_code == 201
    item_id = response.json()["item"]["id"]

    response = await client.patch(f"/items/{item_id}", json={"price": "3.50"})
    assert response.status_code == 200
    assert Decimal(response.json()["item"]["price"]) == Decimal("3.50")

    response = await client.get("/items")
    assert [i["id"] for i in response.json()["items"]] == [item_id]

    response = await client.delete(f"/items/{item_id}")
    assert response.status_code == 204
