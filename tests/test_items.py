from decimal import Decimal

import pytest

from app.core.errors import NotFound, ValidationFailed
from app.db.models.inventory import Item
from services.documents import service as documents
from services.documents.schemas import DocumentIn
from services.items import service
from services.items.schemas import ItemIn, ItemUpdate


def _stock(session, item_id):
    item = session.get(Item, item_id)
    session.refresh(item)
    return item.primary_quantity, item.secondary_quantity


@pytest.fixture
def sold_item(session, firm, make_item, document_payload):
    item = make_item(
        name="Widget",
        primary_quantity=Decimal("50"),
        primary_opening_quantity=Decimal("60"),
    )
    documents.create_document(
        session,
        firm.id,
        DocumentIn(**document_payload(items=[{"item_id": item.id, "primary_quantity": "10"}])),
    )
    return item


class TestCreate:
    def test_opening_quantities_seed_stock(self, session, firm):
        created = service.create_item(
            session,
            firm.id,
            ItemIn(name="Rice bag", primary_opening_quantity="12", secondary_opening_quantity="3", conversion_rate="25"),
        )
        assert _stock(session, created["id"]) == (Decimal("12"), Decimal("3"))

    def test_quantity_fields_are_not_accepted(self, session, firm):
        created = service.create_item(
            session, firm.id, ItemIn(name="Rice bag", primary_opening_quantity="5", primary_quantity="999")
        )
        assert _stock(session, created["id"])[0] == Decimal("5")

    def test_name_is_unique_ignoring_case(self, session, firm, make_item):
        make_item(name="Widget")
        with pytest.raises(ValidationFailed, match="Item name must be unique"):
            service.create_item(session, firm.id, ItemIn(name="WIDGET"))


class TestUpdate:
    def test_opening_change_shifts_stock_by_the_difference(self, session, firm, sold_item):
        service.update_item(session, firm.id, sold_item.id, ItemUpdate(primary_opening_quantity="65"))
        # 60 opening, 10 sold, then opening raised by 5
        assert _stock(session, sold_item.id)[0] == Decimal("45")

    def test_secondary_opening_change(self, session, firm, make_item):
        item = make_item(secondary_quantity=Decimal("4"), secondary_opening_quantity=Decimal("4"))
        service.update_item(session, firm.id, item.id, ItemUpdate(secondary_opening_quantity="1"))
        assert _stock(session, item.id) == (Decimal("50"), Decimal("1"))

    def test_price_change_leaves_stock_alone(self, session, firm, sold_item):
        updated = service.update_item(session, firm.id, sold_item.id, ItemUpdate(sale_price="120"))
        assert updated["sale_price"] == Decimal("120")
        assert _stock(session, sold_item.id)[0] == Decimal("40")

    def test_rename_blocked_once_on_a_document(self, session, firm, sold_item):
        with pytest.raises(ValidationFailed, match="Cannot update item name"):
            service.update_item(session, firm.id, sold_item.id, ItemUpdate(name="Gadget"))

    def test_rename_unused_item(self, session, firm, make_item):
        item = make_item(name="Widget")
        assert service.update_item(session, firm.id, item.id, ItemUpdate(name="Gadget"))["name"] == "Gadget"

    def test_rename_to_existing_name_rejected(self, session, firm, make_item):
        make_item(name="Widget")
        other = make_item(name="Gadget")
        with pytest.raises(ValidationFailed, match="Item name must be unique"):
            service.update_item(session, firm.id, other.id, ItemUpdate(name="widget"))


class TestDelete:
    def test_unused_item(self, session, firm, make_item):
        item = make_item()
        service.delete_item(session, firm.id, item.id)
        assert session.query(Item).count() == 0

    def test_used_item(self, session, firm, sold_item):
        with pytest.raises(ValidationFailed, match="It is used in one or more documents"):
            service.delete_item(session, firm.id, sold_item.id)
        assert session.query(Item).count() == 1

    def test_missing_item(self, session, firm):
        with pytest.raises(NotFound, match="Item not found"):
            service.delete_item(session, firm.id, "ghost")


class TestList:
    def test_filter_by_type_and_category(self, session, firm, make_item):
        make_item(name="Widget", category_id="cat-1")
        make_item(name="Repair", item_type="SERVICE", category_id="cat-1")
        make_item(name="Bolt", category_id="cat-2")

        assert [i["name"] for i in service.list_items(session, firm.id, item_type="SERVICE")] == ["Repair"]
        names = sorted(i["name"] for i in service.list_items(session, firm.id, category_id="cat-1"))
        assert names == ["Repair", "Widget"]
