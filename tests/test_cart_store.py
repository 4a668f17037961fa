import json
from decimal import Decimal

import pytest

from pharmacart.domain.errors import CartStorageError, InvalidProductError, InvalidQuantityError
from pharmacart.repos.cart_storage import InMemoryCartStorage
from pharmacart.services.cart_store import CartStore
from tests.conftest import make_product


class UnreadableStorage(InMemoryCartStorage):
    def load(self):
        raise CartStorageError("disk on fire")


def test_one_line_per_product(store):
    for pid in ["A", "B", "A", "C", "B", "A"]:
        store.add_item(make_product(pid))

    ids = [line.product_id for line in store.lines]
    assert ids == ["A", "B", "C"]
    assert len(set(ids)) == len(ids)
    assert store.get_item_count() == 6


def test_repeated_add_merges_quantity_and_keeps_first_price(store):
    store.add_item(make_product("P", price=12), 2)
    store.add_item(make_product("P", price=30, discount_price=8), 3)

    assert len(store) == 1
    line = store.get_line("P")
    assert line.quantity == 5
    assert line.unit_price == Decimal("12")
    assert line.list_price == Decimal("12")


def test_merge_does_not_pick_up_new_discount(store):
    store.add_item(make_product("A", price=20), 1)
    store.add_item(make_product("A", price=20, discount_price=15), 1)

    line = store.get_line("A")
    assert len(store) == 1
    assert line.unit_price == Decimal("20")
    assert line.quantity == 2
    assert store.get_total() == 40


def test_merge_syncs_stock_hint(store):
    store.add_item(make_product("A", stock=10))
    store.add_item(make_product("A", stock=4))
    assert store.get_line("A").stock_at_add_time == 4


def test_new_line_snapshot(store):
    store.add_item(make_product("A", price=20, discount_price=15, sku="PX-1"), 1)

    line = store.get_line("A")
    assert line.unit_price == Decimal("15")
    assert line.list_price == Decimal("20")
    assert line.sku_code == "PX-1"
    assert line.image_url == "/img/A.jpg"
    assert line.stock_at_add_time == 10


def test_discount_not_lower_than_price_is_ignored(store):
    store.add_item(make_product("A", price=20, discount_price=25))
    assert store.get_line("A").unit_price == Decimal("20")


def test_placeholder_image_when_product_has_none(storage):
    store = CartStore(storage, placeholder_image="/placeholder.jpg")
    store.add_item(make_product("A", images=[]))
    assert store.get_line("A").image_url == "/placeholder.jpg"


@pytest.mark.parametrize("quantity", [0, -1])
def test_set_quantity_at_or_below_zero_removes_line(store, quantity):
    store.add_item(make_product("P"), 3)
    store.set_quantity("P", quantity)
    assert store.contains("P") is False


def test_set_quantity_overwrites(store):
    store.add_item(make_product("P"), 3)
    store.set_quantity("P", 7)
    assert store.get_line("P").quantity == 7


def test_set_quantity_and_remove_on_missing_line_are_noops(store, storage):
    store.add_item(make_product("A"))
    writes = storage.writes

    store.set_quantity("missing", 4)
    store.remove_item("missing")

    assert [line.product_id for line in store.lines] == ["A"]
    assert storage.writes == writes


def test_total_and_item_count(store):
    store.add_item(make_product("A", price=10), 2)
    store.add_item(make_product("B", price=5), 3)

    assert store.get_total() == 35
    assert store.get_item_count() == 5


def test_clear_empties_cart(store, storage):
    store.add_item(make_product("A"))
    store.clear()
    assert store.is_empty()
    assert json.loads(storage.raw) == []


def test_every_mutation_is_written_through(store, storage):
    store.add_item(make_product("A"))
    assert storage.writes == 1
    store.add_item(make_product("A"))
    assert storage.writes == 2
    store.set_quantity("A", 5)
    assert storage.writes == 3
    store.remove_item("A")
    assert storage.writes == 4


def test_reload_reproduces_lines(storage):
    store = CartStore(storage)
    store.add_item(make_product("A", price="19.99", discount_price="17.50"), 2)
    store.add_item(make_product("B", price=5, images=[], stock=None), 1)
    before = store.lines

    reloaded = CartStore(storage)

    assert reloaded.lines == before


def test_snapshot_is_camel_case_json_array(store, storage):
    store.add_item(make_product("A"), 2)
    data = json.loads(storage.raw)
    assert isinstance(data, list)
    assert data[0]["productId"] == "A"
    assert data[0]["quantity"] == 2
    assert "unitPrice" in data[0] and "stockAtAddTime" in data[0]


@pytest.mark.parametrize(
    "raw",
    [
        "not json{",
        '{"productId": "A"}',
        '[{"productId": "A"}]',
        '[{"productId": "A", "unitPrice": 1, "listPrice": 1, "imageUrl": "x", "quantity": 0}]',
        "42",
    ],
)
def test_corrupt_snapshot_yields_empty_cart(raw):
    storage = InMemoryCartStorage(raw)
    store = CartStore(storage)

    assert store.is_empty()
    assert storage.raw is None


def test_unreadable_storage_yields_empty_cart():
    store = CartStore(UnreadableStorage())
    assert store.is_empty()


def test_duplicate_lines_in_snapshot_are_merged():
    line = {"productId": "A", "unitPrice": "2", "listPrice": "2", "imageUrl": "x", "quantity": 1}
    storage = InMemoryCartStorage(json.dumps([line, {**line, "quantity": 4, "unitPrice": "9"}]))

    store = CartStore(storage)

    assert len(store) == 1
    assert store.get_line("A").quantity == 5
    assert store.get_line("A").unit_price == Decimal("2")


def test_add_rejects_malformed_product(store):
    with pytest.raises(InvalidProductError):
        store.add_item({"_id": "A", "name": "no price"})
    with pytest.raises(InvalidProductError):
        store.add_item(make_product("A", price=-3))
    assert store.is_empty()


@pytest.mark.parametrize("quantity", [0, -2, 1.5, True])
def test_add_rejects_bad_quantity(store, quantity):
    with pytest.raises(InvalidQuantityError):
        store.add_item(make_product("A"), quantity)
    assert store.is_empty()


def test_refresh_item_takes_new_prices_and_keeps_quantity(store):
    store.add_item(make_product("A", price=20), 3)

    refreshed = store.refresh_item(make_product("A", price=25, discount_price=22, stock=7))

    assert refreshed.quantity == 3
    assert store.get_line("A").unit_price == Decimal("22")
    assert store.get_line("A").list_price == Decimal("25")
    assert store.get_line("A").stock_at_add_time == 7
    assert store.refresh_item(make_product("Z")) is None


def test_lines_are_detached_copies(store):
    store.add_item(make_product("A"), 1)
    snapshot = store.lines
    store.set_quantity("A", 9)
    assert snapshot[0].quantity == 1


def test_zero_discount_price_charges_list_price(store):
    store.add_item(make_product("A", price=20, discountPrice=0), 2)

    line = store.get_line("A")
    assert line.unit_price == Decimal("20")
    assert store.get_total() == 40
