"""Shared fixtures: in-memory cart storage, a store on top of it, catalog product payloads."""
import pytest

from pharmacart.repos.cart_storage import InMemoryCartStorage
from pharmacart.services.cart_store import CartStore


def make_product(product_id="A", price=20, **overrides):
    product = {
        "_id": product_id,
        "name": f"Product {product_id}",
        "price": price,
        "stock": 10,
        "images": [f"/img/{product_id}.jpg"],
        "sku": f"SKU-{product_id}",
    }
    product.update(overrides)
    return product


@pytest.fixture
def storage():
    return InMemoryCartStorage()


@pytest.fixture
def store(storage):
    return CartStore(storage)


@pytest.fixture
def product():
    return make_product
