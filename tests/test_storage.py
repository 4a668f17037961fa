from unittest.mock import MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from pharmacart.domain.errors import CartStorageError
from pharmacart.repos.cart_storage import (
    FileCartStorage,
    InMemoryCartStorage,
    RedisCartStorage,
    build_storage,
)
from pharmacart.services.cart_store import CartStore
from tests.conftest import make_product


def test_file_storage_round_trip(tmp_path):
    storage = FileCartStorage(tmp_path / "carts" / "cart.json")
    assert storage.load() is None

    storage.save('[{"x": 1}]')
    assert storage.load() == '[{"x": 1}]'
    assert not (tmp_path / "carts" / "cart.json.tmp").exists()

    storage.discard()
    assert storage.load() is None
    storage.discard()


def test_file_storage_unreadable(tmp_path):
    storage = FileCartStorage(tmp_path)
    with pytest.raises(CartStorageError):
        storage.load()


def test_store_survives_restart_on_file(tmp_path):
    path = tmp_path / "cart.json"
    CartStore(FileCartStorage(path)).add_item(make_product("A"), 3)

    assert CartStore(FileCartStorage(path)).get_line("A").quantity == 3


def test_redis_storage_uses_one_key():
    client = MagicMock()
    client.get.return_value = "[]"
    storage = RedisCartStorage(key="cart:test", client=client)

    storage.save("[]")
    assert storage.load() == "[]"
    storage.discard()

    client.set.assert_called_once_with(name="cart:test", value="[]")
    client.get.assert_called_once_with("cart:test")
    client.delete.assert_called_once_with("cart:test")


def test_redis_errors_become_storage_errors():
    client = MagicMock()
    client.get.side_effect = RedisConnectionError("down")
    client.set.side_effect = RedisConnectionError("down")
    storage = RedisCartStorage(client=client)

    with pytest.raises(CartStorageError):
        storage.load()
    with pytest.raises(CartStorageError):
        storage.save("[]")
    assert client.get.call_count == 3


def test_store_on_unavailable_redis_starts_empty():
    client = MagicMock()
    client.get.side_effect = RedisConnectionError("down")

    assert CartStore(RedisCartStorage(client=client)).is_empty()


def test_build_storage():
    assert isinstance(build_storage("memory"), InMemoryCartStorage)
    assert isinstance(build_storage("FILE"), FileCartStorage)
    with pytest.raises(ValueError):
        build_storage("sqlite")


def test_undecodable_redis_snapshot_starts_empty_cart():
    client = MagicMock()
    client.get.side_effect = UnicodeDecodeError("utf-8", b"\xff\xfe garbage", 0, 1, "invalid start byte")
    storage = RedisCartStorage(client=client)

    with pytest.raises(CartStorageError):
        storage.load()

    store = CartStore(storage)
    assert store.is_empty()
    store.add_item(make_product("A"))
    assert client.set.called
