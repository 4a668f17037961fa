# pharmacart/repos/cart_storage.py
import os
from pathlib import Path
from typing import Optional, Protocol

import redis
from redis.exceptions import RedisError

from pharmacart.domain.errors import CartStorageError
from pharmacart.utils.retry import redis_retry
from pharmacart.utils.settings import (
    CART_STORAGE_BACKEND,
    CART_STORAGE_KEY,
    CART_STORAGE_PATH,
    REDIS_URL,
)
from pharmacart.utils.logging import get_logger

logger = get_logger(__name__)


class CartStorage(Protocol):
    """Read/write primitives for the one serialized cart snapshot."""

    def load(self) -> Optional[str]:
        ...

    def save(self, raw: str) -> None:
        ...

    def discard(self) -> None:
        ...


class InMemoryCartStorage:
    def __init__(self, raw: Optional[str] = None):
        self.raw = raw
        self.writes = 0

    def load(self) -> Optional[str]:
        return self.raw

    def save(self, raw: str) -> None:
        self.raw = raw
        self.writes += 1

    def discard(self) -> None:
        self.raw = None


class FileCartStorage:
    """Snapshot in a json file, replaced atomically so a crash never leaves half a cart."""

    def __init__(self, path: str | os.PathLike = CART_STORAGE_PATH):
        self.path = Path(path)

    def load(self) -> Optional[str]:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise CartStorageError(f"Cannot read cart file {self.path}: {e}") from e

    def save(self, raw: str) -> None:
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(raw, encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            raise CartStorageError(f"Cannot write cart file {self.path}: {e}") from e

    def discard(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise CartStorageError(f"Cannot remove cart file {self.path}: {e}") from e


class RedisCartStorage:
    """
    -whole snapshot under one key (CART_STORAGE_KEY)
    -no cross-client locking, last write wins
    """

    def __init__(self, url: str | None = None, key: str = CART_STORAGE_KEY, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )
        self.key = key

    @redis_retry()
    def _get(self) -> Optional[str]:
        return self.redis.get(self.key)

    @redis_retry()
    def _set(self, raw: str) -> None:
        self.redis.set(name=self.key, value=raw)

    @redis_retry()
    def _delete(self) -> None:
        self.redis.delete(self.key)

    def load(self) -> Optional[str]:
        try:
            return self._get()
        except RedisError as e:
            raise CartStorageError(f"Cannot read cart key {self.key}: {e}") from e
        except UnicodeDecodeError as e:
            # decode_responses: bytes that are not utf-8 never reach the snapshot parser
            raise CartStorageError(f"Cart key {self.key} is not utf-8: {e}") from e

    def save(self, raw: str) -> None:
        logger.debug(f"SET {self.key} ({len(raw)} bytes)")
        try:
            self._set(raw)
        except RedisError as e:
            raise CartStorageError(f"Cannot write cart key {self.key}: {e}") from e

    def discard(self) -> None:
        try:
            self._delete()
        except RedisError as e:
            raise CartStorageError(f"Cannot delete cart key {self.key}: {e}") from e


def build_storage(backend: str | None = None) -> CartStorage:
    backend = (backend or CART_STORAGE_BACKEND).lower()
    logger.info(f"Cart storage backend: {backend}")
    if backend == "redis":
        return RedisCartStorage()
    if backend == "file":
        return FileCartStorage()
    if backend == "memory":
        return InMemoryCartStorage()
    raise ValueError(f"Unknown cart storage backend: {backend}")
