# pharmacart/services/cart_store.py
import threading
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from pydantic import TypeAdapter, ValidationError

from pharmacart.domain.errors import CartStorageError, MalformedPersistedStateError
from pharmacart.domain.mappers import ProductLike, check_quantity, to_cart_line, to_product
from pharmacart.domain.schemas import CartLine
from pharmacart.repos.cart_storage import CartStorage
from pharmacart.services import pricing
from pharmacart.utils.settings import PLACEHOLDER_IMAGE
from pharmacart.utils.logging import get_logger

logger = get_logger(__name__)

_SNAPSHOT = TypeAdapter(List[CartLine])


class CartStore:
    """
    Sole owner of the cart lines.
    - one line per product_id, insertion order kept
    - quantity always >= 1, anything lower removes the line
    - every mutation is written through to storage before returning
    - one operation at a time: commands and reads hold `lock`, callers that
      read-modify-write across several calls hold it for the whole sequence
    """

    def __init__(self, storage: CartStorage, placeholder_image: str = PLACEHOLDER_IMAGE):
        self.storage = storage
        self.placeholder_image = placeholder_image
        self.lock = threading.RLock()
        self._lines: Dict[str, CartLine] = self._load()

    # persistence
    def _load(self) -> Dict[str, CartLine]:
        try:
            raw = self.storage.load()
        except CartStorageError as e:
            logger.warning(f"Cart snapshot unreadable, starting with empty cart: {e}")
            return {}

        if not raw:
            return {}

        try:
            parsed = _SNAPSHOT.validate_json(raw)
        except ValidationError as e:
            err = MalformedPersistedStateError(errors=e.error_count())
            logger.warning(f"{err.message}, discarding it ({e.error_count()} validation errors)")
            self._discard_snapshot()
            return {}

        lines: Dict[str, CartLine] = {}
        for line in parsed:
            existing = lines.get(line.product_id)
            if existing:
                # older snapshots could hold the same product twice
                existing.quantity += line.quantity
            else:
                lines[line.product_id] = line

        logger.info(f"Loaded cart with {len(lines)} lines")
        return lines

    def _discard_snapshot(self) -> None:
        try:
            self.storage.discard()
        except CartStorageError as e:
            logger.warning(f"Could not discard malformed cart snapshot: {e}")

    def _persist(self) -> None:
        raw = _SNAPSHOT.dump_json(list(self._lines.values()), by_alias=True).decode("utf-8")
        self.storage.save(raw)

    # queries
    @property
    def lines(self) -> Tuple[CartLine, ...]:
        """Copies, so a caller holding them never sees later mutations."""
        with self.lock:
            return tuple(line.model_copy() for line in self._lines.values())

    def get_line(self, product_id: str) -> Optional[CartLine]:
        with self.lock:
            line = self._lines.get(product_id)
            return line.model_copy() if line else None

    def contains(self, product_id: str) -> bool:
        return product_id in self._lines

    def get_total(self) -> Decimal:
        with self.lock:
            return pricing.subtotal(self._lines.values())

    def get_item_count(self) -> int:
        with self.lock:
            return sum(line.quantity for line in self._lines.values())

    def is_empty(self) -> bool:
        return not self._lines

    def __len__(self) -> int:
        return len(self._lines)

    # commands
    def add_item(self, product: ProductLike, quantity: int = 1) -> None:
        product = to_product(product)
        quantity = check_quantity(quantity)

        with self.lock:
            existing = self._lines.get(product.id)
            if existing:
                # prices stay as captured on the first add, only the stock hint is synced
                logger.info(
                    f"Product {product.id} already in cart, quantity "
                    f"{existing.quantity} -> {existing.quantity + quantity}"
                )
                existing.quantity += quantity
                if product.stock is not None:
                    existing.stock_at_add_time = product.stock
            else:
                logger.info(f"Adding product {product.id} x{quantity} to cart")
                self._lines[product.id] = to_cart_line(product, quantity, self.placeholder_image)

            self._persist()

    def refresh_item(self, product: ProductLike) -> Optional[CartLine]:
        """Re-snapshot prices, name, image and stock of an existing line; quantity is kept."""
        product = to_product(product)
        with self.lock:
            existing = self._lines.get(product.id)
            if not existing:
                return None

            refreshed = to_cart_line(product, existing.quantity, self.placeholder_image)
            self._lines[product.id] = refreshed
            self._persist()
        logger.info(f"Refreshed cart line {product.id}, unit price {refreshed.unit_price}")
        return refreshed.model_copy()

    def remove_item(self, product_id: str) -> None:
        with self.lock:
            if self._lines.pop(product_id, None) is None:
                return
            self._persist()
        logger.info(f"Removed product {product_id} from cart")

    def set_quantity(self, product_id: str, quantity: int, stock_hint: Optional[int] = None) -> None:
        """stock_hint, when given, replaces the line's stock hint in the same write."""
        with self.lock:
            if quantity <= 0:
                self.remove_item(product_id)
                return

            line = self._lines.get(product_id)
            if not line:
                return

            line.quantity = check_quantity(quantity)
            if stock_hint is not None:
                line.stock_at_add_time = stock_hint
            self._persist()

    def clear(self) -> None:
        with self.lock:
            self._lines.clear()
            self._persist()
        logger.info("Cart cleared")
