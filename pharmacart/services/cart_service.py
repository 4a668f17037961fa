# pharmacart/services/cart_service.py
from decimal import Decimal
from functools import wraps
from typing import Any, Dict, List, Optional, Tuple

from pharmacart.domain.errors import (
    CartError,
    CatalogNotFoundError,
    InvalidQuantityError,
    OutOfStockError,
    StockLimitReachedError,
)
from pharmacart.domain.mappers import ProductLike, check_quantity, to_product
from pharmacart.domain.schemas import CartLine, Notice, Product
from pharmacart.services import pricing
from pharmacart.services.cart_store import CartStore
from pharmacart.services.catalog_client import CatalogClient
from pharmacart.services.stock_guard import ClampResult, clamp_increment, ensure_in_stock
from pharmacart.utils.settings import CHECKOUT_PATH
from pharmacart.utils.logging import get_logger

logger = get_logger(__name__)


def _locked(method):
    # the whole read-modify-write runs under the store lock, handlers share one store
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        with self.store.lock:
            return method(self, *args, **kwargs)

    return wrapper


def _stock_limit_notice(name: str, product_id: str, limit: int) -> Notice:
    return StockLimitReachedError(
        f"Only {limit} of {name or 'this product'} available",
        product_id=product_id,
        limit=limit,
    ).to_notice()


class CartService:
    """
    Cart operations for page-level callers.
    commands (add, buy now, update, change, remove, clear, refresh) mutate the store
    queries (get_cart, total, count, is_in_cart) only read
    Cart conditions are returned as notices in the cart view, never raised.
    """

    def __init__(self, store: CartStore, catalog: CatalogClient | None = None):
        self.store = store
        self.catalog = catalog or CatalogClient()

    # query
    @_locked
    def get_cart(self, notices: Optional[List[Notice]] = None, redirect: str | None = None) -> Dict[str, Any]:
        lines = self.store.lines
        summary = pricing.summarize(lines)
        return {
            "items": list(lines),
            "item_count": summary.item_count,
            "summary": summary,
            "notices": list(notices or []),
            "redirect": redirect,
        }

    def get_cart_total(self) -> Decimal:
        return self.store.get_total()

    def get_cart_item_count(self) -> int:
        return self.store.get_item_count()

    def is_in_cart(self, product_id: str) -> bool:
        return self.store.contains(product_id)

    # commands
    @_locked
    def add_to_cart(self, product: ProductLike, quantity: int = 1) -> Dict[str, Any]:
        notices: List[Notice] = []
        try:
            notices.extend(self._add(product, quantity))
        except CartError as e:
            logger.warning(f"Add to cart refused: {e.code} {e.message}")
            notices.append(e.to_notice())
        return self.get_cart(notices)

    @_locked
    def buy_now(self, product: ProductLike, quantity: int = 1) -> Dict[str, Any]:
        """Add then go straight to checkout; nothing happens for an out-of-stock product."""
        notices: List[Notice] = []
        try:
            notices.extend(self._add(product, quantity))
        except CartError as e:
            logger.warning(f"Buy now refused: {e.code} {e.message}")
            notices.append(e.to_notice())
            return self.get_cart(notices)
        return self.get_cart(notices, redirect=CHECKOUT_PATH)

    def add_product_by_id(self, product_id: str, quantity: int = 1) -> Dict[str, Any]:
        product, notice = self._fetch(product_id)
        if notice:
            return self.get_cart([notice])
        return self.add_to_cart(product, quantity)

    def buy_now_by_id(self, product_id: str, quantity: int = 1) -> Dict[str, Any]:
        product, notice = self._fetch(product_id)
        if notice:
            return self.get_cart([notice])
        return self.buy_now(product, quantity)

    @_locked
    def update_quantity(self, product_id: str, quantity: int) -> Dict[str, Any]:
        notices: List[Notice] = []
        try:
            if isinstance(quantity, bool) or not isinstance(quantity, int):
                raise InvalidQuantityError(quantity=quantity)
            line = self.store.get_line(product_id)
            if line is None or quantity <= 0:
                self.store.set_quantity(product_id, quantity)
            else:
                result = clamp_increment(line.quantity, quantity - line.quantity, line.stock_at_add_time)
                notices.extend(self._apply(line, result))
        except CartError as e:
            notices.append(e.to_notice())
        return self.get_cart(notices)

    @_locked
    def change_quantity(self, product_id: str, delta: int) -> Dict[str, Any]:
        """+/- buttons on the cart page."""
        line = self.store.get_line(product_id)
        if line is None:
            return self.get_cart()
        result = clamp_increment(line.quantity, delta, line.stock_at_add_time)
        return self.get_cart(self._apply(line, result))

    @_locked
    def remove_from_cart(self, product_id: str) -> Dict[str, Any]:
        self.store.remove_item(product_id)
        return self.get_cart()

    @_locked
    def clear_cart(self) -> Dict[str, Any]:
        self.store.clear()
        return self.get_cart()

    @_locked
    def refresh_from_catalog(self) -> Dict[str, Any]:
        """
        Explicit re-sync of every line with the catalog: new prices and stock
        hints are taken over, quantities above the new stock are clamped and
        products that are gone or sold out leave the cart.
        """
        notices: List[Notice] = []
        for line in self.store.lines:
            try:
                product = self.catalog.get_product(line.product_id)
            except CatalogNotFoundError:
                logger.warning(f"Product {line.product_id} no longer in catalog, removing from cart")
                self.store.remove_item(line.product_id)
                notices.append(
                    OutOfStockError(
                        f"{line.name or 'A product'} is no longer available",
                        product_id=line.product_id,
                    ).to_notice()
                )
                continue
            except CartError as e:
                notices.append(e.to_notice())
                continue

            if product.stock == 0:
                self.store.remove_item(product.id)
                notices.append(OutOfStockError(f"{product.name or 'This product'} is out of stock", product_id=product.id).to_notice())
                continue

            refreshed = self.store.refresh_item(product)
            if refreshed and product.stock is not None and refreshed.quantity > product.stock:
                self.store.set_quantity(product.id, product.stock)
                notices.append(_stock_limit_notice(product.name, product.id, product.stock))

        return self.get_cart(notices)

    # helpers
    def _fetch(self, product_id: str) -> Tuple[Optional[Product], Optional[Notice]]:
        # CatalogNotFoundError and transport errors are the caller's to map
        logger.info(f"Fetching product {product_id} from catalog")
        try:
            return self.catalog.get_product(product_id), None
        except CartError as e:
            logger.warning(f"Catalog returned an unusable product {product_id}: {e.message}")
            return None, e.to_notice()

    def _add(self, product: ProductLike, quantity: int) -> List[Notice]:
        product = to_product(product)
        quantity = check_quantity(quantity)
        ensure_in_stock(product)

        current = self.store.get_line(product.id)
        current_qty = current.quantity if current else 0
        result = clamp_increment(current_qty, quantity, product.stock)

        notices: List[Notice] = []
        if result.limit_reached:
            logger.warning(f"Stock limit {product.stock} reached for product {product.id}")
            notices.append(_stock_limit_notice(product.name, product.id, product.stock))

        allowed = result.quantity - current_qty
        if allowed > 0:
            self.store.add_item(product, allowed)
        else:
            # stock dropped to or below what is already in the cart
            self.store.set_quantity(product.id, result.quantity, stock_hint=product.stock)
        return notices

    def _apply(self, line: CartLine, result: ClampResult) -> List[Notice]:
        notices: List[Notice] = []
        if result.limit_reached:
            notices.append(_stock_limit_notice(line.name, line.product_id, line.stock_at_add_time))
        if result.remove:
            self.store.remove_item(line.product_id)
        else:
            self.store.set_quantity(line.product_id, result.quantity)
        return notices
