# pharmacart/services/stock_guard.py
"""
Advisory stock checks against the stock hint captured when the product was
last read from the catalog. The hint can be stale; the order service is the
one that really enforces stock when the order is submitted.
"""
from typing import Iterable, List, NamedTuple, Optional

from pharmacart.domain.errors import OutOfStockError
from pharmacart.domain.schemas import CartLine, Product


class ClampResult(NamedTuple):
    quantity: int
    limit_reached: bool
    remove: bool


def clamp_increment(current_quantity: int, delta: int, known_stock: Optional[int]) -> ClampResult:
    proposed = current_quantity + delta
    if proposed < 1:
        return ClampResult(quantity=0, limit_reached=False, remove=True)
    if known_stock is not None and proposed > known_stock:
        return ClampResult(quantity=known_stock, limit_reached=True, remove=known_stock < 1)
    return ClampResult(quantity=proposed, limit_reached=False, remove=False)


def ensure_in_stock(product: Product) -> None:
    """Add-to-cart and buy-now never touch the cart for a zero-stock product."""
    if product.stock == 0:
        raise OutOfStockError(
            f"{product.name or 'This product'} is out of stock",
            product_id=product.id,
        )


def find_overdrawn(lines: Iterable[CartLine]) -> List[CartLine]:
    return [
        line
        for line in lines
        if line.stock_at_add_time is not None and line.quantity > line.stock_at_add_time
    ]
