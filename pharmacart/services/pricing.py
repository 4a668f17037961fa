# pharmacart/services/pricing.py
"""
Pure price derivation shared by the cart page and the checkout page.
No state, no I/O: same lines in, same summary out.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from pharmacart.domain.schemas import CartLine, OrderSummary
from pharmacart.utils.settings import FLAT_SHIPPING_FEE, FREE_SHIPPING_THRESHOLD

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def effective_price(price: Decimal, discount_price: Optional[Decimal]) -> Decimal:
    #0 or missing means no discount, and it only counts when lower than the list price
    if discount_price and discount_price < price:
        return discount_price
    return price


def discount_percent(list_price: Decimal, discounted_price: Optional[Decimal]) -> int:
    if not discounted_price or not list_price or discounted_price >= list_price:
        return 0
    pct = Decimal(100) * (list_price - discounted_price) / list_price
    return int(pct.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def line_total(line: CartLine) -> Decimal:
    return line.unit_price * line.quantity


def subtotal(lines: Iterable[CartLine]) -> Decimal:
    return sum((line_total(line) for line in lines), ZERO)


def shipping_fee(
    amount: Decimal,
    threshold: Decimal = FREE_SHIPPING_THRESHOLD,
    flat_fee: Decimal = FLAT_SHIPPING_FEE,
) -> Decimal:
    """Estimate only, the seller confirms the real fee after the order is placed."""
    if amount >= threshold:
        return ZERO
    return money(flat_fee)


def tax(amount: Decimal) -> Decimal:
    # no tax engine yet, kept as a line item so the summary shape stays stable
    return ZERO


def summarize(lines: Iterable[CartLine]) -> OrderSummary:
    lines = list(lines)
    sub = subtotal(lines)
    shipping = shipping_fee(sub) if lines else ZERO
    tax_amount = tax(sub)
    return OrderSummary(
        subtotal=money(sub),
        shipping_fee=shipping,
        tax=tax_amount,
        total=money(sub + shipping + tax_amount),
        item_count=sum(line.quantity for line in lines),
    )
