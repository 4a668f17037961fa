# pharmacart/domain/mappers.py
"""Boundary mapping: loose product payloads -> typed cart lines -> order requests."""
from typing import Any, Iterable, Mapping, Optional, Union

from pydantic import ValidationError

from pharmacart.domain.errors import InvalidProductError, InvalidQuantityError
from pharmacart.domain.schemas import (
    CartLine,
    CheckoutForm,
    OrderItem,
    OrderRequest,
    Product,
    ShippingAddress,
)
from pharmacart.services.pricing import effective_price
from pharmacart.utils.settings import DEFAULT_PAYMENT_METHOD, PLACEHOLDER_IMAGE

ProductLike = Union[Product, Mapping[str, Any]]


def to_product(raw: ProductLike) -> Product:
    """Validate a catalog payload, failing fast instead of letting Nones reach price math."""
    if isinstance(raw, Product):
        return raw
    if not isinstance(raw, Mapping):
        raise InvalidProductError("Product payload must be an object")
    try:
        return Product.model_validate(dict(raw))
    except ValidationError as exc:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
        raise InvalidProductError(
            product_id=raw.get("_id") or raw.get("id"),
            fields=fields,
        ) from exc


def check_quantity(quantity: Any) -> int:
    # bool is an int subclass, True is not a quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidQuantityError(quantity=quantity)
    return quantity


def to_cart_line(product: Product, quantity: int, placeholder_image: str = PLACEHOLDER_IMAGE) -> CartLine:
    return CartLine(
        product_id=product.id,
        name=product.name,
        sku_code=product.sku,
        unit_price=effective_price(product.price, product.discount_price),
        list_price=product.price,
        image_url=product.images[0] if product.images else placeholder_image,
        quantity=quantity,
        stock_at_add_time=product.stock,
    )


def to_shipping_address(form: CheckoutForm) -> Optional[ShippingAddress]:
    """All required parts or nothing; a half-filled address is never sent."""
    parts = {
        "address_line": form.address_line.strip(),
        "city": form.city.strip(),
        "state": form.state.strip(),
        "postal_code": form.postal_code.strip(),
    }
    if not all(parts.values()):
        return None
    country = form.country.strip() if form.country else None
    return ShippingAddress(country=country or None, **parts)


def to_order_request(lines: Iterable[CartLine], form: CheckoutForm) -> OrderRequest:
    return OrderRequest(
        items=[OrderItem(product_id=line.product_id, quantity=line.quantity) for line in lines],
        shipping_address=to_shipping_address(form),
        payment_method=(form.payment_method or "").strip() or DEFAULT_PAYMENT_METHOD,
    )
