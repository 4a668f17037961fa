# pharmacart/domain/schemas.py
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """camelCase on the wire (backend + persisted snapshot), snake_case in python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Notice(BaseModel):
    """User-visible message produced by a cart or checkout operation."""

    code: str
    message: str
    level: str = "info"
    context: Dict[str, Any] = Field(default_factory=dict)


class Product(CamelModel):
    """Catalog product snapshot, read-only input at add-time."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., alias="_id", min_length=1)
    name: str = ""
    price: Decimal = Field(..., ge=0)
    discount_price: Optional[Decimal] = Field(default=None, ge=0)
    stock: Optional[int] = Field(default=None, ge=0)
    images: List[str] = Field(default_factory=list)
    sku: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("images", mode="before")
    @classmethod
    def _drop_empty_images(cls, value):
        if value is None:
            return []
        return [v for v in value if v]


class Pagination(CamelModel):
    model_config = ConfigDict(extra="allow")

    page: Optional[int] = None
    limit: Optional[int] = None
    total: Optional[int] = None
    pages: Optional[int] = None


class ProductPage(BaseModel):
    products: List[Product] = Field(default_factory=list)
    pagination: Optional[Pagination] = None


class Pharmacy(CamelModel):
    model_config = ConfigDict(extra="allow")

    id: str = Field(..., alias="_id")
    name: str = ""
    city: Optional[str] = None
    address: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class PharmacyPage(BaseModel):
    pharmacies: List[Pharmacy] = Field(default_factory=list)
    pagination: Optional[Pagination] = None


class CartLine(CamelModel):
    """
    One product in the cart. Prices are frozen at add-time (or the last
    explicit refresh); stock_at_add_time is only an advisory ceiling.
    """

    product_id: str = Field(..., min_length=1)
    name: str = ""
    sku_code: Optional[str] = None
    unit_price: Decimal = Field(..., ge=0)
    list_price: Decimal = Field(..., ge=0)
    image_url: str
    quantity: int = Field(..., ge=1)
    stock_at_add_time: Optional[int] = Field(default=None, ge=0)


class OrderItem(CamelModel):
    product_id: str
    quantity: int = Field(..., ge=1)


class ShippingAddress(CamelModel):
    address_line: str
    city: str
    state: str
    postal_code: str
    country: Optional[str] = None


class OrderRequest(CamelModel):
    """Transient projection of the cart sent to the order service."""

    items: List[OrderItem] = Field(..., min_length=1)
    shipping_address: Optional[ShippingAddress] = None
    payment_method: str


class OrderReceipt(BaseModel):
    order_id: str
    payload: Dict[str, Any] = Field(default_factory=dict)


class CheckoutForm(CamelModel):
    """Inputs collected by the checkout page."""

    terms_accepted: bool = False
    payment_method: Optional[str] = None
    address_line: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: Optional[str] = None


class OrderSummary(BaseModel):
    subtotal: Decimal
    shipping_fee: Decimal
    tax: Decimal
    total: Decimal
    item_count: int


class CheckoutState(str, Enum):
    IDLE = "idle"
    EMPTY = "empty"
    SUBMITTING = "submitting"
    AUTH_REQUIRED = "auth_required"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class CheckoutResult(BaseModel):
    state: CheckoutState
    order_id: Optional[str] = None
    summary: Optional[OrderSummary] = None
    notices: List[Notice] = Field(default_factory=list)
    redirect: Optional[str] = None


class CartOut(BaseModel):
    """Schema for the cart view (response)."""

    items: List[CartLine]
    item_count: int
    summary: OrderSummary
    notices: List[Notice] = Field(default_factory=list)
    redirect: Optional[str] = None


class ItemIn(BaseModel):
    """Add a catalog product to the cart by id."""

    product_id: str = Field(..., min_length=1)
    quantity: int = Field(default=1, gt=0)


class QuantityIn(BaseModel):
    quantity: int


class DeltaIn(BaseModel):
    delta: int
