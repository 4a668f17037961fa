# pharmacart/api/deps.py
from functools import lru_cache

from fastapi import Depends, Header

from pharmacart.repos.cart_storage import build_storage
from pharmacart.services.cart_service import CartService
from pharmacart.services.cart_store import CartStore
from pharmacart.services.catalog_client import CatalogClient
from pharmacart.services.checkout_service import CheckoutOrchestrator
from pharmacart.services.notification_service import NotificationService
from pharmacart.services.order_client import OrderClient


#one cart and one checkout per process, the submit guard lives on the orchestrator
@lru_cache
def get_store() -> CartStore:
    return CartStore(build_storage())


@lru_cache
def get_catalog() -> CatalogClient:
    return CatalogClient()


@lru_cache
def get_checkout() -> CheckoutOrchestrator:
    return CheckoutOrchestrator(
        store=get_store(),
        orders=OrderClient(),
        notifications=NotificationService(),
    )


def get_cart_service(
    store: CartStore = Depends(get_store),
    catalog: CatalogClient = Depends(get_catalog),
) -> CartService:
    return CartService(store=store, catalog=catalog)


def bearer_token(authorization: str | None = Header(default=None)) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
