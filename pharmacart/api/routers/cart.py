# pharmacart/api/routers/cart.py
from fastapi import APIRouter, Depends, HTTPException

from pharmacart.api.deps import get_cart_service
from pharmacart.domain.errors import CatalogNotFoundError
from pharmacart.domain.schemas import CartOut, DeltaIn, ItemIn, QuantityIn
from pharmacart.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartOut)
def get_cart(svc: CartService = Depends(get_cart_service)):
    return svc.get_cart()


@router.get("/count")
def get_item_count(svc: CartService = Depends(get_cart_service)):
    return {"item_count": svc.get_cart_item_count()}


@router.get("/total")
def get_total(svc: CartService = Depends(get_cart_service)):
    return {"total": svc.get_cart_total()}


@router.get("/items/{product_id}")
def is_in_cart(product_id: str, svc: CartService = Depends(get_cart_service)):
    return {"product_id": product_id, "in_cart": svc.is_in_cart(product_id)}


@router.post("/items", response_model=CartOut)
def add_item(payload: ItemIn, svc: CartService = Depends(get_cart_service)):
    try:
        return svc.add_product_by_id(payload.product_id, payload.quantity)
    except CatalogNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/buy-now", response_model=CartOut)
def buy_now(payload: ItemIn, svc: CartService = Depends(get_cart_service)):
    try:
        return svc.buy_now_by_id(payload.product_id, payload.quantity)
    except CatalogNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/items/{product_id}", response_model=CartOut)
def update_quantity(product_id: str, payload: QuantityIn, svc: CartService = Depends(get_cart_service)):
    return svc.update_quantity(product_id, payload.quantity)


@router.post("/items/{product_id}/adjust", response_model=CartOut)
def change_quantity(product_id: str, payload: DeltaIn, svc: CartService = Depends(get_cart_service)):
    return svc.change_quantity(product_id, payload.delta)


@router.delete("/items/{product_id}", response_model=CartOut)
def remove_item(product_id: str, svc: CartService = Depends(get_cart_service)):
    return svc.remove_from_cart(product_id)


@router.delete("", response_model=CartOut)
def clear_cart(svc: CartService = Depends(get_cart_service)):
    return svc.clear_cart()


@router.post("/refresh", response_model=CartOut)
def refresh(svc: CartService = Depends(get_cart_service)):
    """Re-read prices and stock of every line from the catalog."""
    return svc.refresh_from_catalog()
