# pharmacart/api/routers/checkout.py
from fastapi import APIRouter, Depends, Response

from pharmacart.api.deps import bearer_token, get_checkout
from pharmacart.domain.schemas import CheckoutForm, CheckoutResult, CheckoutState
from pharmacart.services.checkout_service import CheckoutOrchestrator

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.get("", response_model=CheckoutResult)
def preview(checkout: CheckoutOrchestrator = Depends(get_checkout)):
    return checkout.preview()


@router.post("", response_model=CheckoutResult)
async def submit(
    form: CheckoutForm,
    response: Response,
    token: str | None = Depends(bearer_token),
    checkout: CheckoutOrchestrator = Depends(get_checkout),
):
    """
    Places the order from the current cart.
    Every outcome comes back as a CheckoutResult with notices; only a created
    order answers 201.
    """
    result = await checkout.submit(form, token)
    if result.state == CheckoutState.SUCCEEDED:
        response.status_code = 201
    return result
