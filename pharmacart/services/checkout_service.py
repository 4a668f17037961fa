# pharmacart/services/checkout_service.py
import asyncio
from typing import List, Optional, Tuple

from pharmacart.domain.errors import (
    CartError,
    CartStorageError,
    CheckoutInProgressError,
    EmptyCartCheckoutError,
    IdentityRequiredError,
    OrderServiceRejectedError,
    OrderServiceUnreachableError,
    StockLimitReachedError,
    TermsNotAcceptedError,
)
from pharmacart.domain.mappers import to_order_request
from pharmacart.domain.schemas import (
    CartLine,
    CheckoutForm,
    CheckoutResult,
    CheckoutState,
    Notice,
    OrderReceipt,
    OrderRequest,
    OrderSummary,
)
from pharmacart.services import pricing
from pharmacart.services.cart_store import CartStore
from pharmacart.services.notification_service import NotificationService
from pharmacart.services.order_client import OrderClient
from pharmacart.services.stock_guard import find_overdrawn
from pharmacart.utils.settings import BROWSE_PATH, LOGIN_PATH
from pharmacart.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutOrchestrator:
    """
    Turns the cart into an order.

    idle -> submitting -> succeeded (cart cleared)
                       -> failed    (cart kept for retry, back to idle)
    empty cart          -> empty (redirect to browse)
    no buyer identity   -> auth_required (redirect to login)

    Only one submission may be in flight: a second submit while submitting is
    ignored, otherwise one cart could become two orders.
    """

    def __init__(
        self,
        store: CartStore,
        orders: OrderClient | None = None,
        notifications: NotificationService | None = None,
    ):
        self.store = store
        self.orders = orders or OrderClient()
        self.notifications = notifications
        self._state = CheckoutState.IDLE
        self.last_order_id: Optional[str] = None

    @property
    def state(self) -> CheckoutState:
        if self._state in (CheckoutState.IDLE, CheckoutState.EMPTY):
            return CheckoutState.EMPTY if self.store.is_empty() else CheckoutState.IDLE
        return self._state

    def preview(self) -> CheckoutResult:
        """What the checkout page shows before the user confirms."""
        state = self.state
        return CheckoutResult(
            state=state,
            summary=pricing.summarize(self.store.lines),
            redirect=BROWSE_PATH if state == CheckoutState.EMPTY else None,
        )

    async def submit(self, form: CheckoutForm, token: str | None = None) -> CheckoutResult:
        if self._state == CheckoutState.SUBMITTING:
            logger.warning("Checkout already in flight, ignoring second submit")
            return CheckoutResult(
                state=CheckoutState.SUBMITTING,
                notices=[CheckoutInProgressError().to_notice()],
            )

        # raised before the first await so a second submit cannot slip in;
        # storage and broker calls block, they all run off the event loop
        self._state = CheckoutState.SUBMITTING
        try:
            #snapshot, the request is built from these and not from the live store
            lines = await asyncio.to_thread(lambda: self.store.lines)
            summary = pricing.summarize(lines)

            try:
                request = self._prepare(lines, form, token)
            except EmptyCartCheckoutError as e:
                self._state = CheckoutState.EMPTY
                return CheckoutResult(state=self._state, summary=summary, notices=[e.to_notice()], redirect=BROWSE_PATH)
            except IdentityRequiredError as e:
                self._state = CheckoutState.AUTH_REQUIRED
                return CheckoutResult(state=self._state, summary=summary, notices=[e.to_notice()], redirect=LOGIN_PATH)
            except CartError as e:
                logger.warning(f"Checkout precondition failed: {e.code}")
                self._state = CheckoutState.IDLE
                return CheckoutResult(state=self._state, summary=summary, notices=[e.to_notice()])

            clamped = await asyncio.to_thread(self._clamp_overdrawn, lines)
            if clamped is not None:
                return clamped

            logger.info(f"Submitting order: {len(request.items)} lines, total {summary.total}")
            receipt = await asyncio.to_thread(self.orders.create_order, request, token)
            await asyncio.to_thread(self._clear_cart, receipt)
        except (OrderServiceRejectedError, OrderServiceUnreachableError) as e:
            logger.warning(f"Checkout failed, cart kept for retry: {e.code} {e.message}")
            return CheckoutResult(state=CheckoutState.FAILED, summary=summary, notices=[e.to_notice()])
        finally:
            if self._state == CheckoutState.SUBMITTING:
                self._state = CheckoutState.IDLE

        return await self._succeed(receipt, summary)

    # helpers
    def _prepare(self, lines: Tuple[CartLine, ...], form: CheckoutForm, token: str | None) -> OrderRequest:
        if not lines:
            raise EmptyCartCheckoutError()
        if not form.terms_accepted:
            raise TermsNotAcceptedError()
        if not token or not token.strip():
            raise IdentityRequiredError()
        return to_order_request(lines, form)

    def _clamp_overdrawn(self, lines: Tuple[CartLine, ...]) -> Optional[CheckoutResult]:
        """None when every line fits its stock hint, else the clamped cart back to idle."""
        with self.store.lock:
            notices: List[Notice] = []
            for line in find_overdrawn(lines):
                logger.warning(
                    f"Line {line.product_id} has {line.quantity} but stock hint is {line.stock_at_add_time}, clamping"
                )
                self.store.set_quantity(line.product_id, line.stock_at_add_time)
                notices.append(
                    StockLimitReachedError(
                        f"Only {line.stock_at_add_time} of {line.name or 'this product'} available, please review your cart",
                        product_id=line.product_id,
                        limit=line.stock_at_add_time,
                    ).to_notice()
                )
            if not notices:
                return None
            return CheckoutResult(
                state=CheckoutState.EMPTY if self.store.is_empty() else CheckoutState.IDLE,
                summary=pricing.summarize(self.store.lines),
                notices=notices,
            )

    def _clear_cart(self, receipt: OrderReceipt) -> None:
        try:
            self.store.clear()
        except CartStorageError as e:
            # order exists already, in-memory cart is empty; the stale snapshot is the only casualty
            logger.error(f"Order {receipt.order_id} placed but cart snapshot not cleared: {e}")

    async def _succeed(self, receipt: OrderReceipt, summary: OrderSummary) -> CheckoutResult:
        self._state = CheckoutState.SUCCEEDED
        self.last_order_id = receipt.order_id
        await asyncio.to_thread(self._notify, receipt, summary)
        return CheckoutResult(
            state=CheckoutState.SUCCEEDED,
            order_id=receipt.order_id,
            summary=summary,
            notices=[Notice(code="ORDER_CREATED", message="Order created successfully!", level="success")],
        )

    def _notify(self, receipt: OrderReceipt, summary: OrderSummary) -> None:
        if self.notifications is None:
            return
        try:
            self.notifications.send_order_confirmation(receipt.order_id, summary.item_count, str(summary.total))
        except Exception as e:
            logger.warning(f"Order confirmation for {receipt.order_id} not dispatched: {e}")
