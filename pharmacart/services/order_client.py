# pharmacart/services/order_client.py
import requests
from requests import RequestException

from pharmacart.domain.errors import OrderServiceRejectedError, OrderServiceUnreachableError
from pharmacart.domain.schemas import OrderReceipt, OrderRequest
from pharmacart.services.catalog_client import clean_params, unwrap
from pharmacart.utils.retry import http_retry
from pharmacart.utils.settings import API_BASE_URL, HTTP_TIMEOUT
from pharmacart.utils.logging import get_logger

logger = get_logger(__name__)

_ID_KEYS = ("_id", "orderId", "id")


def extract_order_id(payload) -> str | None:
    for candidate in (unwrap(payload), payload):
        if not isinstance(candidate, dict):
            continue
        for key in _ID_KEYS:
            value = candidate.get(key)
            if value:
                return str(value)
        order = candidate.get("order")
        if isinstance(order, dict):
            for key in _ID_KEYS:
                if order.get(key):
                    return str(order[key])
    return None


def error_message(resp: requests.Response) -> str | None:
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if isinstance(message, str) and message.strip():
            return message.strip()
    return None


class OrderClient:
    """
    Orders are owned by the backend: it re-validates price and stock and its
    answer is the truth, whatever the cart thought before submitting.
    """

    def __init__(self, base_url: str | None = None, timeout: int = HTTP_TIMEOUT):
        self.base_url = (base_url or API_BASE_URL).rstrip("/")
        self.timeout = timeout

    @staticmethod
    def _headers(token: str | None) -> dict:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def create_order(self, request: OrderRequest, token: str) -> OrderReceipt:
        # no retry here, a repeated POST could place the same order twice
        url = f"{self.base_url}/orders"
        body = request.model_dump(mode="json", by_alias=True, exclude_none=True)
        logger.info(f"OrderClient POST {url} ({len(request.items)} items)")

        try:
            resp = requests.post(url, json=body, headers=self._headers(token), timeout=self.timeout)
        except RequestException as e:
            logger.error(f"Order service unreachable: {e}")
            raise OrderServiceUnreachableError() from e

        if not resp.ok:
            message = error_message(resp)
            logger.warning(f"Order rejected with HTTP {resp.status_code}: {message}")
            raise OrderServiceRejectedError(message, status_code=resp.status_code)

        try:
            payload = resp.json()
        except ValueError as e:
            raise OrderServiceRejectedError("Order service returned an unreadable response") from e

        order_id = extract_order_id(payload)
        if not order_id:
            raise OrderServiceRejectedError("Order service did not return an order id")

        logger.info(f"Order {order_id} created")
        return OrderReceipt(order_id=order_id, payload=payload if isinstance(payload, dict) else {})

    @http_retry()
    def get_order(self, order_id: str, token: str) -> dict:
        url = f"{self.base_url}/orders/{order_id}"
        logger.info(f"OrderClient GET {url}")
        resp = requests.get(url, headers=self._headers(token), timeout=self.timeout)
        resp.raise_for_status()
        return unwrap(resp.json())

    @http_retry()
    def list_orders(self, token: str, **params) -> dict:
        """params: status, page, limit"""
        url = f"{self.base_url}/orders"
        logger.info(f"OrderClient GET {url}")
        resp = requests.get(url, params=clean_params(params), headers=self._headers(token), timeout=self.timeout)
        resp.raise_for_status()
        return unwrap(resp.json())

    def cancel_order(self, order_id: str, token: str) -> dict:
        url = f"{self.base_url}/orders/{order_id}/cancel"
        logger.info(f"OrderClient POST {url}")
        try:
            resp = requests.post(url, headers=self._headers(token), timeout=self.timeout)
        except RequestException as e:
            raise OrderServiceUnreachableError() from e
        if not resp.ok:
            raise OrderServiceRejectedError(error_message(resp) or "Failed to cancel order", status_code=resp.status_code)
        return unwrap(resp.json())
