# pharmacart/services/catalog_client.py
import requests

from pharmacart.domain.errors import CatalogNotFoundError
from pharmacart.domain.mappers import to_product
from pharmacart.domain.schemas import Pharmacy, PharmacyPage, Product, ProductPage
from pharmacart.utils.retry import http_retry
from pharmacart.utils.settings import API_BASE_URL, HTTP_TIMEOUT
from pharmacart.utils.logging import get_logger

logger = get_logger(__name__)


def unwrap(payload):
    """Backend answers {success, data, message}; older endpoints return the bare object."""
    if isinstance(payload, dict) and "data" in payload and payload["data"] is not None:
        return payload["data"]
    return payload


def clean_params(filters: dict) -> dict:
    return {k: v for k, v in filters.items() if v is not None and v != ""}


class CatalogClient:
    """Read-only access to products and pharmacies. The cart never writes here."""

    def __init__(self, base_url: str | None = None, timeout: int = HTTP_TIMEOUT):
        self.base_url = (base_url or API_BASE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def _get(self, path: str, params: dict | None = None):
        url = f"{self.base_url}{path}"
        logger.info(f"CatalogClient GET {url}")

        resp = requests.get(url, params=params, timeout=self.timeout)
        if resp.status_code == 404:
            raise CatalogNotFoundError(f"{path} not found")
        resp.raise_for_status()
        return unwrap(resp.json())

    def list_products(self, **filters) -> ProductPage:
        """
        filters: sellerId, sellerType, category, subCategory, minPrice,
        maxPrice, tags, search, page, limit
        """
        data = self._get("/products", params=clean_params(filters))
        if isinstance(data, list):
            return ProductPage(products=data)
        return ProductPage.model_validate(data)

    def get_product(self, product_id: str) -> Product:
        data = self._get(f"/products/{product_id}")
        if isinstance(data, dict) and "product" in data:
            data = data["product"]
        return to_product(data)

    def list_pharmacies(self, **filters) -> PharmacyPage:
        """filters: ownerId, city, search, page, limit"""
        data = self._get("/pharmacy", params=clean_params(filters))
        if isinstance(data, list):
            return PharmacyPage(pharmacies=data)
        return PharmacyPage.model_validate(data)

    def get_pharmacy(self, pharmacy_id: str) -> Pharmacy:
        data = self._get(f"/pharmacy/{pharmacy_id}")
        if isinstance(data, dict) and "pharmacy" in data:
            data = data["pharmacy"]
        return Pharmacy.model_validate(data)
