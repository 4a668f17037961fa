# pharmacart/utils/settings.py
import os
from decimal import Decimal
from dotenv import load_dotenv

load_dotenv()

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:4001/api")
HTTP_TIMEOUT = int(os.getenv("HTTP_TIMEOUT", 5))
HTTP_RETRY_ATTEMPTS = int(os.getenv("HTTP_RETRY_ATTEMPTS", 3))
REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", REDIS_URL)
REDIS_RETRY_ATTEMPTS = int(os.getenv("REDIS_RETRY_ATTEMPTS", 3))

CART_STORAGE_BACKEND = os.getenv("CART_STORAGE_BACKEND", "redis")
CART_STORAGE_KEY = os.getenv("CART_STORAGE_KEY", "cart")
CART_STORAGE_PATH = os.getenv("CART_STORAGE_PATH", ".cart.json")

PLACEHOLDER_IMAGE = os.getenv("PLACEHOLDER_IMAGE", "/assets/img/products/product.jpg")

#shipping is only an estimate, seller sets the real fee after the order
FREE_SHIPPING_THRESHOLD = Decimal(os.getenv("FREE_SHIPPING_THRESHOLD", "50.00"))
FLAT_SHIPPING_FEE = Decimal(os.getenv("FLAT_SHIPPING_FEE", "25.00"))

DEFAULT_PAYMENT_METHOD = os.getenv("DEFAULT_PAYMENT_METHOD", "DUMMY")

BROWSE_PATH = "/product-all"
CHECKOUT_PATH = "/product-checkout"
LOGIN_PATH = "/login"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
