# pharmacart/main.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from requests import RequestException
import uvicorn

from pharmacart.api.routers import cart, checkout, health
from pharmacart.domain.errors import CartStorageError
from pharmacart.utils.logging import get_logger

logger = get_logger(__name__)


async def storage_error_handler(request: Request, exc: CartStorageError):
    logger.error(f"Cart storage failure on {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": "Cart storage unavailable"})


async def upstream_error_handler(request: Request, exc: RequestException):
    logger.error(f"Catalog request failed on {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"detail": "Catalog service unavailable"})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Pharmacy Cart",
        version="1.0.0",
    )

    app.add_exception_handler(CartStorageError, storage_error_handler)
    app.add_exception_handler(RequestException, upstream_error_handler)

    app.include_router(health.router)
    app.include_router(cart.router)
    app.include_router(checkout.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
