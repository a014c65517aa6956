"""FastAPI routes for checkout."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response

from storefront.api.checkout_schemas import CheckoutRequest, CheckoutResponse
from storefront.checkout.service import place_order
from storefront.config import StorefrontConfig

checkout_router = APIRouter(tags=["checkout"])

_CORS_METHODS = "POST, OPTIONS"
_CORS_HEADERS = "Content-Type, Authorization, Origin"


def cors_headers(config: StorefrontConfig) -> dict:
    return {
        "Access-Control-Allow-Origin": config.storefront_origin,
        "Access-Control-Allow-Methods": _CORS_METHODS,
        "Access-Control-Allow-Headers": _CORS_HEADERS,
    }


def _config(request: Request) -> StorefrontConfig:
    return getattr(request.app.state, "config", None) or StorefrontConfig.from_env()


@checkout_router.options("/{store_id}/checkout")
async def checkout_preflight(store_id: str, request: Request) -> Response:
    return JSONResponse(content={}, headers=cors_headers(_config(request)))


# Plain def: the processor call blocks, so this runs in the threadpool
@checkout_router.post("/{store_id}/checkout", response_model=CheckoutResponse)
def checkout(store_id: str, body: CheckoutRequest, request: Request) -> JSONResponse:
    """Create an order for the cart and return the payment page URL."""
    config = _config(request)
    shipping = body.shipping_details.model_dump() if body.shipping_details else None
    result = place_order(
        store_id=store_id,
        items=[line.model_dump() for line in body.products],
        shipping=shipping,
        config=config,
    )
    return JSONResponse(
        content=CheckoutResponse(url=result.checkout_url).model_dump(),
        headers=cors_headers(config),
    )
