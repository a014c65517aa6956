"""HTTP surface: checkout and payment routers plus the shared error mapping."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from storefront.errors import StorefrontError


def register_error_handlers(app: FastAPI) -> None:
    """Protean's handlers for validation and lookup errors, plus ``StorefrontError``."""
    register_exception_handlers(app)

    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


from storefront.api.checkout import checkout_router  # noqa: E402
from storefront.api.payments import payment_router, webhook_router  # noqa: E402

__all__ = ["checkout_router", "payment_router", "register_error_handlers", "webhook_router"]
