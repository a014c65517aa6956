"""Storefront FastAPI application.

Serves checkout and the payment webhook. Commands are processed
synchronously inside the request, within the storefront domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.api import checkout_router, payment_router, register_error_handlers, webhook_router
from storefront.config import StorefrontConfig
from storefront.domain import storefront
from storefront.gateway import configure_gateway
from storefront.utils.logging import add_context, clear_context, configure_logging

configure_logging()
storefront.init()

config = StorefrontConfig.from_env()

# ---------------------------------------------------------------------------
# Payment gateway
# ---------------------------------------------------------------------------
# Without a processor key the FakeGateway default stays in place.
configure_gateway(config)

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront API",
    description="Checkout and payment reconciliation",
)
app.state.config = config

app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.storefront_origin],
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Origin"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the storefront domain context for each request."""
    clear_context()
    add_context(method=request.method, path=request.url.path)
    with storefront.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(webhook_router)
app.include_router(payment_router)
app.include_router(checkout_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domain": {"name": storefront.name},
        }
    )
