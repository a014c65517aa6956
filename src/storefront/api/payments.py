"""FastAPI routes for payment notifications and manual verification.

Processors decide whether to redeliver from the status code, so every
failure is answered with ``retryable`` set: 4xx for notifications that
will never succeed, 503 for ones worth sending again.
"""

from fastapi import APIRouter, Header, Request
from fastapi.responses import JSONResponse

from storefront.api.payment_schemas import AckResponse
from storefront.config import StorefrontConfig
from storefront.domain import logger
from storefront.errors import StorefrontError
from storefront.webhook.reconciliation import PaymentReconciler

webhook_router = APIRouter(tags=["payments"])
payment_router = APIRouter(prefix="/payments", tags=["payments"])


def _reconciler(request: Request) -> PaymentReconciler:
    config = getattr(request.app.state, "config", None) or StorefrontConfig.from_env()
    return PaymentReconciler(config)


def _error_response(exc: StorefrontError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={**exc.to_dict(), "retryable": exc.retryable},
    )


def _internal_error() -> JSONResponse:
    return JSONResponse(
        status_code=503,
        content={"error": "InternalError", "message": "Temporarily unable to process", "retryable": True},
    )


@webhook_router.post("/webhook", response_model=AckResponse)
async def payment_webhook(
    request: Request,
    x_gateway_signature: str = Header(default=""),
):
    """Receive a signed payment notification from the processor."""
    raw_body = await request.body()
    try:
        ack = _reconciler(request).handle_notification(raw_body, x_gateway_signature)
    except StorefrontError as exc:
        logger.warning("webhook_rejected", error=exc.code, message=exc.message, retryable=exc.retryable)
        return _error_response(exc)
    except Exception:
        logger.exception("webhook_failed")
        return _internal_error()
    return AckResponse(**ack.to_dict())


# Plain def: verification blocks on the processor call
@payment_router.post("/verify/{reference}", response_model=AckResponse)
def verify_payment(reference: str, request: Request):
    """Ask the processor about a transaction and apply it if it was paid."""
    try:
        ack = _reconciler(request).verify(reference)
    except StorefrontError as exc:
        logger.warning("verification_rejected", reference=reference, error=exc.code, message=exc.message)
        return _error_response(exc)
    except Exception:
        logger.exception("verification_failed", reference=reference)
        return _internal_error()
    return AckResponse(**ack.to_dict())
