"""Flutterwave payment gateway adapter.

Talks to the Flutterwave v3 REST API over ``httpx``: a hosted payment page
is created with ``POST /payments`` and a transaction is checked with
``GET /transactions/{reference}/verify``. Every request carries the secret
key as a bearer token and is bounded by the configured timeout.
"""

from decimal import Decimal, InvalidOperation

import httpx

from storefront.config import StorefrontConfig
from storefront.domain import logger
from storefront.errors import ProcessorError
from storefront.gateway.port import (
    PaymentGateway,
    PaymentLink,
    TransactionVerification,
    build_reference,
    token_from_reference,
)


class FlutterwaveGateway(PaymentGateway):
    """Production Flutterwave gateway adapter."""

    def __init__(
        self,
        secret_key: str,
        base_url: str = "https://api.flutterwave.com/v3",
        timeout: float = 10.0,
        redirect_url: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.redirect_url = redirect_url
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {secret_key}",
                "Content-Type": "application/json",
            },
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: StorefrontConfig, transport: httpx.BaseTransport | None = None) -> "FlutterwaveGateway":
        return cls(
            secret_key=config.processor_secret_key,
            base_url=config.processor_base_url,
            timeout=config.request_timeout,
            redirect_url=f"{config.storefront_url}/success",
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def create_payment_link(
        self,
        amount: Decimal,
        currency: str,
        correlation_token: str,
        customer: dict,
    ) -> PaymentLink:
        reference = build_reference(correlation_token)
        payload = {
            "tx_ref": reference,
            "amount": str(amount),
            "currency": currency,
            "redirect_url": self.redirect_url,
            "customer": customer,
            "meta": {"order_id": correlation_token},
            "customizations": {
                "title": "Storefront",
                "description": "Payment for your order",
            },
        }

        body = self._request("POST", "/payments", json=payload)
        link = (body.get("data") or {}).get("link")
        if not link:
            raise ProcessorError("Payment processor response did not include a payment link")

        logger.info("payment_link_created", order_id=correlation_token, reference=reference)
        return PaymentLink(url=link, reference=reference)

    def verify_transaction(self, reference: str) -> TransactionVerification:
        body = self._request("GET", f"/transactions/{reference}/verify")
        data = body.get("data") or {}
        meta = data.get("meta") or {}

        try:
            amount = Decimal(str(data.get("amount", "0")))
        except InvalidOperation:
            raise ProcessorError(f"Unreadable amount in verification of {reference}") from None

        return TransactionVerification(
            status=data.get("status", ""),
            amount=amount,
            correlation_token=meta.get("order_id") or token_from_reference(data.get("tx_ref") or reference),
            reference=data.get("tx_ref") or reference,
        )

    def _request(self, method: str, url: str, **kwargs) -> dict:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.TimeoutException:
            logger.warning("processor_timeout", method=method, url=url)
            raise ProcessorError("Payment processor timed out") from None
        except httpx.HTTPError as exc:
            logger.warning("processor_unreachable", method=method, url=url, error=str(exc))
            raise ProcessorError(f"Payment processor unreachable: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            raise ProcessorError(f"Payment processor returned HTTP {response.status_code} without JSON") from None

        if response.is_error or body.get("status") != "success":
            message = body.get("message") or f"HTTP {response.status_code}"
            logger.warning("processor_rejected", method=method, url=url, status_code=response.status_code, message=message)
            raise ProcessorError(message)
        return body
