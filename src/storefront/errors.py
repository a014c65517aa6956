"""Business errors raised by checkout and payment reconciliation.

Input problems are reported with Protean's ``ValidationError`` before any
unit of work opens. Everything here is raised from inside the flow and
carries enough context for the HTTP layer to answer without guessing:
``status_code`` for the response and ``retryable`` for payment processors
deciding whether to redeliver a webhook.
"""


class StorefrontError(Exception):
    status_code = 400
    retryable = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class NotFound(StorefrontError):
    status_code = 404


class StoreNotFound(NotFound):
    def __init__(self, store_id: str) -> None:
        super().__init__(f"Store with ID {store_id} not found.")
        self.store_id = store_id


class ProductNotFound(NotFound):
    def __init__(self, product_id: str) -> None:
        super().__init__(f"Product with ID {product_id} not found.")
        self.product_id = product_id

    def to_dict(self) -> dict:
        return {**super().to_dict(), "product_id": self.product_id}


class OrderNotFound(NotFound):
    def __init__(self, order_id: str) -> None:
        super().__init__(f"Order with ID {order_id} not found.")
        self.order_id = order_id

    def to_dict(self) -> dict:
        return {**super().to_dict(), "order_id": self.order_id}


class InsufficientStock(StorefrontError):
    status_code = 409

    def __init__(self, product_id: str, requested: int, available: int, name: str | None = None) -> None:
        super().__init__(f"Not enough stock for {name or product_id}: {available} available, {requested} requested.")
        self.product_id = product_id
        self.requested = requested
        self.available = available

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            "product_id": self.product_id,
            "requested": self.requested,
            "available": self.available,
        }


class InvalidSignature(StorefrontError):
    def __init__(self, message: str = "Invalid webhook signature") -> None:
        super().__init__(message)


class InvalidPayload(StorefrontError):
    pass


class ProcessorError(StorefrontError):
    """The payment processor failed or answered with a non-success status."""

    status_code = 502


class PaymentLinkFailed(ProcessorError):
    """The order is committed with its stock held, but no payment link exists for it."""

    def __init__(self, order_id: str, reason: str) -> None:
        super().__init__(f"Order {order_id} was created but the payment link could not be issued: {reason}")
        self.order_id = order_id
        self.reason = reason

    def to_dict(self) -> dict:
        return {**super().to_dict(), "order_id": self.order_id, "order_created": True}


class PaymentAmountMismatch(StorefrontError):
    """The processor reports less money than the order total."""

    status_code = 409

    def __init__(self, order_id: str, paid, total) -> None:
        super().__init__(f"Order {order_id} total is {total}, the processor reports {paid} paid.")
        self.order_id = order_id
        self.paid = paid
        self.total = total

    def to_dict(self) -> dict:
        return {**super().to_dict(), "order_id": self.order_id, "paid": str(self.paid), "total": str(self.total)}


class WriteConflict(StorefrontError):
    """A row kept changing underneath a conditional write; safe to retry."""

    status_code = 503
    retryable = True
