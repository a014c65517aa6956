"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing
- FlutterwaveGateway for production, installed by configure_gateway()
  when a processor key is configured
"""

from storefront.config import StorefrontConfig
from storefront.gateway.fake_adapter import FakeGateway
from storefront.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway. Defaults to FakeGateway."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = FakeGateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None


def configure_gateway(config: StorefrontConfig) -> PaymentGateway:
    """Install the processor ``config`` points at and return the active gateway.

    Without a processor key the current gateway (FakeGateway by default)
    stays in place.
    """
    if config.processor_secret_key:
        from storefront.gateway.flutterwave_adapter import FlutterwaveGateway

        set_gateway(FlutterwaveGateway.from_config(config))
    return get_gateway()
