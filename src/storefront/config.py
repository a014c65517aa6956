"""Runtime settings for checkout and payment reconciliation.

Settings are passed explicitly to the components that need them instead of
being read from the environment at the point of use. ``from_env()`` is the
single place that knows the variable names.
"""

import os
from dataclasses import dataclass

from storefront.utils.logging import current_env

_ENV_PREFIX = "STOREFRONT_"

# Environments allowed to fall back to the built-in signing secret
_DEV_ENVS = ("development", "test")


def _env(name: str, default: str) -> str:
    return os.environ.get(f"{_ENV_PREFIX}{name}", default)


@dataclass(frozen=True)
class StorefrontConfig:
    """Checkout, gateway and webhook settings."""

    signing_secret: str = "dev-signing-secret"
    processor_base_url: str = "https://api.flutterwave.com/v3"
    processor_secret_key: str = ""
    request_timeout: float = 10.0
    currency: str = "USD"
    storefront_url: str = "http://localhost:3001"
    storefront_origin: str = "http://localhost:3001"
    checkout_ttl_minutes: int = 30

    def __post_init__(self) -> None:
        if not self.signing_secret:
            raise ValueError("signing_secret must not be empty")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if self.checkout_ttl_minutes <= 0:
            raise ValueError("checkout_ttl_minutes must be positive")

    @classmethod
    def from_env(cls) -> "StorefrontConfig":
        """Settings from ``STOREFRONT_*`` variables.

        The webhook signature is the only thing authenticating a payment
        notification, so outside development and test a missing
        ``STOREFRONT_SIGNING_SECRET`` is an error rather than a default.
        """
        defaults = cls()
        signing_secret = os.environ.get(f"{_ENV_PREFIX}SIGNING_SECRET")
        if not signing_secret:
            env = current_env()
            if env not in _DEV_ENVS:
                raise ValueError(f"{_ENV_PREFIX}SIGNING_SECRET must be set in the {env} environment")
            signing_secret = defaults.signing_secret

        return cls(
            signing_secret=signing_secret,
            processor_base_url=_env("PROCESSOR_BASE_URL", defaults.processor_base_url),
            processor_secret_key=_env("PROCESSOR_SECRET_KEY", defaults.processor_secret_key),
            request_timeout=float(_env("REQUEST_TIMEOUT", str(defaults.request_timeout))),
            currency=_env("CURRENCY", defaults.currency),
            storefront_url=_env("URL", defaults.storefront_url),
            storefront_origin=_env("ORIGIN", defaults.storefront_origin),
            checkout_ttl_minutes=int(_env("CHECKOUT_TTL_MINUTES", str(defaults.checkout_ttl_minutes))),
        )
