"""Storefront bounded context — catalogue, checkout and payment reconciliation.

A single domain owns stores, products, shipping details and orders so that
one unit of work can reserve stock, record shipping details and create the
order atomically.
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)
