"""Storefront bounded context: cart state reconciliation.

A cart lives either on the device (guest, keyed by product slug) or on the
server (authenticated, keyed by product id). This context keeps the two
consistent across login and validates the cart against live stock.
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)
