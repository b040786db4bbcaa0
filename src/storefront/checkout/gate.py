"""Checkout gate: checkout is enabled only for a cart that passes validation.

The order itself is placed by an ``OrderCheckout`` collaborator; payment
and order persistence live behind it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import structlog

from storefront.cart.backend import CartMode
from storefront.cart.line import CartSnapshot
from storefront.cart.view import CartView
from storefront.errors import CheckoutBlockedError
from storefront.stock.validator import StockValidator, StockVerdict, checkout_allowed

logger = structlog.get_logger(__name__)


class OrderCheckout(ABC):
    """Abstract order placement collaborator."""

    @abstractmethod
    async def place_order(self, cart: CartSnapshot, **details) -> str:
        """Place an order for ``cart`` and return its order id."""
        ...


@dataclass(frozen=True)
class CheckoutReadiness:
    allowed: bool
    verdicts: list[StockVerdict] = field(default_factory=list)
    reason: str | None = None

    @property
    def messages(self) -> list[str]:
        return [message for verdict in self.verdicts if (message := verdict.message())]


class CheckoutGate:
    def __init__(self, view: CartView, validator: StockValidator, checkout: OrderCheckout) -> None:
        self._view = view
        self._validator = validator
        self._checkout = checkout

    async def evaluate(self) -> CheckoutReadiness:
        if self._view.mode != CartMode.AUTHENTICATED:
            return CheckoutReadiness(allowed=False, reason="Sign in to check out")

        lines = self._view.get_lines()
        if not lines:
            return CheckoutReadiness(allowed=False, reason="Cart is empty")

        verdicts = await self._validator.validate_lines(lines, self._view.embedded_products())
        if not checkout_allowed(verdicts):
            return CheckoutReadiness(allowed=False, verdicts=verdicts, reason="Some items are unavailable")
        return CheckoutReadiness(allowed=True, verdicts=verdicts)

    async def place_order(self, **details) -> str:
        # Validate against a fresh snapshot, not whatever the page rendered
        if not await self._view.refresh():
            raise self._view.last_error or CheckoutBlockedError("Cart changed while checking out")
        readiness = await self.evaluate()
        if not readiness.allowed:
            logger.info("Checkout blocked", reason=readiness.reason, problems=len(readiness.messages))
            raise CheckoutBlockedError(readiness.reason or "Checkout not allowed", readiness.verdicts)

        snapshot = self._view.cache.snapshot
        order_id = await self._checkout.place_order(snapshot, **details)
        logger.info("Order placed", order_id=order_id, cart_id=snapshot.cart_id if snapshot else None)
        return order_id
