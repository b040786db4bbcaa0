"""Fake cart server: an in-memory stand-in for the server cart endpoints.

Behaves like the storefront backend: quantities are checked against the
catalog's live stock, adds and syncs merge into existing lines, and every
call answers with the full cart. Configurable failure makes it useful for
exercising the client's rollback paths.

The merge policy for syncing a guest line into an existing server line is a
server-side contract. ``sum`` (the default) adds the quantities, ``max``
keeps the larger one; either way the result is clamped to available stock.
"""

import asyncio
from collections.abc import Callable
from uuid import uuid4

import structlog

from storefront.cart.line import CartLine, CartSnapshot
from storefront.catalog.fake_adapter import InMemoryCatalog
from storefront.errors import (
    CartError,
    InsufficientStockError,
    NotFoundError,
    OutOfStockError,
    TransportError,
)
from storefront.transport.port import CartTransport

logger = structlog.get_logger(__name__)

MERGE_POLICIES: dict[str, Callable[[int, int], int]] = {
    "sum": lambda existing, incoming: existing + incoming,
    "max": max,
}


class FakeCartServer(CartTransport):
    """In-memory server cart for one user."""

    def __init__(self, catalog: InMemoryCatalog, merge_policy: str = "sum", cart_id: str | None = None) -> None:
        if merge_policy not in MERGE_POLICIES:
            raise ValueError(f"Unknown merge policy: {merge_policy}")
        self.catalog = catalog
        self.merge_policy = merge_policy
        self.cart_id = cart_id or f"cart-{uuid4().hex[:8]}"
        self._lines: dict[str, int] = {}
        self.should_succeed: bool = True
        self.failure_reason: str = "Cart service unavailable"
        self._next_error: CartError | None = None
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Cart service unavailable") -> None:
        """Configure server behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def fail_next(self, error: CartError) -> None:
        """Raise ``error`` from the next call only."""
        self._next_error = error

    def seed(self, product_id: str, quantity: int) -> None:
        """Place a line directly, bypassing stock checks (pre-existing server state)."""
        self._lines[str(product_id)] = quantity

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    async def _enter(self, method: str, **payload) -> None:
        self.calls.append({"method": method, **payload})
        # Yield so concurrent callers interleave the way real round trips do
        await asyncio.sleep(0)
        if self._next_error is not None:
            error, self._next_error = self._next_error, None
            raise error
        if not self.should_succeed:
            raise TransportError(self.failure_reason, status_code=503)

    def _product(self, product_id: str):
        product = self.catalog.get(product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found", product_id=product_id)
        return product

    def _check_stock(self, product, quantity: int) -> None:
        available = product.available_stock
        if available == 0:
            raise OutOfStockError(str(product.product_id), quantity)
        if quantity > available:
            raise InsufficientStockError(str(product.product_id), quantity, available)

    def snapshot(self) -> CartSnapshot:
        lines = tuple(CartLine(product_ref=pid, quantity=qty) for pid, qty in self._lines.items())
        products = {}
        for pid in self._lines:
            product = self.catalog.get(pid)
            if product is not None:
                products[pid] = product
        return CartSnapshot(cart_id=self.cart_id, lines=lines, products=products)

    # -------------------------------------------------------------------
    # Endpoints
    # -------------------------------------------------------------------
    async def fetch_cart(self) -> CartSnapshot:
        await self._enter("fetch_cart")
        return self.snapshot()

    async def add_line(self, product_id: str, quantity: int) -> CartSnapshot:
        await self._enter("add_line", product_id=product_id, quantity=quantity)
        product = self._product(product_id)
        new_quantity = self._lines.get(str(product_id), 0) + quantity
        self._check_stock(product, new_quantity)
        self._lines[str(product_id)] = new_quantity
        return self.snapshot()

    async def set_line_quantity(self, product_id: str, quantity: int) -> CartSnapshot:
        await self._enter("set_line_quantity", product_id=product_id, quantity=quantity)
        if quantity <= 0:
            self._lines.pop(str(product_id), None)
            return self.snapshot()
        if str(product_id) not in self._lines:
            raise NotFoundError("Item not found in cart", product_id=product_id)
        self._check_stock(self._product(product_id), quantity)
        self._lines[str(product_id)] = quantity
        return self.snapshot()

    async def remove_line(self, product_id: str) -> CartSnapshot:
        await self._enter("remove_line", product_id=product_id)
        self._lines.pop(str(product_id), None)
        return self.snapshot()

    async def clear_cart(self) -> CartSnapshot:
        await self._enter("clear_cart")
        self._lines.clear()
        return self.snapshot()

    async def sync_lines(self, lines: list[CartLine]) -> CartSnapshot:
        await self._enter("sync_lines", lines=[(line.product_ref, line.quantity) for line in lines])
        merge = MERGE_POLICIES[self.merge_policy]
        for line in lines:
            product = self.catalog.get(line.product_ref)
            if product is None or product.available_stock == 0:
                logger.info("Sync skipped unavailable product", product_id=line.product_ref)
                continue
            product_id = str(product.product_id)
            merged = merge(self._lines.get(product_id, 0), line.quantity)
            self._lines[product_id] = min(merged, product.available_stock)
        return self.snapshot()
