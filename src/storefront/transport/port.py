"""Cart transport port: the server cart endpoints.

Every call returns the full authoritative cart snapshot, never just "ok":
the server may reject, clamp or adjust quantities against live stock, so
the client must not reconstruct state by patching a prior snapshot.

Failures are typed: ``InsufficientStockError``, ``NotFoundError`` or
``TransportError``.
"""

from abc import ABC, abstractmethod

from storefront.cart.line import CartLine, CartSnapshot


class CartTransport(ABC):
    """Abstract interface for server cart adapters."""

    @abstractmethod
    async def fetch_cart(self) -> CartSnapshot:
        """Return the current server cart."""
        ...

    @abstractmethod
    async def add_line(self, product_id: str, quantity: int) -> CartSnapshot:
        """Add units of a product (the server sums into an existing line)."""
        ...

    @abstractmethod
    async def set_line_quantity(self, product_id: str, quantity: int) -> CartSnapshot:
        """Overwrite the quantity of an existing line."""
        ...

    @abstractmethod
    async def remove_line(self, product_id: str) -> CartSnapshot:
        """Remove a line; removing an absent line is not an error."""
        ...

    @abstractmethod
    async def clear_cart(self) -> CartSnapshot:
        """Empty the cart."""
        ...

    @abstractmethod
    async def sync_lines(self, lines: list[CartLine]) -> CartSnapshot:
        """Fold a batch of id-keyed lines into the cart using the server's merge policy."""
        ...
