"""Cart backends: one strategy per storage domain.

The guest cart keys lines by product slug; the server cart keys them by
product id. ``CartBackend`` isolates that mismatch to ``ref_for()`` so the
rest of the read model never branches on which cart is active.
"""

from abc import ABC, abstractmethod
from enum import Enum

from storefront.cart.guest_store import GuestCartStore
from storefront.cart.line import CartLine
from storefront.cart.server_client import ServerCartClient
from storefront.catalog.product import Product


class CartMode(Enum):
    GUEST = "guest"
    AUTHENTICATED = "authenticated"


class CartBackend(ABC):
    mode: CartMode

    @abstractmethod
    def ref_for(self, product: Product) -> str:
        """The reference this cart uses for ``product``."""
        ...

    @abstractmethod
    def lines(self) -> list[CartLine]: ...

    def embedded_product(self, ref: str) -> Product | None:
        """Product data stored alongside the line, if the cart carries any."""
        return None

    @abstractmethod
    async def refresh(self, accept=None) -> None: ...

    @abstractmethod
    async def add(self, ref: str, quantity: int) -> None: ...

    @abstractmethod
    async def set_quantity(self, ref: str, quantity: int) -> None: ...

    @abstractmethod
    async def remove(self, ref: str) -> None: ...

    @abstractmethod
    async def clear(self) -> None: ...


class GuestCartBackend(CartBackend):
    mode = CartMode.GUEST

    def __init__(self, store: GuestCartStore) -> None:
        self.store = store

    def ref_for(self, product: Product) -> str:
        return product.guest_ref

    def lines(self) -> list[CartLine]:
        return self.store.list()

    async def refresh(self, accept=None) -> None:
        # Device storage is always current
        return None

    async def add(self, ref: str, quantity: int) -> None:
        self.store.add(ref, quantity)

    async def set_quantity(self, ref: str, quantity: int) -> None:
        self.store.set_quantity(ref, quantity)

    async def remove(self, ref: str) -> None:
        self.store.remove(ref)

    async def clear(self) -> None:
        self.store.clear()


class ServerCartBackend(CartBackend):
    mode = CartMode.AUTHENTICATED

    def __init__(self, client: ServerCartClient) -> None:
        self.client = client

    def ref_for(self, product: Product) -> str:
        return str(product.product_id)

    def lines(self) -> list[CartLine]:
        return self.client.lines()

    def embedded_product(self, ref: str) -> Product | None:
        snapshot = self.client.snapshot
        return snapshot.product(ref) if snapshot is not None else None

    async def refresh(self, accept=None) -> None:
        await self.client.fetch(accept=accept)

    async def add(self, ref: str, quantity: int) -> None:
        await self.client.add(ref, quantity)

    async def set_quantity(self, ref: str, quantity: int) -> None:
        await self.client.set_quantity(ref, quantity)

    async def remove(self, ref: str) -> None:
        await self.client.remove(ref)

    async def clear(self) -> None:
        await self.client.clear()
