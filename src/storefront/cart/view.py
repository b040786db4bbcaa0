"""Cart view: the one read model every UI surface consumes.

Badge counts, per-product buttons, the cart page and the checkout page all
ask the view what is in the cart, whichever backend is active. Staleness is
tracked by two explicit counters rather than by snapshot identity:

    mutation_version  bumps whenever the server cart snapshot changes
    guest_touch       bumps whenever guest storage is written, by anyone

Either counter moving fires ``onChanged`` (``subscribe``) so memoised
derived values recompute. In authenticated mode every mount and focus
fetches a fresh snapshot; a fetch whose surface has unmounted, or that
started before a mode switch, is discarded.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog

from storefront.cart.backend import CartBackend, CartMode, GuestCartBackend, ServerCartBackend
from storefront.cart.guest_store import GuestCartStore
from storefront.cart.line import CartLine, CartSnapshot, total_quantity
from storefront.cart.server_client import ServerCartClient
from storefront.catalog.product import Product
from storefront.errors import CartError

logger = structlog.get_logger(__name__)


@dataclass
class CacheEntry:
    """Last known server snapshot plus the two staleness counters."""

    snapshot: CartSnapshot | None = None
    mutation_version: int = 0
    guest_touch: int = 0


class CartSurface:
    """A mounted UI consumer of the view (badge, cart page, checkout...)."""

    def __init__(self, view: "CartView", listener: Callable[["CartView"], None] | None = None) -> None:
        self._view = view
        self.active = True
        self._unsubscribe = view.subscribe(listener) if listener else None

    async def focus(self) -> bool:
        """The surface regained focus: fetch fresh cart state."""
        if not self.active:
            return False
        return await self._view.refresh(self)

    def unmount(self) -> None:
        self.active = False
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None


class CartView:
    def __init__(self, guest_store: GuestCartStore, server_client: ServerCartClient) -> None:
        self._guest = GuestCartBackend(guest_store)
        self._server = ServerCartBackend(server_client)
        self._backend: CartBackend = self._guest
        self._cache = CacheEntry()
        self._generation = 0
        self._listeners: list[Callable[[CartView], None]] = []
        self.last_error: CartError | None = None

        guest_store.subscribe(self._on_guest_touched)
        server_client.subscribe(self._on_server_snapshot)

    # -------------------------------------------------------------------
    # Mode
    # -------------------------------------------------------------------
    @property
    def mode(self) -> CartMode:
        return self._backend.mode

    @property
    def backend(self) -> CartBackend:
        return self._backend

    def activate(self, authenticated: bool) -> None:
        """Switch backends. Driven by the auth-state transition, never decided here."""
        backend = self._server if authenticated else self._guest
        if backend is self._backend:
            return
        self._backend = backend
        self._generation += 1
        self.last_error = None
        logger.info("Cart view switched mode", mode=backend.mode.value)
        self._notify()

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    @property
    def cache(self) -> CacheEntry:
        return self._cache

    @property
    def version(self) -> tuple[str, int, int]:
        return (self.mode.value, self._cache.mutation_version, self._cache.guest_touch)

    @property
    def is_ready(self) -> bool:
        """False in authenticated mode until a snapshot has been fetched."""
        return self.mode == CartMode.GUEST or self._cache.snapshot is not None

    def get_lines(self) -> list[CartLine]:
        return self._backend.lines()

    def get_count(self) -> int:
        return total_quantity(self.get_lines())

    def ref_for(self, product: Product) -> str:
        return self._backend.ref_for(product)

    def quantity_of(self, product: Product) -> int:
        ref = self.ref_for(product)
        return next((line.quantity for line in self.get_lines() if line.product_ref == ref), 0)

    def contains(self, product: Product) -> bool:
        return self.quantity_of(product) > 0

    def embedded_products(self) -> dict[str, Product]:
        products = {}
        for line in self.get_lines():
            product = self._backend.embedded_product(line.product_ref)
            if product is not None:
                products[line.product_ref] = product
        return products

    # -------------------------------------------------------------------
    # onChanged
    # -------------------------------------------------------------------
    def subscribe(self, listener: Callable[["CartView"], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _on_guest_touched(self) -> None:
        self._cache.guest_touch += 1
        self._notify()

    def _on_server_snapshot(self, snapshot: CartSnapshot | None) -> None:
        self._cache.snapshot = snapshot
        self._cache.mutation_version += 1
        self._notify()

    # -------------------------------------------------------------------
    # Surfaces and refresh
    # -------------------------------------------------------------------
    async def mount(self, listener: Callable[["CartView"], None] | None = None) -> CartSurface:
        """Mount a surface and fetch fresh state for it."""
        surface = CartSurface(self, listener)
        await self.refresh(surface)
        return surface

    async def refresh(self, surface: CartSurface | None = None) -> bool:
        """Re-read the active cart. Returns False when the result was not applied.

        A failed fetch leaves the cached state untouched and records
        ``last_error`` so the surface can offer a retry.
        """
        generation = self._generation
        backend = self._backend

        def accept() -> bool:
            return generation == self._generation and (surface is None or surface.active)

        try:
            await backend.refresh(accept=accept)
        except CartError as exc:
            self.last_error = exc
            logger.warning("Cart refresh failed; keeping previous state", kind=exc.kind.value, error=exc.message)
            return False

        if not accept():
            return False
        self.last_error = None
        return True

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    async def add(self, product: Product, quantity: int = 1) -> None:
        await self._backend.add(self.ref_for(product), quantity)

    async def set_quantity(self, product: Product, quantity: int) -> None:
        await self._backend.set_quantity(self.ref_for(product), quantity)

    async def remove(self, product: Product) -> None:
        await self._backend.remove(self.ref_for(product))

    async def clear(self) -> None:
        await self._backend.clear()


class DerivedValue:
    """A value computed from the view, recomputed only when its version moves.

    Keyed on ``CartView.version`` rather than on the identity of any
    snapshot, so writes made behind the view's back still invalidate it.
    """

    _UNSET = object()

    def __init__(self, view: CartView, compute: Callable[[CartView], Any]) -> None:
        self._view = view
        self._compute = compute
        self._key: Any = self._UNSET
        self._value: Any = None
        self.computations = 0

    def get(self) -> Any:
        key = self._view.version
        if key != self._key:
            self._value = self._compute(self._view)
            self._key = key
            self.computations += 1
        return self._value
