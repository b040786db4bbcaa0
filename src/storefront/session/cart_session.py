"""Cart session: wires the auth signal to reconciliation and the read model.

On every guest -> authenticated transition the reconciler runs first, then
the view switches to the server cart. On logout the view returns to the
guest cart and the server snapshot is forgotten.
"""

import asyncio

import structlog

from storefront.cart.guest_store import GuestCartStore
from storefront.cart.reconciler import CartReconciler, ReconciliationResult
from storefront.cart.server_client import ServerCartClient
from storefront.cart.view import CartView
from storefront.catalog.port import ProductCatalog
from storefront.session.auth import AuthSignal
from storefront.stock.validator import StockValidator

logger = structlog.get_logger(__name__)


class CartSession:
    def __init__(
        self,
        auth: AuthSignal,
        guest_store: GuestCartStore,
        server_client: ServerCartClient,
        catalog: ProductCatalog,
    ) -> None:
        self.auth = auth
        self.guest_store = guest_store
        self.server_client = server_client
        self.view = CartView(guest_store, server_client)
        self.reconciler = CartReconciler(guest_store, server_client, catalog)
        self.validator = StockValidator(catalog)
        self.last_reconciliation: ReconciliationResult | None = None
        self._transition: asyncio.Task | None = None

        self.view.activate(auth.is_authenticated)
        self._unsubscribe = auth.subscribe(self._on_auth_changed)

    def close(self) -> None:
        self._unsubscribe()

    def _on_auth_changed(self, authenticated: bool) -> None:
        # Signal callbacks are synchronous; the transition runs as a task
        loop = asyncio.get_running_loop()
        transition = self.login() if authenticated else self.logout()
        self._transition = loop.create_task(transition)

    async def settled(self) -> None:
        """Wait for the most recent auth transition to finish."""
        if self._transition is not None:
            await self._transition

    async def login(self) -> ReconciliationResult:
        """Fold the guest cart in, then show the server cart."""
        result = await self.reconciler.reconcile()
        self.last_reconciliation = result
        if not self.auth.is_authenticated:
            # Logged out again while reconciling
            return result

        self.view.activate(True)
        if result.snapshot is None:
            await self.view.refresh()
        logger.info(
            "Cart session authenticated",
            reconciliation=result.status.value,
            count=self.view.get_count(),
        )
        return result

    async def logout(self) -> None:
        self.view.activate(False)
        self.server_client.reset()
        logger.info("Cart session returned to guest mode")
