"""Cart reconciliation: folding the guest cart into the server cart at login.

Runs once per login or signup, before any authenticated cart read is trusted:

    1. Read the guest cart. Empty -> nothing to do (no network call).
    2. Resolve each slug to a server product id via the catalog. Slugs that
       no longer resolve are dropped: the product left the catalog.
    3. Submit the resolved lines in one batch sync. The server decides how
       to merge them with lines it already holds; the client never
       pre-merges against a snapshot that may be stale.
    4. On success take the lines read in step 1 out of the guest cart so
       they are never replayed; anything added meanwhile stays. On failure
       keep the guest cart for the next attempt.

Passes are serialised: a second login while one is in flight waits for it
and then finds the guest cart already empty.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum

import structlog

from storefront.cart.guest_store import GuestCartStore
from storefront.cart.line import CartLine, CartSnapshot
from storefront.cart.server_client import ServerCartClient
from storefront.catalog.port import ProductCatalog
from storefront.errors import CartError

logger = structlog.get_logger(__name__)


class ReconciliationStatus(Enum):
    SKIPPED = "skipped"
    SYNCED = "synced"
    FAILED = "failed"


@dataclass
class ReconciliationRecord:
    """The guest lines being folded in during a single pass."""

    guest_lines: list[CartLine]
    resolved: list[CartLine] = field(default_factory=list)
    dropped: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ReconciliationResult:
    status: ReconciliationStatus
    submitted: tuple[CartLine, ...] = ()
    dropped: tuple[str, ...] = ()
    snapshot: CartSnapshot | None = None
    error: CartError | None = None

    @property
    def succeeded(self) -> bool:
        return self.status != ReconciliationStatus.FAILED


class CartReconciler:
    def __init__(self, guest_store: GuestCartStore, server_client: ServerCartClient, catalog: ProductCatalog) -> None:
        self._guest_store = guest_store
        self._server_client = server_client
        self._catalog = catalog
        self._lock = asyncio.Lock()

    @property
    def in_progress(self) -> bool:
        return self._lock.locked()

    async def reconcile(self) -> ReconciliationResult:
        async with self._lock:
            guest_lines = self._guest_store.list()
            if not guest_lines:
                return ReconciliationResult(status=ReconciliationStatus.SKIPPED)

            record = ReconciliationRecord(guest_lines=guest_lines)
            try:
                await self._resolve(record)
                snapshot = None
                if record.resolved:
                    snapshot = await self._server_client.sync(record.resolved)
            except CartError as exc:
                logger.warning(
                    "Guest cart reconciliation failed; guest cart kept for retry",
                    kind=exc.kind.value,
                    error=exc.message,
                    guest_lines=len(guest_lines),
                )
                return ReconciliationResult(
                    status=ReconciliationStatus.FAILED,
                    dropped=tuple(record.dropped),
                    error=exc,
                )

            # Lines written while the sync was in flight stay for the next pass
            self._guest_store.deduct(guest_lines)
            logger.info(
                "Guest cart reconciled",
                submitted=len(record.resolved),
                dropped=len(record.dropped),
            )
            return ReconciliationResult(
                status=ReconciliationStatus.SYNCED,
                submitted=tuple(record.resolved),
                dropped=tuple(record.dropped),
                snapshot=snapshot,
            )

    async def _resolve(self, record: ReconciliationRecord) -> None:
        for line in record.guest_lines:
            product = await self._catalog.resolve(line.product_ref)
            if product is None:
                logger.info("Dropping guest line for product no longer in catalog", slug=line.product_ref)
                record.dropped.append(line.product_ref)
                continue
            product_id = str(product.product_id)
            index = next((i for i, r in enumerate(record.resolved) if r.product_ref == product_id), None)
            if index is None:
                record.resolved.append(CartLine(product_ref=product_id, quantity=line.quantity))
            else:
                # A slug and an id fallback can name the same product
                existing = record.resolved[index]
                record.resolved[index] = existing.with_quantity(existing.quantity + line.quantity)
