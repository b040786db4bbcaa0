"""Server cart client: the authenticated cart as a cached snapshot.

The server owns the cart. The client keeps the last authoritative snapshot
and replaces it wholesale with every response; it never patches it to
reconstruct server state. Responses are applied last-response-wins among
requests issued in order: a response is dropped when a later-issued request
has already been applied, so a slow earlier request cannot overwrite the
result of a faster later one.

Optimistic mode layers pending mutations over the snapshot for display
until their response arrives; a failure simply drops the layer, leaving the
snapshot exactly as it was.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import structlog
from protean.exceptions import ValidationError

from storefront.cart.line import CartLine, CartSnapshot, total_quantity
from storefront.errors import CartError
from storefront.transport.port import CartTransport

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PendingMutation:
    """An optimistic change awaiting the server's answer."""

    action: str  # "add", "set", "remove" or "clear"
    product_id: str | None = None
    quantity: int = 0


class ServerCartClient:
    """Request/response client for the server-owned cart."""

    def __init__(self, transport: CartTransport, optimistic: bool = False) -> None:
        self._transport = transport
        self.optimistic = optimistic
        self._snapshot: CartSnapshot | None = None
        self._issued = 0
        self._applied = 0
        self._epoch = 0
        self._pending: dict[int, PendingMutation] = {}
        self._listeners: list[Callable[[CartSnapshot | None], None]] = []

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    @property
    def snapshot(self) -> CartSnapshot | None:
        """The last authoritative snapshot, or None before the first fetch."""
        return self._snapshot

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def lines(self) -> list[CartLine]:
        """Snapshot lines with any optimistic mutations layered on top."""
        quantities: dict[str, int] = {}
        if self._snapshot is not None:
            quantities = {line.product_ref: line.quantity for line in self._snapshot.lines}

        for seq in sorted(self._pending):
            mutation = self._pending[seq]
            if mutation.action == "clear":
                quantities = {}
            elif mutation.action == "remove":
                quantities.pop(mutation.product_id, None)
            elif mutation.action == "set":
                quantities[mutation.product_id] = mutation.quantity
            elif mutation.action == "add":
                quantities[mutation.product_id] = quantities.get(mutation.product_id, 0) + mutation.quantity

        return [CartLine(product_ref=ref, quantity=qty) for ref, qty in quantities.items() if qty > 0]

    def count(self) -> int:
        return total_quantity(self.lines())

    def subscribe(self, listener: Callable[[CartSnapshot | None], None]) -> Callable[[], None]:
        """Called whenever the applied snapshot (or optimistic layer) changes."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -------------------------------------------------------------------
    # Requests
    # -------------------------------------------------------------------
    async def fetch(self, accept: Callable[[], bool] | None = None) -> CartSnapshot | None:
        """Fetch a fresh snapshot.

        ``accept`` is consulted when the response arrives; returning False
        discards it (the requester went away in the meantime).
        """
        return await self._request("fetch", self._transport.fetch_cart, accept=accept)

    async def add(self, product_id: str, quantity: int = 1) -> CartSnapshot | None:
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        return await self._request(
            "add",
            lambda: self._transport.add_line(product_id, quantity),
            PendingMutation("add", str(product_id), quantity),
        )

    async def set_quantity(self, product_id: str, quantity: int) -> CartSnapshot | None:
        if quantity <= 0:
            return await self.remove(product_id)
        return await self._request(
            "set_quantity",
            lambda: self._transport.set_line_quantity(product_id, quantity),
            PendingMutation("set", str(product_id), quantity),
        )

    async def remove(self, product_id: str) -> CartSnapshot | None:
        return await self._request(
            "remove",
            lambda: self._transport.remove_line(product_id),
            PendingMutation("remove", str(product_id)),
        )

    async def clear(self) -> CartSnapshot | None:
        return await self._request("clear", self._transport.clear_cart, PendingMutation("clear"))

    async def sync(self, lines: list[CartLine]) -> CartSnapshot | None:
        """Hand a batch of id-keyed lines to the server to merge."""
        return await self._request("sync", lambda: self._transport.sync_lines(list(lines)))

    def reset(self) -> None:
        """Forget the cached snapshot and ignore every in-flight response."""
        self._epoch += 1
        self._pending.clear()
        self._snapshot = None
        self._applied = self._issued
        self._notify()

    async def _request(
        self,
        operation: str,
        call: Callable[[], Awaitable[CartSnapshot]],
        pending: PendingMutation | None = None,
        accept: Callable[[], bool] | None = None,
    ) -> CartSnapshot | None:
        self._issued += 1
        seq = self._issued
        epoch = self._epoch

        if pending is not None and self.optimistic:
            self._pending[seq] = pending
            self._notify()

        try:
            snapshot = await call()
        except CartError as exc:
            logger.warning(
                "Server cart request failed",
                operation=operation,
                kind=exc.kind.value,
                error=exc.message,
            )
            if self._pending.pop(seq, None) is not None:
                self._notify()
            raise

        had_pending = self._pending.pop(seq, None) is not None
        if epoch != self._epoch:
            logger.debug("Discarding response from before reset", operation=operation, seq=seq)
        elif accept is not None and not accept():
            logger.debug("Discarding response rejected by requester", operation=operation, seq=seq)
        elif seq < self._applied:
            logger.debug(
                "Discarding out-of-order response",
                operation=operation,
                seq=seq,
                applied=self._applied,
            )
        else:
            self._applied = seq
            self._snapshot = snapshot
            self._notify()
            return snapshot

        if had_pending:
            self._notify()
        return self._snapshot

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._snapshot)
