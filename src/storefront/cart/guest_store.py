"""Guest cart store: the unauthenticated, device-owned cart.

Lines are keyed by product slug with upsert semantics: adding a slug that is
already present increments its quantity instead of appending a duplicate.
Every operation writes through to device storage immediately; there is no
batching and no partial-failure mode.
"""

import structlog
from protean.exceptions import ValidationError

from storefront.cart.line import CartLine, total_quantity
from storefront.cart.storage import GuestCartStorage, MemoryGuestCartStorage

logger = structlog.get_logger(__name__)


class GuestCartStore:
    """Ordered, slug-keyed guest cart persisted on the device."""

    def __init__(self, storage: GuestCartStorage | None = None) -> None:
        self._storage = storage or MemoryGuestCartStorage()

    @property
    def storage(self) -> GuestCartStorage:
        return self._storage

    # -------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------
    def _load(self) -> list[CartLine]:
        lines: list[CartLine] = []
        seen: set[str] = set()
        for record in self._storage.load():
            slug = str(record.get("productSlug") or "").strip()
            try:
                quantity = int(record.get("quantity", 0))
            except (TypeError, ValueError):
                quantity = 0
            if not slug or quantity < 1:
                logger.warning("Skipping malformed guest cart entry", record=record)
                continue
            if slug in seen:
                # Fold duplicates written by older clients into the first line
                index = next(i for i, line in enumerate(lines) if line.product_ref == slug)
                lines[index] = lines[index].with_quantity(lines[index].quantity + quantity)
                continue
            seen.add(slug)
            lines.append(CartLine(product_ref=slug, quantity=quantity))
        return lines

    def _save(self, lines: list[CartLine]) -> None:
        if not lines:
            self._storage.delete()
            return
        self._storage.save([{"productSlug": line.product_ref, "quantity": line.quantity} for line in lines])

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def add(self, slug: str, quantity: int = 1) -> CartLine:
        """Add ``quantity`` units of ``slug``, merging into an existing line."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        slug = str(slug).strip()

        with self._storage.lock:
            lines = self._load()
            index = next((i for i, line in enumerate(lines) if line.product_ref == slug), None)
            if index is None:
                line = CartLine(product_ref=slug, quantity=quantity)
                lines.append(line)
            else:
                line = lines[index].with_quantity(lines[index].quantity + quantity)
                lines[index] = line
            self._save(lines)

        logger.debug("Guest cart line added", slug=slug, quantity=line.quantity)
        return line

    def set_quantity(self, slug: str, quantity: int) -> bool:
        """Overwrite a line's quantity; a quantity of zero or less removes it."""
        if quantity <= 0:
            return self.remove(slug)
        slug = str(slug).strip()

        with self._storage.lock:
            lines = self._load()
            index = next((i for i, line in enumerate(lines) if line.product_ref == slug), None)
            if index is None:
                return False
            lines[index] = lines[index].with_quantity(quantity)
            self._save(lines)
        return True

    def remove(self, slug: str) -> bool:
        slug = str(slug).strip()
        with self._storage.lock:
            lines = self._load()
            remaining = [line for line in lines if line.product_ref != slug]
            if len(remaining) == len(lines):
                return False
            self._save(remaining)
        return True

    def clear(self) -> None:
        with self._storage.lock:
            self._storage.delete()

    def deduct(self, lines: list[CartLine]) -> list[CartLine]:
        """Take ``lines`` back out of the cart, keeping anything added since.

        Each slug loses at most the given quantity; slugs not named in
        ``lines`` are untouched. Returns what is left.
        """
        taken: dict[str, int] = {}
        for line in lines:
            taken[line.product_ref] = taken.get(line.product_ref, 0) + line.quantity

        with self._storage.lock:
            remaining = []
            for line in self._load():
                quantity = line.quantity - taken.get(line.product_ref, 0)
                if quantity > 0:
                    remaining.append(line.with_quantity(quantity))
            self._save(remaining)

        if remaining:
            logger.debug("Guest cart kept lines added meanwhile", remaining=len(remaining))
        return remaining

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def list(self) -> list[CartLine]:
        """Snapshot of the lines in insertion order; safe to mutate."""
        return self._load()

    def quantity_of(self, slug: str) -> int:
        line = next((line for line in self._load() if line.product_ref == slug), None)
        return line.quantity if line else 0

    def count(self) -> int:
        return total_quantity(self._load())

    def is_empty(self) -> bool:
        return not self._load()

    def subscribe(self, listener):
        """Listen for writes to the underlying storage by any store instance."""
        return self._storage.subscribe(listener)
