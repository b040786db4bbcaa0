"""Stock validation: cart lines checked against live catalog stock.

Each line gets a verdict:

    out_of_stock  available stock is zero (whatever was requested)
    insufficient  0 < available < requested
    ok            available >= requested

Catalog data is re-fetched on every pass because stock moves between
adding to the cart and checking out. When a product cannot be resolved the
validator falls back to the stock embedded in the cart line data instead of
failing the whole pass.

The verdicts gate checkout and drive a client-side clamp of just-entered
quantities. The clamp is a UX nicety; the server still enforces stock.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum

import structlog

from storefront.cart.line import CartLine
from storefront.catalog.port import ProductCatalog
from storefront.catalog.product import Product
from storefront.errors import CartError

logger = structlog.get_logger(__name__)


class StockStatus(Enum):
    OK = "ok"
    INSUFFICIENT = "insufficient"
    OUT_OF_STOCK = "outOfStock"


@dataclass(frozen=True)
class StockVerdict:
    product_ref: str
    requested_quantity: int
    available_stock: int
    status: StockStatus
    product: Product | None = None

    @property
    def is_ok(self) -> bool:
        return self.status == StockStatus.OK

    @property
    def is_out_of_stock(self) -> bool:
        return self.status == StockStatus.OUT_OF_STOCK

    @property
    def is_insufficient(self) -> bool:
        return self.status == StockStatus.INSUFFICIENT

    def message(self) -> str | None:
        """Line-level remediation message, or None when the line is fine."""
        name = (self.product.name if self.product else None) or self.product_ref
        if self.is_out_of_stock:
            return f"{name} is out of stock. Remove it to continue."
        if self.is_insufficient:
            return f"Only {self.available_stock} of {name} available. Reduce the quantity to continue."
        return None


def classify(product_ref: str, requested: int, available: int, product: Product | None = None) -> StockVerdict:
    available = max(int(available or 0), 0)
    if available == 0:
        status = StockStatus.OUT_OF_STOCK
    elif available < requested:
        status = StockStatus.INSUFFICIENT
    else:
        status = StockStatus.OK
    return StockVerdict(
        product_ref=product_ref,
        requested_quantity=requested,
        available_stock=available,
        status=status,
        product=product,
    )


def clamp_quantity(product: Product, requested: int) -> int:
    """Clamp a just-entered quantity to what the product can supply."""
    return max(0, min(int(requested), product.available_stock))


def checkout_allowed(verdicts: Iterable[StockVerdict]) -> bool:
    verdicts = list(verdicts)
    return bool(verdicts) and all(verdict.is_ok for verdict in verdicts)


class StockValidator:
    def __init__(self, catalog: ProductCatalog) -> None:
        self._catalog = catalog

    def validate(self, pairs: Iterable[tuple]) -> list[StockVerdict]:
        """Classify ``(product, requested)`` or ``(product, requested, fallback_stock)`` pairs.

        ``product`` may be None when it could not be resolved; the fallback
        stock (default 0) is used instead.
        """
        verdicts = []
        for pair in pairs:
            product, requested, *rest = pair
            fallback_stock = rest[0] if rest else 0
            if product is None:
                verdicts.append(classify("unknown", requested, fallback_stock))
            else:
                verdicts.append(classify(str(product.product_id), requested, product.available_stock, product))
        return verdicts

    async def validate_lines(
        self,
        lines: Iterable[CartLine],
        embedded: Mapping[str, Product] | None = None,
    ) -> list[StockVerdict]:
        """Validate cart lines against freshly fetched catalog data."""
        embedded = embedded or {}
        verdicts = []
        for line in lines:
            product = await self._lookup(line.product_ref)
            if product is None:
                fallback = embedded.get(line.product_ref)
                available = fallback.available_stock if fallback is not None else 0
                verdicts.append(classify(line.product_ref, line.quantity, available, fallback))
            else:
                verdicts.append(classify(line.product_ref, line.quantity, product.available_stock, product))
        return verdicts

    async def clamp(self, product_ref: str, requested: int) -> int:
        """Clamp a quantity against live stock; unknown products clamp to zero."""
        product = await self._lookup(product_ref)
        if product is None:
            return 0
        return clamp_quantity(product, requested)

    async def _lookup(self, product_ref: str) -> Product | None:
        try:
            return await self._catalog.resolve(product_ref)
        except CartError as exc:
            logger.warning("Stock lookup failed; using cart data", product_ref=product_ref, error=exc.message)
            return None

    checkout_allowed = staticmethod(checkout_allowed)
