"""In-memory catalog for development and testing.

Products are addressable by id or slug. Stock can be changed at runtime to
simulate other shoppers buying while a cart sits idle.
"""

from storefront.catalog.port import ProductCatalog
from storefront.catalog.product import Product
from storefront.errors import TransportError


class InMemoryCatalog(ProductCatalog):
    """Configurable in-memory product catalog."""

    def __init__(self, products: list[Product] | None = None) -> None:
        self._products: dict[str, Product] = {}
        self.should_succeed: bool = True
        self.failure_reason: str = "Catalog unavailable"
        self.calls: list[str] = []
        for product in products or []:
            self.put(product)

    def configure(self, should_succeed: bool, failure_reason: str = "Catalog unavailable") -> None:
        """Configure catalog behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def put(self, product: Product) -> None:
        self._products[str(product.product_id)] = product

    def discontinue(self, product_id: str) -> None:
        self._products.pop(str(product_id), None)

    def set_stock(self, product_id: str, stock_quantity: int) -> None:
        product = self._products[str(product_id)]
        self._products[str(product_id)] = Product(
            product_id=product.product_id,
            slug=product.slug,
            name=product.name,
            price=product.price,
            stock_quantity=stock_quantity,
            status=product.status,
        )

    def get(self, slug_or_id: str) -> Product | None:
        """Synchronous lookup, used by the fake cart server."""
        product = self._products.get(str(slug_or_id))
        if product is not None:
            return product
        return next((p for p in self._products.values() if p.slug and p.slug == slug_or_id), None)

    async def resolve(self, slug_or_id: str) -> Product | None:
        self.calls.append(slug_or_id)
        if not self.should_succeed:
            raise TransportError(self.failure_reason)
        return self.get(slug_or_id)
