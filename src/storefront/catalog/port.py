"""Product catalog port: abstract lookup of products by slug or id.

The cart core programs against this interface; adapters are swapped via
configuration. A lookup that finds nothing returns ``None``: the item is no
longer purchasable, which is never a fatal error.
"""

from abc import ABC, abstractmethod

from storefront.catalog.product import Product


class ProductCatalog(ABC):
    """Abstract interface for catalog adapters."""

    @abstractmethod
    async def resolve(self, slug_or_id: str) -> Product | None:
        """Look up a product by slug or server id.

        Returns:
            The current product data, or None when it no longer exists.

        Raises:
            TransportError: the catalog could not be reached.
        """
        ...
