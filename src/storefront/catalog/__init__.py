"""Product catalog factory.

Provides get_catalog() / set_catalog() to swap implementations:
- InMemoryCatalog for development and testing
- HttpProductCatalog against the storefront API
"""

import os

from storefront.catalog.port import ProductCatalog

_current_catalog: ProductCatalog | None = None


def get_catalog() -> ProductCatalog:
    """Return the configured catalog (singleton).

    Uses InMemoryCatalog by default. Set CATALOG_ADAPTER=http (with
    STOREFRONT_API_URL) to talk to the storefront API.
    """
    global _current_catalog
    if _current_catalog is None:
        adapter = os.environ.get("CATALOG_ADAPTER", "fake")
        if adapter == "fake":
            from storefront.catalog.fake_adapter import InMemoryCatalog

            _current_catalog = InMemoryCatalog()
        elif adapter == "http":
            from storefront.catalog.http_adapter import HttpProductCatalog

            _current_catalog = HttpProductCatalog(
                base_url=os.environ.get("STOREFRONT_API_URL", "http://localhost:5000/api"),
                timeout=float(os.environ.get("STOREFRONT_API_TIMEOUT", "10")),
            )
        else:
            raise ValueError(f"Unknown catalog adapter: {adapter}")
    return _current_catalog


def set_catalog(catalog: ProductCatalog) -> None:
    """Override the active catalog (useful for tests)."""
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    """Reset to the default catalog."""
    global _current_catalog
    _current_catalog = None
