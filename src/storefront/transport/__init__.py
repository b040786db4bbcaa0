"""Cart transport factory.

Provides get_transport() / set_transport() to swap implementations:
- FakeCartServer for development and testing
- HttpCartTransport against the storefront API
"""

import os
from collections.abc import Callable

from storefront.transport.port import CartTransport

_current_transport: CartTransport | None = None


def get_transport(token_provider: Callable[[], str | None] | None = None) -> CartTransport:
    """Return the configured cart transport (singleton).

    Uses FakeCartServer by default. Set CART_TRANSPORT=http (with
    STOREFRONT_API_URL) to talk to the storefront API.
    """
    global _current_transport
    if _current_transport is None:
        adapter = os.environ.get("CART_TRANSPORT", "fake")
        if adapter == "fake":
            from storefront.catalog import get_catalog
            from storefront.catalog.fake_adapter import InMemoryCatalog
            from storefront.transport.fake_adapter import FakeCartServer

            catalog = get_catalog()
            if not isinstance(catalog, InMemoryCatalog):
                raise ValueError("CART_TRANSPORT=fake requires CATALOG_ADAPTER=fake")
            _current_transport = FakeCartServer(catalog)
        elif adapter == "http":
            from storefront.transport.http_adapter import HttpCartTransport

            _current_transport = HttpCartTransport(
                base_url=os.environ.get("STOREFRONT_API_URL", "http://localhost:5000/api"),
                token_provider=token_provider,
                timeout=float(os.environ.get("STOREFRONT_API_TIMEOUT", "10")),
            )
        else:
            raise ValueError(f"Unknown cart transport: {adapter}")
    return _current_transport


def set_transport(transport: CartTransport) -> None:
    """Override the active transport (useful for tests)."""
    global _current_transport
    _current_transport = transport


def reset_transport() -> None:
    """Reset to the default transport."""
    global _current_transport
    _current_transport = None
