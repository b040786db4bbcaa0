"""Storefront development cart service.

Serves the server cart and product endpoints from in-memory fakes so a
storefront client can be exercised end to end.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 5000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV selects the config overlay; LOG_LEVEL overrides the derived level.
from fastapi import Request
from storefront.domain import storefront  # noqa: E402
from storefront.utils.logging import bind_cart_context, clear_cart_context, configure_logging

configure_logging()
storefront.init()

from storefront.api import create_app  # noqa: E402

app = create_app()


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the storefront domain context and tag log lines with the caller."""
    _, _, token = request.headers.get("authorization", "").partition(" ")
    bind_cart_context(cart_owner=token or "anonymous", path=request.url.path)
    try:
        with storefront.domain_context():
            return await call_next(request)
    finally:
        clear_cart_context()
