"""Development cart service API package."""

from storefront.api.app import create_app
from storefront.api.routes import cart_router, product_router

__all__ = ["create_app", "cart_router", "product_router"]
