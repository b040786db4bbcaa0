"""Development cart service: the server cart endpoints backed by fakes.

Lets a storefront client (or the HTTP adapters' tests) run against a real
HTTP surface without the production backend.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.api.routes import cart_error_handler, cart_router, product_router
from storefront.api.service import DevCartService
from storefront.errors import CartError


def create_app(service: DevCartService | None = None) -> FastAPI:
    app = FastAPI(
        title="Storefront Cart Service",
        description="Development stand-in for the storefront cart endpoints",
    )
    app.state.cart_service = service or DevCartService()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(CartError, cart_error_handler)

    app.include_router(cart_router)
    app.include_router(product_router)

    @app.get("/health")
    async def health():
        return JSONResponse(content={"status": "ok"})

    return app
