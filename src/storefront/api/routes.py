"""FastAPI routes for the development cart service: carts and products."""

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.responses import JSONResponse

from storefront.api.schemas import AddLineRequest, CartResponse, ProductResponse, SyncRequest, UpdateLineRequest
from storefront.api.service import DevCartService
from storefront.cart.line import CartLine, CartSnapshot
from storefront.errors import CartError, InsufficientStockError, NotFoundError
from storefront.transport.fake_adapter import FakeCartServer
from storefront.transport.wire import error_to_payload, snapshot_to_payload


def get_service(request: Request) -> DevCartService:
    return request.app.state.cart_service


def get_cart(
    authorization: str | None = Header(default=None),
    service: DevCartService = Depends(get_service),
) -> FakeCartServer:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Not authenticated")
    return service.cart_for(token.strip())


def _cart_response(snapshot: CartSnapshot) -> dict:
    return {"success": True, "cart": snapshot_to_payload(snapshot)}


async def cart_error_handler(_request: Request, exc: CartError) -> JSONResponse:
    if isinstance(exc, InsufficientStockError):
        status_code = 400
    elif isinstance(exc, NotFoundError):
        status_code = 404
    else:
        status_code = 503
    return JSONResponse(status_code=status_code, content=error_to_payload(exc))


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse, response_model_by_alias=True)
async def fetch_cart(cart: FakeCartServer = Depends(get_cart)) -> dict:
    return _cart_response(await cart.fetch_cart())


@cart_router.post("", response_model=CartResponse, response_model_by_alias=True)
async def add_line(body: AddLineRequest, cart: FakeCartServer = Depends(get_cart)) -> dict:
    return _cart_response(await cart.add_line(body.product_id, body.quantity))


@cart_router.post("/sync", response_model=CartResponse, response_model_by_alias=True)
async def sync_lines(body: SyncRequest, cart: FakeCartServer = Depends(get_cart)) -> dict:
    lines = [CartLine(product_ref=item.product_id, quantity=item.quantity) for item in body.items]
    return _cart_response(await cart.sync_lines(lines))


@cart_router.put("/{product_id}", response_model=CartResponse, response_model_by_alias=True)
async def set_line_quantity(product_id: str, body: UpdateLineRequest, cart: FakeCartServer = Depends(get_cart)) -> dict:
    return _cart_response(await cart.set_line_quantity(product_id, body.quantity))


@cart_router.delete("/{product_id}", response_model=CartResponse, response_model_by_alias=True)
async def remove_line(product_id: str, cart: FakeCartServer = Depends(get_cart)) -> dict:
    return _cart_response(await cart.remove_line(product_id))


@cart_router.delete("", response_model=CartResponse, response_model_by_alias=True)
async def clear_cart(cart: FakeCartServer = Depends(get_cart)) -> dict:
    return _cart_response(await cart.clear_cart())


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.get("/{slug_or_id}", response_model=ProductResponse, response_model_by_alias=True)
async def get_product(slug_or_id: str, service: DevCartService = Depends(get_service)) -> dict:
    product = service.catalog.get(slug_or_id)
    if product is None:
        raise NotFoundError(f"Product {slug_or_id} not found", product_id=slug_or_id)
    return {"success": True, "product": product.to_payload()}
