"""JSON wire format shared by the HTTP adapters and the development service.

Cart responses look like::

    {"success": true, "cart": {"_id": "...", "items": [{"product": {...}, "quantity": 2}]}}

Error responses carry an ``error`` code (``insufficient_stock``,
``out_of_stock``, ``not_found``) that maps onto the cart error taxonomy.
"""

from storefront.cart.line import CartLine, CartSnapshot
from storefront.catalog.product import Product
from storefront.errors import (
    CartError,
    InsufficientStockError,
    NotFoundError,
    OutOfStockError,
    TransportError,
)

ERROR_CODES = {
    InsufficientStockError: "insufficient_stock",
    OutOfStockError: "out_of_stock",
    NotFoundError: "not_found",
    TransportError: "transport",
}


def snapshot_from_payload(cart: dict | None) -> CartSnapshot:
    if not cart:
        return CartSnapshot.empty()

    lines: list[CartLine] = []
    products: dict[str, Product] = {}
    for item in cart.get("items") or []:
        raw_product = item.get("product")
        if isinstance(raw_product, dict):
            product = Product.from_payload(raw_product)
            product_id = str(product.product_id)
            products[product_id] = product
        else:
            product_id = str(raw_product or item.get("productId") or "")
        quantity = int(item.get("quantity") or 0)
        if not product_id or quantity < 1:
            continue
        lines.append(CartLine(product_ref=product_id, quantity=quantity))

    cart_id = cart.get("_id")
    return CartSnapshot(cart_id=str(cart_id) if cart_id else None, lines=tuple(lines), products=products)


def snapshot_to_payload(snapshot: CartSnapshot) -> dict:
    items = []
    for line in snapshot.lines:
        product = snapshot.product(line.product_ref)
        items.append(
            {
                "product": product.to_payload() if product else {"_id": line.product_ref},
                "quantity": line.quantity,
            }
        )
    return {"_id": snapshot.cart_id, "items": items}


def error_to_payload(error: CartError) -> dict:
    payload = {
        "success": False,
        "error": ERROR_CODES.get(type(error), "transport"),
        "message": error.message,
    }
    if isinstance(error, InsufficientStockError):
        payload["productId"] = error.product_id
        payload["requested"] = error.requested
        payload["availableStock"] = error.available_stock
    elif isinstance(error, NotFoundError) and error.product_id:
        payload["productId"] = error.product_id
    return payload


def error_from_payload(payload: dict, status_code: int) -> CartError:
    code = payload.get("error")
    message = payload.get("message") or f"Cart request failed with {status_code}"
    product_id = payload.get("productId") or ""
    if code == "out_of_stock":
        return OutOfStockError(product_id, int(payload.get("requested") or 0), message)
    if code == "insufficient_stock":
        return InsufficientStockError(
            product_id,
            int(payload.get("requested") or 0),
            int(payload.get("availableStock") or 0),
            message,
        )
    if code == "not_found" or status_code == 404:
        return NotFoundError(message, product_id or None)
    return TransportError(message, status_code=status_code)
