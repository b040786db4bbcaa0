"""Cart error taxonomy.

Every failure the cart core surfaces is a ``CartError`` carrying a ``kind``
so the UI can choose a stock-specific message, a removal notice, or a retry
affordance. None of them are fatal: the component that raised leaves its
prior state untouched.
"""

from enum import Enum


class CartErrorKind(Enum):
    INSUFFICIENT_STOCK = "insufficientStock"
    OUT_OF_STOCK = "outOfStock"
    NOT_FOUND = "notFound"
    TRANSPORT = "transport"
    CHECKOUT_BLOCKED = "checkoutBlocked"


class CartError(Exception):
    """Base class for recoverable cart failures."""

    kind: CartErrorKind = CartErrorKind.TRANSPORT

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message, **self.details}


class InsufficientStockError(CartError):
    """The request asks for more units than the product has available."""

    kind = CartErrorKind.INSUFFICIENT_STOCK

    def __init__(self, product_id: str, requested: int, available_stock: int, message: str | None = None):
        self.product_id = product_id
        self.requested = requested
        self.available_stock = available_stock
        super().__init__(
            message or f"Only {available_stock} unit(s) of {product_id} available",
            {"product_id": product_id, "requested": requested, "available_stock": available_stock},
        )


class OutOfStockError(InsufficientStockError):
    """Zero units available; a line-level blocking condition."""

    kind = CartErrorKind.OUT_OF_STOCK

    def __init__(self, product_id: str, requested: int = 0, message: str | None = None):
        super().__init__(product_id, requested, 0, message or f"{product_id} is out of stock")


class NotFoundError(CartError):
    """The product (or cart line) no longer exists."""

    kind = CartErrorKind.NOT_FOUND

    def __init__(self, message: str, product_id: str | None = None):
        self.product_id = product_id
        super().__init__(message, {"product_id": product_id} if product_id else None)


class TransportError(CartError):
    """Network or server failure; prior state is kept and a retry is possible."""

    kind = CartErrorKind.TRANSPORT

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message, {"status_code": status_code} if status_code is not None else None)


class CheckoutBlockedError(CartError):
    """Checkout was requested for a cart that cannot be checked out.

    The kind follows the worst stock verdict: out of stock over insufficient.
    Without a stock problem (guest mode, empty cart, a changed cart) it is
    ``CHECKOUT_BLOCKED``.
    """

    kind = CartErrorKind.CHECKOUT_BLOCKED

    def __init__(self, message: str, verdicts: list | None = None):
        self.verdicts = list(verdicts or [])
        if any(verdict.is_out_of_stock for verdict in self.verdicts):
            self.kind = CartErrorKind.OUT_OF_STOCK
        elif any(verdict.is_insufficient for verdict in self.verdicts):
            self.kind = CartErrorKind.INSUFFICIENT_STOCK
        super().__init__(message)
