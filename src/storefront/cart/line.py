"""Cart lines and server cart snapshots.

A ``CartLine`` references a product by slug in the guest cart and by server
id in the authenticated cart. The two are not interchangeable: crossing the
boundary always goes through the catalog.
"""

from dataclasses import dataclass, field

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Integer, String

from storefront.catalog.product import Product
from storefront.domain import storefront


@storefront.value_object
class CartLine:
    """One product reference plus a positive quantity."""

    product_ref = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)

    @invariant.post
    def product_ref_must_not_be_blank(self):
        if not str(self.product_ref).strip():
            raise ValidationError({"product_ref": ["Product reference cannot be blank"]})

    def with_quantity(self, quantity: int) -> "CartLine":
        return CartLine(product_ref=self.product_ref, quantity=quantity)


def total_quantity(lines) -> int:
    return sum(line.quantity for line in lines)


@dataclass(frozen=True)
class CartSnapshot:
    """Authoritative, server-returned representation of a cart.

    ``products`` holds the product data the server embeds alongside each
    line, keyed by product id. It is only as fresh as the response.
    """

    cart_id: str | None = None
    lines: tuple[CartLine, ...] = ()
    products: dict[str, Product] = field(default_factory=dict)

    @classmethod
    def empty(cls, cart_id: str | None = None) -> "CartSnapshot":
        return cls(cart_id=cart_id)

    @property
    def count(self) -> int:
        return total_quantity(self.lines)

    def quantity_of(self, product_id: str) -> int:
        line = next((line for line in self.lines if line.product_ref == str(product_id)), None)
        return line.quantity if line else 0

    def product(self, product_id: str) -> Product | None:
        return self.products.get(str(product_id))
