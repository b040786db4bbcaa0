"""Product value object: the catalog's view of a purchasable item."""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Float, Integer, String

from storefront.domain import storefront

UNAVAILABLE_STATUSES = frozenset({"unavailable", "inactive", "discontinued", "archived"})


@storefront.value_object
class Product:
    """Read-only product data: identity, slug, price and live stock.

    Two conditions collapse to "unavailable for purchase": zero stock, or an
    explicit unavailable status.
    """

    product_id = String(required=True, max_length=255)
    slug = String(max_length=255)
    name = String(max_length=255)
    price = Float(default=0.0, min_value=0.0)
    stock_quantity = Integer(default=0, min_value=0)
    status = String(max_length=50, default="active")

    @invariant.post
    def product_id_must_not_be_blank(self):
        if not str(self.product_id).strip():
            raise ValidationError({"product_id": ["Product id cannot be blank"]})

    @property
    def is_purchasable(self) -> bool:
        return (self.stock_quantity or 0) > 0 and (self.status or "").lower() not in UNAVAILABLE_STATUSES

    @property
    def available_stock(self) -> int:
        return (self.stock_quantity or 0) if self.is_purchasable else 0

    @property
    def guest_ref(self) -> str:
        """Reference used by the guest cart: the slug, or the id when there is none."""
        slug = (self.slug or "").strip()
        return slug or str(self.product_id)

    def matches(self, ref: str) -> bool:
        return ref in (str(self.product_id), self.slug)

    @classmethod
    def from_payload(cls, data: dict) -> "Product":
        """Build a product from the storefront API's JSON shape."""
        stock = data.get("stockQuantity", data.get("stock", 0))
        return cls(
            product_id=str(data.get("_id") or data.get("id") or ""),
            slug=data.get("slug") or None,
            name=data.get("name") or None,
            price=float(data.get("price") or 0.0),
            stock_quantity=int(stock or 0),
            status=data.get("status") or "active",
        )

    def to_payload(self) -> dict:
        return {
            "_id": self.product_id,
            "slug": self.slug,
            "name": self.name,
            "price": self.price,
            "stockQuantity": self.stock_quantity,
            "status": self.status,
        }
