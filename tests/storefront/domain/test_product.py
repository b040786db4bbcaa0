import pytest
from protean.exceptions import ValidationError
from storefront.catalog.product import Product


def test_product_requires_id():
    with pytest.raises(ValidationError):
        Product(slug="linen-shirt")


def test_stock_cannot_be_negative():
    with pytest.raises(ValidationError):
        Product(product_id="prod-001", stock_quantity=-1)


def test_product_in_stock_is_purchasable(shirt):
    assert shirt.is_purchasable
    assert shirt.available_stock == 10


def test_zero_stock_is_unavailable(scarf):
    assert not scarf.is_purchasable
    assert scarf.available_stock == 0


@pytest.mark.parametrize("status", ["unavailable", "inactive", "discontinued", "Discontinued"])
def test_unavailable_flag_collapses_stock_to_zero(status):
    product = Product(product_id="prod-001", slug="linen-shirt", stock_quantity=7, status=status)
    assert not product.is_purchasable
    assert product.available_stock == 0


def test_guest_ref_is_slug(shirt):
    assert shirt.guest_ref == "linen-shirt"


def test_guest_ref_falls_back_to_id_without_slug():
    product = Product(product_id="prod-042", stock_quantity=1)
    assert product.guest_ref == "prod-042"


def test_matches_slug_or_id(shirt):
    assert shirt.matches("linen-shirt")
    assert shirt.matches("prod-001")
    assert not shirt.matches("canvas-tote")


def test_from_payload_reads_storefront_shape():
    product = Product.from_payload(
        {
            "_id": "65f0c0ffee",
            "name": "Linen Shirt",
            "slug": "linen-shirt",
            "price": 29,
            "stockQuantity": 4,
            "status": "active",
            "images": [],
        }
    )
    assert product.product_id == "65f0c0ffee"
    assert product.slug == "linen-shirt"
    assert product.price == 29.0
    assert product.stock_quantity == 4


def test_from_payload_accepts_legacy_stock_field():
    product = Product.from_payload({"_id": "prod-001", "stock": 3})
    assert product.stock_quantity == 3
    assert product.status == "active"


def test_to_payload(shirt):
    payload = shirt.to_payload()
    assert payload["_id"] == "prod-001"
    assert payload["stockQuantity"] == 10
