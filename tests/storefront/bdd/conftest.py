"""Shared BDD fixtures and step definitions for cart reconciliation."""

import pytest
from pytest_bdd import given, parsers
from storefront.cart.guest_store import GuestCartStore
from storefront.cart.server_client import ServerCartClient
from storefront.catalog.fake_adapter import InMemoryCatalog
from storefront.catalog.product import Product
from storefront.session.auth import AuthSignal
from storefront.session.cart_session import CartSession
from storefront.transport.fake_adapter import FakeCartServer


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def bdd_catalog():
    return InMemoryCatalog()


@pytest.fixture()
def bdd_server(bdd_catalog):
    return FakeCartServer(bdd_catalog, cart_id="cart-bdd")


@pytest.fixture()
def shopper(bdd_catalog, bdd_server):
    auth = AuthSignal()
    session = CartSession(auth, GuestCartStore(), ServerCartClient(bdd_server), bdd_catalog)
    yield session
    session.close()


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the catalog has "{slug}" with {stock:d} in stock'))
def catalog_has(bdd_catalog, slug, stock):
    bdd_catalog.put(
        Product(
            product_id=f"prod-{slug}",
            slug=slug,
            name=slug.replace("-", " ").title(),
            price=10.0,
            stock_quantity=stock,
        )
    )


@given(parsers.cfparse('a guest has {quantity:d} of "{slug}" in their cart'))
def guest_has(shopper, slug, quantity):
    shopper.guest_store.add(slug, quantity)


@given(parsers.cfparse('the server cart already holds {quantity:d} of "{slug}"'))
def server_holds(bdd_server, bdd_catalog, slug, quantity):
    bdd_server.seed(bdd_catalog.get(slug).product_id, quantity)


@given("the cart service is unavailable")
def cart_service_down(bdd_server):
    bdd_server.configure(should_succeed=False)
