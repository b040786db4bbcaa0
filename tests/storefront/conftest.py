import asyncio

import pytest
from storefront.cart.guest_store import GuestCartStore
from storefront.cart.server_client import ServerCartClient
from storefront.cart.storage import MemoryGuestCartStorage
from storefront.catalog.fake_adapter import InMemoryCatalog
from storefront.catalog.product import Product
from storefront.transport.fake_adapter import FakeCartServer
from storefront.transport.port import CartTransport


@pytest.fixture(scope="session")
def _storefront_domain():
    """Initialize the storefront domain once per session."""
    from storefront.domain import storefront

    storefront.init()
    return storefront


@pytest.fixture(autouse=True)
def _ctx(_storefront_domain):
    with _storefront_domain.domain_context():
        yield


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------
@pytest.fixture()
def shirt():
    return Product(product_id="prod-001", slug="linen-shirt", name="Linen Shirt", price=29.0, stock_quantity=10)


@pytest.fixture()
def tote():
    return Product(product_id="prod-002", slug="canvas-tote", name="Canvas Tote", price=12.5, stock_quantity=5)


@pytest.fixture()
def scarf():
    return Product(product_id="prod-003", slug="wool-scarf", name="Wool Scarf", price=18.0, stock_quantity=0)


@pytest.fixture()
def belt():
    return Product(product_id="prod-004", slug="leather-belt", name="Leather Belt", price=40.0, stock_quantity=2)


@pytest.fixture()
def catalog(shirt, tote, scarf, belt):
    return InMemoryCatalog([shirt, tote, scarf, belt])


# ---------------------------------------------------------------------------
# Carts
# ---------------------------------------------------------------------------
@pytest.fixture()
def storage():
    return MemoryGuestCartStorage()


@pytest.fixture()
def guest_store(storage):
    return GuestCartStore(storage)


@pytest.fixture()
def server(catalog):
    return FakeCartServer(catalog, cart_id="cart-001")


@pytest.fixture()
def server_client(server):
    return ServerCartClient(server)


class GatedTransport(CartTransport):
    """Lets the server handle each call at once but holds the response.

    Requests reach the server in issue order (as they would over one
    connection); the test decides the order responses come back in.
    """

    def __init__(self, inner: CartTransport) -> None:
        self.inner = inner
        self.gates: list[asyncio.Event] = []

    async def _hold(self, call):
        gate = asyncio.Event()
        self.gates.append(gate)
        try:
            result = await call
        except Exception as exc:  # noqa: BLE001 - re-raised after the gate opens
            await gate.wait()
            raise exc
        await gate.wait()
        return result

    def release(self, index: int) -> None:
        self.gates[index].set()

    async def wait_for_requests(self, count: int) -> None:
        while len(self.gates) < count:
            await asyncio.sleep(0)

    async def fetch_cart(self):
        return await self._hold(self.inner.fetch_cart())

    async def add_line(self, product_id, quantity):
        return await self._hold(self.inner.add_line(product_id, quantity))

    async def set_line_quantity(self, product_id, quantity):
        return await self._hold(self.inner.set_line_quantity(product_id, quantity))

    async def remove_line(self, product_id):
        return await self._hold(self.inner.remove_line(product_id))

    async def clear_cart(self):
        return await self._hold(self.inner.clear_cart())

    async def sync_lines(self, lines):
        return await self._hold(self.inner.sync_lines(lines))


@pytest.fixture()
def gated(server):
    return GatedTransport(server)


async def settle() -> None:
    """Let pending tasks run until they block."""
    for _ in range(10):
        await asyncio.sleep(0)


@pytest.fixture()
def run_pending():
    return settle
