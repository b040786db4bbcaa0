"""Backing state for the development cart service.

One ``FakeCartServer`` per bearer token, all sharing a single in-memory
catalog. Tokens are taken at face value: issuing them is not this
service's job.
"""

from storefront.catalog.fake_adapter import InMemoryCatalog
from storefront.transport.fake_adapter import FakeCartServer


class DevCartService:
    def __init__(self, catalog: InMemoryCatalog | None = None, merge_policy: str = "sum") -> None:
        self.catalog = catalog or InMemoryCatalog()
        self.merge_policy = merge_policy
        self._carts: dict[str, FakeCartServer] = {}

    def cart_for(self, owner: str) -> FakeCartServer:
        cart = self._carts.get(owner)
        if cart is None:
            cart = FakeCartServer(self.catalog, merge_policy=self.merge_policy, cart_id=f"cart-{owner}")
            self._carts[owner] = cart
        return cart
