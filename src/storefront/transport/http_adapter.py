"""HTTP cart transport: the server cart endpoints over the storefront API.

Endpoints:
    GET    /cart                  fetch
    POST   /cart                  add        {productId, quantity}
    PUT    /cart/{productId}      set        {quantity}
    DELETE /cart/{productId}      remove
    DELETE /cart                  clear
    POST   /cart/sync             batch sync {items: [{productId, quantity}]}
"""

from collections.abc import Callable

import httpx
import structlog
from protean.exceptions import ValidationError

from storefront.cart.line import CartLine, CartSnapshot
from storefront.errors import CartError, TransportError
from storefront.transport.port import CartTransport
from storefront.transport.wire import error_from_payload, snapshot_from_payload

logger = structlog.get_logger(__name__)


def _get_async_client(base_url: str, timeout: float) -> httpx.AsyncClient:
    """Get a configured async httpx client."""
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=timeout,
        headers={"Content-Type": "application/json"},
    )


def _snapshot(cart, method: str, path: str) -> CartSnapshot:
    try:
        return snapshot_from_payload(cart)
    except (ValidationError, ValueError, TypeError, AttributeError) as exc:
        logger.warning("Malformed cart in response", method=method, path=path, error=str(exc))
        raise TransportError(f"{method} {path} returned a malformed cart") from exc


class HttpCartTransport(CartTransport):
    """Cart transport backed by ``httpx.AsyncClient``.

    ``token_provider`` returns the bearer token of the signed-in user (or
    None); tokens are issued elsewhere.
    """

    def __init__(
        self,
        base_url: str,
        token_provider: Callable[[], str | None] | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or _get_async_client(base_url, timeout)
        self._token_provider = token_provider or (lambda: None)

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        token = self._token_provider()
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def _request(self, method: str, path: str, json: dict | None = None) -> dict:
        try:
            response = await self._client.request(method, path, json=json, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.warning("Cart request failed", method=method, path=path, error=str(exc))
            raise TransportError(f"Cart request failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        if response.status_code >= 400 or payload.get("success") is False:
            error: CartError = error_from_payload(payload, response.status_code)
            logger.info(
                "Cart request rejected",
                method=method,
                path=path,
                status_code=response.status_code,
                kind=error.kind.value,
            )
            raise error
        return payload

    async def _cart(self, method: str, path: str, json: dict | None = None) -> CartSnapshot:
        payload = await self._request(method, path, json)
        if "cart" not in payload:
            raise TransportError(f"{method} {path} returned no cart")
        return _snapshot(payload["cart"], method, path)

    async def fetch_cart(self) -> CartSnapshot:
        return await self._cart("GET", "/cart")

    async def add_line(self, product_id: str, quantity: int) -> CartSnapshot:
        return await self._cart("POST", "/cart", {"productId": product_id, "quantity": quantity})

    async def set_line_quantity(self, product_id: str, quantity: int) -> CartSnapshot:
        return await self._cart("PUT", f"/cart/{product_id}", {"quantity": quantity})

    async def remove_line(self, product_id: str) -> CartSnapshot:
        return await self._cart("DELETE", f"/cart/{product_id}")

    async def clear_cart(self) -> CartSnapshot:
        payload = await self._request("DELETE", "/cart")
        if "cart" in payload:
            return _snapshot(payload["cart"], "DELETE", "/cart")
        # Older backends answer clear with {"success": true} only
        return await self.fetch_cart()

    async def sync_lines(self, lines: list[CartLine]) -> CartSnapshot:
        items = [{"productId": line.product_ref, "quantity": line.quantity} for line in lines]
        return await self._cart("POST", "/cart/sync", {"items": items})
