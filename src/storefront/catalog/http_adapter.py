"""HTTP catalog adapter: resolves products against the storefront API."""

import httpx
import structlog
from protean.exceptions import ValidationError

from storefront.catalog.port import ProductCatalog
from storefront.catalog.product import Product
from storefront.errors import TransportError

logger = structlog.get_logger(__name__)


class HttpProductCatalog(ProductCatalog):
    """Looks products up via ``GET /products/{slugOrId}``."""

    def __init__(self, base_url: str, timeout: float = 10.0, client: httpx.AsyncClient | None = None) -> None:
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def resolve(self, slug_or_id: str) -> Product | None:
        ref = (slug_or_id or "").strip()
        if not ref:
            return None

        try:
            response = await self._client.get(f"/products/{ref}")
        except httpx.HTTPError as exc:
            logger.warning("Catalog lookup failed", ref=ref, error=str(exc))
            raise TransportError(f"Catalog lookup failed: {exc}") from exc

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise TransportError(f"Catalog responded with {response.status_code}", status_code=response.status_code)

        try:
            payload = response.json().get("product")
        except (ValueError, AttributeError) as exc:
            raise TransportError("Catalog returned malformed JSON", status_code=response.status_code) from exc
        if not payload:
            return None
        try:
            return Product.from_payload(payload)
        except (ValidationError, ValueError, TypeError, AttributeError) as exc:
            raise TransportError("Catalog returned a malformed product", status_code=response.status_code) from exc
