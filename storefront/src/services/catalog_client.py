"""
HTTP client for the catalog pagination endpoint.

Used by the listing controller to request further pages from
``GET /api/products``.
"""

from typing import Awaitable, Callable, Dict, Optional

import httpx

from storefront.src.api.schemas.catalog_schemas import PageRequest, PageResult
from storefront.src.core.config import settings
from storefront.src.core.exceptions import ExternalServiceError
from storefront.src.core.logging import get_logger

logger = get_logger(__name__)

TokenProvider = Callable[[], Awaitable[Optional[str]]]

DEFAULT_ERROR_MESSAGE = "Failed to load products. Please try again."


class CatalogClient:
    """Client for paging through the catalog API."""

    PRODUCTS_PATH = "/api/products"

    def __init__(
        self,
        base_url: str,
        token_provider: Optional[TokenProvider] = None,
        timeout: float = settings.CATALOG_CLIENT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize catalog client.

        Args:
            base_url: Storefront origin, e.g. ``https://shop.example.com``
            token_provider: Coroutine returning the current session token;
                called before every request so short-lived tokens stay fresh
            timeout: Request timeout (seconds)
            transport: Optional httpx transport (tests, ASGI apps)
        """
        self.base_url = base_url.rstrip("/")
        self._token_provider = token_provider
        self._timeout = timeout
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self._timeout),
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "CatalogClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @staticmethod
    def build_params(request: PageRequest) -> Dict[str, str]:
        """
        Build query parameters for a page request.

        Args:
            request: Page request

        Returns:
            Query parameters for ``GET /api/products``
        """
        params: Dict[str, str] = {}
        if request.category:
            params["category"] = request.category
        params["sort"] = request.sort_by.value
        params["limit"] = str(request.limit)
        params["offset"] = str(request.offset)
        return params

    async def fetch_page(self, request: PageRequest) -> PageResult:
        """
        Request one page of products.

        Args:
            request: Page request

        Returns:
            PageResult parsed from the response

        Raises:
            ExternalServiceError: If the request fails or the server returns an error
        """
        headers: Dict[str, str] = {}
        if self._token_provider is not None:
            token = await self._token_provider()
            if token:
                headers["Authorization"] = f"Bearer {token}"

        client = await self._get_http_client()

        try:
            response = await client.get(
                self.PRODUCTS_PATH,
                params=self.build_params(request),
                headers=headers,
            )
        except httpx.HTTPError as e:
            logger.warning(
                "Catalog request failed",
                extra={"offset": request.offset, "error": str(e)},
            )
            raise ExternalServiceError(
                DEFAULT_ERROR_MESSAGE,
                service_name="catalog",
                original_error=e,
            ) from e

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = None
            message = DEFAULT_ERROR_MESSAGE
            if isinstance(body, dict) and body.get("error"):
                message = body["error"]
            logger.warning(
                "Catalog returned an error",
                extra={"status_code": response.status_code, "offset": request.offset},
            )
            raise ExternalServiceError(
                message,
                service_name="catalog",
                http_status=response.status_code,
            )

        return PageResult.model_validate(response.json())
