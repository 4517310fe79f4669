# ==============================================================================
#  Copyright 2025 Matthew Pounsett <matt@conundrum.com>
#
#  Licensed under the Apache License, Version 2.0 (the "License");
#  you may not use this file except in compliance with the License.
#  You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
#  limitations under the License.
# ==============================================================================
"""Paginated product catalog driven through the storefront gateway."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

import httpx
from furl import furl
from pydantic import ValidationError

from storefront_catalog.config import PRODUCTS_ROUTE
from storefront_catalog.errors import (
    Err,
    ErrorKind,
    MalformedResponseError,
    NetworkError,
    Ok,
    Result,
    StorefrontError,
)
from storefront_catalog.models import Product, ProductPage

logger = logging.getLogger(__name__)

PAGE_SIZE = 12

DEFAULT_GATEWAY_URL = "http://127.0.0.1:8000"

FETCH_FAILED_MESSAGE = "Erreur lors de la récupération des produits"
MISSING_DATA_MESSAGE = "Format de réponse invalide: data manquant"

PRODUCTS_QUERY = """
  query Products($first: Int!, $after: String) {
    products(first: $first, after: $after) {
      edges {
        node {
          id
          title
          handle
          description
          priceRange {
            minVariantPrice {
              amount
              currencyCode
            }
          }
          images(first: 1) {
            edges {
              node {
                url
                altText
              }
            }
          }
        }
        cursor
      }
      pageInfo {
        hasNextPage
        endCursor
      }
    }
  }
"""


@dataclass(frozen=True)
class GatewayReply:
    """HTTP status and decoded body of one gateway call."""

    status_code: int
    body: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class Gateway(Protocol):
    async def post(self, query: str, variables: dict[str, Any]) -> GatewayReply: ...


class GatewayClient:
    """Sends catalog queries to the gateway route over HTTP."""

    def __init__(
        self,
        base_url: str = DEFAULT_GATEWAY_URL,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Root URL of the gateway service.
            client: HTTPX client to use; created and owned when omitted.
        """
        url = furl(base_url)
        url.path.segments = [*(s for s in url.path.segments if s), *PRODUCTS_ROUTE.strip("/").split("/")]
        self.url = str(url)
        self._owns_client = client is None
        self.client = client if client is not None else httpx.AsyncClient()

    async def __aenter__(self) -> "GatewayClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def post(self, query: str, variables: dict[str, Any]) -> GatewayReply:
        """POST one GraphQL request to the gateway.

        Raises:
            NetworkError: If no HTTP response was obtained.
            MalformedResponseError: If the body is not JSON.
        """
        try:
            response = await self.client.post(
                self.url,
                json={"query": query, "variables": variables},
            )
        except httpx.RequestError as e:
            raise NetworkError(str(e) or type(e).__name__) from e

        try:
            body = response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Erreur {response.status_code}: réponse illisible"
            ) from e
        return GatewayReply(status_code=response.status_code, body=body)


def interpret_reply(reply: GatewayReply) -> Result:
    """Turn a gateway reply into a product page or a view-level error.

    Args:
        reply: Status and body returned by the gateway.

    Returns:
        ``Ok(ProductPage)`` or an ``Err`` whose message is shown to the user.
    """
    body = reply.body if isinstance(reply.body, dict) else {}

    if not reply.ok:
        detail = body.get("error") or FETCH_FAILED_MESSAGE
        return Err(
            kind=ErrorKind.UPSTREAM,
            message=f"Erreur {reply.status_code}: {detail}",
            payload=body,
        )

    data = body.get("data")
    if not data:
        return Err(kind=ErrorKind.MALFORMED, message=MISSING_DATA_MESSAGE, payload=body)

    try:
        page = ProductPage.from_data(data)
    except (AttributeError, KeyError, TypeError, ValidationError) as e:
        logger.error("Unexpected products connection shape: %s", e)
        return Err(
            kind=ErrorKind.MALFORMED,
            message="Format de réponse invalide: produits illisibles",
            payload=body,
        )
    return Ok(page)


class ViewStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class DebugInfo:
    """Last raw exchange with the gateway, shown next to error messages."""

    status: int | None
    response_data: Any


@dataclass(frozen=True)
class PaginationControls:
    """What the Previous / numbered / Next controls should display."""

    visible: bool
    pages: tuple[int, ...]
    current_page: int
    previous_enabled: bool
    next_enabled: bool


class CatalogView:
    """Pagination state and fetch orchestration for one browsing session.

    The view keeps an ordered table of end cursors, one per page already
    fetched, so that page N is requested with the cursor recorded for page
    N - 1. Each fetch carries a sequence token; only the response to the
    most recently issued fetch may change the state.
    """

    def __init__(self, gateway: Gateway, page_size: int = PAGE_SIZE) -> None:
        self.gateway = gateway
        self.page_size = page_size
        self.products: list[Product] = []
        self.current_page = 1
        self.total_pages = 1
        self.cursors: list[str | None] = []
        self.loading = False
        self.error: str | None = None
        self.debug: DebugInfo | None = None
        self._sequence = 0
        self._started = False

    @property
    def status(self) -> ViewStatus:
        if self.loading:
            return ViewStatus.LOADING
        if self.error is not None:
            return ViewStatus.ERROR
        if self._started:
            return ViewStatus.SUCCESS
        return ViewStatus.IDLE

    @property
    def controls(self) -> PaginationControls:
        return PaginationControls(
            visible=self.total_pages > 1,
            pages=tuple(range(1, self.total_pages + 1)),
            current_page=self.current_page,
            previous_enabled=self.current_page > 1,
            next_enabled=self.current_page < self.total_pages,
        )

    def variables_for(self, page: int) -> dict[str, Any]:
        """GraphQL variables requesting ``page``.

        Args:
            page: 1-based page number whose previous page is already known.

        Returns:
            ``{"first": page_size, "after": cursor}``.
        """
        after = None if page == 1 else self.cursors[page - 2]
        return {"first": self.page_size, "after": after}

    async def start(self) -> None:
        """Load the first page, as on mount."""
        await self.fetch(self.current_page)

    async def change_page(self, page: int) -> bool:
        """Navigate to ``page`` and fetch it.

        Requests outside ``[1, total_pages]`` are ignored.

        Returns:
            True if the page change was accepted.
        """
        if not 1 <= page <= self.total_pages:
            logger.debug("Ignoring page change to %s (known pages: %s)", page, self.total_pages)
            return False
        self.current_page = page
        await self.fetch(page)
        return True

    async def next_page(self) -> bool:
        return await self.change_page(self.current_page + 1)

    async def previous_page(self) -> bool:
        return await self.change_page(self.current_page - 1)

    async def retry(self) -> None:
        """Re-issue the fetch for the current page."""
        await self.fetch(self.current_page)

    async def fetch(self, page: int) -> None:
        """Fetch ``page`` through the gateway and apply the outcome.

        Never raises for gateway, network or response-shape failures; those
        end in the error state.
        """
        self._sequence += 1
        token = self._sequence
        self._started = True
        self.loading = True
        self.error = None

        variables = self.variables_for(page)
        logger.info("Fetching catalog page %s", page)

        try:
            reply = await self.gateway.post(PRODUCTS_QUERY, variables)
        except StorefrontError as e:
            if not self._is_stale(token, page):
                self._fail(e.message)
            return
        except Exception as e:
            logger.exception("Unexpected failure fetching catalog page %s", page)
            if not self._is_stale(token, page):
                self._fail(str(e) or "Une erreur est survenue")
            return

        if self._is_stale(token, page):
            return

        self.debug = DebugInfo(status=reply.status_code, response_data=reply.body)
        match interpret_reply(reply):
            case Ok(value=product_page):
                self._apply(page, product_page)
            case Err(message=message):
                self._fail(message)

    def _is_stale(self, token: int, page: int) -> bool:
        if token == self._sequence:
            return False
        logger.debug("Discarding stale response for page %s (request %s, latest %s)", page, token, self._sequence)
        return True

    def _fail(self, message: str) -> None:
        logger.error("Catalog fetch failed: %s", message)
        self.error = message
        self.loading = False

    def _apply(self, page: int, product_page: ProductPage) -> None:
        info = product_page.page_info
        self.products = list(product_page.products)

        # A next page without an end cursor cannot be requested.
        has_next_page = info.has_next_page and info.end_cursor is not None
        if info.has_next_page and not has_next_page:
            logger.warning("Upstream reports a page after %s but no end cursor", page)

        if page == 1:
            self.cursors = [info.end_cursor]
        elif has_next_page and len(self.cursors) < page:
            self.cursors.append(info.end_cursor)

        if page == 1:
            self.total_pages = 2 if has_next_page else 1
        elif has_next_page:
            self.total_pages = max(self.total_pages, page + 1)
        else:
            self.total_pages = page

        self.loading = False
        logger.info(
            "Loaded %s products for page %s (known pages: %s)",
            len(self.products),
            page,
            self.total_pages,
        )
