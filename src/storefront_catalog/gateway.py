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
"""Relay of GraphQL requests to the Shopify Storefront API."""

import logging
from typing import Any

import httpx

from storefront_catalog.config import StorefrontConfig
from storefront_catalog.errors import (
    Err,
    ErrorKind,
    MalformedResponseError,
    NetworkError,
    Ok,
    Result,
    StorefrontError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

ACCESS_TOKEN_HEADER = "X-Shopify-Storefront-Access-Token"


def read_json_or_empty(response: httpx.Response) -> dict[str, Any]:
    """Parse a response body, falling back to an empty mapping.

    Args:
        response: The upstream response.

    Returns:
        The decoded JSON object, or ``{}`` if the body is not a JSON object.
    """
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class StorefrontGateway:
    """Forwards GraphQL queries upstream with the storefront credentials attached."""

    def __init__(
        self,
        config: StorefrontConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            config: Upstream configuration, validated on every forward.
            client: HTTPX client to send requests with. When omitted the
                gateway creates and owns one.
        """
        self.config = config
        self._owns_client = client is None
        self.client = client if client is not None else httpx.AsyncClient()

    async def __aenter__(self) -> "StorefrontGateway":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the httpx client if the gateway created it."""
        if self._owns_client:
            await self.client.aclose()

    async def forward(self, query: str, variables: dict[str, Any] | None = None) -> Result:
        """Send one GraphQL request upstream.

        Configuration is checked first, so a missing credential never
        results in an outbound call.

        Args:
            query: GraphQL document.
            variables: GraphQL variables, forwarded verbatim.

        Returns:
            ``Ok`` with the upstream envelope unchanged, or ``Err`` describing
            the configuration, upstream, malformed-body or network failure.
        """
        try:
            self.config.require_credentials()
            body = await self._post(query, variables)
        except StorefrontError as e:
            return e.to_err()
        except Exception as e:
            logger.exception("Unexpected failure forwarding GraphQL request")
            return Err(kind=ErrorKind.NETWORK, message=str(e) or type(e).__name__)
        return Ok(body)

    async def _post(self, query: str, variables: dict[str, Any] | None) -> Any:
        url = self.config.graphql_url
        headers = {
            "Content-Type": "application/json",
            ACCESS_TOKEN_HEADER: self.config.access_token,
        }
        logger.debug("Forwarding GraphQL request to %s", url)
        logger.debug("GraphQL variables: %s", variables)

        try:
            response = await self.client.post(
                url,
                headers=headers,
                json={"query": query, "variables": variables},
            )
        except (httpx.RequestError, httpx.InvalidURL, ValueError) as e:
            # ValueError covers headers that cannot be encoded, e.g. a non-ASCII token.
            logger.error("Request error contacting Shopify at %s: %s", url, e)
            raise NetworkError(str(e) or type(e).__name__) from e

        logger.debug("Shopify response status: %s", response.status_code)

        if not response.is_success:
            error_data = read_json_or_empty(response)
            logger.error(
                "Shopify API error: status=%s reason=%s body=%s",
                response.status_code,
                response.reason_phrase,
                error_data,
            )
            raise UpstreamError(
                f"Erreur API Shopify: {response.status_code} - {response.reason_phrase}",
                status_code=response.status_code,
                payload=error_data,
            )

        try:
            body = response.json()
        except ValueError as e:
            logger.error("Shopify returned a non-JSON body with status %s", response.status_code)
            raise MalformedResponseError("Réponse Shopify illisible: JSON attendu") from e

        logger.info("Shopify response received")
        return body
