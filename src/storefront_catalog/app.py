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
"""FastAPI application exposing the storefront gateway."""

import logging
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from storefront_catalog import __version__
from storefront_catalog.config import PRODUCTS_ROUTE, StorefrontConfig
from storefront_catalog.errors import Err, Ok, Result
from storefront_catalog.gateway import StorefrontGateway

logger = logging.getLogger(__name__)


class GraphQLRequest(BaseModel):
    """Body accepted by the gateway route."""

    query: str
    variables: dict[str, Any] | None = None


def error_response(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": message},
    )


def result_response(result: Result) -> JSONResponse:
    """Map a gateway result onto the route's HTTP contract.

    Args:
        result: Outcome of :meth:`StorefrontGateway.forward`.

    Returns:
        200 with the raw upstream envelope, or 500 with ``{"error": message}``.
    """
    match result:
        case Ok(value=body):
            return JSONResponse(status_code=status.HTTP_200_OK, content=body)
        case Err(kind=kind, message=message):
            logger.warning("Gateway request failed (%s): %s", kind.value, message)
            return error_response(message)
    raise TypeError(f"Unexpected gateway result: {result!r}")


def create_app(
    config: StorefrontConfig | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the gateway application.

    Args:
        config: Upstream configuration (defaults to the environment, read once).
        transport: Optional HTTPX transport for upstream calls.

    Returns:
        A FastAPI application.
    """
    if config is None:
        config = StorefrontConfig.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with httpx.AsyncClient(transport=transport) as client:
            app.state.gateway = StorefrontGateway(config, client=client)
            yield

    app = FastAPI(
        title="Storefront Catalog Gateway",
        description="Relays GraphQL product queries to the Shopify Storefront API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.error("Rejected gateway request body: %s", exc.errors())
        return error_response("Requête GraphQL invalide: query attendu")

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {"status": "ok", "configured": config.is_complete}

    @app.post(PRODUCTS_ROUTE)
    async def proxy_products(body: GraphQLRequest, request: Request) -> JSONResponse:
        gateway: StorefrontGateway = request.app.state.gateway
        result = await gateway.forward(body.query, body.variables)
        return result_response(result)

    return app
