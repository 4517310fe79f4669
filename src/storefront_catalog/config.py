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
"""Upstream Storefront API configuration."""

import logging
import os
from collections.abc import Mapping

from furl import furl
from pydantic import BaseModel, ConfigDict, field_validator

from storefront_catalog.errors import ConfigurationError

logger = logging.getLogger(__name__)

ENV_STORE_DOMAIN = "SHOPIFY_STORE_DOMAIN"
ENV_ACCESS_TOKEN = "SHOPIFY_STOREFRONT_ACCESS_TOKEN"
ENV_API_VERSION = "SHOPIFY_API_VERSION"

DEFAULT_API_VERSION = "2023-01"

MISSING_CONFIGURATION_MESSAGE = "Configuration Shopify manquante"

PRODUCTS_ROUTE = "/api/shopify/products"


class StorefrontConfig(BaseModel):
    """Credentials and endpoint coordinates for the Storefront API.

    Both ``store_domain`` and ``access_token`` may be absent when the model is
    built; :meth:`require_credentials` is the check performed before any
    upstream call.
    """

    model_config = ConfigDict(frozen=True)

    store_domain: str | None = None
    access_token: str | None = None
    api_version: str = DEFAULT_API_VERSION

    @field_validator("store_domain")
    @classmethod
    def normalize_domain(cls, value: str | None) -> str | None:
        """Strip any scheme and trailing slashes from the store domain.

        Args:
            value: Domain as configured, e.g. ``https://shop.myshopify.com/``.

        Returns:
            The bare host name, or None if nothing usable was given.
        """
        if value is None:
            return None
        value = value.strip()
        for scheme in ("https://", "http://"):
            if value.startswith(scheme):
                value = value[len(scheme):]
        value = value.rstrip("/")
        return value or None

    @field_validator("access_token")
    @classmethod
    def blank_token_is_missing(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "StorefrontConfig":
        """Build a configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``).

        Returns:
            A configuration, possibly incomplete.
        """
        if environ is None:
            environ = os.environ
        return cls(
            store_domain=environ.get(ENV_STORE_DOMAIN),
            access_token=environ.get(ENV_ACCESS_TOKEN),
            api_version=environ.get(ENV_API_VERSION) or DEFAULT_API_VERSION,
        )

    @property
    def is_complete(self) -> bool:
        return bool(self.store_domain and self.access_token)

    def require_credentials(self) -> None:
        """Ensure both upstream credentials are present.

        Raises:
            ConfigurationError: If the domain or the token is missing.
        """
        if self.is_complete:
            return
        logger.error(
            "Missing Shopify configuration (domain set: %s, token set: %s)",
            bool(self.store_domain),
            bool(self.access_token),
        )
        raise ConfigurationError(MISSING_CONFIGURATION_MESSAGE)

    @property
    def graphql_url(self) -> str:
        """Storefront GraphQL endpoint for the configured store.

        Raises:
            ConfigurationError: If the store domain is missing.
        """
        if not self.store_domain:
            raise ConfigurationError(MISSING_CONFIGURATION_MESSAGE)
        url = furl(f"https://{self.store_domain}")
        url.path.segments = ["api", self.api_version, "graphql.json"]
        return str(url)
