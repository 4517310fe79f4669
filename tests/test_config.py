import pytest

from storefront_catalog.config import (
    MISSING_CONFIGURATION_MESSAGE,
    StorefrontConfig,
)
from storefront_catalog.errors import ConfigurationError, ErrorKind


def test_from_env_reads_credentials_and_default_version():
    config = StorefrontConfig.from_env(
        {
            "SHOPIFY_STORE_DOMAIN": "shop.myshopify.com",
            "SHOPIFY_STOREFRONT_ACCESS_TOKEN": "token",
        }
    )

    assert config.store_domain == "shop.myshopify.com"
    assert config.access_token == "token"
    assert config.api_version == "2023-01"
    assert config.is_complete


def test_from_env_honours_api_version():
    config = StorefrontConfig.from_env(
        {
            "SHOPIFY_STORE_DOMAIN": "shop.myshopify.com",
            "SHOPIFY_STOREFRONT_ACCESS_TOKEN": "token",
            "SHOPIFY_API_VERSION": "2024-04",
        }
    )

    assert config.graphql_url == "https://shop.myshopify.com/api/2024-04/graphql.json"


@pytest.mark.parametrize(
    "raw",
    ["https://shop.myshopify.com/", "http://shop.myshopify.com", "  shop.myshopify.com//  "],
)
def test_store_domain_is_normalized(raw):
    config = StorefrontConfig(store_domain=raw, access_token="token")

    assert config.store_domain == "shop.myshopify.com"
    assert config.graphql_url == "https://shop.myshopify.com/api/2023-01/graphql.json"


@pytest.mark.parametrize(
    "environ",
    [
        {},
        {"SHOPIFY_STORE_DOMAIN": "shop.myshopify.com"},
        {"SHOPIFY_STOREFRONT_ACCESS_TOKEN": "token"},
        {"SHOPIFY_STORE_DOMAIN": " ", "SHOPIFY_STOREFRONT_ACCESS_TOKEN": "token"},
        {"SHOPIFY_STORE_DOMAIN": "shop.myshopify.com", "SHOPIFY_STOREFRONT_ACCESS_TOKEN": ""},
    ],
)
def test_require_credentials_rejects_incomplete_configuration(environ):
    config = StorefrontConfig.from_env(environ)

    assert not config.is_complete
    with pytest.raises(ConfigurationError) as excinfo:
        config.require_credentials()

    err = excinfo.value.to_err()
    assert err.kind is ErrorKind.CONFIGURATION
    assert err.message == MISSING_CONFIGURATION_MESSAGE


def test_missing_configuration_log_does_not_leak_token(caplog):
    config = StorefrontConfig(access_token="very-secret")

    with pytest.raises(ConfigurationError):
        config.require_credentials()

    assert "very-secret" not in caplog.text
    assert "domain set: False" in caplog.text
