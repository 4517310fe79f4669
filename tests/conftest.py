"""Pytest fixtures for gateway and catalog tests."""

import pytest

from storefront_catalog.catalog import GatewayReply
from storefront_catalog.config import StorefrontConfig


def make_node(index: int, *, currency: str = "EUR", with_image: bool = True) -> dict:
    images = (
        [{"node": {"url": f"https://cdn.example.com/p{index}.jpg", "altText": f"Photo {index}"}}]
        if with_image
        else []
    )
    return {
        "id": f"gid://shopify/Product/{index}",
        "title": f"Produit {index}",
        "handle": f"produit-{index}",
        "description": f"Description du produit {index}",
        "priceRange": {"minVariantPrice": {"amount": f"{index}.50", "currencyCode": currency}},
        "images": {"edges": images},
    }


def make_envelope(count: int, *, has_next_page: bool, end_cursor: str | None, start: int = 1) -> dict:
    edges = [
        {"node": make_node(index), "cursor": f"edge-{index}"}
        for index in range(start, start + count)
    ]
    return {
        "data": {
            "products": {
                "edges": edges,
                "pageInfo": {"hasNextPage": has_next_page, "endCursor": end_cursor},
            }
        }
    }


class FakeGateway:
    """Gateway double returning queued replies and recording variables."""

    def __init__(self, *replies) -> None:
        self.replies = list(replies)
        self.calls: list[dict] = []

    async def post(self, query: str, variables: dict) -> GatewayReply:
        self.calls.append(variables)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def node():
    return make_node


@pytest.fixture
def envelope():
    return make_envelope


@pytest.fixture
def page_reply():
    """Factory for a successful gateway reply holding one page."""

    def factory(count: int = 3, *, has_next_page: bool = True, end_cursor: str | None = "C1", start: int = 1):
        return GatewayReply(
            status_code=200,
            body=make_envelope(count, has_next_page=has_next_page, end_cursor=end_cursor, start=start),
        )

    return factory


@pytest.fixture
def fake_gateway():
    return FakeGateway


@pytest.fixture
def config():
    return StorefrontConfig(store_domain="test-shop.myshopify.com", access_token="secret-token")
