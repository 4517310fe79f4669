"""Data models for Storefront catalog products."""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Money(BaseModel):
    """A price as returned by the Storefront API."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    amount: Decimal
    currency_code: str = Field(alias="currencyCode")


class ProductImage(BaseModel):
    """Representative image of a product."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str
    alt_text: str | None = Field(default=None, alias="altText")


class Product(BaseModel):
    """Represents a storefront product as fetched from upstream."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    handle: str
    description: str = ""
    min_price: Money
    image: ProductImage | None = None

    @classmethod
    def from_node(cls, node: dict[str, Any]) -> "Product":
        """Build a product from a GraphQL ``products.edges[].node`` entry.

        Args:
            node: The raw node, with ``priceRange.minVariantPrice`` and an
                ``images`` connection holding at most one edge.

        Returns:
            A Product instance.
        """
        image_edges = (node.get("images") or {}).get("edges") or []
        image = ProductImage.model_validate(image_edges[0]["node"]) if image_edges else None
        return cls(
            id=node.get("id"),
            title=node.get("title"),
            handle=node.get("handle"),
            description=node.get("description") or "",
            min_price=Money.model_validate((node.get("priceRange") or {}).get("minVariantPrice")),
            image=image,
        )


class PageInfo(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    has_next_page: bool = Field(alias="hasNextPage")
    end_cursor: str | None = Field(default=None, alias="endCursor")


class ProductPage(BaseModel):
    """One page of the ``products`` connection."""

    products: list[Product] = []
    page_info: PageInfo

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> "ProductPage":
        """Build a page from the ``data`` member of a GraphQL envelope.

        Edge cursors are ignored; only ``pageInfo.endCursor`` drives pagination.

        Raises:
            KeyError, TypeError: If the connection is missing.
            pydantic.ValidationError: If a node does not match the model.
        """
        connection = data["products"]
        return cls(
            products=[Product.from_node(edge["node"]) for edge in connection["edges"]],
            page_info=PageInfo.model_validate(connection["pageInfo"]),
        )
