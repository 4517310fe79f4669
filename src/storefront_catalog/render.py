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
"""Terminal rendering of the catalog view with Rich."""

import json

from babel.numbers import format_currency
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.spinner import Spinner
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from storefront_catalog.catalog import CatalogView, PaginationControls, ViewStatus
from storefront_catalog.models import Money, Product

PRICE_LOCALE = "fr_FR"
PLACEHOLDER_IMAGE = "/placeholder.jpg"
DESCRIPTION_WIDTH = 80


def format_price(price: Money, locale: str = PRICE_LOCALE) -> str:
    """Format a price as localized currency in its own currency code.

    Args:
        price: Amount and ISO currency code.
        locale: Babel locale identifier.

    Returns:
        The formatted price, e.g. ``12,50 €`` for ``fr_FR``.
    """
    return format_currency(price.amount, price.currency_code, locale=locale)


def truncate_description(description: str, width: int = DESCRIPTION_WIDTH) -> str:
    text = Text(" ".join(description.split()))
    text.truncate(width, overflow="ellipsis")
    return text.plain


def image_source(product: Product) -> tuple[str, str]:
    """Image URL and alt text for a product, with placeholder fallbacks."""
    if product.image is None:
        return PLACEHOLDER_IMAGE, product.title
    return product.image.url, product.image.alt_text or product.title


def render_loading() -> RenderableType:
    return Spinner("dots", text="Chargement des produits…")


def render_error(view: CatalogView) -> RenderableType:
    """Error message, debug payload and retry hint."""
    parts: list[RenderableType] = [Text(view.error or "", style="bold red")]
    if view.debug is not None:
        debug = {"status": view.debug.status, "responseData": view.debug.response_data}
        parts.append(
            Panel(
                Syntax(json.dumps(debug, indent=2, ensure_ascii=False, default=str), "json"),
                title="Informations de débogage",
                title_align="left",
            )
        )
    parts.append(Text("[r] Réessayer", style="bold blue"))
    return Group(*parts)


def render_products(products: list[Product]) -> RenderableType:
    if not products:
        return Text("Aucun produit trouvé", style="dim")

    table = Table(title=f"Produits ({len(products)})")
    table.add_column("Produit", style="green")
    table.add_column("Description")
    table.add_column("Prix", style="yellow", justify="right")
    table.add_column("Image", style="blue")

    for product in products:
        url, alt_text = image_source(product)
        table.add_row(
            product.title,
            truncate_description(product.description),
            format_price(product.min_price),
            f"{url} ({alt_text})",
        )
    return table


def render_pagination(controls: PaginationControls) -> Text:
    """Previous / numbered pages / Next, with disabled controls dimmed."""
    line = Text()
    line.append("‹ Précédent", style="default" if controls.previous_enabled else "dim strike")
    for page in controls.pages:
        line.append("  ")
        if page == controls.current_page:
            line.append(f"[{page}]", style="bold reverse blue")
        else:
            line.append(str(page))
    line.append("  ")
    line.append("Suivant ›", style="default" if controls.next_enabled else "dim strike")
    return line


def render_catalog(view: CatalogView) -> RenderableType:
    """Renderable for the current state of a catalog view.

    Args:
        view: The catalog view to draw.

    Returns:
        A loading spinner alone while the first products load, the error
        block on failure, otherwise the product table and pagination controls.
    """
    if view.status is ViewStatus.IDLE or (view.loading and not view.products):
        return render_loading()

    if view.error is not None:
        return render_error(view)

    parts: list[RenderableType] = [render_products(view.products)]
    controls = view.controls
    if controls.visible:
        parts.append(render_pagination(controls))
    return Group(*parts)
