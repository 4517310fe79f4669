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
"""CLI entry point for the storefront catalog."""

import argparse
import asyncio
import logging
import sys

import uvicorn
import yaml
from dotenv import load_dotenv
from rich.console import Console
from rich.prompt import Prompt

from storefront_catalog import __version__
from storefront_catalog.app import create_app
from storefront_catalog.catalog import DEFAULT_GATEWAY_URL, CatalogView, GatewayClient
from storefront_catalog.render import render_catalog

logger = logging.getLogger(__name__)

PROMPT_CHOICES = "[n]ext, [p]revious, page number, [r]etry, [q]uit"


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog="storefront-catalog",
        description="Relay and browse a Shopify storefront product catalog.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity. Use -vv for debug output.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the Storefront API gateway.")
    serve.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    browse = subparsers.add_parser("browse", help="Browse the catalog through the gateway.")
    browse.add_argument(
        "--gateway-url",
        default=DEFAULT_GATEWAY_URL,
        metavar="URL",
        help="Base URL of the running gateway.",
    )
    browse.add_argument(
        "--page",
        type=int,
        default=1,
        metavar="N",
        help="Page to display. Pages 1..N are fetched in order.",
    )
    browse.add_argument(
        "-i",
        "--interactive",
        action="store_true",
        help="Navigate pages interactively after the first render.",
    )
    browse.add_argument(
        "-p",
        "--print",
        action="store_true",
        dest="print_table",
        help="Print the catalog view to stdout.",
    )
    browse.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        help="Output YAML file path for the displayed products. Use '-' for stdout.",
    )

    return parser.parse_args(args)


def setup_logging(verbosity: int) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbosity: Verbosity level (0=warning, 1=info, 2+=debug).
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def output_yaml(products: list, output_path: str) -> None:
    """Output product data as YAML.

    Args:
        products: List of Product instances.
        output_path: File path or '-' for stdout.
    """
    data = [product.model_dump(mode="json") for product in products]

    if output_path == "-":
        yaml.dump(data, sys.stdout, default_flow_style=False, sort_keys=False, allow_unicode=True)
    else:
        with open(output_path, "w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
        logger.info("Output written to: %s", output_path)


async def advance_to(view: CatalogView, page: int) -> None:
    """Fetch pages in order until ``page`` is displayed or no further page exists.

    Args:
        view: The catalog view, not yet started.
        page: Target page number.
    """
    await view.start()
    while view.current_page < page and view.error is None:
        if not await view.next_page():
            logger.warning(
                "Page %s is past the last page (%s)", page, view.total_pages
            )
            break


async def handle_command(view: CatalogView, command: str) -> bool:
    """Apply one interactive command to the view.

    Returns:
        False when the user asked to quit.
    """
    command = command.strip().lower()
    if command in ("q", "quit"):
        return False
    if command in ("n", "next"):
        await view.next_page()
    elif command in ("p", "prev", "previous"):
        await view.previous_page()
    elif command in ("r", "retry"):
        await view.retry()
    elif command.isdigit():
        await view.change_page(int(command))
    return True


async def interact(view: CatalogView, console: Console) -> None:
    while True:
        console.print(render_catalog(view))
        command = await asyncio.to_thread(Prompt.ask, PROMPT_CHOICES, console=console, default="q")
        if not await handle_command(view, command):
            return


async def browse(parsed_args: argparse.Namespace, console: Console) -> CatalogView:
    async with GatewayClient(parsed_args.gateway_url) as client:
        view = CatalogView(client)
        with console.status("Chargement des produits…"):
            await advance_to(view, parsed_args.page)

        if parsed_args.interactive:
            await interact(view, console)
        elif parsed_args.print_table:
            console.print(render_catalog(view))
    return view


def main(args: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parsed_args = parse_args(args)
    setup_logging(parsed_args.verbose)
    load_dotenv()

    if parsed_args.command == "serve":
        uvicorn.run(create_app(), host=parsed_args.host, port=parsed_args.port)
        return 0

    if parsed_args.page < 1:
        logger.error("Page numbers start at 1.")
        return 1

    console = Console()
    view = asyncio.run(browse(parsed_args, console))

    if view.error is not None:
        logger.error("Catalog unavailable: %s", view.error)
        if not parsed_args.print_table and not parsed_args.interactive:
            console.print(render_catalog(view))
        return 1

    if parsed_args.output:
        output_yaml(view.products, parsed_args.output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
