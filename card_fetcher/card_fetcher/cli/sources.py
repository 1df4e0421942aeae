"""
Sources command for card-fetcher CLI.

Lists the registered handlers in routing order.
"""
import click
from rich.table import Table
from rich import box

from .base import console, get_router


@click.command()
def sources() -> None:
    """Lists the registered sources and the URLs they claim."""
    router = get_router()

    table = Table(title="Registered Sources", box=box.ROUNDED)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Source", style="cyan")
    table.add_column("Main URL")
    table.add_column("Alternate URLs", style="dim")

    for index, handler in enumerate(router.handlers(), start=1):
        base_urls = handler.base_urls()
        table.add_row(str(index), handler.source_id(), handler.main_url(), ", ".join(base_urls[1:]))

    console.print(table)
