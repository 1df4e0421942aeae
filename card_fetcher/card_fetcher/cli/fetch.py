"""
Fetch command for card-fetcher CLI.

Resolves character URLs, fetches metadata and cards, and optionally writes the
patched cards to disk.
"""
import re
import click
import logging
from pathlib import Path
from typing import Optional, Tuple
from rich.table import Table
from rich import box
from rich.markup import escape

from .base import apply_verbosity, console, format_timestamp, get_router, run_tasks_with_progress
from ..errors import get_err_code
from ..task import Task

logger = logging.getLogger(__name__)


def card_filename(task: Task) -> str:
    """File name for a task's card, safe on every filesystem."""
    character_id = re.sub(r"[^\w.-]+", "_", task.character_id).strip("_") or "card"
    return f"{task.source_id}_{character_id}.json"


@click.command()
@click.argument("urls", nargs=-1, required=True)
@click.option("--output", type=click.Path(file_okay=False, path_type=Path), help="Directory to write card JSON files to.")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v: INFO, -vv: DEBUG).")
def fetch(urls: Tuple[str, ...], output: Optional[Path], verbose: int) -> None:
    """Fetches character metadata and cards for URLS."""
    apply_verbosity(verbose)
    logger.info(f"Fetch command started ({len(urls)} urls, output={output})")

    router = get_router()
    bucket = router.task_map_of(urls)

    for url in bucket.invalid_urls:
        console.print(f"[yellow]Unsupported URL, skipped: {escape(url)}[/yellow]")

    tasks = list(bucket.tasks.values())
    results = run_tasks_with_progress(tasks, "[bold green]Fetching cards...")

    table = Table(title="Fetched Characters", box=box.ROUNDED)
    table.add_column("Source", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Title")
    table.add_column("Creator")
    table.add_column("Tags", style="dim")
    table.add_column("Updated", justify="right")
    table.add_column("Status")

    failures = 0
    if output is not None:
        output.mkdir(parents=True, exist_ok=True)

    for task in tasks:
        metadata, card, error = results[task.normalized_url]
        if error is not None:
            failures += 1
            table.add_row(task.source_id, escape(task.normalized_url), "", "", "", "", f"[red]{get_err_code(error).name}[/red]")
            continue

        card_info = metadata.card_info
        table.add_row(
            task.source_id,
            escape(card_info.name),
            escape(card_info.title),
            escape(metadata.creator_info.nickname),
            escape(", ".join(card.sheet.tags)),
            format_timestamp(metadata.latest_update_time()),
            "[green]OK[/green]",
        )

        if output is not None:
            path = output / card_filename(task)
            with open(path, "wb") as f:
                f.write(card.encode())
            logger.info(f"Wrote {path}")

    if tasks:
        console.print(table)
    if output is not None and len(tasks) > failures:
        console.print(f"[dim]Cards written to {output}[/dim]")

    if failures or not tasks:
        raise SystemExit(1)
