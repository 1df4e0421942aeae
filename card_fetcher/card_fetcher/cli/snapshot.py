"""
Snapshot command for card-fetcher CLI.

Stores the current card of each source's canonical character as the
last-known-good snapshot used by ``check``.
"""
import click
import logging
from typing import Tuple
from rich.markup import escape

from .base import apply_verbosity, console, get_router
from ..snapshots import save_snapshot

logger = logging.getLogger(__name__)


@click.command()
@click.argument("source_ids", nargs=-1)
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v: INFO, -vv: DEBUG).")
def snapshot(source_ids: Tuple[str, ...], verbose: int) -> None:
    """Refreshes snapshots for SOURCE_IDS (all sources when omitted)."""
    apply_verbosity(verbose)
    router = get_router()
    integration = router.integration

    targets = list(source_ids) or router.sources()
    known = set(router.sources())
    failures = 0

    for source_id in targets:
        if source_id not in known:
            console.print(f"[yellow]Unknown source: {source_id}[/yellow]")
            failures += 1
            continue

        resource_url = integration.resource_url(source_id)
        task = router.task_of(resource_url) if resource_url else None
        if task is None or task.source_id != source_id:
            console.print(f"[yellow]{source_id}: no canonical URL configured for this source[/yellow]")
            failures += 1
            continue

        try:
            path = save_snapshot(task, integration)
        except Exception as e:
            logger.error(f"Snapshot of {source_id} failed: {e}")
            console.print(f"[red]{source_id}: {escape(str(e))}[/red]")
            failures += 1
            continue

        console.print(f"[green]{source_id}[/green] -> {path}")

    if failures:
        raise SystemExit(1)
