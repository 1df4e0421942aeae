"""
Check command for card-fetcher CLI.

Runs the integration check of every registered source.
"""
import click
from contextlib import nullcontext
import logging
from rich.table import Table
from rich import box

from .base import apply_verbosity, console, get_router
from ..logging import temporary_log_level
from ..router import IntegrationStatus

logger = logging.getLogger(__name__)

STATUS_STYLES = {
    IntegrationStatus.INTEGRATION_SUCCESS: "green",
    IntegrationStatus.INTEGRATION_FAILURE: "red",
    IntegrationStatus.SOURCE_DOWN: "red",
    IntegrationStatus.MISSING_REMOTE_RESOURCE: "yellow",
    IntegrationStatus.MISMATCHED_REMOTE_RESOURCE: "yellow",
    IntegrationStatus.MISSING_LOCAL_RESOURCE: "dim",
}


@click.command()
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v: INFO, -vv: DEBUG).")
def check(verbose: int) -> None:
    """Checks every source against its stored snapshot."""
    apply_verbosity(verbose)
    router = get_router()

    # Per-source warnings repeat what the table shows, keep them for -v
    quiet = temporary_log_level(logging.ERROR) if not verbose else nullcontext()
    with console.status("[bold green]Checking integrations..."), quiet:
        statuses = router.check_integrations()

    table = Table(title="Integration Check", box=box.ROUNDED)
    table.add_column("Source", style="cyan")
    table.add_column("Status")

    for source_id in router.sources():
        status = statuses.get(source_id)
        if status is None:
            continue
        style = STATUS_STYLES.get(status, "")
        table.add_row(source_id, f"[{style}]{status}[/{style}]" if style else str(status))

    console.print(table)

    failed = [s for s, status in statuses.items() if status is not IntegrationStatus.INTEGRATION_SUCCESS]
    logger.info(f"Integration check finished: {len(statuses) - len(failed)}/{len(statuses)} passing")
    if failed:
        raise SystemExit(1)
