"""
Shared CLI utilities and base functionality.
"""
import sys
import logging
import datetime
import concurrent.futures
from typing import Dict, List, Optional, Tuple
from rich.progress import Progress, SpinnerColumn, BarColumn, TextColumn
from rich.live import Live

# Internal imports
from ..config import get_config
from ..constants import PROGRESS_REFRESH_RATE
from ..logging import ConfigError, set_log_level, console
from ..models import Metadata, to_seconds
from ..router import Router
from ..sheet import CharacterCard
from ..task import Task

logger = logging.getLogger(__name__)

FetchResult = Tuple[Optional[Metadata], Optional[CharacterCard], Optional[Exception]]


def apply_verbosity(verbose: int) -> None:
    """Maps -v/-vv to console log levels (INFO with clean output, DEBUG with full output)."""
    log_level = logging.WARNING
    clean_logs = False
    if verbose == 1:
        log_level = logging.INFO
        clean_logs = True
    elif verbose >= 2:
        log_level = logging.DEBUG

    set_log_level(log_level, "console", clean=clean_logs)


def get_router() -> Router:
    """
    Builds a Router from the global configuration.

    Raises:
        SystemExit: If a configured handler cannot be loaded.
    """
    config = get_config()
    try:
        router = Router.from_config(config)
    except ConfigError as e:
        logger.error(f"Invalid handler configuration: {e}")
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if not router.sources():
        console.print("[yellow]No handlers configured (set HANDLERS in your .env file).[/yellow]")
    return router


def format_timestamp(nanos: int) -> str:
    if nanos <= 0:
        return "-"
    moment = datetime.datetime.fromtimestamp(to_seconds(nanos), tz=datetime.timezone.utc)
    return moment.strftime("%Y-%m-%d %H:%M")


def _fetch_task(task: Task) -> FetchResult:
    try:
        metadata, card = task.fetch_all()
        return metadata, card, None
    except Exception as e:
        return None, None, e


def run_tasks_with_progress(tasks: List[Task], description: str) -> Dict[str, FetchResult]:
    """
    Fetches every task concurrently behind a rich progress bar.

    Returns:
        Results keyed by normalized URL. Failed tasks carry their error.
    """
    results: Dict[str, FetchResult] = {}
    if not tasks:
        return results

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TextColumn("{task.fields[current]}"),
        console=console
    )

    with Live(progress, console=console, refresh_per_second=PROGRESS_REFRESH_RATE):
        task_id = progress.add_task(description, total=len(tasks), current="")

        with concurrent.futures.ThreadPoolExecutor() as executor:
            future_to_task = {executor.submit(_fetch_task, t): t for t in tasks}

            for future in concurrent.futures.as_completed(future_to_task):
                task = future_to_task[future]
                results[task.normalized_url] = future.result()
                progress.update(task_id, advance=1, current=f"[dim]{task.normalized_url}[/dim]")

    failures = sum(1 for _, _, error in results.values() if error is not None)
    logger.info(f"Fetched {len(results)} characters ({failures} failed)")
    return results
