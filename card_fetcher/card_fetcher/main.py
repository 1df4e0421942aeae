import click

from .config import get_config
from .logging import setup_logging, set_log_level
from .cli.check import check
from .cli.fetch import fetch
from .cli.snapshot import snapshot
from .cli.sources import sources


@click.group()
def cli():
    """card-fetcher: fetch and normalize character cards from hosting sites."""
    logging_config = get_config().logging
    setup_logging(logging_config.log_file)
    set_log_level(logging_config.file_level, "file")
    set_log_level(logging_config.console_level, "console")


cli.add_command(fetch)
cli.add_command(sources)
cli.add_command(check)
cli.add_command(snapshot)

if __name__ == "__main__":
    cli()
