"""
Last-known-good card snapshots used by the integration check.
"""

import logging
from pathlib import Path

from .config import IntegrationConfig
from .constants import SNAPSHOT_EXTENSION
from .sheet import CharacterCard

logger = logging.getLogger(__name__)


def snapshot_path(source_id: str, config: IntegrationConfig) -> Path:
    """Returns the snapshot file path for a given source."""
    return Path(config.snapshot_dir) / f"{source_id}{SNAPSHOT_EXTENSION}"


def load_snapshot(source_id: str, config: IntegrationConfig) -> CharacterCard:
    """
    Loads the stored card of a source.

    Raises:
        FileNotFoundError: no snapshot has been saved for ``source_id``.
        FetchError: the stored payload cannot be decoded (code DECODE).
    """
    path = snapshot_path(source_id, config)
    if not path.exists():
        raise FileNotFoundError(f"No snapshot for {source_id} at {path}")

    logger.debug(f"Loading snapshot {path}")
    return CharacterCard.decode(path.read_bytes())


def save_snapshot(task, config: IntegrationConfig) -> Path:
    """Fetches the task's card and stores it as the source's snapshot."""
    card = task.fetch_character_card()
    path = snapshot_path(task.source_id, config)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "wb") as f:
        f.write(card.encode())

    logger.info(f"Saved snapshot for {task.source_id} to {path}")
    return path
