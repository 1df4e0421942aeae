"""
Raw response envelopes threaded through the stages of a Task.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from bs4 import BeautifulSoup


@dataclass(frozen=True)
class MetadataBinder:
    """The parsed metadata response of one character."""
    character_id: str
    normalized_url: str
    direct_url: str
    json: Any = None
    # Parsed HTML page, for sources that only serve markup
    document: Optional[BeautifulSoup] = None

    def get(self, *path: Any, default: Any = None) -> Any:
        """Walks ``json`` by keys/indexes, returning ``default`` on any miss."""
        node = self.json
        for key in path:
            try:
                node = node[key]
            except (KeyError, IndexError, TypeError):
                return default
        return node


@dataclass(frozen=True)
class BookBinder:
    """Raw lore book documents linked to a character."""
    responses: List[Any] = field(default_factory=list)
    update_time: int = 0  # nanoseconds


EMPTY_BOOK_BINDER = BookBinder()


@dataclass(frozen=True)
class Binder:
    """Everything fetched for one character; built once, read-only afterwards."""
    metadata: MetadataBinder
    books: BookBinder = EMPTY_BOOK_BINDER

    @property
    def character_id(self) -> str:
        return self.metadata.character_id

    @property
    def normalized_url(self) -> str:
        return self.metadata.normalized_url

    @property
    def direct_url(self) -> str:
        return self.metadata.direct_url
