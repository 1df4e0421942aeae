"""
Character sheet model: the JSON payload embedded in a character card image.

The image container itself is outside this package; CharacterCard.decode and
CharacterCard.encode only deal with the embedded JSON payload.
"""

import json
from dataclasses import dataclass, field, asdict
from typing import List, Optional, Dict, Any, Union

from .errors import ErrCode, FetchError
from .text import is_blank, is_not_blank, fix_templates, normalize_symbols


# Prose fields that go through template and symbol normalization
PROSE_FIELDS = (
    "description",
    "personality",
    "scenario",
    "first_message",
    "message_examples",
    "system_prompt",
    "post_history_instructions",
)


@dataclass
class BookEntry:
    keys: List[str] = field(default_factory=list)
    content: str = ""
    comment: str = ""
    enabled: bool = True
    insertion_order: int = 0
    secondary_keys: List[str] = field(default_factory=list)
    constant: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BookEntry':
        valid_keys = cls.__annotations__.keys()
        return cls(**{k: v for k, v in data.items() if k in valid_keys})


@dataclass
class Book:
    """A lore book attached to a character."""
    name: str = ""
    description: str = ""
    scan_depth: Optional[int] = None
    token_budget: Optional[int] = None
    recursive_scanning: bool = False
    entries: List[BookEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Book':
        valid_keys = cls.__annotations__.keys()
        filtered = {k: v for k, v in data.items() if k in valid_keys and k != "entries"}
        entries = [BookEntry.from_dict(e) for e in data.get("entries") or []]
        return cls(entries=entries, **filtered)


class BookMerger:
    """
    Folds several lore books into one.

    Entries keep their relative order and are renumbered; the first non-blank
    name and description win. Sites that link more than one book to a
    character use this in their card step.
    """

    def __init__(self):
        self._books: List[Book] = []

    def append_book(self, book: Optional[Book]) -> 'BookMerger':
        if book is not None:
            self._books.append(book)
        return self

    def build(self) -> Optional[Book]:
        if not self._books:
            return None

        merged = Book()
        for book in self._books:
            if is_blank(merged.name) and is_not_blank(book.name):
                merged.name = book.name
            if is_blank(merged.description) and is_not_blank(book.description):
                merged.description = book.description
            if merged.scan_depth is None:
                merged.scan_depth = book.scan_depth
            if merged.token_budget is None:
                merged.token_budget = book.token_budget
            merged.recursive_scanning = merged.recursive_scanning or book.recursive_scanning
            merged.entries.extend(book.entries)

        for index, entry in enumerate(merged.entries):
            entry.insertion_order = index
        return merged


@dataclass
class Sheet:
    """Character card payload. Patched in place to agree with Metadata."""
    name: str = ""
    title: str = ""
    nickname: str = ""
    description: str = ""
    personality: str = ""
    scenario: str = ""
    first_message: str = ""
    message_examples: str = ""
    creator_notes: str = ""
    system_prompt: str = ""
    post_history_instructions: str = ""
    alternate_greetings: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    creator: str = ""
    character_version: str = ""
    creation_date: int = 0  # seconds
    modification_date: int = 0  # seconds
    character_book: Optional[Book] = None
    source_id: str = ""
    character_id: str = ""
    platform_id: str = ""
    direct_link: str = ""

    def integrity(self) -> bool:
        return (
            is_not_blank(self.name)
            and is_not_blank(self.title)
            and is_not_blank(self.source_id)
            and is_not_blank(self.character_id)
            and self.creation_date > 0
            and self.modification_date >= self.creation_date
        )

    def fix_user_char_templates(self) -> None:
        for name in PROSE_FIELDS:
            setattr(self, name, fix_templates(getattr(self, name)))
        self.alternate_greetings = [fix_templates(g) for g in self.alternate_greetings]

    def normalize_symbols(self) -> None:
        for name in PROSE_FIELDS:
            setattr(self, name, normalize_symbols(getattr(self, name)))
        self.alternate_greetings = [normalize_symbols(g) for g in self.alternate_greetings]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Sheet':
        # Filter unknown keys so newer payloads still load
        valid_keys = cls.__annotations__.keys()
        filtered = {k: v for k, v in data.items() if k in valid_keys and k != "character_book"}
        sheet = cls(**filtered)
        book = data.get("character_book")
        if book:
            sheet.character_book = Book.from_dict(book)
        return sheet


@dataclass
class CharacterCard:
    """A decoded character card."""
    sheet: Sheet

    def is_malformed(self) -> bool:
        return self.sheet is None or is_blank(self.sheet.name)

    def encode(self) -> bytes:
        return json.dumps(self.sheet.to_dict(), ensure_ascii=False, indent=2).encode("utf-8")

    @classmethod
    def decode(cls, data: Union[bytes, str]) -> 'CharacterCard':
        """Decodes an embedded payload; failures raise FetchError(DECODE)."""
        try:
            payload = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise FetchError(ErrCode.DECODE, e) from e
        if not isinstance(payload, dict):
            raise FetchError(ErrCode.DECODE, message="card payload is not an object")
        # Accept both the bare sheet and the {"data": {...}} envelope
        if isinstance(payload.get("data"), dict):
            payload = payload["data"]
        try:
            return cls(sheet=Sheet.from_dict(payload))
        except TypeError as e:
            raise FetchError(ErrCode.DECODE, e) from e
