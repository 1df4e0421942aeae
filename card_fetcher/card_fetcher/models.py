from dataclasses import dataclass, field, replace
from typing import List, Optional, TYPE_CHECKING

from .constants import ANONYMOUS_CREATOR, NANOS_PER_SECOND
from .tags import Tag
from .text import is_not_blank, normalize_symbols

if TYPE_CHECKING:
    from .sheet import Sheet

_ANONYMOUS_IDENTIFIER = ANONYMOUS_CREATOR.lower()


def to_seconds(nanos: int) -> int:
    """Truncates a nanosecond timestamp to whole seconds."""
    return nanos // NANOS_PER_SECOND


@dataclass
class CardInfo:
    """Descriptive fields of a character, as reported by the site's metadata API."""
    normalized_url: str = ""
    direct_url: str = ""
    platform_id: str = ""
    character_id: str = ""
    name: str = ""
    title: str = ""
    tagline: str = ""
    create_time: int = 0  # nanoseconds
    update_time: int = 0  # nanoseconds
    is_forked: bool = False
    tags: List[Tag] = field(default_factory=list)

    def normalize_symbols(self) -> None:
        """Trims name, title and tagline and straightens quotes in the tagline."""
        self.name = self.name.strip()
        self.title = self.title.strip()
        self.tagline = normalize_symbols(self.tagline).strip()


@dataclass
class CreatorInfo:
    nickname: str = ""
    username: str = ""
    platform_id: str = ""


@dataclass
class Metadata:
    """
    Metadata of one character card: card info, creator info and the latest
    update time of any lore book linked to the card.
    """
    source: str
    card_info: CardInfo = field(default_factory=CardInfo)
    creator_info: CreatorInfo = field(default_factory=CreatorInfo)
    book_update_time: int = 0  # nanoseconds
    greetings_count: int = 0
    has_book: bool = False

    def latest_update_time(self) -> int:
        return max(self.card_info.update_time, self.book_update_time)

    def integrity(self) -> bool:
        """True when every identity field is populated and timestamps are sane."""
        card = self.card_info
        creator = self.creator_info
        return (
            is_not_blank(self.source)
            and is_not_blank(card.normalized_url)
            and is_not_blank(card.direct_url)
            and is_not_blank(card.platform_id)
            and is_not_blank(card.character_id)
            and is_not_blank(card.name)
            and is_not_blank(card.title)
            and card.create_time > 0
            and card.update_time > 0
            and card.update_time >= card.create_time
            and is_not_blank(creator.nickname)
            and is_not_blank(creator.username)
            and (creator.nickname.lower() == _ANONYMOUS_IDENTIFIER or is_not_blank(creator.platform_id))
        )

    def is_consistent_with(self, sheet: Optional["Sheet"]) -> bool:
        from .consistency import is_consistent_with
        return is_consistent_with(self, sheet)

    def clone(self) -> "Metadata":
        return replace(
            self,
            card_info=replace(self.card_info, tags=list(self.card_info.tags)),
            creator_info=replace(self.creator_info),
        )

