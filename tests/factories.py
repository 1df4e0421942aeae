"""
Canned card data shared by the test modules.
"""

from card_fetcher.card_fetcher.constants import NANOS_PER_SECOND
from card_fetcher.card_fetcher.mock import MockData
from card_fetcher.card_fetcher.models import CardInfo, CreatorInfo
from card_fetcher.card_fetcher.sheet import Book, BookEntry, CharacterCard, Sheet
from card_fetcher.card_fetcher.tags import Tag

CREATE_TIME = 1_700_000_000 * NANOS_PER_SECOND + 123
UPDATE_TIME = 1_700_100_000 * NANOS_PER_SECOND + 456

MAIN_URL = "mock.example/characters/"
CHARACTER_URL = "https://mock.example/characters/abc"


def make_card_info(**overrides) -> CardInfo:
    fields = dict(
        normalized_url="mock.example/characters/abc",
        direct_url="https://mock.example/api/characters/abc",
        platform_id="p-1",
        character_id="abc",
        name="Aria",
        title="Aria the Knight",
        tagline="A “brave” knight",
        create_time=CREATE_TIME,
        update_time=UPDATE_TIME,
        tags=[Tag("fantasy", "Fantasy")],
    )
    fields.update(overrides)
    return CardInfo(**fields)


def make_creator_info(**overrides) -> CreatorInfo:
    fields = dict(nickname="Bard", username="bard", platform_id="u-1")
    fields.update(overrides)
    return CreatorInfo(**fields)


def make_sheet(**overrides) -> Sheet:
    fields = dict(
        name="Aria",
        description="<USER> meets <BOT> at the gate.",
        first_message="Halt!",
        creator_notes="Made for fun.",
        alternate_greetings=["Hello", "Welcome"],
        tags=["knight", "NSFW"],
    )
    fields.update(overrides)
    return Sheet(**fields)


def make_book(name: str = "") -> Book:
    return Book(
        name=name,
        entries=[
            BookEntry(keys=["gate"], content="The castle gate.", insertion_order=5),
            BookEntry(keys=["sword"], content="An old sword.", insertion_order=9),
        ],
    )


def make_mock_data(**overrides) -> MockData:
    fields = dict(
        card_info=make_card_info(),
        creator_info=make_creator_info(),
        character_card=CharacterCard(sheet=make_sheet()),
    )
    fields.update(overrides)
    return MockData(**fields)


