"""
In-memory handler returning canned data, for tests and offline runs.
"""

import copy
import threading
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, List, Optional

import requests

from .binder import Binder, BookBinder, MetadataBinder, EMPTY_BOOK_BINDER
from .handler import DelegatingHandler, HandlerDefaults, RawResponse
from .models import CardInfo, CreatorInfo
from .sheet import CharacterCard


@dataclass
class MockConfig:
    source_id: str = "mock"
    source_url: str = "mock.example"
    direct_url: str = "https://mock.example/api/characters/"
    main_url: str = "mock.example/characters/"
    alternate_urls: List[str] = field(default_factory=list)
    is_up: bool = True


@dataclass
class MockData:
    """Canned results. An ``*_error`` set to an exception is raised instead."""
    response: Any = field(default_factory=dict)
    response_error: Optional[Exception] = None
    card_info: Optional[CardInfo] = None
    card_info_error: Optional[Exception] = None
    creator_info: Optional[CreatorInfo] = None
    creator_error: Optional[Exception] = None
    book_binder: BookBinder = EMPTY_BOOK_BINDER
    book_error: Optional[Exception] = None
    character_card: Optional[CharacterCard] = None
    character_card_error: Optional[Exception] = None
    # Seconds each fetch sleeps, to widen race windows in concurrency tests
    delay: float = 0.0


class MockHandler(DelegatingHandler):
    """
    Handler serving MockData. Every capability call is counted, thread-safely,
    under its method name.
    """

    def __init__(
        self,
        config: Optional[MockConfig] = None,
        data: Optional[MockData] = None,
        session: Optional[requests.Session] = None,
    ):
        config = config or MockConfig()
        super().__init__(HandlerDefaults(
            source_id=config.source_id,
            source_url=config.source_url,
            main_url=config.main_url,
            direct_url=config.direct_url,
            alternate_urls=config.alternate_urls,
            session=session,
        ))
        self.config = config
        self.data = data or MockData()
        self._calls = Counter()
        self._calls_lock = threading.Lock()

    def call_count(self, name: str) -> int:
        with self._calls_lock:
            return self._calls[name]

    def _record(self, name: str) -> None:
        with self._calls_lock:
            self._calls[name] += 1
        if self.data.delay:
            time.sleep(self.data.delay)

    def fetch_metadata_response(self, character_id: str) -> RawResponse:
        self._record("fetch_metadata_response")
        if self.data.response_error is not None:
            raise self.data.response_error
        return self.data.response

    def fetch_book_responses(self, metadata_binder: MetadataBinder) -> BookBinder:
        self._record("fetch_book_responses")
        if self.data.book_error is not None:
            raise self.data.book_error
        return self.data.book_binder

    def fetch_card_info(self, metadata_binder: MetadataBinder) -> Optional[CardInfo]:
        self._record("fetch_card_info")
        if self.data.card_info_error is not None:
            raise self.data.card_info_error
        return copy.deepcopy(self.data.card_info)

    def fetch_creator_info(self, metadata_binder: MetadataBinder) -> Optional[CreatorInfo]:
        self._record("fetch_creator_info")
        if self.data.creator_error is not None:
            raise self.data.creator_error
        return copy.deepcopy(self.data.creator_info)

    def fetch_character_card(self, binder: Binder) -> Optional[CharacterCard]:
        self._record("fetch_character_card")
        if self.data.character_card_error is not None:
            raise self.data.character_card_error
        return copy.deepcopy(self.data.character_card)

    def is_source_up(self) -> bool:
        self._record("is_source_up")
        return self.config.is_up


def build(session: requests.Session) -> MockHandler:
    """Factory usable from the ``handlers`` configuration list."""
    return MockHandler(session=session)
