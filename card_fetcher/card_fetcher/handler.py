"""
The capability contract every site handler fulfils, plus shared defaults.

A handler is any object satisfying SourceHandler. Most handlers subclass
DelegatingHandler: they implement the site-specific methods themselves and
every method they leave out is answered by their HandlerDefaults instance.
Defaults that build on other methods (normalize_url, create_binder, ...) call
back into the handler, so an override of main_url or direct_url is honoured
everywhere.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, List, Optional, Protocol, Union, runtime_checkable

import requests
from bs4 import BeautifulSoup

from .binder import Binder, BookBinder, MetadataBinder, EMPTY_BOOK_BINDER
from .constants import NANOS_PER_SECOND
from .errors import ErrCode, FetchError
from .logging import log_api_call
from .models import CardInfo, CreatorInfo
from .sheet import CharacterCard
from .transport import is_response_ok

logger = logging.getLogger(__name__)

RawResponse = Union[requests.Response, str, bytes, dict, list]


@runtime_checkable
class SourceHandler(Protocol):
    def source_id(self) -> str: ...
    def source_url(self) -> str: ...
    def main_url(self) -> str: ...
    def base_urls(self) -> List[str]: ...
    def character_id(self, url: str, matched_url: str) -> str: ...
    def direct_url(self, character_id: str) -> str: ...
    def normalize_url(self, character_id: str) -> str: ...
    def fetch_metadata_response(self, character_id: str) -> RawResponse: ...
    def create_binder(self, character_id: str, response: RawResponse) -> MetadataBinder: ...
    def fetch_card_info(self, metadata_binder: MetadataBinder) -> CardInfo: ...
    def fetch_creator_info(self, metadata_binder: MetadataBinder) -> CreatorInfo: ...
    def fetch_book_responses(self, metadata_binder: MetadataBinder) -> BookBinder: ...
    def fetch_character_card(self, binder: Binder) -> CharacterCard: ...
    def is_source_up(self) -> bool: ...


def join_url(base: str, tail: str) -> str:
    """Joins two URL fragments with exactly one slash between them."""
    base = base.rstrip("/")
    tail = tail.strip("/")
    if not tail:
        return base
    return f"{base}/{tail}"


def parse_json_response(response: RawResponse) -> Any:
    """
    Turns a raw metadata response into a parsed JSON document.

    Non-2xx responses raise FetchError(FETCH_METADATA); unparseable bodies
    raise FetchError(MALFORMED_METADATA).
    """
    if isinstance(response, (dict, list)):
        return response
    if isinstance(response, requests.Response):
        if not is_response_ok(response):
            raise FetchError(ErrCode.FETCH_METADATA, message=f"HTTP {response.status_code} for {response.url}")
        body = response.text
    else:
        body = response
    try:
        return json.loads(body)
    except (TypeError, ValueError) as e:
        raise FetchError(ErrCode.MALFORMED_METADATA, e) from e


class HandlerDefaults:
    """
    Default method bodies shared by all handlers.

    ``top`` is the handler these defaults serve; it is used whenever a default
    depends on another capability that the handler may have overridden.
    """

    def __init__(
        self,
        source_id: str,
        source_url: str,
        main_url: str,
        direct_url: str = "",
        alternate_urls: Optional[List[str]] = None,
        session: Optional[requests.Session] = None,
    ):
        self._source_id = source_id
        self._source_url = source_url
        self._main_url = main_url
        self._direct_url = direct_url or main_url
        self._base_urls = [main_url] + list(alternate_urls or [])
        self.session = session or requests.Session()
        self.top: Any = self

    def bind(self, top: Any) -> "HandlerDefaults":
        self.top = top
        return self

    def source_id(self) -> str:
        return self._source_id

    def source_url(self) -> str:
        return self._source_url

    def main_url(self) -> str:
        return self._main_url

    def base_urls(self) -> List[str]:
        return list(self._base_urls)

    def character_id(self, url: str, matched_url: str) -> str:
        return url.split(matched_url)[-1]

    def direct_url(self, character_id: str) -> str:
        return join_url(self._direct_url, character_id)

    def normalize_url(self, character_id: str) -> str:
        return join_url(self.top.main_url(), character_id)

    def create_binder(self, character_id: str, response: RawResponse) -> MetadataBinder:
        return MetadataBinder(
            character_id=character_id,
            normalized_url=self.top.normalize_url(character_id),
            direct_url=self.top.direct_url(character_id),
            json=parse_json_response(response),
        )

    def create_binder_from_html(self, character_id: str, response: RawResponse) -> MetadataBinder:
        """Binder for sources that serve an HTML page instead of JSON."""
        if isinstance(response, requests.Response):
            if not is_response_ok(response):
                raise FetchError(ErrCode.FETCH_METADATA, message=f"HTTP {response.status_code} for {response.url}")
            markup = response.text
        else:
            markup = response
        return MetadataBinder(
            character_id=character_id,
            normalized_url=self.top.normalize_url(character_id),
            direct_url=self.top.direct_url(character_id),
            document=BeautifulSoup(markup, "html.parser"),
        )

    def fetch_book_responses(self, metadata_binder: MetadataBinder) -> BookBinder:
        return EMPTY_BOOK_BINDER

    def is_source_up(self) -> bool:
        url = "https://" + self._source_url
        log_api_call(url, "GET")
        try:
            return is_response_ok(self.session.get(url))
        except requests.RequestException as e:
            logger.warning(f"[{self._source_id}] source check failed: {e}")
            return False

    def from_date(self, fmt: str, date: str, url: str = "") -> int:
        """
        Parses ``date`` with ``fmt`` into nanoseconds since the epoch.

        Naive dates are taken as UTC. Unparseable dates are logged and
        yield 0, which patching and integrity checks treat as unknown.
        """
        try:
            parsed = datetime.strptime(date, fmt)
        except (TypeError, ValueError) as e:
            logger.error(f"[{self._source_id}] Could not parse timestamp '{date}' for {url}: {e}")
            return 0
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        delta = parsed - datetime(1970, 1, 1, tzinfo=timezone.utc)
        return (delta.days * 86_400 + delta.seconds) * NANOS_PER_SECOND + delta.microseconds * 1_000


class DelegatingHandler:
    """
    Base for handlers that fall back to a HandlerDefaults instance.

    Subclasses call ``super().__init__(defaults)`` and define the site-specific
    capabilities (fetch_metadata_response, fetch_card_info,
    fetch_creator_info, fetch_character_card) plus any default they need to
    override. Every capability they leave alone is forwarded to the defaults.
    """

    def __init__(self, defaults: HandlerDefaults):
        self.defaults = defaults.bind(self)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.defaults.source_id()}>"

    def source_id(self) -> str:
        return self.defaults.source_id()

    def source_url(self) -> str:
        return self.defaults.source_url()

    def main_url(self) -> str:
        return self.defaults.main_url()

    def base_urls(self) -> List[str]:
        return self.defaults.base_urls()

    def character_id(self, url: str, matched_url: str) -> str:
        return self.defaults.character_id(url, matched_url)

    def direct_url(self, character_id: str) -> str:
        return self.defaults.direct_url(character_id)

    def normalize_url(self, character_id: str) -> str:
        return self.defaults.normalize_url(character_id)

    def create_binder(self, character_id: str, response: RawResponse) -> MetadataBinder:
        return self.defaults.create_binder(character_id, response)

    def fetch_book_responses(self, metadata_binder: MetadataBinder) -> BookBinder:
        return self.defaults.fetch_book_responses(metadata_binder)

    def is_source_up(self) -> bool:
        return self.defaults.is_source_up()

    def fetch_metadata_response(self, character_id: str) -> RawResponse:
        raise NotImplementedError

    def fetch_card_info(self, metadata_binder: MetadataBinder) -> CardInfo:
        raise NotImplementedError

    def fetch_creator_info(self, metadata_binder: MetadataBinder) -> CreatorInfo:
        raise NotImplementedError

    def fetch_character_card(self, binder: Binder) -> CharacterCard:
        raise NotImplementedError
