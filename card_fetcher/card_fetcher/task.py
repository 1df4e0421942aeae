"""
Per-character fetch orchestration.

A Task runs three stages for one character URL: binder (raw responses),
metadata and card. Each stage is a StageFuture, so it executes at most once
per Task no matter how many threads ask for it; its value, or its error, is
kept for the lifetime of the Task.
"""

import logging
import threading
from enum import Enum
from typing import Callable, Generic, Optional, Tuple, TypeVar

from .binder import Binder
from .errors import ErrCode, FetchError, wrap_error
from .handler import SourceHandler
from .models import Metadata
from .patcher import patch_metadata, patch_sheet
from .sheet import CharacterCard

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StageState(Enum):
    UNSTARTED = "unstarted"
    IN_FLIGHT = "in_flight"
    DONE = "done"


class StageFuture(Generic[T]):
    """
    Compute-once future.

    The first caller of get() runs the computation outside the lock; callers
    arriving while it runs wait on the same condition. Once DONE the stored
    value is returned, or the stored exception re-raised, forever. Failures
    are not retried.
    """

    def __init__(self, name: str, compute: Callable[[], T]):
        self.name = name
        self._compute = compute
        self._cond = threading.Condition()
        self._state = StageState.UNSTARTED
        self._value: Optional[T] = None
        self._error: Optional[Exception] = None

    @property
    def state(self) -> StageState:
        with self._cond:
            return self._state

    def get(self) -> T:
        with self._cond:
            if self._state is StageState.UNSTARTED:
                self._state = StageState.IN_FLIGHT
                owner = True
            else:
                owner = False
                while self._state is not StageState.DONE:
                    self._cond.wait()

        if owner:
            self._run()

        # DONE is terminal, the fields are no longer written
        if self._error is not None:
            raise self._error
        return self._value

    def _run(self) -> None:
        value, error = None, None
        try:
            value = self._compute()
        except Exception as e:
            error = e
        except BaseException:
            # Interrupted, not failed: let the next caller try again
            with self._cond:
                self._state = StageState.UNSTARTED
                self._cond.notify_all()
            raise

        with self._cond:
            self._value = value
            self._error = error
            self._state = StageState.DONE
            self._cond.notify_all()


class Task:
    """
    Fetches one character through ``handler``.

    ``character_id`` and ``normalized_url`` are derived eagerly on
    construction; all network work happens lazily in the stages.
    """

    def __init__(self, handler: SourceHandler, url: str, matched_url: str, add_source_tag: bool = False):
        self.handler = handler
        self._original_url = url
        self.add_source_tag = add_source_tag
        self._character_id = handler.character_id(url, matched_url)
        self._normalized_url = handler.normalize_url(self._character_id)

        self._binder: StageFuture[Binder] = StageFuture("binder", self._fetch_binder)
        self._metadata: StageFuture[Metadata] = StageFuture("metadata", self._fetch_metadata)
        self._card: StageFuture[CharacterCard] = StageFuture("card", self._fetch_card)

    def __repr__(self) -> str:
        return f"<Task {self.source_id} {self._normalized_url}>"

    @property
    def source_id(self) -> str:
        return self.handler.source_id()

    @property
    def original_url(self) -> str:
        return self._original_url

    @property
    def normalized_url(self) -> str:
        return self._normalized_url

    @property
    def character_id(self) -> str:
        return self._character_id

    def fetch_metadata(self) -> Metadata:
        return self._metadata.get()

    def fetch_character_card(self) -> CharacterCard:
        return self._card.get()

    def fetch_all(self) -> Tuple[Metadata, CharacterCard]:
        metadata = self.fetch_metadata()
        card = self.fetch_character_card()
        return metadata, card

    # Stages

    def _fetch_binder(self) -> Binder:
        handler = self.handler
        character_id = self._character_id
        logger.debug(f"[{self.source_id}] fetching metadata response for {self._normalized_url}")

        try:
            response = handler.fetch_metadata_response(character_id)
        except Exception as e:
            raise self._stage_error(e, ErrCode.FETCH_METADATA) from e

        try:
            metadata_binder = handler.create_binder(character_id, response)
        except Exception as e:
            raise self._stage_error(e, ErrCode.MALFORMED_METADATA) from e

        try:
            book_binder = handler.fetch_book_responses(metadata_binder)
        except Exception as e:
            raise self._stage_error(e, ErrCode.FETCH_BOOK_DATA) from e

        return Binder(metadata=metadata_binder, books=book_binder)

    def _fetch_metadata(self) -> Metadata:
        binder = self._binder.get()
        handler = self.handler

        try:
            card_info = handler.fetch_card_info(binder.metadata)
            creator_info = handler.fetch_creator_info(binder.metadata)
        except Exception as e:
            raise self._stage_error(e, ErrCode.FETCH_METADATA) from e

        if card_info is None or creator_info is None:
            raise self._stage_error(None, ErrCode.MALFORMED_METADATA)

        metadata = Metadata(
            source=handler.source_id(),
            card_info=card_info,
            creator_info=creator_info,
            book_update_time=binder.books.update_time,
        )
        patch_metadata(metadata)
        logger.info(f"[{self.source_id}] metadata ready for {self._normalized_url}")
        return metadata

    def _fetch_card(self) -> CharacterCard:
        binder = self._binder.get()
        metadata = self._metadata.get()

        try:
            card = self.handler.fetch_character_card(binder)
        except Exception as e:
            raise self._stage_error(e, ErrCode.FETCH_CARD_DATA) from e

        if card is None or card.sheet is None:
            raise self._stage_error(None, ErrCode.MALFORMED_CARD_DATA)

        patch_sheet(card.sheet, metadata, add_source_tag=self.add_source_tag)
        logger.info(f"[{self.source_id}] card ready for {self._normalized_url}")
        return card

    def _stage_error(self, cause: Optional[Exception], code: ErrCode) -> FetchError:
        error = wrap_error(cause, code) if cause is not None else FetchError(code)
        logger.warning(f"[{self.source_id}] {self._normalized_url}: {error}")
        return error
