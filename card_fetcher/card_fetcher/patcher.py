"""
Normalization of fetched data.

patch_metadata runs at the end of the metadata stage; patch_sheet runs once
per task, after the sheet was decoded, and brings the sheet (and a few
metadata fields) into agreement so that is_consistent_with holds.
"""

import logging
from typing import Optional

from .constants import (
    ANONYMOUS_CREATOR,
    BOOK_NAME_PLACEHOLDER,
    BOOK_NAME_SUFFIX,
    CREATOR_NOTES_SEPARATOR,
)
from .models import Metadata, to_seconds
from .sheet import Book, Sheet
from .tags import merge_tags, resolve_tag, tags_from_map, tags_to_names
from .text import is_blank, is_not_blank, join_non_blank

logger = logging.getLogger(__name__)


def patch_metadata(metadata: Metadata) -> None:
    """Fills in creator nickname/username and normalizes card info symbols."""
    if metadata is None:
        raise ValueError("patch_metadata requires metadata")

    creator = metadata.creator_info
    nickname_blank = is_blank(creator.nickname)
    username_blank = is_blank(creator.username)

    if nickname_blank and not username_blank:
        creator.nickname = creator.username
    elif username_blank and not nickname_blank:
        creator.username = creator.nickname
    elif nickname_blank and username_blank:
        logger.debug(f"No creator for {metadata.card_info.normalized_url}, using {ANONYMOUS_CREATOR}")
        creator.nickname = ANONYMOUS_CREATOR
        creator.username = ANONYMOUS_CREATOR
        creator.platform_id = ""

    metadata.card_info.normalize_symbols()


def patch_sheet(sheet: Sheet, metadata: Metadata, add_source_tag: bool = False) -> None:
    """
    Reconciles ``sheet`` with ``metadata`` in place.

    With ``add_source_tag`` the source id is resolved into a tag and added to
    both sides unless a tag with the same slug is already present.
    """
    if sheet is None or metadata is None:
        raise ValueError("patch_sheet requires both a sheet and metadata")

    _patch_name_and_title(sheet, metadata)
    _patch_creator_notes(sheet, metadata)
    _patch_tags(sheet, metadata, add_source_tag)
    _patch_timestamps(sheet, metadata)
    _patch_book_name(sheet.character_book, metadata.card_info.name)
    _patch_identity_fields(sheet, metadata)

    metadata.greetings_count = len(sheet.alternate_greetings)
    metadata.has_book = sheet.character_book is not None

    sheet.creator = metadata.creator_info.nickname
    sheet.fix_user_char_templates()
    sheet.normalize_symbols()


def _patch_name_and_title(sheet: Sheet, metadata: Metadata) -> None:
    card = metadata.card_info
    sheet.title = card.title

    if is_not_blank(card.name):
        name = card.name
    elif is_not_blank(sheet.name):
        name = sheet.name
    else:
        name = card.title

    # Both sides must carry the same name afterwards
    sheet.name = name
    card.name = name

    if is_blank(sheet.nickname):
        sheet.nickname = name


def _patch_creator_notes(sheet: Sheet, metadata: Metadata) -> None:
    sheet.creator_notes = join_non_blank(
        CREATOR_NOTES_SEPARATOR,
        metadata.card_info.tagline,
        sheet.creator_notes,
    )


def _patch_tags(sheet: Sheet, metadata: Metadata, add_source_tag: bool) -> None:
    tags, names = merge_tags(metadata.card_info.tags, sheet.tags)

    if add_source_tag:
        source_tag = resolve_tag(metadata.source)
        mapping = {tag.slug: tag.name for tag in tags}
        if source_tag.slug and source_tag.slug not in mapping:
            mapping[source_tag.slug] = source_tag.name
            tags = tags_from_map(mapping)
            names = tags_to_names(tags)

    metadata.card_info.tags = tags
    sheet.tags = names


def _patch_timestamps(sheet: Sheet, metadata: Metadata) -> None:
    sheet.creation_date = to_seconds(metadata.card_info.create_time)
    sheet.modification_date = to_seconds(metadata.latest_update_time())

    # A book without its own update time is as fresh as the character
    if metadata.book_update_time == 0 and sheet.character_book is not None:
        metadata.book_update_time = metadata.card_info.update_time


def _patch_book_name(book: Optional[Book], character_name: str) -> None:
    if book is None:
        return
    if is_blank(book.name):
        book.name = character_name + BOOK_NAME_SUFFIX
    else:
        book.name = book.name.replace(BOOK_NAME_PLACEHOLDER, character_name, 1)
    book.name = book.name.replace("/", "-")


def _patch_identity_fields(sheet: Sheet, metadata: Metadata) -> None:
    sheet.source_id = metadata.source
    sheet.character_id = metadata.card_info.character_id
    sheet.platform_id = metadata.card_info.platform_id
    sheet.direct_link = metadata.card_info.direct_url
