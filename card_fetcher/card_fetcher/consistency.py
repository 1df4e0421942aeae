"""
Consistency checks between a Metadata record and a character Sheet.

is_consistent_with is the contract the patch engine establishes: after
patch_sheet, the metadata and sheet of a task always satisfy it.
"""

import json
from typing import Any, Optional

from .models import Metadata, to_seconds
from .sheet import Sheet
from .tags import tags_to_names


def is_consistent_with(metadata: Optional[Metadata], sheet: Optional[Sheet]) -> bool:
    """Pure field-by-field agreement check. No I/O."""
    if metadata is None or sheet is None:
        return metadata is None and sheet is None

    card = metadata.card_info
    return (
        metadata.source == sheet.source_id
        and card.character_id == sheet.character_id
        and card.platform_id == sheet.platform_id
        and card.direct_url == sheet.direct_link
        and card.title == sheet.title
        and card.name == sheet.name
        and metadata.creator_info.nickname == sheet.creator
        and sheet.creator_notes.startswith(card.tagline)
        and to_seconds(card.create_time) == sheet.creation_date
        and to_seconds(metadata.latest_update_time()) == sheet.modification_date
        and tags_to_names(card.tags) == sheet.tags
    )


def _canonical(value: Any) -> Any:
    # Empty containers and strings compare equal to missing values
    if isinstance(value, dict):
        canonical = {k: c for k, c in ((k, _canonical(v)) for k, v in value.items()) if c is not None}
        return canonical or None
    if isinstance(value, (list, tuple)):
        items = [c for c in (_canonical(v) for v in value) if c is not None]
        if not items:
            return None
        return sorted(items, key=lambda v: json.dumps(v, sort_keys=True, ensure_ascii=False))
    if isinstance(value, str) and not value:
        return None
    return value


def sheets_equivalent(left: Optional[Sheet], right: Optional[Sheet]) -> bool:
    """
    Structural comparison of two sheets used against stored snapshots.

    List order is ignored and empty values equal missing ones.
    """
    if left is None or right is None:
        return left is None and right is None
    return _canonical(left.to_dict()) == _canonical(right.to_dict())
