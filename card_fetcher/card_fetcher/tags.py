"""
Tag sanitization and merging.

A tag is identified by its slug; the name is only for display. Merging builds
one slug -> name mapping so the same tag spelled two ways collapses into one.
"""

import unicodedata
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from .constants import CAPITALIZE_AFTER, STANDARD_TAGS


@dataclass(frozen=True)
class Tag:
    slug: str
    name: str


def _fold_ascii(ch: str) -> str:
    # Only use the decomposition when it lands in ASCII, uncased scripts stay as-is
    folded = "".join(c for c in unicodedata.normalize("NFKD", ch) if not unicodedata.combining(c))
    return folded if folded.isascii() else ch


def sanitize_slug(raw: str) -> str:
    """
    ASCII-folds accented and fullwidth characters, drops symbols and
    whitespace and lowercases. CJK, Kana and Hangul pass through unchanged.
    """
    folded = "".join(_fold_ascii(ch) for ch in raw)
    return "".join(ch for ch in folded if ch.isalnum()).lower()


def sanitize_name(raw: str) -> str:
    """
    Title-cases a tag name without touching letters that are already upper.

    The first letter after whitespace or a CAPITALIZE_AFTER symbol is
    upper-cased. Non-ASCII characters that are neither letters nor digits
    (stars, emoji, ...) act as word breaks and are replaced by a space.
    Scripts without case (CJK, Kana, Hangul) come out unchanged.
    """
    raw = raw.strip()
    if not raw:
        return raw

    out = []
    capitalize_next = True
    for ch in raw:
        is_letter = ch.isalpha()
        if ord(ch) > 127 and not is_letter and not ch.isnumeric():
            capitalize_next = True
            out.append(" ")
            continue

        if is_letter and capitalize_next:
            capitalize_next = False
            ch = ch.upper()
        if ch.isspace() or ch in CAPITALIZE_AFTER:
            capitalize_next = True
        out.append(ch)

    return "".join(out).strip()


def resolve_tag(raw: str) -> Tag:
    """Sanitizes a raw tag into its canonical slug and display name."""
    slug = sanitize_slug(raw)
    standard = STANDARD_TAGS.get(slug)
    if standard is not None:
        return Tag(slug=slug, name=standard)
    return Tag(slug=slug, name=sanitize_name(raw))


def tags_to_names(tags: Iterable[Tag]) -> List[str]:
    return [tag.name for tag in tags]


def tags_to_slugs(tags: Iterable[Tag]) -> List[str]:
    return [tag.slug for tag in tags]


def tags_from_map(mapping: Dict[str, str]) -> List[Tag]:
    """Builds tags from a slug -> name mapping, sorted by slug. No sanitization."""
    return [Tag(slug=slug, name=mapping[slug]) for slug in sorted(mapping)]


def tags_from_values(values: Iterable[str]) -> List[Tag]:
    """
    Resolves raw tag strings (as found in a site response) into tags.

    Blank values and values without a usable slug are dropped, duplicates by
    slug keep the last spelling, and the result is sorted by name.
    """
    mapping: Dict[str, str] = {}
    for value in values:
        if not value or not value.strip():
            continue
        tag = resolve_tag(value)
        if tag.slug:
            mapping[tag.slug] = tag.name
    return sorted(tags_from_map(mapping), key=lambda tag: tag.name)


def merge_tags(tags: Iterable[Tag], names: Iterable[str]) -> Tuple[List[Tag], List[str]]:
    """
    Merges existing tags with raw tag names from a second source.

    ``tags`` are inserted first, then every name in ``names`` (resolved through
    resolve_tag), so the second source wins when both carry the same slug.
    Blank entries are dropped. The merged tags are sorted by slug and the
    returned names follow that same order.
    """
    mapping: Dict[str, str] = {}

    for tag in tags:
        if tag.slug.strip() and tag.name.strip():
            mapping[tag.slug] = tag.name

    for name in names:
        if not name or not name.strip():
            continue
        tag = resolve_tag(name)
        if tag.slug:
            mapping[tag.slug] = tag.name

    merged = tags_from_map(mapping)
    return merged, tags_to_names(merged)
