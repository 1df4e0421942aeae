"""
Small string helpers shared by the models and the patch engine.
"""

from typing import Optional

from .constants import (
    SYMBOL_REPLACEMENTS,
    USER_TEMPLATE_VARIANTS,
    CHAR_TEMPLATE_VARIANTS,
    USER_PLACEHOLDER,
    CHAR_PLACEHOLDER,
)

_SYMBOL_TABLE = str.maketrans(SYMBOL_REPLACEMENTS)


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def is_not_blank(value: Optional[str]) -> bool:
    return not is_blank(value)


def join_non_blank(separator: str, *parts: Optional[str]) -> str:
    """Joins the non-blank parts; blank parts and their separators are skipped."""
    return separator.join(part for part in parts if is_not_blank(part))


def normalize_symbols(value: str) -> str:
    """Straightens typographic quotes and non-breaking spaces. Idempotent."""
    return value.translate(_SYMBOL_TABLE)


def fix_templates(value: str) -> str:
    """Rewrites the common misspellings of {{user}} and {{char}}."""
    for variant in USER_TEMPLATE_VARIANTS:
        value = value.replace(variant, USER_PLACEHOLDER)
    for variant in CHAR_TEMPLATE_VARIANTS:
        value = value.replace(variant, CHAR_PLACEHOLDER)
    return value
