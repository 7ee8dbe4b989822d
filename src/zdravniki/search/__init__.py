"""Fuzzy search over merged records."""

from zdravniki.search.ranking import (
    DEFAULT_WEIGHTS,
    FieldMatch,
    SearchMatch,
    fold,
    score_field,
    search_records,
)

__all__ = [
    "DEFAULT_WEIGHTS",
    "FieldMatch",
    "SearchMatch",
    "fold",
    "score_field",
    "search_records",
]
