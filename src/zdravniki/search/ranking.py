"""Fuzzy search over merged doctor records.

Ranks records against a free-text query across several weighted fields.
Matching ignores case and diacritics ("Čebašek" matches "cebasek").

Per field:
    - substring hit      → field score 1.0, offsets of the hit
    - otherwise, fuzzy   → mean best word similarity of the query words
                           (difflib ratio), counted only when every query
                           word reaches MIN_WORD_SIMILARITY

Record score = highest (field weight × field score). Ties keep input order.

Usage:
    matches = search_records(records, "novak ljubljana", practice_type="gp")
    for m in matches:
        print(m.score, m.record.full_name, [f.field for f in m.fields])
"""

import logging
import unicodedata
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from typing import Any

from zdravniki.merge.models import MergedRecord

logger = logging.getLogger(__name__)

# Full name first, then institution, then address components
DEFAULT_WEIGHTS: dict[str, float] = {
    "fullName": 1.0,
    "institution.name": 0.7,
    "institution.unit": 0.6,
    "address.street": 0.4,
    "address.city": 0.4,
    "address.municipality": 0.3,
    "address.postalName": 0.3,
}

FIELD_GETTERS: dict[str, Callable[[MergedRecord], str]] = {
    "fullName": lambda r: r.full_name,
    "institution.name": lambda r: r.institution.name,
    "institution.unit": lambda r: r.institution.unit,
    "address.street": lambda r: r.address.street,
    "address.city": lambda r: r.address.city,
    "address.municipality": lambda r: r.address.municipality,
    "address.postalName": lambda r: r.address.postal_name,
}

MIN_WORD_SIMILARITY = 0.75


@dataclass(frozen=True)
class FieldMatch:
    """How one field of a record matched the query."""

    field: str
    value: str
    score: float
    indices: list[tuple[int, int]]  # [start, end) offsets into value

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "value": self.value,
            "score": round(self.score, 4),
            "indices": [list(span) for span in self.indices],
        }


@dataclass(frozen=True)
class SearchMatch:
    """A ranked record."""

    record: MergedRecord
    score: float
    fields: list[FieldMatch] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "item": self.record.to_dict(),
            "score": round(self.score, 4),
            "matches": [f.to_dict() for f in self.fields],
        }


def _fold_char(char: str) -> str:
    base = "".join(
        c for c in unicodedata.normalize("NFKD", char) if not unicodedata.combining(c)
    ).lower()
    return base if len(base) == 1 else char.lower()[:1] or char


def fold(text: str) -> str:
    """Lowercase and strip diacritics, keeping character offsets intact."""
    return "".join(_fold_char(c) for c in text)


def _words(text: str) -> list[tuple[str, int, int]]:
    """Split folded text into (word, start, end) triples."""
    words: list[tuple[str, int, int]] = []
    start: int | None = None
    for i, char in enumerate(text):
        if char.isalnum():
            if start is None:
                start = i
        elif start is not None:
            words.append((text[start:i], start, i))
            start = None
    if start is not None:
        words.append((text[start:], start, len(text)))
    return words


def score_field(query: str, value: str) -> tuple[float, list[tuple[int, int]]]:
    """Score a single field value against a folded query.

    Args:
        query: Folded, whitespace-normalized query
        value: Raw field value

    Returns:
        (score in [0, 1], matched offsets)
    """
    if not query or not value:
        return 0.0, []

    folded = fold(value)
    position = folded.find(query)
    if position >= 0:
        return 1.0, [(position, position + len(query))]

    value_words = _words(folded)
    if not value_words:
        return 0.0, []

    ratios: list[float] = []
    spans: list[tuple[int, int]] = []
    for query_word in query.split():
        best_ratio, best_span = 0.0, (0, 0)
        for word, start, end in value_words:
            ratio = SequenceMatcher(None, query_word, word).ratio()
            if ratio > best_ratio:
                best_ratio, best_span = ratio, (start, end)
        if best_ratio < MIN_WORD_SIMILARITY:
            return 0.0, []
        ratios.append(best_ratio)
        spans.append(best_span)

    return sum(ratios) / len(ratios), sorted(set(spans))


def search_records(
    records: Sequence[MergedRecord],
    query: str,
    practice_type: str | None = None,
    weights: dict[str, float] | None = None,
    threshold: float = 0.3,
    limit: int | None = None,
) -> list[SearchMatch]:
    """Rank records against a free-text query.

    Args:
        records: Merged records to search
        query: Free-text query
        practice_type: Keep only records of this practiceType
        weights: Field path → weight (default: DEFAULT_WEIGHTS)
        threshold: Minimum record score
        limit: Maximum matches returned (None = all)

    Returns:
        Matches sorted by score descending
    """
    folded_query = " ".join(fold(query).split())
    if not folded_query:
        return []

    weights = weights or DEFAULT_WEIGHTS
    unknown = set(weights) - set(FIELD_GETTERS)
    if unknown:
        raise ValueError(f"Unknown search fields: {sorted(unknown)}")

    matches: list[SearchMatch] = []
    for record in records:
        if practice_type is not None and record.practice_type != practice_type:
            continue

        field_matches: list[FieldMatch] = []
        best = 0.0
        for path, weight in weights.items():
            value = FIELD_GETTERS[path](record)
            score, indices = score_field(folded_query, value)
            if score <= 0.0:
                continue
            field_matches.append(FieldMatch(path, value, score, indices))
            best = max(best, weight * score)

        if best >= threshold:
            matches.append(SearchMatch(record=record, score=best, fields=field_matches))

    matches.sort(key=lambda m: m.score, reverse=True)
    logger.debug(
        "Search %r (type=%s): %d matches of %d records",
        query, practice_type, len(matches), len(records),
    )
    return matches[:limit] if limit is not None else matches
