"""Similarity measures used by the disambiguators."""

from __future__ import annotations

import re
from typing import AbstractSet, FrozenSet, Sequence

import numpy as np
from rapidfuzz import process
from rapidfuzz.distance import Levenshtein

from src.extraction.models import Entity, EntityType

# Person names sharing a surname score at least this much.
SURNAME_MATCH_FLOOR = 0.7

STOP_WORDS: FrozenSet[str] = frozenset(
    {
        "the", "and", "this", "that", "with", "for", "from", "was", "were", "will",
        "have", "has", "had", "are", "our", "your", "their", "she", "him", "her", "they",
        "may", "can", "could", "would", "should", "been", "being", "when", "where", "why",
        "how", "what", "who", "which", "such", "some", "very", "just",
    }
)

_NAME_SEPARATORS = re.compile(r"[ \-_.]+")
_PUNCTUATION = re.compile(r"[^\w\s]")


def name_similarity(first: str, second: str) -> float:
    """Normalized Levenshtein similarity of two names, ignoring case.

    ``1 - distance / max(len)``; two empty names are identical, one empty name
    scores 0.
    """
    if not first and not second:
        return 1.0
    if not first or not second:
        return 0.0
    left, right = first.lower(), second.lower()
    if left == right:
        return 1.0
    return float(Levenshtein.normalized_similarity(left, right))


def name_similarity_matrix(names: Sequence[str]) -> np.ndarray:
    """Pairwise :func:`name_similarity` for every pair of ``names``."""
    if not names:
        return np.zeros((0, 0), dtype=np.float64)
    lowered = [name.lower() for name in names]
    matrix = process.cdist(
        lowered,
        lowered,
        scorer=Levenshtein.normalized_similarity,
        dtype=np.float64,
    )
    matrix = np.asarray(matrix, dtype=np.float64)
    np.fill_diagonal(matrix, 1.0)
    return matrix


def shares_surname(first: str, second: str) -> bool:
    """True when both names have two or more parts and the last parts match."""
    parts_first = [part for part in _NAME_SEPARATORS.split(first) if part]
    parts_second = [part for part in _NAME_SEPARATORS.split(second) if part]
    if len(parts_first) < 2 or len(parts_second) < 2:
        return False
    return parts_first[-1].lower() == parts_second[-1].lower()


def calculate_similarity(first: Entity, second: Entity) -> float:
    """Default entity similarity: 0 across types, else name similarity."""
    if first.type != second.type:
        return 0.0
    return name_similarity(first.name, second.name)


def person_adjusted_similarity(first: Entity, second: Entity, base: float) -> float:
    """Apply the same-surname floor to a base score for two Person entities."""
    if (
        first.type == EntityType.PERSON
        and second.type == EntityType.PERSON
        and shares_surname(first.name, second.name)
    ):
        return max(base, SURNAME_MATCH_FLOOR)
    return base


def extract_key_terms(text: str | None) -> FrozenSet[str]:
    """Lower-cased words longer than two characters, minus stop words."""
    if not text:
        return frozenset()
    words = _PUNCTUATION.sub(" ", text.lower()).split()
    return frozenset(word for word in words if len(word) > 2 and word not in STOP_WORDS)


def jaccard_similarity(first: AbstractSet[str], second: AbstractSet[str]) -> float:
    if not first or not second:
        return 0.0
    return len(first & second) / len(first | second)
