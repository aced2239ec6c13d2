"""
Word normalization and letter helpers shared by every variant.

Words are compared after transliterating to ASCII (so "café" and "cafe"
are the same word), lower-casing and trimming.
"""

from __future__ import annotations

from unidecode import unidecode


def normalize(word: str) -> str:
    """Canonical form used for lookups, history and no-repeat checks."""
    return unidecode(word or "").strip().lower()


def is_single_word(word: str) -> bool:
    """True for one purely alphabetic token (already normalized)."""
    return bool(word) and word.isascii() and word.isalpha()


def first_letter(word: str) -> str:
    return word[0] if word else ""


def last_letter(word: str) -> str:
    return word[-1] if word else ""


def distinct_letters(word: str) -> frozenset[str]:
    return frozenset(c for c in word if c.isalpha())


def shared_letter_count(word: str, other: str) -> int:
    """Number of distinct letters of `other` that also appear in `word`."""
    return len(distinct_letters(word) & distinct_letters(other))


def contains_any(word: str, letters: frozenset[str] | set[str]) -> bool:
    return any(c in letters for c in word)
