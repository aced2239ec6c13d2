"""
Game setup - Picks the engine's opening word.

The seed word must suit the variant (a Ladder opens on a word of the start
length, Forbidden Letters never opens with a forbidden letter) and must be
known to the dictionary in use. If no candidate passes, the game starts
unseeded and the player's first word opens the chain.
"""

from __future__ import annotations
from typing import Awaitable, Callable, Iterable
import logging
import random

from ..words import normalize, is_single_word, contains_any
from .variants import GameVariant, VariantKind

logger = logging.getLogger(__name__)


def fits_variant(variant: GameVariant, word: str) -> bool:
    """Can `word` open a game of this variant?"""
    if not is_single_word(word):
        return False
    if variant.kind == VariantKind.WORD_LADDER:
        return len(word) == variant.config.start_length
    if variant.kind == VariantKind.FORBIDDEN_LETTERS:
        return not contains_any(word, variant.config.forbidden_letters)
    return True


def seed_candidates(
    variant: GameVariant,
    words: Iterable[str],
    rng: random.Random,
) -> list[str]:
    """Shuffled, de-duplicated seed words that fit the variant."""
    candidates = sorted({normalize(w) for w in words} - {""})
    candidates = [w for w in candidates if fits_variant(variant, w)]
    rng.shuffle(candidates)
    return candidates


async def choose_seed(
    variant: GameVariant,
    words: Iterable[str],
    exists: Callable[[str], Awaitable[bool]],
    rng: random.Random,
    attempts: int = 3,
) -> str | None:
    """
    Return the first of up to `attempts` candidates the dictionary knows.

    `exists` carries the caller's retry policy; its ServiceUnavailable
    propagates so the caller can keep the session unchanged.
    """
    for word in seed_candidates(variant, words, rng)[:max(0, attempts)]:
        if await exists(word):
            return word
        logger.debug("Seed candidate %r not in dictionary", word)

    logger.info("No seed word found for %s, starting unseeded", variant.name)
    return None
