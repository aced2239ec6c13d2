"""
Score Tracker - Points for accepted turns.

One pure scorer per variant. A scorer sees the accepted word and the turn
context (the constraint state the word was validated against, and the
player's streak before this word). Rejections never reach a scorer.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable

from ..games.variants import GameVariant, VariantKind
from .constraints import ConstraintState


@dataclass(frozen=True)
class TurnContext:
    """What a scorer may look at besides the word."""
    constraints: ConstraintState
    streak: int = 0


def _flat(points: int) -> Callable[[GameVariant, str, TurnContext], int]:
    def scorer(variant: GameVariant, word: str, ctx: TurnContext) -> int:
        return points
    return scorer


def _ladder(variant: GameVariant, word: str, ctx: TurnContext) -> int:
    # Longer rungs are worth more
    return 1 + max(0, len(word) - 3)


def _scramble(variant: GameVariant, word: str, ctx: TurnContext) -> int:
    return max(1, ctx.constraints.required_shared_letters or 0)


def _sprint(variant: GameVariant, word: str, ctx: TurnContext) -> int:
    return 1 + ctx.streak // 3


def _forbidden(variant: GameVariant, word: str, ctx: TurnContext) -> int:
    return max(1, len(variant.config.forbidden_letters))


_SCORERS: dict[VariantKind, Callable[[GameVariant, str, TurnContext], int]] = {
    VariantKind.WORD_CHAIN: _flat(1),
    VariantKind.WORD_LADDER: _ladder,
    VariantKind.SCRAMBLE: _scramble,
    VariantKind.SYNONYM_STRING: _flat(2),
    VariantKind.ALPHABET_SPRINT: _sprint,
    VariantKind.FORBIDDEN_LETTERS: _forbidden,
}


def score_delta(variant: GameVariant, word: str, context: TurnContext) -> int:
    """Points earned by an accepted `word`."""
    return _SCORERS[variant.kind](variant, word, context)


def skip_delta(variant: GameVariant) -> int:
    """Score change for a skipped turn (zero or negative)."""
    return -abs(variant.config.skip_penalty)


def apply_delta(score: int, delta: int) -> int:
    """New score; never below zero."""
    return max(0, score + delta)
