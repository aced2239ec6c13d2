"""
Constraint State - What the next word must satisfy.

The constraint state is a pure fold over the accepted history:

    derive_constraints(variant, history)
        = reduce(advance, history, initial_constraints(variant))

Sessions cache the result, but it can always be recomputed, e.g. after
loading a stored session.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from functools import reduce
from typing import Callable, Sequence

from ..games.variants import GameVariant, VariantKind
from ..words import first_letter, last_letter, distinct_letters


@dataclass(frozen=True)
class ConstraintState:
    """
    Variant working state. None means "no requirement yet".
    """
    previous_word: str | None = None
    accepted_words: int = 0

    # Chain variants
    required_start_letter: str | None = None

    # Word Ladder
    required_length: int | None = None

    # Alphabet Sprint
    shared_letter: str | None = None

    # Forbidden Letters
    forbidden: frozenset[str] = field(default_factory=frozenset)

    # Scramble
    required_shared_letters: int | None = None

    def describe(self) -> str:
        """Short player-facing summary of the current requirements."""
        parts: list[str] = []
        if self.required_start_letter:
            parts.append(f"start with '{self.required_start_letter}'")
        if self.shared_letter:
            parts.append(f"start with '{self.shared_letter}'")
        if self.required_length is not None:
            parts.append(f"be {self.required_length} letters long")
        if self.required_shared_letters and self.previous_word:
            parts.append(
                f"use at least {self.required_shared_letters} letter(s) from '{self.previous_word}'"
            )
        if self.forbidden:
            parts.append(f"avoid {', '.join(sorted(self.forbidden))}")
        if not parts:
            return "Any word will do"
        return "Your word must " + ", ".join(parts)


def initial_constraints(variant: GameVariant) -> ConstraintState:
    """Constraints of a game with an empty history."""
    forbidden = frozenset()
    if variant.kind == VariantKind.FORBIDDEN_LETTERS:
        forbidden = variant.config.forbidden_letters
    return ConstraintState(forbidden=forbidden)


def scramble_level(variant: GameVariant, accepted_words: int) -> int:
    """Shared letters required after `accepted_words` words were played."""
    cfg = variant.config
    level = cfg.start_level + max(0, accepted_words - 1) // max(1, cfg.level_up_every)
    return max(1, min(level, cfg.max_level))


# =============================================================================
# Per-variant steps
# =============================================================================

def _advance_chain(variant: GameVariant, state: ConstraintState, word: str) -> ConstraintState:
    return replace(state, required_start_letter=last_letter(word))


def _advance_ladder(variant: GameVariant, state: ConstraintState, word: str) -> ConstraintState:
    return replace(state, required_length=len(word) + 1)


def _advance_scramble(variant: GameVariant, state: ConstraintState, word: str) -> ConstraintState:
    level = scramble_level(variant, state.accepted_words)
    return replace(
        state,
        required_start_letter=last_letter(word),
        required_shared_letters=min(level, len(distinct_letters(word))),
    )


def _advance_sprint(variant: GameVariant, state: ConstraintState, word: str) -> ConstraintState:
    if state.shared_letter:
        return state
    return replace(state, shared_letter=first_letter(word))


_STEPS: dict[VariantKind, Callable[[GameVariant, ConstraintState, str], ConstraintState]] = {
    VariantKind.WORD_CHAIN: _advance_chain,
    VariantKind.SYNONYM_STRING: _advance_chain,
    VariantKind.FORBIDDEN_LETTERS: _advance_chain,
    VariantKind.WORD_LADDER: _advance_ladder,
    VariantKind.SCRAMBLE: _advance_scramble,
    VariantKind.ALPHABET_SPRINT: _advance_sprint,
}


def advance(variant: GameVariant, state: ConstraintState, word: str) -> ConstraintState:
    """Constraints after `word` is appended to the history."""
    counted = replace(state, previous_word=word, accepted_words=state.accepted_words + 1)
    return _STEPS[variant.kind](variant, counted, word)


def derive_constraints(variant: GameVariant | None, history: Sequence[str]) -> ConstraintState:
    """Recompute the constraint state from scratch."""
    if variant is None:
        return ConstraintState()
    return reduce(
        lambda state, word: advance(variant, state, word),
        history,
        initial_constraints(variant),
    )
