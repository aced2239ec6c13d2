"""
Turn Validator - Decides whether a submitted word is legal.

Checks run in a fixed order and stop at the first failure:

0. Shape        one alphabetic token after normalization (no lookup)
1. Existence    DictionaryClient says it is a word
2. Uniqueness   not already in the session's used words
3. Variant      the variant's constraint (chain letter, length, ...)

Cheap checks come before the embedding lookup Synonym String needs, so a
misspelt or repeated word never costs a similarity query.

The variant constraint functions are pure and shared with the HintEngine,
which filters candidate words through exactly the same rules.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, TYPE_CHECKING
import logging

from ..config import EngineSettings
from ..errors import DictionaryUnavailable, EmbeddingUnavailable
from ..clients.retry import with_retries
from ..games.variants import GameVariant, VariantKind
from ..words import (
    normalize,
    is_single_word,
    first_letter,
    shared_letter_count,
    contains_any,
)
from .constraints import ConstraintState, advance
from .intent import RejectReason

if TYPE_CHECKING:
    from ..clients.base import DictionaryClient, EmbeddingClient
    from .state import Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rejection:
    reason: RejectReason
    message: str


@dataclass(frozen=True)
class Verdict:
    """
    Result of validating one word.

    On acceptance `constraints` holds the constraint state after the word is
    appended, ready to be committed together with the turn.
    """
    word: str
    rejection: Rejection | None = None
    constraints: ConstraintState | None = None

    @property
    def accepted(self) -> bool:
        return self.rejection is None

    @property
    def reason(self) -> RejectReason | None:
        return self.rejection.reason if self.rejection else None

    @property
    def message(self) -> str | None:
        return self.rejection.message if self.rejection else None

    @classmethod
    def accept(cls, word: str, constraints: ConstraintState) -> Verdict:
        return cls(word=word, constraints=constraints)

    @classmethod
    def reject(cls, word: str, reason: RejectReason, message: str) -> Verdict:
        return cls(word=word, rejection=Rejection(reason, message))


# =============================================================================
# Variant constraint rules (pure)
# =============================================================================

def _chain_rule(state: ConstraintState, word: str) -> Rejection | None:
    letter = state.required_start_letter
    if letter and first_letter(word) != letter:
        return Rejection(
            RejectReason.WRONG_START_LETTER,
            f"Your word must start with '{letter}'",
        )
    return None


def _ladder_rule(state: ConstraintState, word: str) -> Rejection | None:
    if state.required_length is not None and len(word) != state.required_length:
        return Rejection(
            RejectReason.WRONG_LENGTH,
            f"Your word must be {state.required_length} letters long (got {len(word)})",
        )
    return None


def _scramble_rule(state: ConstraintState, word: str) -> Rejection | None:
    rejection = _chain_rule(state, word)
    if rejection:
        return rejection
    needed = state.required_shared_letters
    prev = state.previous_word
    if needed and prev and shared_letter_count(word, prev) < needed:
        return Rejection(
            RejectReason.PATTERN_MISMATCH,
            f"Your word must contain at least {needed} letter(s) from '{prev}'",
        )
    return None


def _sprint_rule(state: ConstraintState, word: str) -> Rejection | None:
    letter = state.shared_letter
    if letter and first_letter(word) != letter:
        return Rejection(
            RejectReason.WRONG_LETTER,
            f"Every word in this sprint starts with '{letter}'",
        )
    return None


def _forbidden_rule(state: ConstraintState, word: str) -> Rejection | None:
    rejection = _chain_rule(state, word)
    if rejection:
        return rejection
    if state.forbidden and contains_any(word, state.forbidden):
        used = sorted(c for c in state.forbidden if c in word)
        return Rejection(
            RejectReason.CONTAINS_FORBIDDEN_LETTER,
            f"Your word contains forbidden letter(s): {', '.join(used)}",
        )
    return None


_RULES: dict[VariantKind, Callable[[ConstraintState, str], Rejection | None]] = {
    VariantKind.WORD_CHAIN: _chain_rule,
    VariantKind.SYNONYM_STRING: _chain_rule,  # similarity is checked separately
    VariantKind.WORD_LADDER: _ladder_rule,
    VariantKind.SCRAMBLE: _scramble_rule,
    VariantKind.ALPHABET_SPRINT: _sprint_rule,
    VariantKind.FORBIDDEN_LETTERS: _forbidden_rule,
}


def check_constraint(
    variant: GameVariant,
    state: ConstraintState,
    word: str,
) -> Rejection | None:
    """Letter-level variant constraint for a normalized word."""
    return _RULES[variant.kind](state, word)


def check_shape(word: str) -> Rejection | None:
    if not is_single_word(word):
        return Rejection(RejectReason.NOT_A_WORD, "Please enter a single word (letters only)")
    return None


def is_similar_enough(
    word: str,
    neighbors: list[tuple[str, float]],
    threshold: float,
) -> bool:
    """True when `word` is among the neighbours with similarity >= threshold."""
    return any(normalize(n) == word and score >= threshold for n, score in neighbors)


# =============================================================================
# Validator
# =============================================================================

class TurnValidator:
    """
    Validates submitted words against a session.

    Usage:
        validator = TurnValidator(dictionary, embeddings, settings)
        verdict = await validator.validate(session, "elephant")
        if verdict.accepted:
            ...commit verdict.word and verdict.constraints...
    """

    def __init__(
        self,
        dictionary: DictionaryClient,
        embeddings: EmbeddingClient,
        settings: EngineSettings | None = None,
    ):
        self.dictionary = dictionary
        self.embeddings = embeddings
        self.settings = settings or EngineSettings()

    async def validate(self, session: Session, raw_word: str) -> Verdict:
        """
        Validate `raw_word` for the session's next turn.

        Raises ServiceUnavailable if the dictionary (or, for Synonym String,
        the embedding index) cannot be reached after retries.
        """
        word = normalize(raw_word)
        variant = session.variant
        if variant is None:
            raise ValueError("Cannot validate a word before a variant is selected")

        rejection = check_shape(word)
        if rejection:
            return Verdict(word=word, rejection=rejection)

        if not await self.word_exists(word, session.conversation_id):
            return Verdict.reject(
                word, RejectReason.NOT_A_WORD,
                f"I don't recognize '{word}'. Please try another word.",
            )

        if word in session.used_words:
            return Verdict.reject(
                word, RejectReason.ALREADY_USED,
                f"'{word}' has already been used in this game.",
            )

        rejection = check_constraint(variant, session.constraints, word)
        if rejection:
            return Verdict(word=word, rejection=rejection)

        if variant.kind == VariantKind.SYNONYM_STRING and session.last_word:
            if not await self.is_synonym(session.last_word, word, session.conversation_id):
                return Verdict.reject(
                    word, RejectReason.NOT_SYNONYM_ENOUGH,
                    f"'{word}' is not close enough in meaning to '{session.last_word}'",
                )

        return Verdict.accept(word, advance(variant, session.constraints, word))

    async def word_exists(self, word: str, conversation_id: str | None = None) -> bool:
        """Existence check with the acceptance retry policy."""
        s = self.settings
        return await with_retries(
            lambda: self.dictionary.exists(word),
            attempts=s.lookup_retries,
            timeout=s.lookup_timeout,
            backoff=s.retry_backoff,
            backoff_max=s.retry_backoff_max,
            unavailable=DictionaryUnavailable,
            what="Dictionary lookup",
            conversation_id=conversation_id,
        )

    async def is_synonym(self, previous: str, word: str, conversation_id: str | None = None) -> bool:
        """Is `word` a close semantic neighbour of `previous`?"""
        s = self.settings
        neighbors = await with_retries(
            lambda: self.embeddings.neighbors(previous, s.synonym_neighbors),
            attempts=s.lookup_retries,
            timeout=s.lookup_timeout,
            backoff=s.retry_backoff,
            backoff_max=s.retry_backoff_max,
            unavailable=EmbeddingUnavailable,
            what="Similarity lookup",
            conversation_id=conversation_id,
        )
        similar = is_similar_enough(word, neighbors, s.synonym_threshold)
        logger.debug(
            "Similarity check %s -> %s: %s", previous, word, "ok" if similar else "too far",
        )
        return similar
