"""
Reducer - Applies turn results to a session.

The reducer is the single point of session mutation.
Every change to history, used words, constraints, score and counters goes
through one of the functions below, always while the caller holds the
session's lock.

Design principles:
- Validation happens before (TurnValidator); the reducer trusts its input
- history, used_words and constraints change together, never one alone
- Score is clamped at zero
- No I/O
"""

from __future__ import annotations

from ..games.variants import GameVariant, VariantKind
from .constraints import ConstraintState, advance
from .scoring import TurnContext, score_delta, skip_delta, apply_delta
from .state import Session, SessionStatus


def activate(session: Session, variant: GameVariant, seed: str | None, now: float):
    """
    Move an AWAITING_VARIANT_SELECTION session into play.

    The seed word (if any) is played by the engine: it starts the chain but
    earns no points.
    """
    session.variant = variant
    session.status = SessionStatus.ACTIVE
    session.history = []
    session.used_words = set()
    session.rebuild_constraints()
    if seed:
        _append(session, seed, advance(variant, session.constraints, seed))
        session.opponent_words += 1
    session.touch(now)


def apply_word(
    session: Session,
    word: str,
    constraints: ConstraintState,
    now: float,
) -> int:
    """
    Commit an accepted player word.

    `constraints` is the state the validator derived for the extended
    history. Returns the score delta.
    """
    ctx = TurnContext(constraints=session.constraints, streak=session.streak)
    delta = score_delta(session.variant, word, ctx)

    _append(session, word, constraints)
    session.score = apply_delta(session.score, delta)
    session.turn_count += 1
    session.streak += 1
    session.touch(now)
    return delta


def apply_opponent_word(session: Session, word: str, now: float):
    """Commit the engine's reply. Replies score nothing."""
    _append(session, word, advance(session.variant, session.constraints, word))
    session.opponent_words += 1
    session.touch(now)


def apply_skip(session: Session, now: float) -> int:
    """Count a skipped turn. Returns the (non-positive) score delta."""
    delta = skip_delta(session.variant)
    session.score = apply_delta(session.score, delta)
    session.turn_count += 1
    session.skip_count += 1
    session.streak = 0
    session.touch(now)
    return delta


def apply_hint_used(session: Session, now: float):
    session.hint_count += 1
    session.touch(now)


def finish(session: Session, status: SessionStatus, reason: str):
    """Put the session into a terminal status."""
    if not status.is_terminal:
        raise ValueError(f"{status.value} is not a terminal status")
    session.status = status
    session.end_reason = reason


def reached_goal(variant: GameVariant, word: str) -> bool:
    """Variant win condition after `word` was accepted."""
    if variant.kind == VariantKind.WORD_LADDER:
        return len(word) >= variant.config.max_length
    return False


def skips_exhausted(session: Session) -> bool:
    limit = session.variant.config.max_skips if session.variant else None
    return limit is not None and session.skip_count > limit


def _append(session: Session, word: str, constraints: ConstraintState):
    session.history.append(word)
    session.used_words.add(word)
    session.constraints = constraints
