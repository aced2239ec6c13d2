"""
Intent System - Intents, rejection reasons and outcomes.

Intents represent what the player asked for:
1. Session control (start, pick a game, stop)
2. Play (submit a word, skip)
3. Help (hint, status)

Every intent the engine handles produces an Outcome for the transport to
render. Rejected words are outcomes too; only protocol, terminal and
dependency problems are raised as exceptions (see wordplay.errors).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .state import Session, SessionStatus


class IntentType(Enum):
    """What the player asked the engine to do."""
    START = "start"
    SELECT_VARIANT = "select_variant"
    SUBMIT_WORD = "submit_word"
    HINT = "hint"
    SKIP = "skip"
    STOP = "stop"
    STATUS = "status"


@dataclass(frozen=True)
class Intent:
    """
    A parsed player request.

    Transports build these from commands (/play, /hint, ...) or free text.
    """
    intent_type: IntentType
    conversation_id: str
    word: str | None = None
    variant_name: str | None = None

    @classmethod
    def start(cls, conversation_id: str) -> Intent:
        return cls(IntentType.START, conversation_id)

    @classmethod
    def select_variant(cls, conversation_id: str, variant_name: str) -> Intent:
        return cls(IntentType.SELECT_VARIANT, conversation_id, variant_name=variant_name)

    @classmethod
    def submit_word(cls, conversation_id: str, word: str) -> Intent:
        return cls(IntentType.SUBMIT_WORD, conversation_id, word=word)

    @classmethod
    def hint(cls, conversation_id: str) -> Intent:
        return cls(IntentType.HINT, conversation_id)

    @classmethod
    def skip(cls, conversation_id: str) -> Intent:
        return cls(IntentType.SKIP, conversation_id)

    @classmethod
    def stop(cls, conversation_id: str) -> Intent:
        return cls(IntentType.STOP, conversation_id)

    @classmethod
    def status(cls, conversation_id: str) -> Intent:
        return cls(IntentType.STATUS, conversation_id)


class RejectReason(Enum):
    """Why a submitted word was not accepted."""
    NOT_A_WORD = "not_a_word"
    ALREADY_USED = "already_used"
    WRONG_START_LETTER = "wrong_start_letter"
    WRONG_LENGTH = "wrong_length"
    PATTERN_MISMATCH = "pattern_mismatch"
    WRONG_LETTER = "wrong_letter"
    CONTAINS_FORBIDDEN_LETTER = "contains_forbidden_letter"
    NOT_SYNONYM_ENOUGH = "not_synonym_enough"


class OutcomeKind(Enum):
    """Shape of an Outcome."""
    STARTED = "started"
    VARIANT_SELECTED = "variant_selected"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    HINT = "hint"
    NO_HINT = "no_hint"
    SKIPPED = "skipped"
    STOPPED = "stopped"
    STATUS = "status"


@dataclass
class Outcome:
    """
    Result of one intent.

    Contains:
    - What happened (kind, reason for rejections)
    - Where the session is now (status, score, history)
    - Text the transport can show as-is
    """
    kind: OutcomeKind
    conversation_id: str
    status: SessionStatus
    message: str | None = None
    score: int | None = None

    # Turn details
    word: str | None = None
    reason: RejectReason | None = None
    score_delta: int = 0
    hint: str | None = None
    opponent_word: str | None = None

    # Snapshot for rendering
    variant: str | None = None
    history: list[str] = field(default_factory=list)
    requirement: str | None = None
    turn_count: int = 0
    hint_count: int = 0
    skip_count: int = 0
    end_reason: str | None = None

    @property
    def accepted(self) -> bool:
        return self.kind == OutcomeKind.ACCEPTED

    @property
    def rejected(self) -> bool:
        return self.kind == OutcomeKind.REJECTED

    @classmethod
    def from_session(
        cls,
        kind: OutcomeKind,
        session: Session,
        message: str | None = None,
        **details,
    ) -> Outcome:
        """Build an outcome carrying a snapshot of the session."""
        return cls(
            kind=kind,
            conversation_id=session.conversation_id,
            status=session.status,
            message=message,
            score=session.score,
            variant=session.variant.name if session.variant else None,
            history=list(session.history),
            requirement=(
                session.constraints.describe()
                if session.variant is not None and session.is_active
                else None
            ),
            turn_count=session.turn_count,
            hint_count=session.hint_count,
            skip_count=session.skip_count,
            end_reason=session.end_reason,
            **details,
        )

    @classmethod
    def rejection(cls, session: Session, word: str, reason: RejectReason, message: str) -> Outcome:
        """Create a rejected-turn outcome."""
        return cls.from_session(
            OutcomeKind.REJECTED, session, message, word=word, reason=reason,
        )
