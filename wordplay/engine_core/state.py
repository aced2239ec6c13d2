"""
Session State - The full state of one conversation's game.

Design principles:
- One Session per conversation identity
- history and used_words always hold the same words
- constraints is a cache of derive_constraints(variant, history)
- Serializable: to_dict()/from_dict() for whatever store the host uses
  (the constraint cache is rebuilt on load, never stored)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..games.variants import GameVariant
from .constraints import ConstraintState, derive_constraints


class SessionStatus(Enum):
    """Lifecycle of a session."""
    AWAITING_VARIANT_SELECTION = "awaiting_variant_selection"
    ACTIVE = "active"
    COMPLETED = "completed"  # Stopped after play, or won
    ABANDONED = "abandoned"  # Stopped before any word was played
    EXPIRED = "expired"  # Idle timeout

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({
    SessionStatus.COMPLETED,
    SessionStatus.ABANDONED,
    SessionStatus.EXPIRED,
})


@dataclass
class Session:
    """
    A conversation's game.

    Only the reducer and the SessionManager mutate a Session, and only while
    holding the session's lock.
    """
    conversation_id: str
    created_at: float

    status: SessionStatus = SessionStatus.AWAITING_VARIANT_SELECTION
    variant: GameVariant | None = None

    # Accepted words, in play order
    history: list[str] = field(default_factory=list)
    used_words: set[str] = field(default_factory=set)
    constraints: ConstraintState = field(default_factory=ConstraintState)

    # Scoring and counters
    score: int = 0
    turn_count: int = 0
    hint_count: int = 0
    skip_count: int = 0
    streak: int = 0
    opponent_words: int = 0

    last_activity: float = 0.0
    end_reason: str | None = None

    def __post_init__(self):
        if not self.last_activity:
            self.last_activity = self.created_at

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    @property
    def last_word(self) -> str | None:
        return self.history[-1] if self.history else None

    @property
    def player_words(self) -> int:
        return len(self.history) - self.opponent_words

    def touch(self, now: float):
        self.last_activity = now

    def rebuild_constraints(self) -> ConstraintState:
        """Recompute the constraint cache from (variant, history)."""
        self.constraints = derive_constraints(self.variant, self.history)
        return self.constraints

    def check_invariants(self) -> list[str]:
        """Return a list of broken invariants (empty when consistent)."""
        problems: list[str] = []
        if len(self.used_words) != len(self.history) or self.used_words != set(self.history):
            problems.append("used_words out of sync with history")
        if self.status == SessionStatus.ACTIVE and self.variant is None:
            problems.append("active session without a variant")
        if self.constraints != derive_constraints(self.variant, self.history):
            problems.append("constraint cache differs from history fold")
        if self.score < 0:
            problems.append("negative score")
        return problems

    def describe(self) -> str:
        """One-line status, e.g. for a /score command."""
        if self.variant is None:
            return "No active game"
        return (
            f"{self.variant.display_name} - {self.constraints.describe()}. "
            f"Chain length: {len(self.history)}, score: {self.score}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "conversation_id": self.conversation_id,
            "created_at": self.created_at,
            "status": self.status.value,
            "variant": self.variant.to_dict() if self.variant else None,
            "history": list(self.history),
            "score": self.score,
            "turn_count": self.turn_count,
            "hint_count": self.hint_count,
            "skip_count": self.skip_count,
            "streak": self.streak,
            "opponent_words": self.opponent_words,
            "last_activity": self.last_activity,
            "end_reason": self.end_reason,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        variant = GameVariant.from_dict(data["variant"]) if data.get("variant") else None
        history = list(data.get("history") or [])
        session = cls(
            conversation_id=str(data["conversation_id"]),
            created_at=float(data.get("created_at") or 0.0),
            status=SessionStatus(data.get("status", SessionStatus.AWAITING_VARIANT_SELECTION.value)),
            variant=variant,
            history=history,
            used_words=set(history),
            score=int(data.get("score", 0)),
            turn_count=int(data.get("turn_count", 0)),
            hint_count=int(data.get("hint_count", 0)),
            skip_count=int(data.get("skip_count", 0)),
            streak=int(data.get("streak", 0)),
            opponent_words=int(data.get("opponent_words", 0)),
            last_activity=float(data.get("last_activity") or 0.0),
            end_reason=data.get("end_reason"),
        )
        session.rebuild_constraints()
        return session
