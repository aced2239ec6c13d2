"""
Engine Core - Deterministic turn handling for the word games.

The core:
1. Holds Session state
2. Derives constraints from the accepted history
3. Validates submitted words (TurnValidator)
4. Scores accepted turns
5. Finds candidate words (HintEngine)
6. Applies results via the reducer
"""

from .state import Session, SessionStatus, TERMINAL_STATUSES
from .intent import Intent, IntentType, Outcome, OutcomeKind, RejectReason
from .constraints import ConstraintState, derive_constraints, initial_constraints
from .validator import TurnValidator, Verdict, Rejection, check_constraint
from .hints import HintEngine, HintResult
from .scoring import TurnContext, score_delta, skip_delta

__all__ = [
    "Session",
    "SessionStatus",
    "TERMINAL_STATUSES",
    "Intent",
    "IntentType",
    "Outcome",
    "OutcomeKind",
    "RejectReason",
    "ConstraintState",
    "derive_constraints",
    "initial_constraints",
    "TurnValidator",
    "Verdict",
    "Rejection",
    "check_constraint",
    "HintEngine",
    "HintResult",
    "TurnContext",
    "score_delta",
    "skip_delta",
]
