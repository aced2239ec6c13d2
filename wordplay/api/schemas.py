"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between chat transports (bots, web
clients) and the engine. Rejected words are normal 200 responses with
`outcome="rejected"`; errors use ErrorResponse.

Error Codes:
- SESSION_NOT_FOUND: No game for this conversation
- INVALID_INTENT_FOR_STATE: Intent not allowed in the current status
- UNKNOWN_VARIANT: Variant name not recognized
- SESSION_COMPLETED: Game already stopped or won
- SESSION_EXPIRED: Game timed out while idle
- SERVICE_UNAVAILABLE: Dictionary or embeddings unavailable, retry later
- WORD_NOT_FOUND: No definition for the requested word
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    AWAITING_VARIANT_SELECTION = "awaiting_variant_selection"
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"
    EXPIRED = "expired"


class OutcomeKind(str, Enum):
    """What an intent produced."""
    STARTED = "started"
    VARIANT_SELECTED = "variant_selected"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    HINT = "hint"
    NO_HINT = "no_hint"
    SKIPPED = "skipped"
    STOPPED = "stopped"
    STATUS = "status"


class RejectReason(str, Enum):
    """Why a word was rejected."""
    NOT_A_WORD = "not_a_word"
    ALREADY_USED = "already_used"
    WRONG_START_LETTER = "wrong_start_letter"
    WRONG_LENGTH = "wrong_length"
    PATTERN_MISMATCH = "pattern_mismatch"
    WRONG_LETTER = "wrong_letter"
    CONTAINS_FORBIDDEN_LETTER = "contains_forbidden_letter"
    NOT_SYNONYM_ENOUGH = "not_synonym_enough"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INVALID_INTENT_FOR_STATE = "INVALID_INTENT_FOR_STATE"
    UNKNOWN_VARIANT = "UNKNOWN_VARIANT"
    SESSION_COMPLETED = "SESSION_COMPLETED"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    WORD_NOT_FOUND = "WORD_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Request Models
# =============================================================================

class SelectVariantRequest(BaseModel):
    """Choose the game to play."""
    variant: str = Field(
        ...,
        min_length=1,
        description="Variant name (word_chain, word_ladder, scramble, synonym_string, "
                    "alphabet_sprint, forbidden_letters) or 'random'",
    )


class SubmitWordRequest(BaseModel):
    """A word played by the player."""
    word: str = Field(..., min_length=1, max_length=64)


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    retryable: bool = Field(False, description="Sending the same request later may succeed")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class OutcomeResponse(BaseModel):
    """Result of one intent, with a snapshot of the session."""
    conversation_id: str
    outcome: OutcomeKind
    status: SessionStatus
    message: Optional[str] = Field(None, description="Text to show the player")
    score: int = 0

    word: Optional[str] = None
    reason: Optional[RejectReason] = None
    score_delta: int = 0
    hint: Optional[str] = None
    opponent_word: Optional[str] = Field(None, description="Word played by the engine")

    variant: Optional[str] = None
    history: list[str] = Field(default_factory=list)
    requirement: Optional[str] = Field(None, description="What the next word must satisfy")
    turn_count: int = 0
    hint_count: int = 0
    skip_count: int = 0
    end_reason: Optional[str] = None
    api_version: str = "v1"

    model_config = {"from_attributes": True}


class VariantInfo(BaseModel):
    """A playable variant."""
    name: str
    display_name: str
    summary: str
    rules: str


class VariantListResponse(BaseModel):
    variants: list[VariantInfo]
    count: int


class DefinitionResponse(BaseModel):
    """Dictionary definition of a word."""
    word: str
    definition: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
    active_sessions: int = 0
