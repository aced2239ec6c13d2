"""
Error taxonomy for the engine.

Four families:
- Validation: NOT exceptions. A rejected word is a normal game outcome
  (see engine_core.intent.RejectReason).
- Dependency: dictionary / embedding backends failed or timed out.
  Retryable; session state is never changed when one escapes.
- Protocol: the caller asked for something the session cannot do right now.
  Surfaced immediately, never retried.
- Terminal: the session already ended (completed, abandoned, expired).
"""

from __future__ import annotations


class WordplayError(Exception):
    """Base class for every error raised by the engine."""

    error_code: str = "WORDPLAY_ERROR"
    retryable: bool = False

    def __init__(self, message: str, conversation_id: str | None = None):
        self.message = message
        self.conversation_id = conversation_id
        super().__init__(message)


# =============================================================================
# Dependency errors
# =============================================================================

class DependencyError(WordplayError):
    """An external lookup failed."""
    error_code = "DEPENDENCY_ERROR"
    retryable = True


class DictionaryUnavailable(DependencyError):
    """Dictionary backend could not answer (network, HTTP 5xx, timeout)."""
    error_code = "DICTIONARY_UNAVAILABLE"


class EmbeddingUnavailable(DependencyError):
    """Embedding index could not answer."""
    error_code = "EMBEDDING_UNAVAILABLE"


class ServiceUnavailable(DependencyError):
    """
    Raised by the core once its retry budget for a dependency is spent.

    The player should try the same intent again later; the word they sent
    was neither accepted nor rejected.
    """
    error_code = "SERVICE_UNAVAILABLE"

    def __init__(
        self,
        message: str,
        conversation_id: str | None = None,
        dependency: str | None = None,
    ):
        super().__init__(message, conversation_id)
        self.dependency = dependency


# =============================================================================
# Protocol errors
# =============================================================================

class ProtocolError(WordplayError):
    """Usage error at the engine boundary."""
    error_code = "PROTOCOL_ERROR"


class InvalidIntentForState(ProtocolError):
    """The intent is not valid for the session's current status."""
    error_code = "INVALID_INTENT_FOR_STATE"

    def __init__(
        self,
        message: str,
        conversation_id: str | None = None,
        intent: str | None = None,
        status: str | None = None,
    ):
        super().__init__(message, conversation_id)
        self.intent = intent
        self.status = status


class SessionNotFound(ProtocolError):
    """No session exists for this conversation."""
    error_code = "SESSION_NOT_FOUND"


class UnknownVariant(ProtocolError):
    """The requested game variant does not exist."""
    error_code = "UNKNOWN_VARIANT"


# =============================================================================
# Terminal session errors
# =============================================================================

class TerminalSessionError(WordplayError):
    """The session has ended; only status queries are allowed."""
    error_code = "SESSION_TERMINAL"


class SessionCompleted(TerminalSessionError):
    """The session was completed or abandoned."""
    error_code = "SESSION_COMPLETED"


class SessionExpired(TerminalSessionError):
    """The session timed out while idle."""
    error_code = "SESSION_EXPIRED"
