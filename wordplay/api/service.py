"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to SessionManager calls
2. Converts Outcomes to response models
3. Converts engine errors to ErrorResponse (with an HTTP status)
4. Serves definitions and the variant catalogue

This layer is framework-agnostic (can be used with FastAPI, a chat bot, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Awaitable, Callable
import logging

from .schemas import (
    # Requests
    SelectVariantRequest,
    SubmitWordRequest,
    # Responses
    OutcomeResponse,
    ErrorResponse,
    VariantInfo,
    VariantListResponse,
    DefinitionResponse,
    HealthResponse,
    # Enums
    ErrorCode,
)
from .. import __version__
from ..config import EngineSettings
from ..errors import (
    WordplayError,
    DependencyError,
    DictionaryUnavailable,
    InvalidIntentForState,
    SessionNotFound,
    UnknownVariant,
    SessionCompleted,
    SessionExpired,
)
from ..clients import (
    HttpDictionaryClient,
    LocalEmbeddingClient,
    WordListDictionary,
    WordVectorIndex,
    once,
)
from ..engine_core.intent import Outcome
from ..games.rules import SUMMARIES, rules_text
from ..games.variants import VariantKind, create_variant
from ..session import SessionManager, JsonFileSessionStore
from ..words import normalize, is_single_word

logger = logging.getLogger(__name__)


# Most specific first
_ERROR_MAP: list[tuple[type[WordplayError], ErrorCode, int]] = [
    (SessionNotFound, ErrorCode.SESSION_NOT_FOUND, 404),
    (InvalidIntentForState, ErrorCode.INVALID_INTENT_FOR_STATE, 409),
    (UnknownVariant, ErrorCode.UNKNOWN_VARIANT, 400),
    (SessionExpired, ErrorCode.SESSION_EXPIRED, 410),
    (SessionCompleted, ErrorCode.SESSION_COMPLETED, 410),
    (DependencyError, ErrorCode.SERVICE_UNAVAILABLE, 503),
]


@dataclass
class ServiceError:
    """An ErrorResponse plus the HTTP status to send it with."""
    response: ErrorResponse
    status_code: int

    @property
    def error(self) -> str:
        return self.response.error


def error_for(exc: WordplayError) -> ServiceError:
    """Map an engine exception to its API error."""
    for exc_type, code, status_code in _ERROR_MAP:
        if isinstance(exc, exc_type):
            break
    else:
        code, status_code = ErrorCode.INTERNAL_ERROR, 500

    details: dict = {}
    if exc.conversation_id:
        details["conversation_id"] = exc.conversation_id
    for attr in ("intent", "status", "dependency"):
        value = getattr(exc, attr, None)
        if value:
            details[attr] = value

    return ServiceError(
        response=ErrorResponse(
            error=exc.message,
            error_code=code,
            retryable=exc.retryable,
            details=details or None,
        ),
        status_code=status_code,
    )


def outcome_to_response(outcome: Outcome) -> OutcomeResponse:
    return OutcomeResponse(
        conversation_id=outcome.conversation_id,
        outcome=outcome.kind.value,
        status=outcome.status.value,
        message=outcome.message,
        score=outcome.score or 0,
        word=outcome.word,
        reason=outcome.reason.value if outcome.reason else None,
        score_delta=outcome.score_delta,
        hint=outcome.hint,
        opponent_word=outcome.opponent_word,
        variant=outcome.variant,
        history=outcome.history,
        requirement=outcome.requirement,
        turn_count=outcome.turn_count,
        hint_count=outcome.hint_count,
        skip_count=outcome.skip_count,
        end_reason=outcome.end_reason,
    )


@dataclass
class WordplayService:
    """
    Main API service.

    Usage:
        service = WordplayService.from_env()

        await service.start("chat-42")
        await service.select_variant("chat-42", SelectVariantRequest(variant="word_chain"))
        response = await service.submit_word("chat-42", SubmitWordRequest(word="elephant"))
        if isinstance(response, ServiceError):
            ...
    """
    manager: SessionManager

    @classmethod
    def from_env(
        cls,
        settings: EngineSettings | None = None,
        words_file: str | Path | None = None,
        vectors_file: str | Path | None = None,
        sessions_dir: str | Path | None = None,
    ) -> WordplayService:
        """
        Build the service with file or HTTP backed collaborators.

        Without a word list the public dictionary API is used; without a
        vectors file hints and opponent replies find nothing.
        """
        settings = settings or EngineSettings.from_env()

        if words_file:
            dictionary = WordListDictionary.from_file(words_file)
        else:
            dictionary = HttpDictionaryClient()

        if vectors_file:
            embeddings = LocalEmbeddingClient(path=vectors_file)
        else:
            logger.warning("No word vectors configured, hints are disabled")
            embeddings = LocalEmbeddingClient(index=WordVectorIndex.empty())

        store = JsonFileSessionStore(sessions_dir) if sessions_dir else None
        manager = SessionManager(dictionary, embeddings, settings=settings, store=store)
        return cls(manager=manager)

    @property
    def settings(self) -> EngineSettings:
        return self.manager.settings

    # =========================================================================
    # Intents
    # =========================================================================

    async def start(self, conversation_id: str) -> OutcomeResponse | ServiceError:
        return await self._run(lambda: self.manager.start_session(conversation_id))

    async def select_variant(
        self, conversation_id: str, request: SelectVariantRequest,
    ) -> OutcomeResponse | ServiceError:
        return await self._run(
            lambda: self.manager.select_variant(conversation_id, request.variant)
        )

    async def submit_word(
        self, conversation_id: str, request: SubmitWordRequest,
    ) -> OutcomeResponse | ServiceError:
        return await self._run(lambda: self.manager.submit_word(conversation_id, request.word))

    async def hint(self, conversation_id: str) -> OutcomeResponse | ServiceError:
        return await self._run(lambda: self.manager.request_hint(conversation_id))

    async def skip(self, conversation_id: str) -> OutcomeResponse | ServiceError:
        return await self._run(lambda: self.manager.skip(conversation_id))

    async def stop(self, conversation_id: str) -> OutcomeResponse | ServiceError:
        return await self._run(lambda: self.manager.stop(conversation_id))

    async def status(self, conversation_id: str) -> OutcomeResponse | ServiceError:
        return await self._run(lambda: self.manager.status(conversation_id))

    # =========================================================================
    # Catalogue
    # =========================================================================

    async def define(self, word: str) -> DefinitionResponse | ServiceError:
        """Dictionary definition of `word`."""
        normalized = normalize(word)
        if not is_single_word(normalized):
            return ServiceError(
                ErrorResponse(error=f"'{word}' is not a single word", error_code=ErrorCode.VALIDATION_ERROR),
                400,
            )
        try:
            definition = await once(
                lambda: self.manager.dictionary.define(normalized),
                timeout=self.settings.lookup_timeout,
                unavailable=DictionaryUnavailable,
                what="Dictionary lookup",
            )
        except WordplayError as e:
            return error_for(e)

        if not definition:
            return ServiceError(
                ErrorResponse(
                    error=f"No definition found for '{normalized}'",
                    error_code=ErrorCode.WORD_NOT_FOUND,
                ),
                404,
            )
        return DefinitionResponse(word=normalized, definition=definition)

    def variants(self) -> VariantListResponse:
        """Every variant with its rules under the current settings."""
        infos = []
        for kind in VariantKind:
            variant = create_variant(kind, self.settings)
            # Forbidden letters are drawn per game
            variant = replace(variant, config=replace(variant.config, forbidden_letters=frozenset()))
            infos.append(VariantInfo(
                name=kind.value,
                display_name=kind.display_name,
                summary=SUMMARIES[kind],
                rules=rules_text(variant),
            ))
        return VariantListResponse(variants=infos, count=len(infos))

    def health(self) -> HealthResponse:
        return HealthResponse(
            status="healthy",
            service="wordplay",
            version=__version__,
            active_sessions=len(self.manager.list_active_sessions()),
        )

    async def _run(self, call: Callable[[], Awaitable[Outcome]]) -> OutcomeResponse | ServiceError:
        try:
            outcome = await call()
        except WordplayError as e:
            logger.debug("Intent failed: %s (%s)", e.message, e.error_code)
            return error_for(e)
        return outcome_to_response(outcome)
