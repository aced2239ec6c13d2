"""
FastAPI Application - REST API for chat transports.

Endpoints:
    GET    /health                                  Liveness
    GET    /api/v1/variants                         List variants and rules
    POST   /api/v1/conversations/{id}/start         Start a session
    POST   /api/v1/conversations/{id}/variant       Choose the game
    POST   /api/v1/conversations/{id}/words         Play a word
    POST   /api/v1/conversations/{id}/hint          Ask for a hint
    POST   /api/v1/conversations/{id}/skip          Skip the turn
    POST   /api/v1/conversations/{id}/stop          End the game
    GET    /api/v1/conversations/{id}               Session status
    GET    /api/v1/definitions/{word}               Word definition

Turn Flow:
    1. POST /start, then POST /variant with {"variant": "word_chain"}
    2. POST /words with {"word": "..."} until the game ends
       - Rejected words return 200 with outcome="rejected" and a reason
       - 503 means a dictionary/embedding outage; retry the same request

All responses are JSON with explicit Pydantic schemas.

Run with: uvicorn wordplay.api.app:create_app --factory (or `wordplay serve`)
"""

from contextlib import asynccontextmanager
from typing import Optional, Union
import os

from fastapi import FastAPI, Body
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .schemas import (
    # Request models
    SelectVariantRequest,
    SubmitWordRequest,
    # Response models
    OutcomeResponse,
    ErrorResponse,
    VariantListResponse,
    DefinitionResponse,
    HealthResponse,
)
from .service import WordplayService, ServiceError
from ..session import IdleSweeper

# Environment configuration
WORDPLAY_ENV = os.getenv("WORDPLAY_ENV", "development")
WORDPLAY_WORDS_FILE = os.getenv("WORDPLAY_WORDS_FILE", None)
WORDPLAY_VECTORS_FILE = os.getenv("WORDPLAY_VECTORS_FILE", None)
WORDPLAY_SESSIONS_DIR = os.getenv("WORDPLAY_SESSIONS_DIR", None)
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")


def create_app(service: Optional[WordplayService] = None, sweep: bool = True):
    """
    Create the FastAPI application.

    Args:
        service: Optional WordplayService instance (built from env if not provided)
        sweep: Run the idle sweeper while the app is up

    Returns:
        FastAPI application instance
    """
    api_service = service or WordplayService.from_env(
        words_file=WORDPLAY_WORDS_FILE,
        vectors_file=WORDPLAY_VECTORS_FILE,
        sessions_dir=WORDPLAY_SESSIONS_DIR,
    )
    sweeper = IdleSweeper(api_service.manager)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if sweep:
            sweeper.start()
        try:
            yield
        finally:
            await sweeper.stop()

    app = FastAPI(
        title="Wordplay Engine API",
        description="""
Turn-based word games (Word Chain, Word Ladder, Scramble, Synonym String,
Alphabet Sprint, Forbidden Letters) for chat conversations.

## Error Codes

| Code | HTTP | Description |
|------|------|-------------|
| `SESSION_NOT_FOUND` | 404 | No game for this conversation |
| `INVALID_INTENT_FOR_STATE` | 409 | Not allowed right now (e.g. start during a game) |
| `UNKNOWN_VARIANT` | 400 | Variant name not recognized |
| `SESSION_COMPLETED` | 410 | Game already over |
| `SESSION_EXPIRED` | 410 | Game timed out while idle |
| `SERVICE_UNAVAILABLE` | 503 | Dependency outage, retry later |
        """,
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    # CORS for web clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(error: ServiceError) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=error.status_code,
            content=error.response.model_dump(mode="json"),
        )

    def respond(result):
        if isinstance(result, ServiceError):
            return make_error_response(result)
        return result

    errors = {
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse, "description": "Conversation not found"},
        409: {"model": ErrorResponse, "description": "Intent not valid in this state"},
        410: {"model": ErrorResponse, "description": "Game is over or expired"},
        503: {"model": ErrorResponse, "description": "Dictionary or embeddings unavailable"},
    }

    # =========================================================================
    # Catalogue Endpoints
    # =========================================================================

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health() -> HealthResponse:
        return api_service.health()

    @app.get(
        "/api/v1/variants",
        response_model=VariantListResponse,
        tags=["Games"],
        summary="List the available game variants",
    )
    async def list_variants() -> VariantListResponse:
        return api_service.variants()

    @app.get(
        "/api/v1/definitions/{word}",
        response_model=DefinitionResponse,
        responses={400: errors[400], 404: {"model": ErrorResponse}, 503: errors[503]},
        tags=["Games"],
        summary="Look up a word's definition",
    )
    async def define(word: str) -> Union[DefinitionResponse, JSONResponse]:
        return respond(await api_service.define(word))

    # =========================================================================
    # Conversation Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/conversations/{conversation_id}/start",
        response_model=OutcomeResponse,
        responses={409: errors[409]},
        tags=["Conversations"],
        summary="Start a session",
    )
    async def start(conversation_id: str) -> Union[OutcomeResponse, JSONResponse]:
        """
        Open a session awaiting a variant choice.

        Returns 409 while a game is in progress in this conversation.
        """
        return respond(await api_service.start(conversation_id))

    @app.post(
        "/api/v1/conversations/{conversation_id}/variant",
        response_model=OutcomeResponse,
        responses=errors,
        tags=["Conversations"],
        summary="Choose the game variant",
    )
    async def select_variant(
        conversation_id: str,
        request: SelectVariantRequest = Body(...),
    ) -> Union[OutcomeResponse, JSONResponse]:
        return respond(await api_service.select_variant(conversation_id, request))

    @app.post(
        "/api/v1/conversations/{conversation_id}/words",
        response_model=OutcomeResponse,
        responses=errors,
        tags=["Game Loop"],
        summary="Play a word",
    )
    async def submit_word(
        conversation_id: str,
        request: SubmitWordRequest = Body(...),
    ) -> Union[OutcomeResponse, JSONResponse]:
        """
        Submit the player's word.

        A rejected word is a normal response (`outcome="rejected"`, see
        `reason`). 503 means the word was neither accepted nor rejected.
        """
        return respond(await api_service.submit_word(conversation_id, request))

    @app.post(
        "/api/v1/conversations/{conversation_id}/hint",
        response_model=OutcomeResponse,
        responses=errors,
        tags=["Game Loop"],
        summary="Ask for a hint",
    )
    async def hint(conversation_id: str) -> Union[OutcomeResponse, JSONResponse]:
        return respond(await api_service.hint(conversation_id))

    @app.post(
        "/api/v1/conversations/{conversation_id}/skip",
        response_model=OutcomeResponse,
        responses=errors,
        tags=["Game Loop"],
        summary="Skip the current turn",
    )
    async def skip(conversation_id: str) -> Union[OutcomeResponse, JSONResponse]:
        return respond(await api_service.skip(conversation_id))

    @app.post(
        "/api/v1/conversations/{conversation_id}/stop",
        response_model=OutcomeResponse,
        responses=errors,
        tags=["Conversations"],
        summary="Stop the game",
    )
    async def stop(conversation_id: str) -> Union[OutcomeResponse, JSONResponse]:
        return respond(await api_service.stop(conversation_id))

    @app.get(
        "/api/v1/conversations/{conversation_id}",
        response_model=OutcomeResponse,
        responses={404: errors[404]},
        tags=["Conversations"],
        summary="Get session status",
    )
    async def status(conversation_id: str) -> Union[OutcomeResponse, JSONResponse]:
        return respond(await api_service.status(conversation_id))

    return app

