"""
API Module - Chat transport interface.

Exposes the engine via REST API. A transport (chat bot, web client):
1. Starts a session for its conversation id
2. Chooses a game variant
3. Submits words, asks for hints, skips
4. Stops the game (or lets it expire)

Rejected words are regular responses; errors carry an ErrorCode.
"""

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
from .service import WordplayService, ServiceError, error_for
from .app import create_app

__all__ = [
    # Requests
    "SelectVariantRequest",
    "SubmitWordRequest",
    # Responses
    "OutcomeResponse",
    "ErrorResponse",
    "VariantInfo",
    "VariantListResponse",
    "DefinitionResponse",
    "HealthResponse",
    "ErrorCode",
    # Service
    "WordplayService",
    "ServiceError",
    "error_for",
    "create_app",
]
