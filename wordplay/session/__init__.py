"""
Session Module - Manages per-conversation game sessions.

A session represents one game in one conversation:
- Created when the player starts
- Holds history, constraints and score
- Serialized per conversation (one lock each)
- Ends when stopped, won or idle for too long

Persistence is optional: plug a SessionStore into the SessionManager to
keep sessions across restarts.
"""

from .manager import SessionManager
from .registry import SessionRegistry
from .store import SessionStore, InMemorySessionStore, JsonFileSessionStore
from .sweeper import IdleSweeper

__all__ = [
    "SessionManager",
    "SessionRegistry",
    "SessionStore",
    "InMemorySessionStore",
    "JsonFileSessionStore",
    "IdleSweeper",
]
