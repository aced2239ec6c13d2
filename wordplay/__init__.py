"""
Wordplay - Turn-based word game engine.

One engine drives six word game variants played inside a conversation:
- Session state machine (start, pick a game, play, stop, expire)
- Turn validation against variant constraints
- Embedding-backed hints
- Per-variant scoring

Transports (chat bots, HTTP, terminal) talk to the SessionManager and
render the outcomes it returns.
"""

__version__ = "0.1.0"
