"""
Session Store - Optional persistence of sessions.

The store:
- Is keyed by conversation id
- Only sees sessions at boundary transitions (start, variant selected,
  terminal), never mid-turn
- Stores Session.to_dict(); constraints are rebuilt on load

Two implementations:
- InMemorySessionStore: process-local dict (default)
- JsonFileSessionStore: one JSON file per conversation on local disk
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, Protocol, runtime_checkable
import asyncio
import hashlib
import json
import logging
import shutil

from ..engine_core.state import Session

logger = logging.getLogger(__name__)


@runtime_checkable
class SessionStore(Protocol):
    """Where sessions go between process restarts."""

    async def load(self, conversation_id: str) -> Session | None:
        ...

    async def save(self, session: Session):
        ...


class InMemorySessionStore:
    """
    Keeps serialized sessions in a dict.

    Stores the dict form rather than the object, so a loaded session never
    aliases the live one.
    """

    def __init__(self):
        self._data: dict[str, dict[str, Any]] = {}

    async def load(self, conversation_id: str) -> Session | None:
        data = self._data.get(conversation_id)
        return Session.from_dict(data) if data else None

    async def save(self, session: Session):
        self._data[session.conversation_id] = session.to_dict()

    def __contains__(self, conversation_id: str) -> bool:
        return conversation_id in self._data

    def __len__(self) -> int:
        return len(self._data)


class JsonFileSessionStore:
    """
    File-based session store.

    Usage:
        store = JsonFileSessionStore("~/.wordplay/sessions")
        manager = SessionManager(dictionary, embeddings, store=store)

    File names are hashes of the conversation id, so any id (chat ids,
    emails, ...) is safe to use.
    """

    def __init__(self, directory: str | Path | None = None):
        if directory is None:
            directory = Path.home() / ".wordplay" / "sessions"
        self.directory = Path(directory).expanduser()
        self.directory.mkdir(parents=True, exist_ok=True)

    async def load(self, conversation_id: str) -> Session | None:
        return await asyncio.to_thread(self._read, conversation_id)

    async def save(self, session: Session):
        await asyncio.to_thread(self._write, session)

    def delete(self, conversation_id: str):
        self._path(conversation_id).unlink(missing_ok=True)

    def clear(self):
        """Remove every stored session."""
        if self.directory.exists():
            shutil.rmtree(self.directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def list_stored(self) -> list[str]:
        """File stems of stored sessions."""
        return [f.stem for f in self.directory.glob("*.json")]

    def _path(self, conversation_id: str) -> Path:
        key = hashlib.sha256(conversation_id.encode("utf-8")).hexdigest()[:24]
        return self.directory / f"{key}.json"

    def _read(self, conversation_id: str) -> Session | None:
        path = self._path(conversation_id)
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                return Session.from_dict(json.load(f))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            # Unreadable entry, drop it
            logger.warning("Discarding corrupt session file %s: %s", path.name, e)
            path.unlink(missing_ok=True)
            return None

    def _write(self, session: Session):
        path = self._path(session.conversation_id)
        tmp = path.with_suffix(".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(session.to_dict(), f, indent=2)
        tmp.replace(path)
