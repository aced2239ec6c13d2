"""
Collaborator contracts.

The engine never talks to a dictionary service or an embedding model
directly; it only sees these two protocols. Anything with matching
coroutine methods can be plugged in (HTTP clients, local indexes, test
fakes).
"""

from __future__ import annotations
from typing import Protocol, runtime_checkable


@runtime_checkable
class DictionaryClient(Protocol):
    """
    Word existence and definitions.

    Both methods raise DictionaryUnavailable when the backend cannot answer.
    """

    async def exists(self, word: str) -> bool:
        ...

    async def define(self, word: str) -> str | None:
        """Definition text, or None if the word is unknown."""
        ...


@runtime_checkable
class EmbeddingClient(Protocol):
    """
    Nearest neighbours in embedding space.

    Raises EmbeddingUnavailable when the index cannot answer.
    """

    async def neighbors(self, word: str, k: int) -> list[tuple[str, float]]:
        """
        Up to k (word, similarity) pairs, most similar first.

        The query word itself is never included. Unknown words return [].
        """
        ...
