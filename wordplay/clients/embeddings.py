"""
Word embedding index.

WordVectorIndex keeps unit-normalized vectors in one numpy matrix so a
nearest-neighbour query is a single matrix-vector product. Vectors are read
from the word2vec text format:

    [<count> <dim>]          optional header
    <word> <v1> <v2> ... <vd>

LocalEmbeddingClient adapts the index to the EmbeddingClient protocol,
loading the file lazily and running queries off the event loop.
"""

from __future__ import annotations
from pathlib import Path
from typing import Mapping, Sequence
import asyncio
import logging

import numpy as np

from ..errors import EmbeddingUnavailable
from ..words import normalize

logger = logging.getLogger(__name__)


class WordVectorIndex:
    """In-memory cosine-similarity index over a fixed vocabulary."""

    def __init__(self, words: Sequence[str], vectors: np.ndarray):
        if len(words) != len(vectors):
            raise ValueError(
                f"Got {len(words)} words but {len(vectors)} vectors"
            )
        matrix = np.asarray(vectors, dtype=np.float32)
        if matrix.ndim != 2:
            raise ValueError("vectors must be a 2D array")

        norms = np.linalg.norm(matrix, axis=1, keepdims=True)
        norms[norms < 1e-8] = 1.0
        self._matrix = matrix / norms
        self._words = [normalize(w) for w in words]
        self._index = {w: i for i, w in enumerate(self._words)}

    @classmethod
    def empty(cls, dim: int = 1) -> WordVectorIndex:
        """Index with no vocabulary; every lookup returns no neighbours."""
        return cls([], np.zeros((0, dim), dtype=np.float32))

    @classmethod
    def from_vectors(cls, vectors: Mapping[str, Sequence[float]]) -> WordVectorIndex:
        words = list(vectors.keys())
        return cls(words, np.array([vectors[w] for w in words], dtype=np.float32))

    @classmethod
    def from_word2vec(cls, path: str | Path, limit: int | None = None) -> WordVectorIndex:
        """
        Load a word2vec text file.

        Lines that fail to parse, or whose dimension disagrees with the first
        vector, are skipped with a warning.
        """
        words: list[str] = []
        rows: list[list[float]] = []
        dim: int | None = None

        with open(path, "r", encoding="utf-8") as f:
            for line_no, line in enumerate(f, start=1):
                parts = line.replace("\r", "").split()
                if not parts:
                    continue
                if line_no == 1 and len(parts) == 2 and all(p.isdigit() for p in parts):
                    continue  # header

                word, values = parts[0], parts[1:]
                try:
                    vec = [float(v) for v in values]
                except ValueError as e:
                    logger.warning("Failed to parse embedding for '%s': %s", word, e)
                    continue

                if dim is None:
                    dim = len(vec)
                elif len(vec) != dim:
                    logger.warning(
                        "Skipping '%s': dimension %d, expected %d", word, len(vec), dim
                    )
                    continue

                words.append(word)
                rows.append(vec)
                if limit is not None and len(words) >= limit:
                    break

        if not words:
            raise ValueError(f"No embeddings found in {path}")

        logger.info("Loaded %d embeddings (dim=%d) from %s", len(words), dim, path)
        return cls(words, np.array(rows, dtype=np.float32))

    def __len__(self) -> int:
        return len(self._words)

    def __contains__(self, word: str) -> bool:
        return normalize(word) in self._index

    @property
    def vocabulary(self) -> list[str]:
        return list(self._words)

    def similarity(self, a: str, b: str) -> float | None:
        """Cosine similarity, or None if either word is unknown."""
        ia = self._index.get(normalize(a))
        ib = self._index.get(normalize(b))
        if ia is None or ib is None:
            return None
        return float(self._matrix[ia] @ self._matrix[ib])

    def nearest(self, word: str, k: int) -> list[tuple[str, float]]:
        """Top-k most similar words, excluding the query word itself."""
        idx = self._index.get(normalize(word))
        if idx is None or k <= 0:
            return []

        sims = self._matrix @ self._matrix[idx]
        sims[idx] = -np.inf

        k = min(k, len(self._words) - 1)
        if k <= 0:
            return []
        top = np.argpartition(-sims, k - 1)[:k]
        top = top[np.argsort(-sims[top], kind="stable")]
        return [(self._words[i], float(sims[i])) for i in top]


class LocalEmbeddingClient:
    """
    EmbeddingClient over a WordVectorIndex.

    Give it an index directly, or a path that is loaded on first use.
    A missing or unreadable file surfaces as EmbeddingUnavailable.
    """

    def __init__(
        self,
        index: WordVectorIndex | None = None,
        path: str | Path | None = None,
    ):
        if index is None and path is None:
            raise ValueError("LocalEmbeddingClient needs an index or a path")
        self._index = index
        self._path = Path(path) if path else None
        self._load_lock = asyncio.Lock()

    async def _get_index(self) -> WordVectorIndex:
        if self._index is not None:
            return self._index
        async with self._load_lock:
            if self._index is None:
                try:
                    self._index = await asyncio.to_thread(
                        WordVectorIndex.from_word2vec, self._path
                    )
                except (OSError, ValueError) as e:
                    raise EmbeddingUnavailable(
                        f"Could not load embeddings from {self._path}: {e}"
                    ) from e
        return self._index

    async def neighbors(self, word: str, k: int) -> list[tuple[str, float]]:
        index = await self._get_index()
        return await asyncio.to_thread(index.nearest, word, k)
