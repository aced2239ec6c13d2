"""
Dictionary clients.

- WordListDictionary: in-memory word set (optionally with definitions).
  Used for offline play, the CLI and tests.
- HttpDictionaryClient: asks a dictionaryapi.dev compatible REST endpoint,
  with an LRU cache so repeated lookups in a game cost nothing.
"""

from __future__ import annotations
from collections import OrderedDict
from pathlib import Path
from typing import Any, Iterable
import asyncio
import logging

import aiohttp

from ..errors import DictionaryUnavailable
from ..words import normalize

logger = logging.getLogger(__name__)

DEFAULT_DICTIONARY_URL = "https://api.dictionaryapi.dev/api/v2/entries/en"
DEFAULT_CACHE_SIZE = 10_000


class WordListDictionary:
    """
    Dictionary backed by a plain word list.

    File format: one word per line, optionally followed by a tab and a
    definition. Blank lines and lines starting with '#' are ignored.
    """

    def __init__(
        self,
        words: Iterable[str],
        definitions: dict[str, str] | None = None,
    ):
        self._words: set[str] = {normalize(w) for w in words if normalize(w)}
        self._definitions: dict[str, str] = {
            normalize(w): text for w, text in (definitions or {}).items()
        }
        self._words.update(self._definitions)

    @classmethod
    def from_file(cls, path: str | Path) -> WordListDictionary:
        words: list[str] = []
        definitions: dict[str, str] = {}
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.rstrip("\n")
                if not line.strip() or line.lstrip().startswith("#"):
                    continue
                word, _, definition = line.partition("\t")
                words.append(word)
                if definition.strip():
                    definitions[word] = definition.strip()
        logger.info("Loaded %d words from %s", len(words), path)
        return cls(words, definitions)

    def __len__(self) -> int:
        return len(self._words)

    def __contains__(self, word: str) -> bool:
        return normalize(word) in self._words

    async def exists(self, word: str) -> bool:
        return normalize(word) in self._words

    async def define(self, word: str) -> str | None:
        key = normalize(word)
        if key not in self._words:
            return None
        return self._definitions.get(key)


class HttpDictionaryClient:
    """
    REST dictionary client.

    GET {base_url}/{word}
      200 -> list of entries (word exists)
      404 -> unknown word
      anything else / network error / timeout -> DictionaryUnavailable
    """

    def __init__(
        self,
        base_url: str = DEFAULT_DICTIONARY_URL,
        timeout_total_seconds: float = 2.5,
        timeout_connect_seconds: float = 0.6,
        cache_size: int = DEFAULT_CACHE_SIZE,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.timeout_total_seconds = float(timeout_total_seconds)
        self.timeout_connect_seconds = float(timeout_connect_seconds)
        self.cache_size = cache_size
        # word -> entries, or None for a confirmed miss
        self._cache: OrderedDict[str, list[dict[str, Any]] | None] = OrderedDict()

    def _timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(
            total=self.timeout_total_seconds,
            connect=self.timeout_connect_seconds,
        )

    async def exists(self, word: str) -> bool:
        return await self._lookup(normalize(word)) is not None

    async def define(self, word: str) -> str | None:
        entries = await self._lookup(normalize(word))
        if not entries:
            return None
        return format_entries(entries) or None

    async def _lookup(self, word: str) -> list[dict[str, Any]] | None:
        if not word:
            return None
        if word in self._cache:
            self._cache.move_to_end(word)
            return self._cache[word]

        entries = await self._fetch(word)
        self._cache[word] = entries
        if len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)
        return entries

    async def _fetch(self, word: str) -> list[dict[str, Any]] | None:
        if not self.base_url:
            raise DictionaryUnavailable("Dictionary base_url is empty")

        url = f"{self.base_url}/{word}"
        try:
            async with aiohttp.ClientSession(timeout=self._timeout()) as session:
                async with session.get(url) as resp:
                    if resp.status == 404:
                        return None
                    if resp.status < 200 or resp.status >= 300:
                        detail = await resp.text()
                        raise DictionaryUnavailable(
                            f"Dictionary HTTP {resp.status} for '{word}': {detail[:200]}"
                        )
                    data = await resp.json()
        except asyncio.TimeoutError as e:
            raise DictionaryUnavailable(f"Dictionary timeout for '{word}'") from e
        except aiohttp.ClientError as e:
            raise DictionaryUnavailable(f"Dictionary connection error for '{word}'") from e

        if not isinstance(data, list) or not data:
            return None
        return data


def format_entries(entries: list[dict[str, Any]], limit: int = 5) -> str:
    """
    Render dictionary entries as "(noun): definition" lines.

    At most `limit` definitions are included.
    """
    lines: list[str] = []
    for entry in entries:
        for meaning in entry.get("meanings") or []:
            label = str(meaning.get("partOfSpeech") or "").strip()
            for d in meaning.get("definitions") or []:
                text = str(d.get("definition") or "").strip()
                if not text:
                    continue
                lines.append(f"({label}): {text}" if label else text)
                if len(lines) >= limit:
                    return "\n".join(lines)
    return "\n".join(lines)
