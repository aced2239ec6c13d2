"""
Pytest fixtures for Wordplay tests.

Fakes stand in for the dictionary and embedding backends so tests can
script outages, slow lookups and neighbour lists.
"""

import asyncio
import random

import pytest

from ..config import EngineSettings
from ..errors import DictionaryUnavailable, EmbeddingUnavailable
from ..engine_core.state import Session, SessionStatus
from ..games.variants import GameVariant, VariantConfig, VariantKind, create_variant
from ..session import SessionManager
from ..words import normalize


WORDS = {
    "apple", "elephant", "tiger", "rabbit", "river", "rock", "rose", "egg",
    "goose", "dog", "cat", "tree", "owl", "ant", "bee", "snake", "grape",
    "pear", "elderberry", "happy", "yippee", "yes", "yellow", "glad",
    "trees", "eagle", "cafe", "tame", "treat", "house",
}

DEFINITIONS = {
    "apple": "(noun): The round fruit of a tree of the rose family",
    "tiger": "(noun): A very large solitary cat with a yellow-brown coat",
}


class FakeDictionary:
    """
    Scriptable DictionaryClient.

    fail_times: the first N calls raise DictionaryUnavailable
    fail_always: every call raises
    delay / slow_words: seconds to wait before answering
    """

    def __init__(
        self,
        words=WORDS,
        definitions=None,
        fail_times: int = 0,
        fail_always: bool = False,
        delay: float = 0.0,
        slow_words=None,
    ):
        self.words = {normalize(w) for w in words}
        self.definitions = dict(DEFINITIONS if definitions is None else definitions)
        self.fail_times = fail_times
        self.fail_always = fail_always
        self.delay = delay
        self.slow_words = dict(slow_words or {})
        self.calls: list[str] = []

    async def _maybe_fail(self, word: str):
        self.calls.append(word)
        wait = self.slow_words.get(word, self.delay)
        if wait:
            await asyncio.sleep(wait)
        if self.fail_always or len(self.calls) <= self.fail_times:
            raise DictionaryUnavailable(f"dictionary down ({word})")

    async def exists(self, word: str) -> bool:
        await self._maybe_fail(word)
        return normalize(word) in self.words

    async def define(self, word: str):
        await self._maybe_fail(word)
        return self.definitions.get(normalize(word))


class FakeEmbeddings:
    """Scriptable EmbeddingClient: fixed neighbour lists per word."""

    def __init__(self, neighbors=None, fail_always: bool = False, delay: float = 0.0):
        self.neighbors_map = {k: list(v) for k, v in (neighbors or {}).items()}
        self.fail_always = fail_always
        self.delay = delay
        self.calls: list[tuple[str, int]] = []

    async def neighbors(self, word: str, k: int):
        self.calls.append((word, k))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_always:
            raise EmbeddingUnavailable(f"embeddings down ({word})")
        return self.neighbors_map.get(word, [])[:k]


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def make_session(
    kind: VariantKind,
    history=(),
    settings: EngineSettings | None = None,
    forbidden=None,
    conversation_id: str = "chat-1",
) -> Session:
    """An ACTIVE session of `kind` whose history is already played."""
    settings = settings or EngineSettings()
    variant = create_variant(kind, settings, random.Random(0))
    if forbidden is not None:
        variant = GameVariant(
            kind=kind,
            config=VariantConfig(forbidden_letters=frozenset(forbidden)),
        )
    session = Session(
        conversation_id=conversation_id,
        created_at=1_000_000.0,
        status=SessionStatus.ACTIVE,
        variant=variant,
        history=list(history),
        used_words=set(history),
    )
    session.rebuild_constraints()
    return session


def run(coro):
    """Drive a coroutine from a synchronous test."""
    return asyncio.run(coro)


@pytest.fixture
def settings() -> EngineSettings:
    """Fast settings: no backoff, short timeout, no seed words."""
    return EngineSettings(
        lookup_timeout=1.0,
        lookup_retries=3,
        retry_backoff=0.0,
        retry_backoff_max=0.0,
        seed_words=(),
    )


@pytest.fixture
def dictionary() -> FakeDictionary:
    return FakeDictionary()


@pytest.fixture
def embeddings() -> FakeEmbeddings:
    return FakeEmbeddings()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)


@pytest.fixture
def manager(dictionary, embeddings, settings, clock, rng) -> SessionManager:
    return SessionManager(dictionary, embeddings, settings=settings, clock=clock, rng=rng)


@pytest.fixture
def seeded_manager(dictionary, embeddings, settings, clock, rng) -> SessionManager:
    """Manager whose games open with 'apple'."""
    seeded = settings.with_overrides(seed_words=("apple",))
    return SessionManager(dictionary, embeddings, settings=seeded, clock=clock, rng=rng)
