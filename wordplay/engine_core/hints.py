"""
Hint Engine - Suggests a legal next word.

Candidates come from the embedding neighbours of the last accepted word and
are filtered through the same rules the TurnValidator applies:

1. Shape and uniqueness
2. Variant constraint (Synonym String: neighbour score >= threshold)
3. Existence, re-checked through the DictionaryClient

With an empty history the configured seed words are the candidates.

The first survivor wins. Hints are best-effort: each external call gets a
single attempt bounded by the lookup timeout. The engine never mutates the
session; counting the hint is the manager's job.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING
import logging

from ..config import EngineSettings
from ..errors import DictionaryUnavailable, EmbeddingUnavailable
from ..clients.retry import once
from ..games.variants import VariantKind
from ..words import normalize
from .validator import check_constraint, check_shape

if TYPE_CHECKING:
    from ..clients.base import DictionaryClient, EmbeddingClient
    from .state import Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HintResult:
    """A suggested word, or None when nothing legal was found."""
    word: str | None = None
    considered: int = 0

    @property
    def found(self) -> bool:
        return self.word is not None


class HintEngine:
    """
    Finds legal next words from embedding neighbours.

    Shared by the hint intent and the opponent reply.
    """

    def __init__(
        self,
        dictionary: DictionaryClient,
        embeddings: EmbeddingClient,
        settings: EngineSettings | None = None,
    ):
        self.dictionary = dictionary
        self.embeddings = embeddings
        self.settings = settings or EngineSettings()

    async def hint(self, session: Session) -> HintResult:
        """
        Suggest a word for the player's next turn.

        Raises ServiceUnavailable if a lookup fails; the caller must then
        leave the session untouched.
        """
        return await self.find_candidate(session, self.settings.hint_neighbors)

    async def find_candidate(self, session: Session, k: int) -> HintResult:
        """Search the k nearest neighbours of the last word (or the seed words) for a legal move."""
        anchor = session.last_word
        variant = session.variant
        if variant is None:
            return HintResult()

        s = self.settings
        cid = session.conversation_id
        if anchor:
            neighbors = await once(
                lambda: self.embeddings.neighbors(anchor, k),
                timeout=s.lookup_timeout,
                unavailable=EmbeddingUnavailable,
                what="Similarity lookup",
                conversation_id=cid,
            )
        else:
            # Nothing to chain from yet: suggest an opening word
            neighbors = [(w, 1.0) for w in s.seed_words]

        considered = 0
        for raw, score in neighbors:
            word = normalize(raw)
            considered += 1
            if check_shape(word) or word in session.used_words:
                continue
            if check_constraint(variant, session.constraints, word):
                continue
            if variant.kind == VariantKind.SYNONYM_STRING and score < s.synonym_threshold:
                continue

            exists = await once(
                lambda w=word: self.dictionary.exists(w),
                timeout=s.lookup_timeout,
                unavailable=DictionaryUnavailable,
                what="Dictionary lookup",
                conversation_id=cid,
            )
            if exists:
                logger.debug("[%s] Candidate after %s: %s", cid, anchor, word)
                return HintResult(word=word, considered=considered)

        logger.debug("[%s] No legal candidate among %d neighbours of %s", cid, considered, anchor)
        return HintResult(considered=considered)
