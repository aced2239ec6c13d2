"""
Session Manager - Runs the per-conversation game state machine.

LIFECYCLE:
1. start_session      -> AWAITING_VARIANT_SELECTION
2. select_variant     -> ACTIVE (engine plays a seed word when it can)
3. During the game:
   - submit_word      validate, then score and append (or reject)
   - request_hint     suggest a legal word
   - skip             give up the turn (opponent may play instead)
4. Game ends:
   - stop             COMPLETED (words were played) or ABANDONED
   - win condition    COMPLETED (ladder goal, opponent stumped)
   - idle timeout     EXPIRED

CONCURRENCY RULES:
- Every intent runs under the conversation's asyncio.Lock, including the
  awaited dictionary / embedding lookups
- Different conversations never share a lock
- A dependency failure leaves the session exactly as it was

PERSISTENCE RULES:
- Live sessions are held in the SessionRegistry
- The optional SessionStore is read when a conversation is unknown and
  written only at boundaries (start, variant selected, terminal)
"""

from __future__ import annotations
from typing import Awaitable, Callable
import logging
import random
import time

from ..config import EngineSettings
from ..errors import (
    InvalidIntentForState,
    ServiceUnavailable,
    SessionCompleted,
    SessionExpired,
    SessionNotFound,
    UnknownVariant,
)
from ..engine_core import reducer
from ..engine_core.hints import HintEngine
from ..engine_core.intent import Intent, IntentType, Outcome, OutcomeKind
from ..engine_core.state import Session, SessionStatus
from ..engine_core.validator import TurnValidator
from ..games.rules import overview_text, rules_text
from ..games.setup import choose_seed
from ..games.variants import create_variant, parse_variant_kind
from ..clients.base import DictionaryClient, EmbeddingClient
from .registry import SessionRegistry
from .store import SessionStore

logger = logging.getLogger(__name__)

END_STOPPED = "stopped"
END_GOAL = "goal_reached"
END_OPPONENT_GOAL = "opponent_reached_goal"
END_OPPONENT_STUMPED = "opponent_stumped"
END_TOO_MANY_SKIPS = "too_many_skips"
END_IDLE = "idle_timeout"


class SessionManager:
    """
    Owns every conversation's Session.

    Responsibilities:
    - Route intents to the state machine
    - Serialize intents per conversation
    - Expire idle sessions
    - Persist sessions at boundaries

    Usage:
        manager = SessionManager(dictionary, embeddings)
        await manager.start_session("chat-42")
        await manager.select_variant("chat-42", "word_chain")
        outcome = await manager.submit_word("chat-42", "elephant")
    """

    def __init__(
        self,
        dictionary: DictionaryClient,
        embeddings: EmbeddingClient,
        settings: EngineSettings | None = None,
        registry: SessionRegistry | None = None,
        store: SessionStore | None = None,
        clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
    ):
        self.settings = settings or EngineSettings()
        self.dictionary = dictionary
        self.embeddings = embeddings
        self.registry = registry if registry is not None else SessionRegistry()
        self.store = store
        self.clock = clock
        self.rng = rng or random.Random()

        self.validator = TurnValidator(dictionary, embeddings, self.settings)
        self.hints = HintEngine(dictionary, embeddings, self.settings)

        self._handlers: dict[IntentType, Callable[[Intent], Awaitable[Outcome]]] = {
            IntentType.START: lambda i: self.start_session(i.conversation_id),
            IntentType.SELECT_VARIANT: lambda i: self.select_variant(
                i.conversation_id, i.variant_name or ""
            ),
            IntentType.SUBMIT_WORD: lambda i: self.submit_word(i.conversation_id, i.word or ""),
            IntentType.HINT: lambda i: self.request_hint(i.conversation_id),
            IntentType.SKIP: lambda i: self.skip(i.conversation_id),
            IntentType.STOP: lambda i: self.stop(i.conversation_id),
            IntentType.STATUS: lambda i: self.status(i.conversation_id),
        }

    # =========================================================================
    # Intents
    # =========================================================================

    async def handle(self, intent: Intent) -> Outcome:
        """Dispatch a parsed intent."""
        return await self._handlers[intent.intent_type](intent)

    async def start_session(self, conversation_id: str) -> Outcome:
        """
        Open a session awaiting a variant choice.

        An existing AWAITING session is returned as-is; a terminal one is
        replaced; an ACTIVE one must be stopped first.
        """
        async with self.registry.locked(conversation_id):
            now = self.clock()
            session = await self._locate(conversation_id)

            if session is not None and self._is_overdue(session, now):
                await self._expire(session)

            if session is not None and session.is_active:
                raise InvalidIntentForState(
                    "Please stop this game first (use /stop)",
                    conversation_id=conversation_id,
                    intent=IntentType.START.value,
                    status=session.status.value,
                )
            if session is not None and session.status == SessionStatus.AWAITING_VARIANT_SELECTION:
                session.touch(now)
                return Outcome.from_session(OutcomeKind.STARTED, session, overview_text())

            session = Session(conversation_id=conversation_id, created_at=now)
            self.registry.put(session)
            await self._save(session)
            logger.info("[%s] Session started", conversation_id)
            return Outcome.from_session(OutcomeKind.STARTED, session, overview_text())

    async def select_variant(self, conversation_id: str, variant_name: str) -> Outcome:
        """
        Choose the game ("word_chain", ..., or "random") and start play.

        Raises UnknownVariant for names outside the variant set and
        ServiceUnavailable if the dictionary is down while seeding.
        """
        async with self.registry.locked(conversation_id):
            session = await self._playable(conversation_id, IntentType.SELECT_VARIANT)
            self._require_status(session, SessionStatus.AWAITING_VARIANT_SELECTION, IntentType.SELECT_VARIANT)

            try:
                kind = parse_variant_kind(variant_name, self.rng)
            except ValueError as e:
                raise UnknownVariant(str(e), conversation_id=conversation_id) from e

            variant = create_variant(kind, self.settings, self.rng)
            seed = await choose_seed(
                variant,
                self.settings.seed_words,
                lambda w: self.validator.word_exists(w, conversation_id),
                self.rng,
                attempts=self.settings.seed_attempts,
            )

            reducer.activate(session, variant, seed, self.clock())
            await self._save(session)
            logger.info("[%s] Playing %s (seed=%s)", conversation_id, variant.name, seed)

            opening = f"I'll start with: {seed}" if seed else "You start!"
            message = f"{rules_text(variant)}\n\n{opening}\n{session.constraints.describe()}"
            return Outcome.from_session(
                OutcomeKind.VARIANT_SELECTED, session, message, opponent_word=seed,
            )

    async def submit_word(self, conversation_id: str, word: str) -> Outcome:
        """
        Play a word.

        Rejections come back as REJECTED outcomes with the session
        unchanged. Raises ServiceUnavailable if validation could not reach
        its dependencies.
        """
        async with self.registry.locked(conversation_id):
            session = await self._playable(conversation_id, IntentType.SUBMIT_WORD)
            self._require_status(session, SessionStatus.ACTIVE, IntentType.SUBMIT_WORD)

            verdict = await self.validator.validate(session, word)
            now = self.clock()
            if not verdict.accepted:
                session.touch(now)
                logger.info(
                    "[%s] Rejected %r: %s", conversation_id, verdict.word, verdict.reason.value,
                )
                return Outcome.rejection(session, verdict.word, verdict.reason, verdict.message)

            delta = reducer.apply_word(session, verdict.word, verdict.constraints, now)
            logger.info(
                "[%s] Accepted %r (+%d, score %d)",
                conversation_id, verdict.word, delta, session.score,
            )
            lines = [f"'{verdict.word}' accepted! +{delta} (score: {session.score})"]

            if reducer.reached_goal(session.variant, verdict.word):
                await self._finish(session, SessionStatus.COMPLETED, END_GOAL)
                lines.append("You reached the goal, well played!")
                return Outcome.from_session(
                    OutcomeKind.ACCEPTED, session, "\n".join(lines),
                    word=verdict.word, score_delta=delta,
                )

            reply = await self._opponent_turn(session, lines)
            if session.is_active:
                lines.append(session.constraints.describe())
            return Outcome.from_session(
                OutcomeKind.ACCEPTED, session, "\n".join(lines),
                word=verdict.word, score_delta=delta, opponent_word=reply,
            )

    async def request_hint(self, conversation_id: str) -> Outcome:
        """
        Suggest a legal next word.

        Counts against max_hints whether or not a word was found. Raises
        ServiceUnavailable (and counts nothing) if a lookup failed.
        """
        async with self.registry.locked(conversation_id):
            session = await self._playable(conversation_id, IntentType.HINT)
            self._require_status(session, SessionStatus.ACTIVE, IntentType.HINT)

            limit = self.settings.max_hints
            if limit is not None and session.hint_count >= limit:
                return Outcome.from_session(
                    OutcomeKind.NO_HINT, session, f"No hints left ({limit} used)",
                )

            result = await self.hints.hint(session)
            reducer.apply_hint_used(session, self.clock())

            if not result.found:
                return Outcome.from_session(
                    OutcomeKind.NO_HINT, session,
                    f"I can't think of a hint right now. {session.constraints.describe()}",
                )
            logger.debug("[%s] Hint: %s", conversation_id, result.word)
            return Outcome.from_session(
                OutcomeKind.HINT, session,
                f"Hint: You could try a word like '{result.word}'",
                hint=result.word,
            )

    async def skip(self, conversation_id: str) -> Outcome:
        """
        Give up the current turn.

        Resets the streak and applies the variant's skip penalty. With
        opponent replies enabled the engine plays in the player's place.
        """
        async with self.registry.locked(conversation_id):
            session = await self._playable(conversation_id, IntentType.SKIP)
            self._require_status(session, SessionStatus.ACTIVE, IntentType.SKIP)

            delta = reducer.apply_skip(session, self.clock())
            logger.info("[%s] Skipped (%d so far)", conversation_id, session.skip_count)
            lines = ["Turn skipped."]
            if delta:
                lines[0] += f" {delta} (score: {session.score})"

            if reducer.skips_exhausted(session):
                await self._finish(session, self._stopped_status(session), END_TOO_MANY_SKIPS)
                lines.append(f"Too many skips, game over! Final score: {session.score}")
                return Outcome.from_session(
                    OutcomeKind.SKIPPED, session, "\n".join(lines), score_delta=delta,
                )

            reply = await self._opponent_turn(session, lines)
            if session.is_active:
                lines.append(session.constraints.describe())
            return Outcome.from_session(
                OutcomeKind.SKIPPED, session, "\n".join(lines),
                score_delta=delta, opponent_word=reply,
            )

    async def stop(self, conversation_id: str) -> Outcome:
        """End the game: COMPLETED if the player got a word accepted, else ABANDONED."""
        async with self.registry.locked(conversation_id):
            session = await self._playable(conversation_id, IntentType.STOP)
            await self._finish(session, self._stopped_status(session), END_STOPPED)
            return Outcome.from_session(
                OutcomeKind.STOPPED, session,
                f"Game over! Final score: {session.score}, chain length: {len(session.history)}",
            )

    async def status(self, conversation_id: str) -> Outcome:
        """Read-only snapshot. Works for terminal sessions too."""
        async with self.registry.locked(conversation_id):
            session = await self._locate(conversation_id)
            if session is None:
                raise SessionNotFound(
                    f"No game for conversation {conversation_id}",
                    conversation_id=conversation_id,
                )
            if self._is_overdue(session, self.clock()):
                await self._expire(session)
            return Outcome.from_session(OutcomeKind.STATUS, session, session.describe())

    async def expire_idle(self, now: float | None = None) -> list[str]:
        """
        Expire ACTIVE sessions idle longer than idle_timeout.

        Returns the expired conversation ids.
        """
        now = self.clock() if now is None else now
        expired: list[str] = []

        for conversation_id in self.registry.conversation_ids():
            candidate = self.registry.get(conversation_id)
            if candidate is None or not self._is_overdue(candidate, now):
                continue
            async with self.registry.locked(conversation_id):
                # Re-check: an intent may have run while we waited
                session = self.registry.get(conversation_id)
                if session is not None and self._is_overdue(session, now):
                    await self._expire(session)
                    expired.append(conversation_id)

        if expired:
            logger.info("Expired %d idle session(s)", len(expired))
        return expired

    def get_session(self, conversation_id: str) -> Session | None:
        """Live session, if loaded. Do not mutate."""
        return self.registry.get(conversation_id)

    def list_active_sessions(self) -> list[str]:
        return [s.conversation_id for s in self.registry if s.is_active]

    # =========================================================================
    # Internals (caller holds the lock)
    # =========================================================================

    async def _locate(self, conversation_id: str) -> Session | None:
        session = self.registry.get(conversation_id)
        if session is None and self.store is not None:
            session = await self.store.load(conversation_id)
            if session is not None:
                logger.debug("[%s] Session loaded from store", conversation_id)
                if not session.is_terminal:
                    self.registry.put(session)
        return session

    async def _playable(self, conversation_id: str, intent: IntentType) -> Session:
        """Locate a non-terminal session, expiring it if overdue."""
        session = await self._locate(conversation_id)
        if session is None:
            raise SessionNotFound(
                f"No game for conversation {conversation_id}, use /start",
                conversation_id=conversation_id,
            )

        if self._is_overdue(session, self.clock()):
            await self._expire(session)

        if session.status == SessionStatus.EXPIRED:
            raise SessionExpired(
                "This game expired after being idle, use /start for a new one",
                conversation_id=conversation_id,
            )
        if session.is_terminal:
            raise SessionCompleted(
                f"This game is over ({session.status.value}), use /start for a new one",
                conversation_id=conversation_id,
            )
        return session

    def _require_status(self, session: Session, status: SessionStatus, intent: IntentType):
        if session.status != status:
            raise InvalidIntentForState(
                f"Cannot {intent.value.replace('_', ' ')} while {session.status.value.replace('_', ' ')}",
                conversation_id=session.conversation_id,
                intent=intent.value,
                status=session.status.value,
            )

    def _is_overdue(self, session: Session, now: float) -> bool:
        return (
            session.status == SessionStatus.ACTIVE
            and now - session.last_activity > self.settings.idle_timeout
        )

    @staticmethod
    def _stopped_status(session: Session) -> SessionStatus:
        return SessionStatus.COMPLETED if session.player_words else SessionStatus.ABANDONED

    async def _opponent_turn(self, session: Session, lines: list[str]) -> str | None:
        """
        Let the engine answer the last word, when opponent replies are on.

        Appends a line to `lines`. Ends the game if the engine is stumped.
        """
        if not self.settings.opponent_replies:
            return None
        cid = session.conversation_id

        try:
            result = await self.hints.find_candidate(session, self.settings.synonym_neighbors)
        except ServiceUnavailable as e:
            logger.warning("[%s] Opponent reply skipped: %s", cid, e)
            lines.append("I'll pass this time, your turn again.")
            return None

        if not result.found:
            await self._finish(session, SessionStatus.COMPLETED, END_OPPONENT_STUMPED)
            lines.append(f"I can't think of a word, you win! Final score: {session.score}")
            return None

        reducer.apply_opponent_word(session, result.word, self.clock())
        logger.info("[%s] Opponent played %r", cid, result.word)
        lines.append(f"My word: {result.word}")

        if reducer.reached_goal(session.variant, result.word):
            await self._finish(session, SessionStatus.COMPLETED, END_OPPONENT_GOAL)
            lines.append(f"I reached the goal first! Final score: {session.score}")
        return result.word

    async def _expire(self, session: Session):
        logger.info("[%s] Session expired after idle timeout", session.conversation_id)
        await self._finish(session, SessionStatus.EXPIRED, END_IDLE)

    async def _finish(self, session: Session, status: SessionStatus, reason: str):
        reducer.finish(session, status, reason)
        logger.info(
            "[%s] Game %s (%s), score %d", session.conversation_id, status.value, reason, session.score,
        )
        await self._save(session)
        if self.store is not None:
            # Stored terminal sessions are reloaded on demand
            self.registry.remove(session.conversation_id)

    async def _save(self, session: Session):
        if self.store is not None:
            await self.store.save(session)
