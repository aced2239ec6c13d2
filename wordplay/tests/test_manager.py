"""
Tests for the SessionManager state machine.

Tests:
- Session lifecycle (start, variant selection, stop)
- Turns, hints, skips
- Win conditions and opponent replies
- Idle expiry
- Persistence at boundaries
"""

import random

import pytest

from ..engine_core.intent import Intent, OutcomeKind, RejectReason
from ..engine_core.state import Session, SessionStatus
from ..errors import (
    InvalidIntentForState,
    ServiceUnavailable,
    SessionCompleted,
    SessionExpired,
    SessionNotFound,
    UnknownVariant,
)
from ..games.variants import VariantKind
from ..session import InMemorySessionStore, JsonFileSessionStore, SessionManager
from .conftest import FakeDictionary, FakeEmbeddings, run


CID = "chat-1"


async def begin(manager, variant="word_chain", cid=CID):
    await manager.start_session(cid)
    return await manager.select_variant(cid, variant)


class TestLifecycle:
    """start -> select variant -> play -> stop."""

    def test_start_awaits_variant(self, manager):
        outcome = run(manager.start_session(CID))
        assert outcome.kind == OutcomeKind.STARTED
        assert outcome.status == SessionStatus.AWAITING_VARIANT_SELECTION
        assert "Word Chain" in outcome.message

    def test_start_twice_returns_same_session(self, manager):
        async def scenario():
            await manager.start_session(CID)
            first = manager.get_session(CID)
            await manager.start_session(CID)
            return first, manager.get_session(CID)

        first, second = run(scenario())
        assert first is second

    def test_select_variant_activates(self, manager):
        outcome = run(begin(manager))
        assert outcome.kind == OutcomeKind.VARIANT_SELECTED
        assert outcome.status == SessionStatus.ACTIVE
        assert outcome.variant == "word_chain"
        assert "Word Chain Rules" in outcome.message

    def test_random_variant(self, manager):
        outcome = run(begin(manager, "random"))
        assert outcome.variant in {k.value for k in VariantKind}

    def test_unknown_variant(self, manager):
        async def scenario():
            await manager.start_session(CID)
            await manager.select_variant(CID, "crossword")

        with pytest.raises(UnknownVariant):
            run(scenario())
        assert manager.get_session(CID).status == SessionStatus.AWAITING_VARIANT_SELECTION

    def test_start_during_active_game(self, manager):
        async def scenario():
            await begin(manager)
            await manager.start_session(CID)

        with pytest.raises(InvalidIntentForState) as exc_info:
            run(scenario())
        assert "stop this game first" in exc_info.value.message

    def test_submit_before_variant(self, manager):
        async def scenario():
            await manager.start_session(CID)
            await manager.submit_word(CID, "apple")

        with pytest.raises(InvalidIntentForState):
            run(scenario())

    def test_select_variant_twice(self, manager):
        async def scenario():
            await begin(manager)
            await manager.select_variant(CID, "word_ladder")

        with pytest.raises(InvalidIntentForState):
            run(scenario())

    def test_unknown_conversation(self, manager):
        with pytest.raises(SessionNotFound):
            run(manager.submit_word("nobody", "apple"))
        with pytest.raises(SessionNotFound):
            run(manager.status("nobody"))

    def test_stop_empty_history_abandons(self, manager):
        """Stopping before any word is played abandons the game."""
        async def scenario():
            await begin(manager)
            return await manager.stop(CID)

        outcome = run(scenario())
        assert outcome.status == SessionStatus.ABANDONED
        assert outcome.end_reason == "stopped"

    def test_stop_after_seed_word_abandons(self, seeded_manager):
        """The engine's opening word is not a player turn."""
        async def scenario():
            await begin(seeded_manager)
            return await seeded_manager.stop(CID)

        outcome = run(scenario())
        assert outcome.history == ["apple"]
        assert outcome.status == SessionStatus.ABANDONED

    def test_stop_after_player_word_completes(self, seeded_manager):
        async def scenario():
            await begin(seeded_manager)
            await seeded_manager.submit_word(CID, "elephant")
            return await seeded_manager.stop(CID)

        assert run(scenario()).status == SessionStatus.COMPLETED

    def test_stop_awaiting_abandons(self, manager):
        async def scenario():
            await manager.start_session(CID)
            return await manager.stop(CID)

        assert run(scenario()).status == SessionStatus.ABANDONED

    def test_stop_after_play_completes(self, manager):
        async def scenario():
            await begin(manager)
            await manager.submit_word(CID, "apple")
            return await manager.stop(CID)

        outcome = run(scenario())
        assert outcome.status == SessionStatus.COMPLETED
        assert outcome.history == ["apple"]

    def test_intents_after_stop(self, manager):
        async def scenario():
            await begin(manager)
            await manager.stop(CID)
            with pytest.raises(SessionCompleted):
                await manager.submit_word(CID, "apple")
            with pytest.raises(SessionCompleted):
                await manager.stop(CID)
            return await manager.status(CID)

        assert run(scenario()).status == SessionStatus.ABANDONED

    def test_start_replaces_finished_session(self, manager):
        async def scenario():
            await begin(manager)
            await manager.stop(CID)
            return await manager.start_session(CID)

        assert run(scenario()).status == SessionStatus.AWAITING_VARIANT_SELECTION

    def test_handle_dispatches_intents(self, manager):
        async def scenario():
            await manager.handle(Intent.start(CID))
            await manager.handle(Intent.select_variant(CID, "word_chain"))
            accepted = await manager.handle(Intent.submit_word(CID, "apple"))
            status = await manager.handle(Intent.status(CID))
            return accepted, status

        accepted, status = run(scenario())
        assert accepted.accepted
        assert status.kind == OutcomeKind.STATUS
        assert status.history == ["apple"]


class TestSeeding:
    """The engine opens the game when it can."""

    def test_seed_word_played(self, seeded_manager):
        outcome = run(begin(seeded_manager))
        assert outcome.opponent_word == "apple"
        session = seeded_manager.get_session(CID)
        assert session.history == ["apple"]
        assert session.opponent_words == 1
        assert session.score == 0
        assert session.constraints.required_start_letter == "e"

    def test_ladder_seed_has_start_length(self, dictionary, embeddings, settings, clock):
        ladder = settings.with_overrides(seed_words=("apple", "cat", "elephant"))
        manager = SessionManager(dictionary, embeddings, settings=ladder, clock=clock, rng=random.Random(1))
        run(begin(manager, "word_ladder"))
        assert manager.get_session(CID).history == ["cat"]

    def test_unknown_seed_words_start_unseeded(self, embeddings, settings, clock, rng):
        dictionary = FakeDictionary(words={"elephant"})
        unseeded = settings.with_overrides(seed_words=("qwzx", "xqzw"))
        manager = SessionManager(dictionary, embeddings, settings=unseeded, clock=clock, rng=rng)
        outcome = run(begin(manager))
        assert outcome.status == SessionStatus.ACTIVE
        assert outcome.history == []

    def test_dictionary_outage_while_seeding(self, embeddings, settings, clock, rng):
        dictionary = FakeDictionary(fail_always=True)
        seeded = settings.with_overrides(seed_words=("apple",))
        manager = SessionManager(dictionary, embeddings, settings=seeded, clock=clock, rng=rng)
        with pytest.raises(ServiceUnavailable):
            run(begin(manager))
        session = manager.get_session(CID)
        assert session.status == SessionStatus.AWAITING_VARIANT_SELECTION
        assert session.variant is None


class TestTurns:
    """Accepted and rejected words."""

    def test_accept_then_repeat(self, seeded_manager):
        async def scenario():
            await begin(seeded_manager)
            accepted = await seeded_manager.submit_word(CID, "elephant")
            repeated = await seeded_manager.submit_word(CID, "elephant")
            return accepted, repeated

        accepted, repeated = run(scenario())
        assert accepted.accepted
        assert accepted.history == ["apple", "elephant"]
        assert accepted.score == 1
        assert accepted.score_delta == 1

        assert repeated.rejected
        assert repeated.reason == RejectReason.ALREADY_USED
        assert repeated.history == ["apple", "elephant"]
        assert repeated.score == 1

    def test_rejection_changes_nothing(self, seeded_manager):
        async def scenario():
            await begin(seeded_manager)
            before = seeded_manager.get_session(CID).to_dict()
            outcome = await seeded_manager.submit_word(CID, "tiger")
            after = seeded_manager.get_session(CID).to_dict()
            return before, outcome, after

        before, outcome, after = run(scenario())
        assert outcome.reason == RejectReason.WRONG_START_LETTER
        before.pop("last_activity")
        after.pop("last_activity")
        assert before == after

    def test_outage_leaves_session_unchanged(self, embeddings, settings, clock, rng):
        dictionary = FakeDictionary()
        manager = SessionManager(dictionary, embeddings, settings=settings, clock=clock, rng=rng)

        async def scenario():
            await begin(manager)
            dictionary.fail_always = True
            with pytest.raises(ServiceUnavailable):
                await manager.submit_word(CID, "apple")

        run(scenario())
        session = manager.get_session(CID)
        assert session.history == []
        assert session.status == SessionStatus.ACTIVE

    def test_invariants_hold_through_a_game(self, seeded_manager):
        async def scenario():
            await begin(seeded_manager)
            session = seeded_manager.get_session(CID)
            for word in ["elephant", "tiger", "rabbit", "tiger", "trees", "snake"]:
                await seeded_manager.submit_word(CID, word)
                assert session.check_invariants() == []
            return session

        session = run(scenario())
        assert session.history == ["apple", "elephant", "tiger", "rabbit", "trees", "snake"]
        assert session.turn_count == 4

    def test_ladder_goal_completes(self, dictionary, embeddings, settings, clock, rng):
        ladder = settings.with_overrides(seed_words=("cat",), ladder_max_length=5)
        manager = SessionManager(dictionary, embeddings, settings=ladder, clock=clock, rng=rng)

        async def scenario():
            await begin(manager, "word_ladder")
            await manager.submit_word(CID, "tree")
            return await manager.submit_word(CID, "trees")

        outcome = run(scenario())
        assert outcome.accepted
        assert outcome.status == SessionStatus.COMPLETED
        assert outcome.end_reason == "goal_reached"
        assert outcome.score == 2 + 3


class TestHints:

    @pytest.fixture
    def embeddings(self):
        return FakeEmbeddings({"apple": [("egg", 0.8)]})

    def test_hint_counts_without_playing(self, seeded_manager):
        async def scenario():
            await begin(seeded_manager)
            return await seeded_manager.request_hint(CID)

        outcome = run(scenario())
        assert outcome.kind == OutcomeKind.HINT
        assert outcome.hint == "egg"
        assert outcome.hint_count == 1
        assert outcome.history == ["apple"]

    def test_no_hint_still_counts(self, manager):
        async def scenario():
            await begin(manager)
            return await manager.request_hint(CID)

        outcome = run(scenario())
        assert outcome.kind == OutcomeKind.NO_HINT
        assert outcome.hint_count == 1

    def test_max_hints(self, dictionary, embeddings, settings, clock, rng):
        limited = settings.with_overrides(seed_words=("apple",), max_hints=1)
        manager = SessionManager(dictionary, embeddings, settings=limited, clock=clock, rng=rng)

        async def scenario():
            await begin(manager)
            await manager.request_hint(CID)
            return await manager.request_hint(CID)

        outcome = run(scenario())
        assert outcome.kind == OutcomeKind.NO_HINT
        assert "No hints left" in outcome.message
        assert outcome.hint_count == 1
        assert len(embeddings.calls) == 1

    def test_hint_outage_not_counted(self, dictionary, settings, clock, rng):
        embeddings = FakeEmbeddings(fail_always=True)
        seeded = settings.with_overrides(seed_words=("apple",))
        manager = SessionManager(dictionary, embeddings, settings=seeded, clock=clock, rng=rng)

        async def scenario():
            await begin(manager)
            with pytest.raises(ServiceUnavailable):
                await manager.request_hint(CID)

        run(scenario())
        assert manager.get_session(CID).hint_count == 0


class TestSkips:

    def test_skip_counts_and_resets_streak(self, seeded_manager):
        async def scenario():
            await begin(seeded_manager)
            await seeded_manager.submit_word(CID, "elephant")
            return await seeded_manager.skip(CID)

        outcome = run(scenario())
        assert outcome.kind == OutcomeKind.SKIPPED
        assert outcome.skip_count == 1
        assert outcome.turn_count == 2
        assert seeded_manager.get_session(CID).streak == 0
        assert outcome.score == 1

    def test_skip_penalty_never_below_zero(self, dictionary, embeddings, settings, clock, rng):
        strict = settings.with_overrides(skip_penalty=3)
        manager = SessionManager(dictionary, embeddings, settings=strict, clock=clock, rng=rng)

        async def scenario():
            await begin(manager)
            return await manager.skip(CID)

        assert run(scenario()).score == 0

    def test_too_many_skips_ends_game(self, dictionary, embeddings, settings, clock, rng):
        strict = settings.with_overrides(max_skips=1)
        manager = SessionManager(dictionary, embeddings, settings=strict, clock=clock, rng=rng)

        async def scenario():
            await begin(manager)
            first = await manager.skip(CID)
            second = await manager.skip(CID)
            return first, second

        first, second = run(scenario())
        assert first.status == SessionStatus.ACTIVE
        assert second.status == SessionStatus.ABANDONED
        assert second.end_reason == "too_many_skips"

    def test_skipping_past_the_seed_word_abandons(self, dictionary, embeddings, settings, clock, rng):
        strict = settings.with_overrides(seed_words=("apple",), max_skips=0)
        manager = SessionManager(dictionary, embeddings, settings=strict, clock=clock, rng=rng)

        async def scenario():
            await begin(manager)
            return await manager.skip(CID)

        outcome = run(scenario())
        assert outcome.history == ["apple"]
        assert outcome.status == SessionStatus.ABANDONED


class TestOpponent:
    """Engine replies after each player word."""

    @pytest.fixture
    def settings(self, settings):
        return settings.with_overrides(seed_words=("apple",), opponent_replies=True)

    @pytest.fixture
    def embeddings(self):
        return FakeEmbeddings({
            "elephant": [("tiger", 0.8)],
            "apple": [("egg", 0.8)],
        })

    def test_opponent_replies(self, manager):
        async def scenario():
            await begin(manager)
            return await manager.submit_word(CID, "elephant")

        outcome = run(scenario())
        assert outcome.opponent_word == "tiger"
        assert outcome.history == ["apple", "elephant", "tiger"]
        assert outcome.score == 1
        session = manager.get_session(CID)
        assert session.opponent_words == 2
        assert session.constraints.required_start_letter == "r"
        assert session.check_invariants() == []

    def test_opponent_stumped(self, manager):
        async def scenario():
            await begin(manager)
            await manager.submit_word(CID, "elephant")
            return await manager.submit_word(CID, "rabbit")

        outcome = run(scenario())
        assert outcome.accepted
        assert outcome.status == SessionStatus.COMPLETED
        assert outcome.end_reason == "opponent_stumped"

    def test_opponent_plays_on_skip(self, manager):
        async def scenario():
            await begin(manager)
            return await manager.skip(CID)

        outcome = run(scenario())
        assert outcome.opponent_word == "egg"
        assert outcome.history == ["apple", "egg"]

    def test_opponent_outage_keeps_word(self, dictionary, settings, clock, rng):
        embeddings = FakeEmbeddings(fail_always=True)
        manager = SessionManager(dictionary, embeddings, settings=settings, clock=clock, rng=rng)

        async def scenario():
            await begin(manager)
            return await manager.submit_word(CID, "elephant")

        outcome = run(scenario())
        assert outcome.accepted
        assert outcome.opponent_word is None
        assert outcome.status == SessionStatus.ACTIVE
        assert outcome.history == ["apple", "elephant"]


class TestIdleExpiry:

    def test_overdue_intent_expires(self, seeded_manager, clock, settings):
        async def scenario():
            await begin(seeded_manager)
            clock.advance(settings.idle_timeout + 1)
            with pytest.raises(SessionExpired):
                await seeded_manager.submit_word(CID, "elephant")
            return await seeded_manager.status(CID)

        outcome = run(scenario())
        assert outcome.status == SessionStatus.EXPIRED
        assert outcome.end_reason == "idle_timeout"
        assert outcome.history == ["apple"]

    def test_sweep_expires_only_idle_active(self, manager, clock, settings):
        async def scenario():
            await begin(manager, cid="idle")
            await manager.start_session("waiting")
            clock.advance(settings.idle_timeout - 10)
            await begin(manager, cid="busy")
            clock.advance(20)
            return await manager.expire_idle()

        assert run(scenario()) == ["idle"]
        assert manager.get_session("idle").status == SessionStatus.EXPIRED
        assert manager.get_session("busy").status == SessionStatus.ACTIVE
        assert manager.get_session("waiting").status == SessionStatus.AWAITING_VARIANT_SELECTION

    def test_activity_postpones_expiry(self, seeded_manager, clock, settings):
        async def scenario():
            await begin(seeded_manager)
            clock.advance(settings.idle_timeout - 1)
            await seeded_manager.submit_word(CID, "elephant")
            clock.advance(settings.idle_timeout - 1)
            return await seeded_manager.expire_idle()

        assert run(scenario()) == []


class TestPersistence:
    """Sessions are saved at boundaries and reloaded on demand."""

    def test_reload_from_store(self, dictionary, embeddings, settings, clock, rng):
        store = InMemorySessionStore()
        seeded = settings.with_overrides(seed_words=("apple",))
        first = SessionManager(dictionary, embeddings, settings=seeded, store=store, clock=clock, rng=rng)
        run(begin(first))
        assert CID in store

        second = SessionManager(dictionary, embeddings, settings=seeded, store=store, clock=clock, rng=rng)
        outcome = run(second.submit_word(CID, "elephant"))
        assert outcome.accepted
        assert outcome.history == ["apple", "elephant"]

    def test_mid_game_turns_not_saved(self, dictionary, embeddings, settings, clock, rng):
        store = InMemorySessionStore()
        seeded = settings.with_overrides(seed_words=("apple",))
        manager = SessionManager(dictionary, embeddings, settings=seeded, store=store, clock=clock, rng=rng)

        async def scenario():
            await begin(manager)
            await manager.submit_word(CID, "elephant")
            mid = await store.load(CID)
            await manager.stop(CID)
            end = await store.load(CID)
            return mid, end

        mid, end = run(scenario())
        assert mid.history == ["apple"]
        assert end.history == ["apple", "elephant"]
        assert end.status == SessionStatus.COMPLETED

    def test_finished_sessions_leave_memory(self, dictionary, embeddings, settings, clock, rng):
        store = InMemorySessionStore()
        seeded = settings.with_overrides(seed_words=("apple",))
        manager = SessionManager(dictionary, embeddings, settings=seeded, store=store, clock=clock, rng=rng)

        async def scenario():
            await begin(manager)
            await manager.submit_word(CID, "elephant")
            await manager.stop(CID)
            return await manager.status(CID)

        outcome = run(scenario())
        assert outcome.status == SessionStatus.COMPLETED
        assert outcome.history == ["apple", "elephant"]
        assert manager.get_session(CID) is None
        assert len(manager.registry) == 0
        assert manager.registry.lock_count() == 0

    def test_restart_after_eviction(self, dictionary, embeddings, settings, clock, rng):
        store = InMemorySessionStore()
        manager = SessionManager(dictionary, embeddings, settings=settings, store=store, clock=clock, rng=rng)

        async def scenario():
            await begin(manager)
            await manager.stop(CID)
            with pytest.raises(SessionCompleted):
                await manager.submit_word(CID, "apple")
            return await manager.start_session(CID)

        outcome = run(scenario())
        assert outcome.status == SessionStatus.AWAITING_VARIANT_SELECTION
        assert manager.get_session(CID) is not None

    def test_json_store_round_trip(self, tmp_path, seeded_manager):
        run(begin(seeded_manager))
        session = seeded_manager.get_session(CID)
        run(seeded_manager.submit_word(CID, "elephant"))

        store = JsonFileSessionStore(tmp_path)
        run(store.save(session))
        loaded = run(store.load(CID))

        assert loaded.history == session.history
        assert loaded.constraints == session.constraints
        assert loaded.variant == session.variant
        assert loaded.check_invariants() == []
        assert len(store.list_stored()) == 1

    def test_json_store_missing_and_corrupt(self, tmp_path):
        store = JsonFileSessionStore(tmp_path)
        assert run(store.load("missing")) is None

        run(store.save(Session(conversation_id="broken", created_at=1.0)))
        path = tmp_path / f"{store.list_stored()[0]}.json"
        path.write_text("{not json")
        assert run(store.load("broken")) is None
        assert not path.exists()
