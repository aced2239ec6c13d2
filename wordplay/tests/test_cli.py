"""
Tests for the terminal game loop.
"""

import pytest

from ..cli import CONVERSATION_ID, _play
from ..engine_core.state import SessionStatus
from .conftest import run


@pytest.fixture
def typed(monkeypatch):
    """Feed scripted lines to input(); EOF once they run out."""
    def feed(*lines):
        remaining = list(lines)

        def fake_input(prompt=""):
            if not remaining:
                raise EOFError
            return remaining.pop(0)

        monkeypatch.setattr("builtins.input", fake_input)
    return feed


class TestPlayLoop:

    def test_game_until_stop(self, seeded_manager, typed, capsys):
        typed("elephant", "tiger", "/score", "/rules", "/define apple", "/stop")
        run(_play(seeded_manager, "word_chain"))

        out = capsys.readouterr().out
        assert "I'll start with: apple" in out
        assert "'elephant' accepted! +1 (score: 1)" in out
        assert "'tiger' accepted!" in out
        assert "Word Chain Rules:" in out
        assert "(noun): The round fruit" in out
        assert "Game over! Final score: 2" in out
        assert seeded_manager.get_session(CONVERSATION_ID).status == SessionStatus.COMPLETED

    def test_rejections_and_unknown_commands(self, seeded_manager, typed, capsys):
        typed("tiger", "/dance", "")
        run(_play(seeded_manager, "word_chain"))

        out = capsys.readouterr().out
        assert "Your word must start with 'e'" in out
        assert "Commands: /hint" in out
        # EOF stops the game
        assert seeded_manager.get_session(CONVERSATION_ID).is_terminal

    def test_unknown_variant(self, manager, typed, capsys):
        typed()
        run(_play(manager, "chess"))
        assert "Error: Unknown game variant" in capsys.readouterr().out

    def test_outage_keeps_playing(self, seeded_manager, dictionary, monkeypatch, capsys):
        calls = {"n": 0}

        def lines(prompt=""):
            calls["n"] += 1
            if calls["n"] == 1:
                dictionary.fail_always = True
                return "elephant"
            if calls["n"] == 2:
                dictionary.fail_always = False
                return "elephant"
            raise EOFError

        monkeypatch.setattr("builtins.input", lines)
        run(_play(seeded_manager, "word_chain"))

        out = capsys.readouterr().out
        assert "(try again)" in out
        assert "'elephant' accepted!" in out
