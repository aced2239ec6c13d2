"""
Player-facing rules text for each variant.
"""

from __future__ import annotations

from .variants import GameVariant, VariantKind

_FOOTER = "Use /hint for a hint, /skip to skip your turn, or /stop to end the game"

SUMMARIES: dict[VariantKind, str] = {
    VariantKind.WORD_CHAIN: "Link words where each starts with the last letter of the previous word",
    VariantKind.WORD_LADDER: "Start with short words and increase length each turn",
    VariantKind.SCRAMBLE: "Like Word Chain, but with required letters from the previous word",
    VariantKind.SYNONYM_STRING: (
        "Chain words with similar meanings that start with the last letter of the previous word"
    ),
    VariantKind.ALPHABET_SPRINT: "Provide words that all start with the same letter",
    VariantKind.FORBIDDEN_LETTERS: "Word chain while avoiding certain letters",
}


def _word_chain(variant: GameVariant) -> list[str]:
    return [
        "I'll start with a word",
        "You must respond with a word that starts with the last letter of my word",
        "We take turns continuing the chain",
        "No repeating words",
    ]


def _word_ladder(variant: GameVariant) -> list[str]:
    cfg = variant.config
    return [
        f"We start with a short word ({cfg.start_length} letters)",
        "Each new word must be exactly one letter longer than the previous word",
        f"The goal is to reach a word of length {cfg.max_length}",
        "No repeating words",
    ]


def _scramble(variant: GameVariant) -> list[str]:
    cfg = variant.config
    return [
        "Each word must start with the last letter of the previous word",
        f"Each word must contain at least {cfg.start_level} letter(s) from the previous word",
        f"Every {cfg.level_up_every} words the requirement grows, up to {cfg.max_level} letters",
        "No repeating words",
    ]


def _synonym_string(variant: GameVariant) -> list[str]:
    return [
        "Each word must start with the last letter of the previous word",
        "Each word must be similar in meaning to the previous word",
        "No repeating words",
    ]


def _alphabet_sprint(variant: GameVariant) -> list[str]:
    return [
        "We'll focus on words starting with the same letter",
        "Take turns giving words that start with that letter",
        "Every third word in a row earns a bonus point",
        "No repeating words",
    ]


def _forbidden_letters(variant: GameVariant) -> list[str]:
    letters = ", ".join(sorted(variant.config.forbidden_letters)) or "(drawn when the game starts)"
    return [
        "Each word must start with the last letter of the previous word",
        f"No words may contain these forbidden letters: {letters}",
        "No repeating words",
    ]


_RULES = {
    VariantKind.WORD_CHAIN: _word_chain,
    VariantKind.WORD_LADDER: _word_ladder,
    VariantKind.SCRAMBLE: _scramble,
    VariantKind.SYNONYM_STRING: _synonym_string,
    VariantKind.ALPHABET_SPRINT: _alphabet_sprint,
    VariantKind.FORBIDDEN_LETTERS: _forbidden_letters,
}


def rules_text(variant: GameVariant) -> str:
    """Numbered rules for one variant, e.g. for a /rules command."""
    lines = _RULES[variant.kind](variant) + [_FOOTER]
    numbered = "\n".join(f"{i}. {line}" for i, line in enumerate(lines, start=1))
    return f"{variant.display_name} Rules:\n{numbered}"


def overview_text() -> str:
    """All games in one message, shown before a game is chosen."""
    lines = [f"{kind.display_name}: {SUMMARIES[kind]}" for kind in VariantKind]
    return (
        "Word Games:\n\n"
        + "\n".join(lines)
        + "\n\nUse /start to select a game, then use /rules in-game for specific rules."
    )
