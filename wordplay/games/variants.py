"""
Game Variants - The closed set of rule-sets the engine can play.

A GameVariant is a tag (VariantKind) plus the configuration chosen when the
game started (forbidden letters, ladder bounds, scramble difficulty, skip
rules). The engine components dispatch on the tag:

- engine_core.constraints  how the constraint state evolves per word
- engine_core.validator    which constraint a new word must satisfy
- engine_core.scoring      how many points an accepted word earns

Variants are immutable and serializable, so a stored session can be
rebuilt from (variant, history) alone.
"""

from __future__ import annotations
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, TYPE_CHECKING
import random
import string

if TYPE_CHECKING:
    from ..config import EngineSettings


class VariantKind(Enum):
    """The six word games."""
    WORD_CHAIN = "word_chain"
    WORD_LADDER = "word_ladder"
    SCRAMBLE = "scramble"
    SYNONYM_STRING = "synonym_string"
    ALPHABET_SPRINT = "alphabet_sprint"
    FORBIDDEN_LETTERS = "forbidden_letters"

    @property
    def display_name(self) -> str:
        return DISPLAY_NAMES[self]


DISPLAY_NAMES: dict[VariantKind, str] = {
    VariantKind.WORD_CHAIN: "Word Chain",
    VariantKind.WORD_LADDER: "Word Length Ladder",
    VariantKind.SCRAMBLE: "Last Letter Scramble",
    VariantKind.SYNONYM_STRING: "Synonym String",
    VariantKind.ALPHABET_SPRINT: "Alphabet Sprint",
    VariantKind.FORBIDDEN_LETTERS: "Forbidden Letters",
}

# Variants whose next word must start with the previous word's last letter
CHAINED_KINDS = frozenset({
    VariantKind.WORD_CHAIN,
    VariantKind.SYNONYM_STRING,
    VariantKind.SCRAMBLE,
    VariantKind.FORBIDDEN_LETTERS,
})

RANDOM_VARIANT = "random"


@dataclass(frozen=True)
class VariantConfig:
    """
    Per-game configuration, fixed when the variant is selected.

    Fields that do not apply to a variant keep their defaults.
    """
    forbidden_letters: frozenset[str] = field(default_factory=frozenset)

    # Word Ladder
    start_length: int = 3
    max_length: int = 8

    # Scramble difficulty: shared letters required with the previous word
    start_level: int = 2
    level_up_every: int = 4
    max_level: int = 4

    # Skips
    skip_penalty: int = 0
    max_skips: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["forbidden_letters"] = sorted(self.forbidden_letters)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VariantConfig:
        data = dict(data)
        data["forbidden_letters"] = frozenset(data.get("forbidden_letters") or ())
        return cls(**data)


@dataclass(frozen=True)
class GameVariant:
    """A variant tag with its configuration."""
    kind: VariantKind
    config: VariantConfig = field(default_factory=VariantConfig)

    @property
    def name(self) -> str:
        return self.kind.value

    @property
    def display_name(self) -> str:
        return self.kind.display_name

    @property
    def is_chained(self) -> bool:
        return self.kind in CHAINED_KINDS

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "config": self.config.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameVariant:
        return cls(
            kind=VariantKind(data["kind"]),
            config=VariantConfig.from_dict(data.get("config") or {}),
        )


def parse_variant_kind(name: str, rng: random.Random | None = None) -> VariantKind:
    """
    Resolve a variant name ("word_chain", "Word Chain", "random").

    Raises ValueError for unknown names.
    """
    key = (name or "").strip().lower().replace("-", "_").replace(" ", "_")
    if key == RANDOM_VARIANT:
        return (rng or random).choice(list(VariantKind))
    for kind in VariantKind:
        if key == kind.value or key == kind.display_name.lower().replace(" ", "_"):
            return kind
    # Legacy chat-button name for Scramble
    if key == "last_letter":
        return VariantKind.SCRAMBLE
    raise ValueError(f"Unknown game variant: {name!r}")


def create_variant(
    kind: VariantKind,
    settings: EngineSettings,
    rng: random.Random | None = None,
) -> GameVariant:
    """
    Build a configured variant for a new game.

    Forbidden Letters draws its letters here, so they stay fixed for the
    whole game.
    """
    rng = rng or random.Random()
    forbidden: frozenset[str] = frozenset()
    if kind == VariantKind.FORBIDDEN_LETTERS:
        count = max(1, min(settings.forbidden_letter_count, 25))
        forbidden = frozenset(rng.sample(string.ascii_lowercase, count))

    config = VariantConfig(
        forbidden_letters=forbidden,
        start_length=settings.ladder_start_length,
        max_length=settings.ladder_max_length,
        start_level=settings.scramble_start_level,
        level_up_every=max(1, settings.scramble_level_up_every),
        max_level=settings.scramble_max_level,
        skip_penalty=settings.skip_penalty,
        max_skips=settings.max_skips,
    )
    return GameVariant(kind=kind, config=config)
