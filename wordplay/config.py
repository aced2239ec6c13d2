"""
Engine configuration.

All tunable constants live in EngineSettings. Defaults are the documented
game constants; every field can be overridden with a WORDPLAY_* environment
variable (a .env file in the working directory is loaded first).

    settings = EngineSettings.from_env()
    manager = SessionManager(dictionary, embeddings, settings=settings)
"""

from __future__ import annotations
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any
import logging
import os
import sys

from dotenv import load_dotenv


ENV_PREFIX = "WORDPLAY_"

# Common words the engine opens games with. Kept short and unambiguous so
# any reasonable dictionary backend recognises them.
DEFAULT_SEED_WORDS: tuple[str, ...] = (
    "apple", "river", "garden", "yellow", "window", "planet", "orange",
    "silver", "forest", "candle", "market", "bridge", "pencil", "winter",
    "summer", "rabbit", "castle", "dragon", "island", "mirror", "ocean",
    "tiger", "music", "cloud", "stone", "light", "earth", "horse", "bread",
    "chair", "table", "water", "dream", "heart", "night", "storm",
    "cat", "dog", "sun", "sea", "owl", "ant", "bee", "egg", "ink", "oak",
    "tree", "bird", "fish", "moon", "star", "rain", "wind", "fire", "book",
    "go", "at", "in", "up", "on",
)


@dataclass(frozen=True)
class EngineSettings:
    """
    Game and dependency constants.

    Timeouts and backoff are in seconds.
    """
    # External lookups
    lookup_timeout: float = 3.0
    lookup_retries: int = 3  # attempts for acceptance-critical lookups
    retry_backoff: float = 0.2
    retry_backoff_max: float = 2.0

    # Hints and similarity
    hint_neighbors: int = 10
    synonym_neighbors: int = 50
    synonym_threshold: float = 0.6
    max_hints: int | None = None

    # Session lifecycle
    idle_timeout: float = 900.0
    sweep_interval: float = 60.0

    # Seeding
    seed_attempts: int = 3
    seed_words: tuple[str, ...] = DEFAULT_SEED_WORDS

    # Opponent plays a word after each accepted player word
    opponent_replies: bool = False

    # Variant defaults
    forbidden_letter_count: int = 1
    ladder_start_length: int = 3
    ladder_max_length: int = 8
    scramble_start_level: int = 2
    scramble_level_up_every: int = 4
    scramble_max_level: int = 4
    skip_penalty: int = 0
    max_skips: int | None = None

    def with_overrides(self, **overrides: Any) -> EngineSettings:
        """Copy with some fields replaced."""
        return replace(self, **overrides)

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> EngineSettings:
        """
        Build settings from WORDPLAY_* environment variables.

        WORDPLAY_LOOKUP_TIMEOUT=5 overrides lookup_timeout, and so on.
        WORDPLAY_SEED_WORDS is a comma separated list.
        """
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()

        overrides: dict[str, Any] = {}
        defaults = cls()
        for f in fields(cls):
            raw = os.getenv(ENV_PREFIX + f.name.upper())
            if raw is None or raw.strip() == "":
                continue
            overrides[f.name] = _parse_value(f.name, raw.strip(), getattr(defaults, f.name))
        return cls(**overrides)


def _parse_value(name: str, raw: str, default: Any) -> Any:
    """Coerce an environment string to the type of the field default."""
    if name == "seed_words":
        return tuple(w.strip().lower() for w in raw.split(",") if w.strip())
    if name in {"max_hints", "max_skips"}:
        if raw.lower() in {"none", "off", ""}:
            return None
        return int(raw)
    if isinstance(default, bool):
        return raw.lower() in {"1", "true", "yes", "on"}
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    return raw


def configure_logging(level: int = logging.INFO, log_file: str | None = None) -> logging.Logger:
    """
    Attach console (and optional file) handlers to the package logger.

    Safe to call more than once; handlers are only added the first time.
    """
    logger = logging.getLogger("wordplay")
    logger.setLevel(level)

    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    ))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(file_handler)

    return logger
