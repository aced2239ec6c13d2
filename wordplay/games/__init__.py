"""
Games module - The word game variants.

- variants: the closed set of variants and their configuration
- rules: player-facing rules text
- setup: opening word selection
"""

from .variants import (
    VariantKind,
    VariantConfig,
    GameVariant,
    RANDOM_VARIANT,
    create_variant,
    parse_variant_kind,
)
from .rules import rules_text, overview_text
from .setup import choose_seed, fits_variant

__all__ = [
    "VariantKind",
    "VariantConfig",
    "GameVariant",
    "RANDOM_VARIANT",
    "create_variant",
    "parse_variant_kind",
    "rules_text",
    "overview_text",
    "choose_seed",
    "fits_variant",
]
