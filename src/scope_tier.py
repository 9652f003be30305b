"""
Affix Engine - Scope & Tier Resolver

Scope decides whether a modifier applies to the item's own base values
(Local) or to character-wide totals (Global):

    Adds (5-7) Physical Damage           → Local   (added damage)
    (20-30)% increased Physical Damage   → Local
    (40-54)% increased Lightning Damage  → Global
    (5-7)% increased Attack Speed        → Local   (weapon stat)
    +(15-25) to Strength                 → Global

Tier comes from exactly one of three strategies, picked by what the caller
supplies (explicit tier > item level > magnitude).  The magnitude strategy
is an approximation from the rolled values; treat it as a placeholder
until the row carries a real tier or level.
"""

import logging
from typing import Optional, Union

import numpy as np

from config import (
    LOCAL_STAT_KEYS,
    TIER_BEST, TIER_WORST, DEFAULT_TIER,
    ITEM_LEVEL_TIER_BOUNDS, MAGNITUDE_TIER_BOUNDS,
)
from modifier_types import (
    AnyRange, DamageType, ModifierKind, ModifierScope,
    TierResolution, TierStrategy,
)

logger = logging.getLogger(__name__)

_LEVEL_BOUNDS = np.asarray(ITEM_LEVEL_TIER_BOUNDS, dtype=float)
_MAGNITUDE_BOUNDS = np.asarray(MAGNITUDE_TIER_BOUNDS, dtype=float)

_ADDITIVE_UP = (ModifierKind.INCREASED, ModifierKind.MORE)


# ─── Scope ───────────────────────────────────────────

def resolve_scope(kind: ModifierKind, damage_type: DamageType, stat_key: str) -> ModifierScope:
    """First matching rule wins; Global when nothing applies."""
    if kind is ModifierKind.FLAT and stat_key.startswith("added"):
        return ModifierScope.LOCAL
    if kind in _ADDITIVE_UP:
        if damage_type is DamageType.PHYSICAL:
            return ModifierScope.LOCAL
        if damage_type.is_elemental_or_chaos:
            return ModifierScope.GLOBAL
    if stat_key in LOCAL_STAT_KEYS or "weapon" in stat_key.lower():
        return ModifierScope.LOCAL
    return ModifierScope.GLOBAL


# ─── Tier Strategies ─────────────────────────────────

def _bucket(bounds: np.ndarray, value: float) -> int:
    """Index of the first bound >= value, mapped onto Tier 9 … Tier 1."""
    idx = int(np.searchsorted(bounds, value, side="left"))
    return TIER_WORST - idx


def tier_from_item_level(item_level: float) -> int:
    """Required character level → tier (≤5 → T9 … >65 → T1)."""
    return _bucket(_LEVEL_BOUNDS, item_level)


def tier_from_magnitude(value_range: AnyRange) -> int:
    """Average rolled value → tier (≤10 → T9 … >55 → T1).  Approximate."""
    return _bucket(_MAGNITUDE_BOUNDS, abs(value_range.average))


def _coerce_int(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def resolve_tier(explicit_tier: Union[int, str, None] = None,
                 item_level: Union[int, str, None] = None,
                 value_range: Optional[AnyRange] = None) -> TierResolution:
    """Pick a tier from whichever input the caller supplied.

    The strategies are never blended: an explicit tier column wins over an
    item level, which wins over the magnitude estimate.
    """
    if not _blank(explicit_tier):
        tier = _coerce_int(explicit_tier)
        if tier is None or not TIER_BEST <= tier <= TIER_WORST:
            return TierResolution(
                DEFAULT_TIER, TierStrategy.EXPLICIT,
                (f"invalid tier {explicit_tier!r}, defaulted to Tier {DEFAULT_TIER}",),
            )
        return TierResolution(tier, TierStrategy.EXPLICIT)

    if not _blank(item_level):
        level = _coerce_int(item_level)
        if level is None:
            return TierResolution(
                DEFAULT_TIER, TierStrategy.ITEM_LEVEL,
                (f"invalid item level {item_level!r}, defaulted to Tier {DEFAULT_TIER}",),
            )
        return TierResolution(tier_from_item_level(level), TierStrategy.ITEM_LEVEL)

    if value_range is not None:
        tier = tier_from_magnitude(value_range)
        logger.debug(f"Magnitude tier {tier} from average {value_range.average}")
        return TierResolution(tier, TierStrategy.MAGNITUDE)

    return TierResolution(
        DEFAULT_TIER, TierStrategy.DEFAULT,
        (f"no tier, level or range available, defaulted to Tier {DEFAULT_TIER}",),
    )
