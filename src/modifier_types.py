"""
Affix Engine - Modifier Data Model

Value objects produced by the parser.  Every object is frozen and built
fresh per parse call; nothing here holds state between calls.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from config import TIER_BEST, TIER_WORST

Number = Union[int, float]


# ─── Enums ───────────────────────────────────────────

class ModifierKind(Enum):
    FLAT = "Flat"
    INCREASED = "Increased"
    MORE = "More"
    REDUCED = "Reduced"
    LESS = "Less"

    @classmethod
    def from_word(cls, word: str) -> "ModifierKind":
        """Map a cue word ("more", "increased", ...) to its kind."""
        return _KIND_WORDS.get(word.strip().lower(), cls.FLAT)


_KIND_WORDS = {
    "more": ModifierKind.MORE,
    "less": ModifierKind.LESS,
    "increased": ModifierKind.INCREASED,
    "reduced": ModifierKind.REDUCED,
    "decreased": ModifierKind.REDUCED,
}


class DamageType(Enum):
    NONE = "None"
    PHYSICAL = "Physical"
    FIRE = "Fire"
    COLD = "Cold"
    LIGHTNING = "Lightning"
    CHAOS = "Chaos"

    @classmethod
    def from_word(cls, word: Optional[str]) -> "DamageType":
        if not word:
            return cls.NONE
        try:
            return cls(word.strip().capitalize())
        except ValueError:
            return cls.NONE

    @property
    def is_elemental_or_chaos(self) -> bool:
        return self in (DamageType.FIRE, DamageType.COLD,
                        DamageType.LIGHTNING, DamageType.CHAOS)


class ModifierScope(Enum):
    LOCAL = "Local"
    GLOBAL = "Global"


class ParseStatus(Enum):
    MATCHED = "matched"
    NEEDS_REVIEW = "needs_review"
    ERROR = "error"


class ParseErrorKind(Enum):
    EMPTY_DESCRIPTION = "EmptyDescription"
    CONFLICTING_DAMAGE_TYPES = "ConflictingDamageTypes"
    RANGE_ORDER_INVERTED = "RangeOrderInverted"


class TierStrategy(Enum):
    EXPLICIT = "explicit"
    ITEM_LEVEL = "item_level"
    MAGNITUDE = "magnitude"
    DEFAULT = "default"


# ─── Ranges ──────────────────────────────────────────

@dataclass(frozen=True)
class ValueRange:
    min: Number
    max: Number

    def __post_init__(self):
        if self.min > self.max:
            raise ValueError(f"range min {self.min} > max {self.max}")

    @classmethod
    def single(cls, value: Number) -> "ValueRange":
        return cls(value, value)

    @property
    def average(self) -> float:
        return (self.min + self.max) / 2

    @property
    def is_single(self) -> bool:
        return self.min == self.max

    def collapse(self) -> "ValueRange":
        return self


@dataclass(frozen=True)
class DualRange:
    """'Adds (X-Y) to (Z-W)': low roll bounded by `low`, high roll by `high`."""
    low: ValueRange
    high: ValueRange

    def __post_init__(self):
        if self.low.max > self.high.max:
            raise ValueError(f"low roll max {self.low.max} > high roll max {self.high.max}")

    @property
    def min(self) -> Number:
        return self.low.min

    @property
    def max(self) -> Number:
        return self.high.max

    @property
    def average(self) -> float:
        return (self.min + self.max) / 2

    def collapse(self) -> ValueRange:
        """Single-range view: (X, W)."""
        return ValueRange(self.low.min, self.high.max)


AnyRange = Union[ValueRange, DualRange]


# ─── Parsed Records ──────────────────────────────────

@dataclass(frozen=True)
class Modifier:
    stat_key: str
    range: Optional[AnyRange]
    kind: ModifierKind
    damage_type: DamageType = DamageType.NONE
    scope: ModifierScope = ModifierScope.GLOBAL
    source_text: str = ""  # audit only, never re-parsed


@dataclass(frozen=True)
class StatusApplication:
    status_type: str     # "Bleed"
    chance: float        # 0.2 for "20% chance"; 1.0 when unconditional
    chance_max: float    # equals chance unless a chance range was written
    source_text: str = ""


@dataclass(frozen=True)
class DamageConversion:
    percent: Number
    source_type: DamageType
    target_type: DamageType
    source_text: str = ""


ParsedRecord = Union[Modifier, StatusApplication, DamageConversion]


# ─── Hints & Results ─────────────────────────────────

@dataclass(frozen=True)
class ParseHints:
    """Structured columns an importer may supply next to the description."""
    explicit_tier: Optional[Union[int, str]] = None
    item_level: Optional[int] = None
    explicit_stat_name: Optional[str] = None
    # Fallback (min, max) from separate columns; used only when the text has no numbers
    explicit_range: Optional[Tuple[Number, Number]] = None


@dataclass(frozen=True)
class TierResolution:
    tier: int
    strategy: TierStrategy
    warnings: Tuple[str, ...] = ()

    def __post_init__(self):
        if not TIER_BEST <= self.tier <= TIER_WORST:
            raise ValueError(f"tier {self.tier} outside {TIER_BEST}-{TIER_WORST}")


@dataclass(frozen=True)
class ParseResult:
    status: ParseStatus
    source_text: str
    record: Optional[ParsedRecord] = None
    error: Optional[ParseErrorKind] = None
    rule: str = ""
    tier: Optional[int] = None
    tier_strategy: Optional[TierStrategy] = None
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def needs_manual_review(self) -> bool:
        return self.status is ParseStatus.NEEDS_REVIEW

    @property
    def ok(self) -> bool:
        return self.status is ParseStatus.MATCHED

    def to_dict(self) -> dict:
        """JSON-friendly view for audit reports."""
        out = {
            "status": self.status.value,
            "source_text": self.source_text,
            "rule": self.rule,
            "tier": self.tier,
            "tier_strategy": self.tier_strategy.value if self.tier_strategy else None,
            "warnings": list(self.warnings),
            "error": self.error.value if self.error else None,
            "record": _record_to_dict(self.record),
        }
        return out


def _range_to_dict(rng: Optional[AnyRange]) -> Optional[dict]:
    if rng is None:
        return None
    if isinstance(rng, DualRange):
        return {
            "min": rng.min, "max": rng.max,
            "low": [rng.low.min, rng.low.max],
            "high": [rng.high.min, rng.high.max],
        }
    return {"min": rng.min, "max": rng.max}


def _record_to_dict(record: Optional[ParsedRecord]) -> Optional[dict]:
    if record is None:
        return None
    if isinstance(record, Modifier):
        return {
            "type": "modifier",
            "stat_key": record.stat_key,
            "range": _range_to_dict(record.range),
            "kind": record.kind.value,
            "damage_type": record.damage_type.value,
            "scope": record.scope.value,
        }
    if isinstance(record, StatusApplication):
        return {
            "type": "status_application",
            "status_type": record.status_type,
            "chance": record.chance,
            "chance_max": record.chance_max,
        }
    return {
        "type": "damage_conversion",
        "percent": record.percent,
        "source_type": record.source_type.value,
        "target_type": record.target_type.value,
    }
