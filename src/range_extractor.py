"""
Affix Engine - Numeric Range Extractor

Finds the value range written inside a description.  Patterns are tried
most-specific first so that a general pattern never swallows a more
specific phrasing:

    "Adds (16-21) to (32-38) Physical Damage"  → DualRange((16,21), (32,38))
    "Adds 1 to (5-6) Lightning Damage"         → (1, 6)
    "Adds (5-7) Physical Damage"               → (5, 7)
    "Adds 10 to 20 Fire Damage"                → (10, 20)
    "(40-54)% increased Lightning Damage"      → (40, 54)
    "+5-7% chance to Shock on Hit"             → (5, 7), status "shock"
    "+(15-25) to Strength"                     → (15, 25)
    "1-14 Lightning damage, rolled each turn"  → (1, 14)
    "+15 to Strength"                          → (15, 15)

Hyphen and en-dash are both accepted as the range separator.  Numbers
written with a decimal point come back as float, everything else as int.
"""

import re
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from modifier_types import AnyRange, DualRange, Number, ValueRange

logger = logging.getLogger(__name__)

_N = r"(\d+(?:\.\d+)?)"
_SEP = r"\s*[-–]\s*"
_PAIR = rf"\(\s*{_N}{_SEP}{_N}\s*\)"


def parse_number(token: str) -> Number:
    """'12' → 12, '1.5' → 1.5"""
    return float(token) if "." in token else int(token)


@dataclass(frozen=True)
class RangeMatch:
    """Raw numbers found by one extraction pattern, before validation."""
    pattern: str
    first: Tuple[Number, Number]
    second: Optional[Tuple[Number, Number]] = None
    status: Optional[str] = None  # status token for chance phrasings

    @property
    def inverted(self) -> bool:
        lo, hi = self.first
        if lo > hi:
            return True
        if self.second is not None:
            s_lo, s_hi = self.second
            return s_lo > s_hi or hi > s_hi
        return False

    def to_range(self) -> AnyRange:
        """Build the validated range.  Raises ValueError when inverted."""
        if self.second is not None:
            return DualRange(ValueRange(*self.first), ValueRange(*self.second))
        return ValueRange(*self.first)


# ─── Pattern Table ───────────────────────────────────
# (name, compiled regex, builder(match) → RangeMatch).  Order is priority.

def _pair(name, m, a=1, b=2, status_group=None):
    status = m.group(status_group).lower() if status_group else None
    lo = parse_number(m.group(a))
    hi = parse_number(m.group(b)) if m.group(b) is not None else lo
    return RangeMatch(name, (lo, hi), status=status)


def _dual(m):
    return RangeMatch(
        "dual",
        (parse_number(m.group(1)), parse_number(m.group(2))),
        (parse_number(m.group(3)), parse_number(m.group(4))),
    )


def _single_to_range(m):
    return RangeMatch("single_to_range", (parse_number(m.group(1)), parse_number(m.group(3))))


def _single(m):
    value = parse_number(m.group(2))
    if m.group(1) == "-":
        value = -value
    return RangeMatch("single", (value, value))


_PATTERNS = (
    ("dual",
     re.compile(rf"adds\s+{_PAIR}\s+to\s+{_PAIR}", re.IGNORECASE),
     _dual),
    ("single_to_range",
     re.compile(rf"adds\s+{_N}\s+to\s+{_PAIR}", re.IGNORECASE),
     _single_to_range),
    ("simple",
     re.compile(rf"adds\s+{_PAIR}", re.IGNORECASE),
     lambda m: _pair("simple", m)),
    ("fixed",
     re.compile(rf"adds\s+{_N}\s+to\s+{_N}", re.IGNORECASE),
     lambda m: _pair("fixed", m)),
    ("percent",
     re.compile(rf"{_PAIR}\s*%\s*(?:increased|more|reduced|decreased|less)\b", re.IGNORECASE),
     lambda m: _pair("percent", m)),
    ("status_chance",
     re.compile(
         rf"\+?\(?\s*{_N}(?:{_SEP}{_N})?\s*\)?\s*%\s+chance\s+to\s+"
         rf"(?:apply\s+|cause\s+)?([a-z]+)(?:\s+on\s+hit)?",
         re.IGNORECASE),
     lambda m: _pair("status_chance", m, status_group=3)),
    ("paren",
     re.compile(_PAIR),
     lambda m: _pair("paren", m)),
    ("bare",
     re.compile(rf"(?<![\d.]){_N}{_SEP}{_N}(?![\d.])"),
     lambda m: _pair("bare", m)),
    ("single",
     re.compile(r"(?:^|(?<=[^\w.]))([+-]?)(\d+(?:\.\d+)?)"),
     _single),
)

PATTERN_NAMES: Tuple[str, ...] = tuple(name for name, _, _ in _PATTERNS)


def find_range(text: str, patterns: Optional[List[str]] = None) -> Optional[RangeMatch]:
    """Return the raw numbers of the first matching pattern, or None.

    Args:
        text: description text
        patterns: restrict the search to these pattern names (priority order kept)
    """
    if not text:
        return None
    for name, regex, build in _PATTERNS:
        if patterns is not None and name not in patterns:
            continue
        m = regex.search(text)
        if m:
            found = build(m)
            logger.debug(f"Range '{name}' in {text!r}: {found.first} {found.second or ''}")
            return found
    return None


def extract_range(text: str) -> Optional[AnyRange]:
    """Range written in `text`, or None when absent or inverted.

    Callers that need to tell "no numbers" from "inverted numbers" apart
    should use find_range() instead.
    """
    found = find_range(text)
    if found is None or found.inverted:
        return None
    return found.to_range()


def extract_status_chance(text: str) -> Optional[Tuple[ValueRange, str]]:
    """'+5-7% chance to Shock on Hit' → (ValueRange(5, 7), 'shock')."""
    found = find_range(text, patterns=["status_chance"])
    if found is None or found.inverted:
        return None
    return ValueRange(*found.first), found.status
