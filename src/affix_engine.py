"""
Affix Engine - Parser Facade
Turns description cells into typed modifier records.

Every call returns exactly one ParseResult per description: matched,
flagged for manual review, or an error kind.  Nothing is dropped and
nothing raises for bad text, so a long import always runs to the end and
the caller decides what to do with the flagged rows.

    parse_modifier("+(15-25) to Strength")
        → Modifier(strength, (15, 25), Flat, Global)
    parse_effect("Adds 5 Fire Damage. Attacks apply Bleed")
        → [Modifier(addedFireDamage ...), StatusApplication(Bleed, 1.0)]
"""

import re
import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence, Union

from config import BATCH_WORKERS, DAMAGE_TYPE_WORDS
from modifier_types import (
    AnyRange, DamageConversion, DamageType, Modifier, ParseErrorKind, ParseHints,
    ParseResult, ParseStatus, StatusApplication, ValueRange,
)
from pattern_rules import (
    ACTION_APPLY_STATUS, ACTION_CONVERT, Classification, classify, detect_kind,
)
from range_extractor import RangeMatch, find_range
from scope_tier import resolve_scope, resolve_tier
from stat_names import normalize_stat_name

logger = logging.getLogger(__name__)

# Sentence punctuation followed by whitespace or end; "1.5" stays intact.
# A comma before a damage type continues a type list ("Fire, Cold and Lightning").
_TYPES = "|".join(DAMAGE_TYPE_WORDS)
_CLAUSE_SPLIT_RE = re.compile(
    rf"(?:[.;]+,?|,(?!\s*(?:{_TYPES})\b))(?:\s+|$)",
    re.IGNORECASE,
)
_STAT_KEY_RE = re.compile(r"^[a-z][A-Za-z0-9]*$")

__all__ = [
    "parse_modifier", "parse_effect", "parse_batch", "summarize", "resolve_tier",
]


# ─── Helpers ─────────────────────────────────────────

def _stat_key_from_hint(name: str) -> str:
    """Canonical keys ('maxHealth') pass through; phrases are normalized."""
    name = name.strip()
    if _STAT_KEY_RE.match(name):
        return name
    return normalize_stat_name(name)


def _error(source: str, kind: ParseErrorKind, rule: str = "") -> ParseResult:
    return ParseResult(ParseStatus.ERROR, source, error=kind, rule=rule)


def _matched(source: str, record, rule: str, value_range: Optional[AnyRange],
             hints: ParseHints, warnings: List[str]) -> ParseResult:
    tier = resolve_tier(hints.explicit_tier, hints.item_level, value_range)
    return ParseResult(
        ParseStatus.MATCHED, source, record=record, rule=rule,
        tier=tier.tier, tier_strategy=tier.strategy,
        warnings=tuple(warnings) + tier.warnings,
    )


def _needs_review(source: str, text: str, hints: ParseHints, reason: str,
                  cls: Optional[Classification] = None) -> ParseResult:
    """
    Review record for text no rule could fully read.

    A partial Modifier is attached when the stat key is known from the
    hint or the matched rule; its range stays None when no numbers could be
    read.  Without a known stat the record stays empty rather than guessing
    a stat key from the text.
    """
    warnings = [reason]
    record = None
    tier = None
    strategy = None

    stat_key = None
    if hints.explicit_stat_name:
        stat_key = _stat_key_from_hint(hints.explicit_stat_name)
    elif cls is not None and cls.stat_key:
        stat_key = cls.stat_key

    if stat_key:
        value_range = None
        found = find_range(text)
        if found is not None and not found.inverted:
            value_range = found.to_range()
        elif hints.explicit_range is not None and hints.explicit_range[0] <= hints.explicit_range[1]:
            value_range = ValueRange(*hints.explicit_range)
        kind = cls.kind if cls is not None else detect_kind(text)
        damage_type = cls.damage_type if cls is not None else DamageType.NONE
        record = Modifier(
            stat_key, value_range, kind, damage_type,
            resolve_scope(kind, damage_type, stat_key), source,
        )
        resolution = resolve_tier(hints.explicit_tier, hints.item_level, value_range)
        tier, strategy = resolution.tier, resolution.strategy
        warnings.extend(resolution.warnings)

    logger.debug(f"Needs review: {source!r} ({reason})")
    return ParseResult(
        ParseStatus.NEEDS_REVIEW, source, record=record,
        rule=cls.rule if cls is not None else "",
        tier=tier, tier_strategy=strategy, warnings=tuple(warnings),
    )


# ─── Record Builders ─────────────────────────────────

def _status_result(source: str, cls: Classification, hints: ParseHints) -> ParseResult:
    found = cls.found
    if found is None:
        record = StatusApplication(cls.status, 1.0, 1.0, source)
        return _matched(source, record, cls.rule, None, hints, [])
    if found.inverted:
        return _error(source, ParseErrorKind.RANGE_ORDER_INVERTED, cls.rule)
    lo, hi = found.first
    record = StatusApplication(cls.status, lo / 100, hi / 100, source)
    return _matched(source, record, cls.rule, ValueRange(lo, hi), hints, [])


def _conversion_result(source: str, cls: Classification, hints: ParseHints) -> ParseResult:
    percent = cls.found.first[0]
    record = DamageConversion(percent, cls.damage_type, cls.target_type, source)
    return _matched(source, record, cls.rule, ValueRange.single(percent), hints, [])


def _modifier_result(source: str, text: str, cls: Classification,
                     hints: ParseHints) -> ParseResult:
    warnings = []
    found: Optional[RangeMatch] = cls.found or find_range(text)

    if found is None:
        if hints.explicit_range is None:
            return _needs_review(source, text, hints, "no numeric range found", cls)
        lo, hi = hints.explicit_range
        if lo > hi:
            return _error(source, ParseErrorKind.RANGE_ORDER_INVERTED, cls.rule)
        value_range: AnyRange = ValueRange(lo, hi)
        warnings.append("no range in text, used explicit range")
    elif found.inverted:
        return _error(source, ParseErrorKind.RANGE_ORDER_INVERTED, cls.rule)
    else:
        value_range = found.to_range()

    stat_key = cls.stat_key
    if hints.explicit_stat_name:
        stat_key = _stat_key_from_hint(hints.explicit_stat_name)

    record = Modifier(
        stat_key=stat_key,
        range=value_range,
        kind=cls.kind,
        damage_type=cls.damage_type,
        scope=resolve_scope(cls.kind, cls.damage_type, stat_key),
        source_text=source,
    )
    return _matched(source, record, cls.rule, value_range, hints, warnings)


# ─── Public API ──────────────────────────────────────

def parse_modifier(description: Optional[str], hints: Optional[ParseHints] = None) -> ParseResult:
    """
    Parse one description clause.

    Args:
        description: raw cell text, e.g. "Adds (5-7) Physical Damage"
        hints: structured columns next to the description (tier, level,
            stat name, fallback range)

    Returns:
        ParseResult; never raises for unreadable text.
    """
    hints = hints or ParseHints()
    source = description or ""
    text = source.strip()
    if not text:
        return _error(source, ParseErrorKind.EMPTY_DESCRIPTION)

    cls = classify(text)
    if cls is None:
        return _needs_review(source, text, hints, "no rule matched")
    if cls.error is not None:
        return _error(source, cls.error, cls.rule)
    if cls.action == ACTION_APPLY_STATUS:
        return _status_result(source, cls, hints)
    if cls.action == ACTION_CONVERT:
        return _conversion_result(source, cls, hints)
    return _modifier_result(source, text, cls, hints)


def split_clauses(text: str) -> List[str]:
    """'Adds 5 Fire Damage. Regenerate 1.5% of Life per turn' → two clauses."""
    return [c.strip() for c in _CLAUSE_SPLIT_RE.split(text or "") if c.strip()]


def parse_effect(text: Optional[str], hints: Optional[ParseHints] = None) -> List[ParseResult]:
    """Parse a multi-effect cell clause by clause."""
    clauses = split_clauses(text or "")
    if not clauses:
        return [parse_modifier(text, hints)]
    return [parse_modifier(clause, hints) for clause in clauses]


HintsArg = Union[ParseHints, Sequence[Optional[ParseHints]], None]


def parse_batch(descriptions: Sequence[Optional[str]], hints: HintsArg = None,
                workers: Optional[int] = None) -> List[ParseResult]:
    """
    Parse many descriptions; output order matches input order.

    Args:
        descriptions: one description per row
        hints: None, one ParseHints shared by every row, or one per row
        workers: thread pool size; 0 or 1 parses sequentially
            (default: AFFIX_BATCH_WORKERS)
    """
    if hints is None or isinstance(hints, ParseHints):
        row_hints = [hints] * len(descriptions)
    else:
        row_hints = list(hints)
        if len(row_hints) != len(descriptions):
            raise ValueError(
                f"{len(row_hints)} hints for {len(descriptions)} descriptions"
            )

    workers = BATCH_WORKERS if workers is None else workers
    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(parse_modifier, descriptions, row_hints))
    else:
        results = [parse_modifier(d, h) for d, h in zip(descriptions, row_hints)]

    counts = summarize(results)
    logger.info(
        f"Parsed {counts['total']} descriptions: {counts['matched']} matched, "
        f"{counts['needs_review']} need review, {counts['error']} errors"
    )
    return results


def summarize(results: Sequence[ParseResult]) -> Dict:
    """Counts per outcome, error kind and rule for an audit report."""
    statuses = Counter(r.status for r in results)
    return {
        "total": len(results),
        "matched": statuses[ParseStatus.MATCHED],
        "needs_review": statuses[ParseStatus.NEEDS_REVIEW],
        "error": statuses[ParseStatus.ERROR],
        "by_error": dict(Counter(r.error.value for r in results if r.error)),
        "by_rule": dict(Counter(r.rule for r in results if r.rule)),
    }


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s: %(message)s")

    samples = [
        "Adds (16-21) to (32-38) Physical Damage",
        "Adds (5-7) Physical Damage",
        "(40-54)% increased Lightning Damage",
        "20% chance to apply Bleed on hit",
        "+(15-25) to Strength",
        "50% of Physical Damage as extra Fire",
        "Regenerate (1.2–1.6)% of Life per turn",
        "(10-20)% increased Fire and Cold Damage",
        "Whispers of the void",
        "",
    ]
    print("Parse results:")
    for text in samples:
        result = parse_modifier(text)
        print(f"  {text!r} → {result.status.value} {result.rule or ''} {result.record or result.error}")
