"""
Affix Engine - Pattern Rule Table

Classifies one description clause into a modifier, a status application
or a damage conversion.  RULES is an ordered tuple; classify() walks it
once and the first rule whose trigger matches decides the outcome.

    "20% chance to apply Bleed on hit"         → apply_status  Bleed 0.20
    "Adds (5-7) Physical Damage"               → Flat  addedPhysicalDamage
    "(40-54)% increased Lightning Damage"      → Increased  increasedLightningDamage
    "50% of Physical Damage as extra Fire"     → convert  Physical → Fire
    "+(15-25) to Strength"                     → Flat  strength

Rule handlers only read the match; the engine turns a Classification into
a record, resolves scope and tier, and reports errors.
"""

import re
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from config import (
    DAMAGE_TYPE_WORDS, STATUS_WORDS, STATUS_WORD_FORMS, STATUS_CONDITION_WORDS, STACK_WORDS,
)
from modifier_types import DamageType, ModifierKind, ParseErrorKind
from range_extractor import RangeMatch, parse_number
from stat_names import normalize_stat_name

logger = logging.getLogger(__name__)

ACTION_MODIFIER = "modifier"
ACTION_APPLY_STATUS = "apply_status"
ACTION_CONVERT = "convert"


@dataclass(frozen=True)
class Classification:
    rule: str
    action: str = ACTION_MODIFIER
    kind: ModifierKind = ModifierKind.FLAT
    damage_type: DamageType = DamageType.NONE
    stat_key: str = ""
    status: Optional[str] = None                   # "Bleed" for apply_status
    target_type: DamageType = DamageType.NONE      # conversion target
    found: Optional[RangeMatch] = None             # numbers the rule located itself
    error: Optional[ParseErrorKind] = None


@dataclass(frozen=True)
class PatternRule:
    name: str
    trigger: re.Pattern
    handler: Callable[[re.Match, str], Classification]
    blocked_by: Optional[re.Pattern] = None  # clause-level negation

    def match(self, text: str) -> Optional[re.Match]:
        if self.blocked_by is not None and self.blocked_by.search(text):
            return None
        return self.trigger.search(text)


# ─── Regex Building Blocks ───────────────────────────

_NUM = r"\d+(?:\.\d+)?"
_NUM_RE = re.compile(_NUM)
# "12", "5-7", "(5-7)", "(1.2–1.6)"
_AMOUNT = rf"(?:\(\s*{_NUM}\s*[-–]\s*{_NUM}\s*\)|{_NUM}(?:\s*[-–]\s*{_NUM})?)"

_TYPES = "|".join(DAMAGE_TYPE_WORDS)
_TYPE_LIST = rf"(?:{_TYPES})(?:\s*(?:,|&|and|or)\s*(?:{_TYPES}))*"
# Longest first so "bleeding" is tried before "bleed"
_STATUSES = "|".join(sorted((*STATUS_WORDS, *STATUS_WORD_FORMS), key=len, reverse=True))
_CONDITIONS = "|".join(STATUS_CONDITION_WORDS)
_STACKS = "|".join(STACK_WORDS)
_KIND_WORD = r"(?P<word>more|less|increased|reduced|decreased)"

_TYPE_WORD_RE = re.compile(rf"\b({_TYPES})\b", re.IGNORECASE)
_CANNOT_APPLY_RE = re.compile(r"\bcannot\s+apply\b", re.IGNORECASE)

# Cue words in priority order: multiplicative before additive
_KIND_CUES = (
    (re.compile(r"\bmore\b", re.IGNORECASE), ModifierKind.MORE),
    (re.compile(r"\bless\b", re.IGNORECASE), ModifierKind.LESS),
    (re.compile(r"\bincreased\b", re.IGNORECASE), ModifierKind.INCREASED),
    (re.compile(r"\b(?:reduced|decreased)\b", re.IGNORECASE), ModifierKind.REDUCED),
)


def _rx(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE)


def detect_kind(text: str) -> ModifierKind:
    """Kind implied by the cue words in `text`; Flat when none is present."""
    for regex, kind in _KIND_CUES:
        if regex.search(text):
            return kind
    return ModifierKind.FLAT


def _amount(rule: str, token: str) -> RangeMatch:
    """'(5-7)' → RangeMatch(rule, (5, 7)); '12' → (12, 12)"""
    values = [parse_number(v) for v in _NUM_RE.findall(token)]
    return RangeMatch(rule, (values[0], values[-1]))


def _flag(rule: str) -> RangeMatch:
    """On/off effects carry no number; they are recorded as a single 1."""
    return RangeMatch(rule, (1, 1))


def _damage_types(span: str) -> Tuple[DamageType, ...]:
    seen = []
    for word in _TYPE_WORD_RE.findall(span):
        dtype = DamageType.from_word(word)
        if dtype not in seen:
            seen.append(dtype)
    return tuple(seen)


def _conflict(rule: str, text: str) -> Optional[Classification]:
    """Damage clauses naming a second type anywhere in the clause are ambiguous."""
    types = _damage_types(text)
    if len(types) > 1:
        logger.debug(f"Rule '{rule}': conflicting damage types {[t.value for t in types]}")
        return Classification(rule, error=ParseErrorKind.CONFLICTING_DAMAGE_TYPES)
    return None


def _kind(word: Optional[str], default: ModifierKind = ModifierKind.FLAT) -> ModifierKind:
    return ModifierKind.from_word(word) if word else default


def _status_name(word: str) -> str:
    """'Bleeding' → 'Bleed', 'stun' → 'Stun'"""
    word = word.lower()
    return STATUS_WORD_FORMS.get(word, word).capitalize()


def _camel(words: str) -> str:
    """'energy shield' → 'energyShield'"""
    parts = words.lower().split()
    return parts[0] + "".join(p.capitalize() for p in parts[1:])


# ─── Core Handlers ───────────────────────────────────

def _status_chance(m, text):
    return Classification(
        "status_chance", ACTION_APPLY_STATUS,
        status=_status_name(m.group("status")),
        found=_amount("status_chance", m.group("amount")),
    )


def _status_always(m, text):
    return Classification(
        "status_always", ACTION_APPLY_STATUS,
        status=_status_name(m.group("status")),
    )


def _flat_damage(m, text):
    conflict = _conflict("flat_damage", text)
    if conflict:
        return conflict
    dtype = DamageType.from_word(m.group("types"))
    return Classification(
        "flat_damage", kind=ModifierKind.FLAT, damage_type=dtype,
        stat_key=f"added{dtype.value}Damage",
    )


def _percent_damage(m, text):
    conflict = _conflict("percent_damage", text)
    if conflict:
        return conflict
    kind = ModifierKind.from_word(m.group("word"))
    dtype = DamageType.from_word(m.group("types"))
    return Classification(
        "percent_damage", kind=kind, damage_type=dtype,
        stat_key=f"{kind.value.lower()}{dtype.value}Damage",
        found=_amount("percent_damage", m.group("amount")),
    )


def _conversion(m, text):
    return Classification(
        "conversion", ACTION_CONVERT,
        damage_type=DamageType.from_word(m.group("src")),
        target_type=DamageType.from_word(m.group("dst")),
        found=_amount("conversion", m.group("amount")),
    )


# ─── Importer Phrasings ──────────────────────────────
# Card, embossing and jewelry text that the generic rules would misread.

def _stat(rule: str, stat_key: str, kind: ModifierKind = ModifierKind.FLAT,
          damage_type: DamageType = DamageType.NONE):
    """Handler factory for rules with a fixed stat key and an `amount` group."""
    def handler(m, text):
        word = m.groupdict().get("word")
        return Classification(
            rule, kind=_kind(word, kind), damage_type=damage_type, stat_key=stat_key,
            found=_amount(rule, m.group("amount")),
        )
    return handler


def _flag_stat(rule: str, stat_key: str):
    def handler(m, text):
        return Classification(rule, stat_key=stat_key, found=_flag(rule))
    return handler


def _damage_roll(m, text):
    conflict = _conflict("damage_roll", text)
    if conflict:
        return conflict
    dtype = DamageType.from_word(m.group("types"))
    return Classification(
        "damage_roll", damage_type=dtype, stat_key=f"base{dtype.value}Damage",
        found=_amount("damage_roll", m.group("amount")),
    )


def _conditional_damage(m, text):
    cond = m.group("cond")
    stat_key = f"damageVs{cond.capitalize()}" if cond else "conditionalDamage"
    return Classification(
        "conditional_damage", kind=ModifierKind.from_word(m.group("word")),
        stat_key=stat_key, found=_amount("conditional_damage", m.group("amount")),
    )


def _crit(m, text):
    which = m.group("which").lower()
    return Classification(
        "critical_strike", kind=_kind(m.group("word")),
        stat_key="criticalStrikeChance" if which == "chance" else "criticalStrikeMultiplier",
        found=_amount("critical_strike", m.group("amount")),
    )


def _penetration(m, text):
    element = m.group("type").lower()
    return Classification(
        "penetration", damage_type=DamageType.from_word(element),
        stat_key=f"{element}ResistancePenetration",
        found=_amount("penetration", m.group("amount")),
    )


def _stacks(m, text):
    return Classification(
        "stacks", stat_key=f"{m.group('stack').lower()}Stacks",
        found=_amount("stacks", m.group("amount")),
    )


def _card_draw(m, text):
    wave = m.group("which").lower() == "wave"
    return Classification(
        "card_draw", stat_key="cardsDrawnPerWave" if wave else "cardsDrawnPerTurn",
        found=_amount("card_draw", m.group("amount")),
    )


def _regen_per_turn(m, text):
    return Classification(
        "regen_per_turn", stat_key=f"{_camel(m.group('res'))}RegenerationPercent",
        found=_amount("regen_per_turn", m.group("amount")),
    )


def _consume(m, text):
    return Classification(
        "chance_to_consume", stat_key=f"chanceToConsume{m.group('what').capitalize()}",
        found=_amount("chance_to_consume", m.group("amount")),
    )


# ─── Generic Fallbacks ───────────────────────────────

def _generic_percent(m, text):
    return Classification(
        "generic_percent", kind=ModifierKind.from_word(m.group("word")),
        stat_key=normalize_stat_name(m.group("rest")),
        found=_amount("generic_percent", m.group("amount")),
    )


def _generic_flat(m, text):
    found = _amount("generic_flat", m.group("amount"))
    if m.group("sign") == "-":
        found = RangeMatch("generic_flat", (-found.first[1], -found.first[0]))
    return Classification(
        "generic_flat", stat_key=normalize_stat_name(m.group("rest")), found=found,
    )


# ─── Rule Table ──────────────────────────────────────

RULES: Tuple[PatternRule, ...] = (
    PatternRule(
        "status_chance",
        _rx(rf"\+?(?P<amount>{_AMOUNT})\s*%\s*chance\s+to\s+"
            rf"(?:apply\s+|cause\s+(?:enemies\s+hit\s+to\s+)?)?(?P<status>{_STATUSES})\b"),
        _status_chance, blocked_by=_CANNOT_APPLY_RE),
    PatternRule(
        "status_always",
        _rx(rf"\b(?:embossed\s+cards?|attacks?|cards?)\s+apply\s+(?P<status>{_STATUSES})\b"),
        _status_always, blocked_by=_CANNOT_APPLY_RE),
    PatternRule(
        "flat_damage",
        _rx(rf"\badds?\b[^;]*?\b(?P<types>{_TYPE_LIST})\s+damage\b"),
        _flat_damage),
    PatternRule(
        "percent_damage",
        _rx(rf"(?P<amount>{_AMOUNT})\s*%\s*{_KIND_WORD}\s+(?P<types>{_TYPE_LIST})\s+damage\b"),
        _percent_damage),
    PatternRule(
        "conversion",
        _rx(rf"(?P<amount>{_NUM})\s*%\s*of\s+(?P<src>{_TYPES})\s+damage\s+"
            rf"(?:added\s+|gained\s+)?as\s+extra\s+(?P<dst>{_TYPES})\b"),
        _conversion),
    PatternRule(
        "damage_roll",
        _rx(rf"(?<![\d.])(?P<amount>{_NUM}\s*[-–]\s*{_NUM})\s+(?P<types>{_TYPE_LIST})\s+damage\b"),
        _damage_roll),
    PatternRule(
        "conditional_damage",
        _rx(rf"\bdeals?\s+(?P<amount>{_AMOUNT})\s*%\s*(?P<word>more|increased)\s+damage\s+"
            rf"(?:to\s+(?P<cond>{_CONDITIONS})\s+enemies|when\b)"),
        _conditional_damage),
    PatternRule(
        "life_on_hit",
        _rx(rf"\bgains?\s+(?P<amount>{_AMOUNT})\s+life\s+(?:when\s+attacking|on\s+hit)"),
        _stat("life_on_hit", "lifeOnHit")),
    PatternRule(
        "lifesteal",
        _rx(rf"(?P<amount>{_AMOUNT})\s*%\s*of\s+(?:spell\s+)?damage\s+as\s+lifesteal"),
        _stat("lifesteal", "lifeLeech")),
    PatternRule(
        "critical_strike",
        _rx(rf"(?P<amount>{_AMOUNT})\s*%\s*(?:(?P<word>increased|more|reduced|decreased|less)\s+|to\s+)?"
            rf"(?:global\s+)?critical\s+strike\s+(?P<which>chance|multiplier)"),
        _crit),
    PatternRule(
        "mana_cost_flat",
        _rx(rf"\b(?:costs?|reduced)\s+(?P<amount>{_AMOUNT})\s+(?:less\s+)?(?:base\s+)?mana\b"),
        _stat("mana_cost_flat", "manaCostReduction")),
    PatternRule(
        "mana_cost_percent",
        _rx(rf"(?P<amount>{_AMOUNT})\s*%\s*(?P<word>reduced|decreased|less)\s+mana\s+cost"),
        _stat("mana_cost_percent", "manaCostReductionPercent")),
    PatternRule(
        "echo_effect",
        _rx(rf"\becho(?:es)?\s+(?:their\s+)?(?:effect\s+)?(?:with\s+)?(?P<amount>{_AMOUNT})\s*%\s*effect"),
        _stat("echo_effect", "echoEffectPercent")),
    PatternRule(
        "echo_count",
        _rx(rf"\becho(?:es)?\s+(?P<amount>{_AMOUNT})\s+times"),
        _stat("echo_count", "echoCount")),
    PatternRule(
        "adjacent_hit",
        _rx(rf"\bhits?\s+(?:adjacent\s+)?enem(?:y|ies)\s+for\s+(?P<amount>{_AMOUNT})\s*%\s*effect"),
        _stat("adjacent_hit", "adjacentHitEffectPercent")),
    PatternRule(
        "targets_all",
        _rx(r"\btargets?\s+all\s+enemies"),
        _flag_stat("targets_all", "targetsAllEnemies")),
    PatternRule(
        "stagger",
        _rx(rf"(?P<amount>{_AMOUNT})\s*%\s*(?P<word>increased|more)\s+stagger\b(?!\s+(?:duration|threshold))"),
        _stat("stagger", "staggerMultiplier")),
    PatternRule(
        "stacks",
        _rx(rf"\bgains?\s+(?P<amount>{_AMOUNT})\s+(?P<stack>{_STACKS})\s+stacks?\b"),
        _stacks),
    PatternRule(
        "preparation_charges",
        _rx(rf"(?P<amount>{_AMOUNT})\s*%\s*(?P<word>more|increased)\s+preparation\s+charges?"),
        _stat("preparation_charges", "preparationChargeMultiplier")),
    PatternRule(
        "preparation_duration",
        _rx(rf"\bprepared\s+for\s+(?P<amount>{_AMOUNT})\s*%\s*(?:more|longer)"),
        _stat("preparation_duration", "preparationDurationMultiplier", ModifierKind.INCREASED)),
    PatternRule(
        "penetration",
        _rx(rf"\bpenetrates?\s+(?P<amount>{_AMOUNT})\s*%\s*(?:of\s+)?(?:enemy\s+)?"
            rf"(?P<type>fire|cold|lightning|chaos|elemental)\s+resistances?"),
        _penetration),
    PatternRule(
        "culling",
        _rx(rf"\binstantly\s+kill\b.*?(?P<amount>{_AMOUNT})\s*%\s*(?:or\s+less|and\s+below)"),
        _stat("culling", "cullingThreshold")),
    PatternRule(
        "ignore_block",
        _rx(r"\bignores?\s+(?:enemy\s+)?block"),
        _flag_stat("ignore_block", "ignoreBlock")),
    PatternRule(
        "chain",
        _rx(rf"\bchains?\s+to\s+\+?(?P<amount>{_AMOUNT})\s+(?:additional\s+|random\s+)?targets?"),
        _stat("chain", "chainTargets")),
    PatternRule(
        "spread",
        _rx(r"\bspreads?\s+to\s+all\s+enemies"),
        _flag_stat("spread", "spreadToAllEnemies")),
    PatternRule(
        "card_draw",
        _rx(rf"\+?(?P<amount>{_AMOUNT})\s+(?P<which>wave|end\s+turn)\s+card\s+draw"),
        _card_draw),
    PatternRule(
        "regen_per_turn",
        _rx(rf"\bregenerates?\s+(?P<amount>{_AMOUNT})\s*%\s*of\s+(?P<res>life|mana|energy\s+shield)\s+per\s+turn"),
        _regen_per_turn),
    PatternRule(
        "chance_to_consume",
        _rx(rf"(?P<amount>{_AMOUNT})\s*%\s*chance\s+to\s+consume\s+(?P<what>[a-z]+)"),
        _consume),
    PatternRule(
        "generic_percent",
        _rx(rf"(?P<amount>{_AMOUNT})\s*%\s*{_KIND_WORD}\s+(?P<rest>\S.*)"),
        _generic_percent),
    PatternRule(
        "generic_flat",
        _rx(rf"(?P<sign>[+-])\s*(?P<amount>{_AMOUNT})\s*%?\s+to\s+(?P<rest>\S.*)"),
        _generic_flat),
)

RULE_NAMES: Tuple[str, ...] = tuple(rule.name for rule in RULES)


def get_rule(name: str) -> PatternRule:
    for rule in RULES:
        if rule.name == name:
            return rule
    raise KeyError(name)


def classify(text: str) -> Optional[Classification]:
    """Run the rule table over one clause.  None when no rule matches."""
    if not text or not text.strip():
        return None
    for rule in RULES:
        m = rule.match(text)
        if m:
            result = rule.handler(m, text)
            logger.debug(f"Rule '{rule.name}' matched {text!r} → {result.stat_key or result.action}")
            return result
    logger.debug(f"No rule matched {text!r}")
    return None
