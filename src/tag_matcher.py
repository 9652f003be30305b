"""
Affix Engine - Tag Compatibility Matcher

Decides whether an affix may roll on an item.  Tag expansion runs once when
an affix row is ingested; is_compatible() only compares ready tag sets.

    required {"armour_base"}   item armour 0   → incompatible (even if tagged)
    required {"weapon"}        item {"weapon"} → compatible
    required {}                any item        → compatible
"""

import re
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional, Union

from config import (
    ARMOUR_SLOT_KEYWORDS,
    ARMOUR_SLOT_TAGS,
    BASE_STAT_TAGS,
    ONE_HANDED_TAG,
    TWO_HANDED_TAG,
    TAG_MATCH_MODE,
)

logger = logging.getLogger(__name__)

TagSet = FrozenSet[str]

_BASE_TAGS = frozenset(BASE_STAT_TAGS)

MATCH_ANY = "any"
MATCH_ALL = "all"


class Handedness(Enum):
    ONE_HAND = "OneHand"
    TWO_HAND = "TwoHand"
    BOTH = "Both"


_TWO_HAND_RE = re.compile(r"\btwo\b|\b2h?\b|twohand")
_ONE_HAND_RE = re.compile(r"\bone\b|\b1h?\b|onehand")


def parse_handedness(text: Optional[str]) -> Handedness:
    """'Two Handed' / '2H' → TWO_HAND, 'One Handed' → ONE_HAND, else BOTH."""
    lower = (text or "").strip().lower()
    if _TWO_HAND_RE.search(lower):
        return Handedness.TWO_HAND
    if _ONE_HAND_RE.search(lower):
        return Handedness.ONE_HAND
    return Handedness.BOTH


def make_tag_set(tags: Iterable[str]) -> TagSet:
    """Lowercase, strip, drop blanks, collapse duplicates."""
    return frozenset(t.strip().lower() for t in tags if t and t.strip())


@dataclass(frozen=True)
class BaseStats:
    armour: float = 0
    evasion: float = 0
    energy_shield: float = 0

    def value_for(self, base_tag: str) -> float:
        """Base stat behind a base-stat tag ('armour_base' → armour)."""
        return getattr(self, BASE_STAT_TAGS[base_tag])


@dataclass(frozen=True)
class CompatibilityQuery:
    required_tags: TagSet = frozenset()
    handedness: Handedness = Handedness.BOTH
    item_tags: TagSet = frozenset()
    item_base_stats: BaseStats = field(default_factory=BaseStats)

    def __post_init__(self):
        object.__setattr__(self, "required_tags", make_tag_set(self.required_tags))
        object.__setattr__(self, "item_tags", make_tag_set(self.item_tags))


# ─── Matching ────────────────────────────────────────

def is_compatible(query: CompatibilityQuery, match_mode: Optional[str] = None) -> bool:
    """
    Compatibility verdict for one affix/item pair.

    Base-stat tags are gates: each one required needs its stat > 0 on the
    item.  The remaining required tags match ANY-of by default, or ALL-of
    when match_mode (or AFFIX_TAG_MATCH_MODE) is "all".
    """
    mode = (match_mode or TAG_MATCH_MODE).lower()
    if mode not in (MATCH_ANY, MATCH_ALL):
        raise ValueError(f"unknown tag match mode {mode!r}")

    required = query.required_tags
    if not required:
        return True

    if query.handedness is Handedness.ONE_HAND and ONE_HANDED_TAG not in query.item_tags:
        return False
    if query.handedness is Handedness.TWO_HAND and TWO_HANDED_TAG not in query.item_tags:
        return False

    for base_tag in required & _BASE_TAGS:
        if query.item_base_stats.value_for(base_tag) <= 0:
            logger.debug(f"Base gate '{base_tag}' failed: no {BASE_STAT_TAGS[base_tag]} on item")
            return False

    general = required - _BASE_TAGS
    if not general:
        return True
    if mode == MATCH_ALL:
        return general <= query.item_tags
    return bool(general & query.item_tags)


# ─── Category Expansion ──────────────────────────────

def _slot_regex(keyword: str) -> re.Pattern:
    """'body armour' → matches 'body armor', 'body armours'; 'gloves' → 'glove' too."""
    words = keyword.split()
    words[-1] = words[-1].rstrip("s")
    parts = [re.escape(w).replace("armour", "armou?r") for w in words]
    return re.compile(r"\b" + r"\s+".join(parts) + r"s?\b")


_SLOT_PATTERNS = tuple(
    (tag, _slot_regex(keyword))
    for tag, keyword in zip(ARMOUR_SLOT_TAGS, ARMOUR_SLOT_KEYWORDS)
)

_BASE_PATTERNS = (
    ("energyshield_base", re.compile(r"\b(?:es|energy\s*shield)\s+base\b")),
    ("armour_base", re.compile(r"\barmou?r\s+base\b")),
    ("evasion_base", re.compile(r"\bevasion\s+base\b")),
)

_ARMOUR_RE = re.compile(r"\barmou?r\b")
_JEWELRY_RE = re.compile(r"\bjewel(?:le)?ry\b")
_WEAPON_RE = re.compile(r"\bweapons?\b")
_CASTER_RE = re.compile(r"\bcaster\b")
_RANGED_RE = re.compile(r"\branged\b")


def _to_text(raw: Union[str, Iterable[str]]) -> str:
    if isinstance(raw, str):
        text = raw
    else:
        text = " ".join(sorted(raw))
    return text.replace("_", " ").lower()


def expand_generic_category_tags(raw: Union[str, Iterable[str], None]) -> TagSet:
    """
    Turn raw item-type text into concrete compatibility tags.

    "Helmet Gloves"  → {"helmet", "gloves"}
    "Armour"         → all five armour slot tags
    "ES Base"        → {"energyshield_base"}
    "Caster Weapon"  → {"weapon", "caster"}

    Accepts an already-expanded tag set and returns it unchanged, so
    expanding twice is the same as expanding once.
    """
    if not raw:
        return frozenset()
    text = _to_text(raw)
    tags = set()

    # "energy shield base" must not read as a shield slot
    slot_text = text
    for tag, regex in _BASE_PATTERNS:
        if regex.search(text):
            tags.add(tag)
            slot_text = regex.sub(" ", slot_text)

    slots = {tag for tag, regex in _SLOT_PATTERNS if regex.search(slot_text)}
    if slots:
        tags |= slots
    elif _ARMOUR_RE.search(text):
        tags.update(ARMOUR_SLOT_TAGS)
        logger.debug(f"Expanded generic armour in {raw!r} to all slots")

    if _JEWELRY_RE.search(text):
        tags.add("jewelry")

    if _WEAPON_RE.search(text):
        tags.add("weapon")
        if _CASTER_RE.search(text):
            tags.add("caster")
        elif _RANGED_RE.search(text):
            tags.add("ranged")

    return frozenset(tags)


# ─── Item-side Tags ──────────────────────────────────

_COMBAT_STYLE = {
    "sword": ("melee", "attack"),
    "axe": ("melee", "attack"),
    "mace": ("melee", "attack"),
    "dagger": ("melee", "attack"),
    "claw": ("melee", "attack"),
    "bow": ("ranged", "attack"),
    "wand": ("ranged", "spell"),
    "staff": ("spell",),
    "sceptre": ("spell",),
}

_EFFECT_WORDS = (
    "bleed", "shock", "chill", "freeze", "ignite", "poison", "crumble", "vulnerable",
    "physical", "fire", "cold", "lightning", "chaos",
)

_REQUIREMENT_RES = {
    "level": re.compile(r"level\s+(\d+)", re.IGNORECASE),
    "strength": re.compile(r"(\d+)\s+str", re.IGNORECASE),
    "dexterity": re.compile(r"(\d+)\s+dex", re.IGNORECASE),
    "intelligence": re.compile(r"(\d+)\s+int", re.IGNORECASE),
}


@dataclass(frozen=True)
class Requirements:
    level: int = 0
    strength: int = 0
    dexterity: int = 0
    intelligence: int = 0


def parse_requirements(text: Optional[str]) -> Requirements:
    """'Requires Level 12, 14 Str, 8 Int' → Requirements(12, 14, 0, 8)"""
    values = {}
    for name, regex in _REQUIREMENT_RES.items():
        m = regex.search(text or "")
        values[name] = int(m.group(1)) if m else 0
    return Requirements(**values)


def weapon_item_tags(weapon_type: str, handedness: Handedness = Handedness.BOTH,
                     requirements: Optional[Requirements] = None,
                     implicit_stat_keys: Iterable[str] = ()) -> TagSet:
    """Tags a weapon base carries for affix matching."""
    wtype = weapon_type.strip().lower()
    tags = {"weapon", wtype}
    if handedness is Handedness.ONE_HAND:
        tags.add(ONE_HANDED_TAG)
    elif handedness is Handedness.TWO_HAND:
        tags.add(TWO_HANDED_TAG)
    tags.update(_COMBAT_STYLE.get(wtype, ()))

    if requirements is not None:
        for attr in ("strength", "dexterity", "intelligence"):
            if getattr(requirements, attr) > 0:
                tags.add(attr)

    for stat_key in implicit_stat_keys:
        lower = stat_key.lower()
        tags.update(word for word in _EFFECT_WORDS if word in lower)
        if "carddraw" in lower or "cardsdrawn" in lower:
            tags.add("carddraw")
    return make_tag_set(tags)


def defence_item_tags(base_stats: BaseStats) -> TagSet:
    """Defence-combination tag for an armour base ('armour', 'evasion_es', ...)."""
    parts = [name for name, value in (
        ("armour", base_stats.armour),
        ("evasion", base_stats.evasion),
        ("es", base_stats.energy_shield),
    ) if value > 0]
    if not parts:
        return frozenset()
    return frozenset({"_".join(parts)})
