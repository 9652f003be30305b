"""
Affix Engine - Stat Name Normalizer

Maps a stat phrase from a description or a spreadsheet column to the
canonical stat key used by the character stat system:

    "Strength"                          → "strength"
    "Global Critical Strike Chance"     → "criticalStrikeChance"
    "all Elemental Resistances"         → "allResistance"
    "Wave card draw"                    → "cardsDrawnPerWave"
    "Thorns Retaliation"                → "thornsRetaliation"   (fallback)
"""

import re
import logging
from types import MappingProxyType
from typing import List, Tuple

logger = logging.getLogger(__name__)


# ─── Alias Table ─────────────────────────────────────
# Keys are squashed phrases (lowercase, alphanumerics only).

_ALIAS_GROUPS: List[Tuple[str, List[Tuple[str, str]]]] = [
    ("attributes", [
        ("strength", "strength"),
        ("dexterity", "dexterity"),
        ("intelligence", "intelligence"),
        ("allattributes", "allAttributes"),
        ("allstats", "allAttributes"),
    ]),
    ("resources", [
        ("maximumlife", "maxHealth"),
        ("maxhealth", "maxHealth"),
        ("life", "maxHealth"),
        ("maximummana", "maxMana"),
        ("mana", "maxMana"),
        ("maximumreliance", "maxReliance"),
        ("maximumenergyshield", "energyShield"),
        ("energyshield", "energyShield"),
    ]),
    ("resistances", [
        ("physicalresistance", "physicalResistance"),
        ("fireresistance", "fireResistance"),
        ("coldresistance", "coldResistance"),
        ("lightningresistance", "lightningResistance"),
        ("chaosresistance", "chaosResistance"),
        ("elementalresistance", "elementalResistance"),
        ("allelementalresistance", "allResistance"),
        ("allresistance", "allResistance"),
    ]),
    ("defence", [
        ("armour", "armour"),
        ("armor", "armour"),
        ("evasion", "evasion"),
        ("blockchance", "blockChance"),
        ("chancetoblock", "blockChance"),
        ("dodgechance", "dodgeChance"),
        ("spelldodgechance", "spellDodgeChance"),
        ("spellblockchance", "spellBlockChance"),
    ]),
    ("damage", [
        ("spelldamage", "increasedSpellDamage"),
        ("attackdamage", "increasedAttackDamage"),
        ("elementaldamagewithattacks", "increasedElementalAttackDamage"),
        ("elementaldamage", "increasedElementalDamage"),
        ("projectiledamage", "increasedProjectileDamage"),
        ("areadamage", "increasedAreaDamage"),
        ("meleedamage", "increasedMeleeDamage"),
        ("rangeddamage", "increasedRangedDamage"),
        ("damagetostaggered", "increasedDamageToStaggered"),
    ]),
    ("ailments", [
        ("chancetoignite", "chanceToIgnite"),
        ("chancetoshock", "chanceToShock"),
        ("chancetochill", "chanceToChill"),
        ("chancetofreeze", "chanceToFreeze"),
        ("chancetobleed", "chanceToBleed"),
        ("chancetopoison", "chanceToPoison"),
        ("ignitemagnitude", "increasedIgniteMagnitude"),
        ("shockmagnitude", "increasedShockMagnitude"),
        ("chillmagnitude", "increasedChillMagnitude"),
        ("freezemagnitude", "increasedFreezeMagnitude"),
        ("bleedmagnitude", "increasedBleedMagnitude"),
        ("poisonmagnitude", "increasedPoisonMagnitude"),
        ("ailmentmagnitude", "ailmentMagnitude"),
        ("statuseffectduration", "statusEffectDuration"),
        ("staggerduration", "increasedStaggerDuration"),
        ("staggerthreshold", "reducedEnemyStaggerThreshold"),
    ]),
    ("recovery", [
        ("liferegeneration", "lifeRegeneration"),
        ("manaregeneration", "manaRegeneration"),
        ("energyshieldregeneration", "energyShieldRegeneration"),
        ("relianceregeneration", "relianceRegeneration"),
        ("lifeleech", "lifeLeech"),
        ("lifesteal", "lifeLeech"),
        ("manaleech", "manaLeech"),
        ("energyshieldleech", "energyShieldLeech"),
        ("lifeonhit", "lifeOnHit"),
    ]),
    ("cards", [
        ("cardsdrawnperturn", "cardsDrawnPerTurn"),
        ("endturncarddraw", "cardsDrawnPerTurn"),
        ("cardsdrawnperwave", "cardsDrawnPerWave"),
        ("wavecarddraw", "cardsDrawnPerWave"),
        ("maxhandsize", "maxHandSize"),
        ("maximumhandsize", "maxHandSize"),
        ("carddrawchance", "cardDrawChance"),
        ("cardretentionchance", "cardRetentionChance"),
        ("cardupgradechance", "cardUpgradeChance"),
        ("discardpower", "discardPower"),
        ("preparationcharges", "preparationChargeMultiplier"),
    ]),
    ("combat", [
        ("attackspeed", "attackSpeed"),
        ("castspeed", "castSpeed"),
        ("movementspeed", "movementSpeed"),
        ("criticalstrikechance", "criticalStrikeChance"),
        ("criticalchance", "criticalStrikeChance"),
        ("criticalstrikemultiplier", "criticalStrikeMultiplier"),
        ("criticalmultiplier", "criticalStrikeMultiplier"),
        ("accuracy", "accuracy"),
        ("attackrange", "attackRange"),
        ("projectilespeed", "projectileSpeed"),
        ("areaofeffect", "areaOfEffect"),
        ("skilleffectduration", "skillEffectDuration"),
        ("manacost", "manaCostReductionPercent"),
    ]),
]

STAT_ALIASES = MappingProxyType({
    alias: key for _, entries in _ALIAS_GROUPS for alias, key in entries
})

STAT_CATEGORIES = MappingProxyType({
    key: category for category, entries in _ALIAS_GROUPS for _, key in entries
})

# Longest alias first so "energyshieldregeneration" wins over "energyshield"
# when both start at the same position
_ALIASES_BY_LENGTH: Tuple[Tuple[str, str], ...] = tuple(
    sorted(STAT_ALIASES.items(), key=lambda kv: len(kv[0]), reverse=True)
)

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")
_SANITIZE_RE = re.compile(r"[^a-zA-Z0-9\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def squash(phrase: str) -> str:
    """'Global Critical-Strike Chance' → 'globalcriticalstrikechance'"""
    return _NON_ALNUM_RE.sub("", (phrase or "").lower())


def sanitize_stat_name(phrase: str) -> str:
    """Deterministic camelCase fallback for phrases with no alias.

    "Thorns Retaliation!" → "thornsRetaliation"
    """
    cleaned = _SANITIZE_RE.sub("", phrase or "")
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()
    if not cleaned:
        return "unknownStat"
    words = cleaned.split(" ")
    return words[0].lower() + "".join(w[:1].upper() + w[1:].lower() for w in words[1:])


def normalize_stat_name(phrase: str) -> str:
    """Canonical stat key for a phrase.  Pure: same input, same output."""
    key = squash(phrase)
    if not key:
        return "unknownStat"
    if key in STAT_ALIASES:
        return STAT_ALIASES[key]
    # Hybrid phrases ("Strength and Intelligence") resolve to the first stat named
    best = None
    for alias, stat_key in _ALIASES_BY_LENGTH:
        pos = key.find(alias)
        if pos >= 0 and (best is None or pos < best[0]):
            best = (pos, stat_key)
    if best is not None:
        return best[1]
    fallback = sanitize_stat_name(phrase)
    logger.debug(f"No stat alias for {phrase!r}, using {fallback!r}")
    return fallback


def is_known_stat(phrase: str) -> bool:
    """True when the phrase resolves through the alias table."""
    key = squash(phrase)
    return bool(key) and (
        key in STAT_ALIASES or any(alias in key for alias, _ in _ALIASES_BY_LENGTH)
    )
