"""
Affix Engine - Configuration
All tunable constants in one place.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

# ─────────────────────────────────────────────
# Damage & Status Vocabulary
# ─────────────────────────────────────────────
DAMAGE_TYPE_WORDS = ("physical", "fire", "cold", "lightning", "chaos")

# Statuses an effect can apply to an enemy
STATUS_WORDS = (
    "bleed", "poison", "burn", "ignite", "shock", "chill", "freeze", "stun",
    "slow", "weak", "frail", "vulnerable", "blind", "crumble",
)

# Other written forms of a status, mapped onto STATUS_WORDS
STATUS_WORD_FORMS = {
    "bleeding": "bleed",
    "poisoned": "poison",
    "burning": "burn",
    "ignited": "ignite",
    "shocked": "shock",
    "chilled": "chill",
    "frozen": "freeze",
    "stunned": "stun",
    "slowed": "slow",
    "weakened": "weak",
    "weakness": "weak",
    "vulnerability": "vulnerable",
    "blinded": "blind",
    "blindness": "blind",
}

# Statuses as adjectives ("deal 20% more damage to Bleeding enemies")
STATUS_CONDITION_WORDS = (
    "bleeding", "ignited", "chilled", "frozen", "shocked", "poisoned",
)

STACK_WORDS = ("momentum", "tolerance", "agitate", "potential", "flow", "bolster")

# ─────────────────────────────────────────────
# Scope
# ─────────────────────────────────────────────
# Stats that modify the item's own base values rather than character totals
LOCAL_STAT_KEYS = frozenset({
    "attackSpeed",
    "accuracy",
    "criticalStrikeChance",
    "criticalStrikeMultiplier",
})

# ─────────────────────────────────────────────
# Tiers
# ─────────────────────────────────────────────
TIER_BEST = 1
TIER_WORST = 9
DEFAULT_TIER = 5

# Upper bounds (inclusive) of required character level per tier, Tier 9 first.
# Anything above the last bound is Tier 1.
ITEM_LEVEL_TIER_BOUNDS = (5, 12, 20, 28, 35, 45, 55, 65)

# Upper bounds (inclusive) of the average rolled value per tier, Tier 9 first.
# Provisional balance data, only used when no tier or level is supplied.
MAGNITUDE_TIER_BOUNDS = (10, 15, 20, 25, 30, 35, 45, 55)

# ─────────────────────────────────────────────
# Tag Compatibility
# ─────────────────────────────────────────────
ARMOUR_SLOT_KEYWORDS = ("helmet", "body armour", "gloves", "boots", "shield")
ARMOUR_SLOT_TAGS = ("helmet", "body_armour", "gloves", "boots", "shield")

# Required tags that are backed by a numeric base stat on the item
BASE_STAT_TAGS = {
    "armour_base": "armour",
    "evasion_base": "evasion",
    "energyshield_base": "energy_shield",
}

ONE_HANDED_TAG = "onehanded"
TWO_HANDED_TAG = "twohanded"

# "any": an affix fits if it shares one general tag with the item
# "all": every general required tag must be present on the item
TAG_MATCH_MODE = os.environ.get("AFFIX_TAG_MATCH_MODE", "any").strip().lower()

# ─────────────────────────────────────────────
# Batch Parsing
# ─────────────────────────────────────────────
# 0 or 1 = sequential; >1 = thread pool size
BATCH_WORKERS = int(os.environ.get("AFFIX_BATCH_WORKERS", "0") or 0)

# ─────────────────────────────────────────────
# Logging
# ─────────────────────────────────────────────
LOG_LEVEL = os.environ.get("AFFIX_LOG_LEVEL", "INFO")
_log_file = os.environ.get("AFFIX_LOG_FILE", "")
LOG_FILE = Path(_log_file).expanduser() if _log_file else None
