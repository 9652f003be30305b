"""Tests for pattern_rules.py: rule order, each rule in isolation, conflicts, negation."""

import pytest

from modifier_types import DamageType, ModifierKind, ParseErrorKind
from pattern_rules import (
    ACTION_APPLY_STATUS, ACTION_CONVERT, ACTION_MODIFIER,
    RULE_NAMES, RULES, classify, detect_kind, get_rule,
)


# ── Rule table shape ─────────────────────────────────────

def test_rule_names_unique():
    assert len(RULE_NAMES) == len(set(RULE_NAMES))


def test_core_rule_order():
    """Status, flat damage, percent damage and conversion run first, generics last."""
    assert RULE_NAMES[:5] == (
        "status_chance", "status_always", "flat_damage", "percent_damage", "conversion",
    )
    assert RULE_NAMES[-2:] == ("generic_percent", "generic_flat")


def test_get_rule_unknown():
    with pytest.raises(KeyError):
        get_rule("no_such_rule")


# ── Classification table ─────────────────────────────────

CLASSIFY_CASES = [
    # text                                            rule                  kind                     damage type           stat key
    ("Adds (5-7) Physical Damage",                    "flat_damage",        ModifierKind.FLAT,       DamageType.PHYSICAL,  "addedPhysicalDamage"),
    ("Adds (16-21) to (32-38) Physical Damage",       "flat_damage",        ModifierKind.FLAT,       DamageType.PHYSICAL,  "addedPhysicalDamage"),
    ("Adds 1 to (5-6) Lightning Damage",              "flat_damage",        ModifierKind.FLAT,       DamageType.LIGHTNING, "addedLightningDamage"),
    ("(40-54)% increased Lightning Damage",           "percent_damage",     ModifierKind.INCREASED,  DamageType.LIGHTNING, "increasedLightningDamage"),
    ("(20-30)% more Fire Damage",                     "percent_damage",     ModifierKind.MORE,       DamageType.FIRE,      "moreFireDamage"),
    ("15% less Cold Damage",                          "percent_damage",     ModifierKind.LESS,       DamageType.COLD,      "lessColdDamage"),
    ("10% decreased Chaos Damage",                    "percent_damage",     ModifierKind.REDUCED,    DamageType.CHAOS,     "reducedChaosDamage"),
    ("1-14 Lightning damage",                         "damage_roll",        ModifierKind.FLAT,       DamageType.LIGHTNING, "baseLightningDamage"),
    ("Deal 20% more damage to Bleeding enemies",      "conditional_damage", ModifierKind.MORE,       DamageType.NONE,      "damageVsBleeding"),
    ("Deal 15% more damage when below half life",     "conditional_damage", ModifierKind.MORE,       DamageType.NONE,      "conditionalDamage"),
    ("Gain 3 Life on hit",                            "life_on_hit",        ModifierKind.FLAT,       DamageType.NONE,      "lifeOnHit"),
    ("5% of damage as lifesteal",                     "lifesteal",          ModifierKind.FLAT,       DamageType.NONE,      "lifeLeech"),
    ("10% to Critical Strike Chance",                 "critical_strike",    ModifierKind.FLAT,       DamageType.NONE,      "criticalStrikeChance"),
    ("(10-15)% increased Critical Strike Multiplier", "critical_strike",    ModifierKind.INCREASED,  DamageType.NONE,      "criticalStrikeMultiplier"),
    ("Costs 1 less Mana",                             "mana_cost_flat",     ModifierKind.FLAT,       DamageType.NONE,      "manaCostReduction"),
    ("20% reduced Mana Cost",                         "mana_cost_percent",  ModifierKind.REDUCED,    DamageType.NONE,      "manaCostReductionPercent"),
    ("Echo 2 times",                                  "echo_count",         ModifierKind.FLAT,       DamageType.NONE,      "echoCount"),
    ("Hit adjacent enemies for 50% effect",           "adjacent_hit",       ModifierKind.FLAT,       DamageType.NONE,      "adjacentHitEffectPercent"),
    ("Targets all enemies",                           "targets_all",        ModifierKind.FLAT,       DamageType.NONE,      "targetsAllEnemies"),
    ("25% increased Stagger",                         "stagger",            ModifierKind.INCREASED,  DamageType.NONE,      "staggerMultiplier"),
    ("Gain 2 Momentum stacks",                        "stacks",             ModifierKind.FLAT,       DamageType.NONE,      "momentumStacks"),
    ("30% more Preparation Charges",                  "preparation_charges", ModifierKind.MORE,      DamageType.NONE,      "preparationChargeMultiplier"),
    ("Penetrate 10% enemy Fire Resistance",           "penetration",        ModifierKind.FLAT,       DamageType.FIRE,      "fireResistancePenetration"),
    ("Instantly kill enemies at 10% or less life",    "culling",            ModifierKind.FLAT,       DamageType.NONE,      "cullingThreshold"),
    ("Ignore enemy block",                            "ignore_block",       ModifierKind.FLAT,       DamageType.NONE,      "ignoreBlock"),
    ("Chain to +1 random target",                     "chain",              ModifierKind.FLAT,       DamageType.NONE,      "chainTargets"),
    ("Spread to all enemies",                         "spread",             ModifierKind.FLAT,       DamageType.NONE,      "spreadToAllEnemies"),
    ("+(1-2) Wave card draw",                         "card_draw",          ModifierKind.FLAT,       DamageType.NONE,      "cardsDrawnPerWave"),
    ("+(1-2) End Turn Card Draw",                     "card_draw",          ModifierKind.FLAT,       DamageType.NONE,      "cardsDrawnPerTurn"),
    ("Regenerate (1.2–1.6)% of Life per turn",        "regen_per_turn",     ModifierKind.FLAT,       DamageType.NONE,      "lifeRegenerationPercent"),
    ("20% chance to consume Crumble on hit",          "chance_to_consume",  ModifierKind.FLAT,       DamageType.NONE,      "chanceToConsumeCrumble"),
    ("(5-7)% increased Attack Speed",                 "generic_percent",    ModifierKind.INCREASED,  DamageType.NONE,      "attackSpeed"),
    ("10% increased Stagger Duration on Enemies",     "generic_percent",    ModifierKind.INCREASED,  DamageType.NONE,      "increasedStaggerDuration"),
    ("12% reduced Enemy Stagger Threshold",           "generic_percent",    ModifierKind.REDUCED,    DamageType.NONE,      "reducedEnemyStaggerThreshold"),
    ("(10-20)% increased Elemental Damage",           "generic_percent",    ModifierKind.INCREASED,  DamageType.NONE,      "increasedElementalDamage"),
    ("+(15-25) to Strength",                          "generic_flat",       ModifierKind.FLAT,       DamageType.NONE,      "strength"),
    ("+42 to maximum Life",                           "generic_flat",       ModifierKind.FLAT,       DamageType.NONE,      "maxHealth"),
    ("+(10-15)% to Fire Resistance",                  "generic_flat",       ModifierKind.FLAT,       DamageType.NONE,      "fireResistance"),
]


@pytest.mark.parametrize("text,rule,kind,damage_type,stat_key", CLASSIFY_CASES)
def test_classify(text, rule, kind, damage_type, stat_key):
    """Parametrized: each phrasing lands on its rule with the expected fields."""
    result = classify(text)
    assert result is not None, f"No rule matched {text!r}"
    assert result.rule == rule
    assert result.action == ACTION_MODIFIER
    assert result.error is None
    assert result.kind is kind
    assert result.damage_type is damage_type
    assert result.stat_key == stat_key


def test_flag_rules_carry_single_one():
    """On/off effects record the value 1."""
    for text in ("Ignore enemy block", "Targets all enemies", "Spread to all enemies"):
        assert classify(text).found.first == (1, 1)


def test_rule_located_numbers():
    """Rules that locate their own numbers hand them to the engine."""
    assert classify("Regenerate (1.2–1.6)% of Life per turn").found.first == (1.2, 1.6)
    assert classify("+(1-2) Wave card draw").found.first == (1, 2)
    assert classify("-5 to Strength").found.first == (-5, -5)


# ── Priority ─────────────────────────────────────────────

def test_adds_beats_percent_rules():
    """'Adds' is always Flat, even with a percent elsewhere in the clause."""
    result = classify("Adds (5-7) Physical Damage to attacks with 10% increased speed")
    assert result.rule == "flat_damage"
    assert result.kind is ModifierKind.FLAT


def test_percent_damage_beats_generic_percent():
    assert classify("(20-30)% increased Physical Damage").rule == "percent_damage"


def test_more_checked_before_increased():
    assert detect_kind("10% increased and 5% more damage") is ModifierKind.MORE
    assert detect_kind("5% less damage, 10% reduced speed") is ModifierKind.LESS
    assert detect_kind("20% decreased duration") is ModifierKind.REDUCED
    assert detect_kind("+15 to Strength") is ModifierKind.FLAT


# ── Status application ───────────────────────────────────

STATUS_CASES = [
    ("20% chance to apply Bleed on hit",               "Bleed",  (20, 20)),
    ("+5-7% chance to Shock on Hit",                   "Shock",  (5, 7)),
    ("(10-15)% chance to cause Ignite",                "Ignite", (10, 15)),
    ("25% chance to cause enemies hit to Crumble",     "Crumble", (25, 25)),
    ("+2-3% chance to cause Bleeding on Hit",          "Bleed",  (2, 3)),
    ("+5-7% chance to Stun on Hit",                    "Stun",   (5, 7)),
    ("20% chance to apply Vulnerable on hit",          "Vulnerable", (20, 20)),
    ("10% chance to apply Burn",                       "Burn",   (10, 10)),
]


@pytest.mark.parametrize("text,status,chance", STATUS_CASES)
def test_status_with_chance(text, status, chance):
    """Parametrized: chance phrasings classify as status application."""
    result = classify(text)
    assert result.action == ACTION_APPLY_STATUS
    assert result.status == status
    assert result.found.first == chance


@pytest.mark.parametrize("text", ["Attacks apply Poison", "Embossed cards apply Chill", "Attacks apply Slow"])
def test_status_without_chance(text):
    """Subject phrasings have no chance; the engine treats that as certain."""
    result = classify(text)
    assert result.rule == "status_always"
    assert result.found is None


def test_cannot_apply_blocks_status_rules():
    """Explicit negation keeps the status rules from firing."""
    assert classify("Attacks cannot apply Bleed") is None
    result = classify("Cannot apply Ignite, 20% chance to apply Bleed")
    assert result is None or result.action != ACTION_APPLY_STATUS


# ── Conversion ───────────────────────────────────────────

def test_conversion():
    result = classify("50% of Physical Damage as extra Fire")
    assert result.action == ACTION_CONVERT
    assert result.damage_type is DamageType.PHYSICAL
    assert result.target_type is DamageType.FIRE
    assert result.found.first == (50, 50)


def test_conversion_added_as_extra():
    result = classify("Gain 20% of Cold Damage added as extra Lightning Damage")
    assert result.action == ACTION_CONVERT
    assert result.error is None
    assert (result.damage_type, result.target_type) == (DamageType.COLD, DamageType.LIGHTNING)


# ── Conflicts & misses ───────────────────────────────────

CONFLICT_CASES = [
    "(10-20)% increased Fire and Cold Damage",
    "Adds 5 Fire and 3 Cold Damage",
    "1-10 Fire, Lightning damage",
    "Adds 5 Fire Damage and 3 Cold Damage",
    "(10-20)% increased Fire Damage and 5% increased Cold Damage",
]


@pytest.mark.parametrize("text", CONFLICT_CASES)
def test_conflicting_damage_types(text):
    """Parametrized: two damage types in one damage clause are flagged."""
    result = classify(text)
    assert result is not None
    assert result.error is ParseErrorKind.CONFLICTING_DAMAGE_TYPES


@pytest.mark.parametrize("text", ["Whispers of the void", "", "   ", None])
def test_no_rule_matches(text):
    assert classify(text) is None


def test_rules_are_independently_testable():
    """Each rule can be matched on its own."""
    rule = get_rule("generic_flat")
    assert rule.match("+(15-25) to Strength") is not None
    assert rule.match("Adds (5-7) Physical Damage") is None
    assert all(r.trigger.pattern for r in RULES)


@pytest.mark.parametrize("text,status", [
    ("Attacks apply Slow", "Slow"),
    ("Cards apply Vulnerability", "Vulnerable"),
    ("15% chance to cause Burning", "Burn"),
])
def test_status_word_forms(text, status):
    """Parametrized: participles and noun forms name the base status."""
    assert classify(text).status == status
