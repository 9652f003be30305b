"""Shared fixtures for the Affix Engine test suite."""

import sys
import logging
from pathlib import Path

import pytest

# Ensure src/ is importable
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from modifier_types import ParseHints
from tag_matcher import BaseStats, CompatibilityQuery, Handedness

logger = logging.getLogger(__name__)


# ── Helper factories ─────────────────────────────────────

def make_query(required=(), item_tags=(), handedness=Handedness.BOTH,
               armour=0, evasion=0, energy_shield=0):
    """Shorthand to create a CompatibilityQuery for testing."""
    return CompatibilityQuery(
        required_tags=frozenset(required),
        handedness=handedness,
        item_tags=frozenset(item_tags),
        item_base_stats=BaseStats(armour=armour, evasion=evasion, energy_shield=energy_shield),
    )


def make_hints(tier=None, level=None, stat=None, value_range=None):
    """Shorthand to create ParseHints for testing."""
    return ParseHints(
        explicit_tier=tier,
        item_level=level,
        explicit_stat_name=stat,
        explicit_range=value_range,
    )


# ── Fixtures ─────────────────────────────────────────────

@pytest.fixture
def descriptions_file(tmp_path):
    """A small description file covering every outcome."""
    path = tmp_path / "affixes.txt"
    path.write_text(
        "\n".join([
            "+(15-25) to Strength",
            "20% chance to apply Bleed on hit",
            "(40-54)% increased Lightning Damage",
            "",
            "Whispers of the void",
            "(10-20)% increased Fire and Cold Damage",
        ]) + "\n",
        encoding="utf-8",
    )
    return path
