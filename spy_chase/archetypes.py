"""
Ground Archetypes
=================
Stats and steering parameters for every ground vehicle, and the
level-gated tables that pick which enemy a wave slot becomes.

A behavior function in `vehicles.py` reads its numbers from the row for
its archetype; adding a variant means one row here and one function
there.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple

from .engine import (
    NEON_CYAN, NEON_RED, NEON_ORANGE, NEON_YELLOW, NEON_MAGENTA,
    NEON_GREEN, GRAY_LIGHT
)


CIVILIAN = 'civilian'
CHASER = 'chaser'
MOTORCYCLE = 'motorcycle'
ARMORED = 'armored'
SHOOTER = 'shooter'
BLOCKER = 'blocker'
RAMMER = 'rammer'

ENEMY_ARCHETYPES = (CHASER, MOTORCYCLE, ARMORED, SHOOTER, BLOCKER, RAMMER)


@dataclass(frozen=True)
class ArchetypeStats:
    health: int
    points: int
    speed_factor: float             # x road speed
    label: str
    label_color: int
    glyph: str
    color: int
    scale: float = 1.0
    retarget_interval: float = 0.0  # ms, 0 = never
    lateral_speed: float = 0.0      # px/s
    dead_zone: float = 0.0          # px
    can_shoot: bool = False
    shoot_cooldown: float = 2000.0
    projectile_speed: float = 200.0


# =============================================================================
# STATS TABLE
# =============================================================================

ARCHETYPES: Dict[str, ArchetypeStats] = {
    CIVILIAN: ArchetypeStats(
        health=1, points=-50, speed_factor=0.8,
        label='AVOID', label_color=NEON_GREEN,
        glyph='[c]', color=GRAY_LIGHT,
        lateral_speed=30, dead_zone=5,
    ),
    CHASER: ArchetypeStats(
        health=2, points=100, speed_factor=1.2,
        label='ENEMY', label_color=NEON_RED,
        glyph='<X>', color=NEON_RED,
        retarget_interval=2000, lateral_speed=60, dead_zone=15,
    ),
    MOTORCYCLE: ArchetypeStats(
        health=1, points=100, speed_factor=1.4,
        label='ENEMY', label_color=NEON_RED,
        glyph='/\\', color=NEON_ORANGE,
        retarget_interval=1500, lateral_speed=80, dead_zone=5,
    ),
    ARMORED: ArchetypeStats(
        health=5, points=200, speed_factor=1.0,
        label='ARMOR', label_color=NEON_ORANGE,
        glyph='[#]', color=NEON_YELLOW, scale=1.3,
        retarget_interval=3000, lateral_speed=40, dead_zone=20,
    ),
    SHOOTER: ArchetypeStats(
        health=2, points=150, speed_factor=0.9,
        label='SNIPER', label_color=NEON_MAGENTA,
        glyph='<+>', color=NEON_MAGENTA,
        can_shoot=True, shoot_cooldown=2000, projectile_speed=200,
    ),
    BLOCKER: ArchetypeStats(
        health=3, points=100, speed_factor=0.6,
        label='BLOCK', label_color=NEON_CYAN,
        glyph='[=]', color=NEON_CYAN, scale=1.2,
        retarget_interval=1000, lateral_speed=100, dead_zone=10,
    ),
    RAMMER: ArchetypeStats(
        health=3, points=150, speed_factor=1.25,
        label='RAMMER', label_color=NEON_RED,
        glyph='>X<', color=NEON_RED, scale=1.1,
        retarget_interval=1200, lateral_speed=120, dead_zone=8,
    ),
}


def stats_for(archetype: str) -> ArchetypeStats:
    """Row for an archetype; unknown names fall back to the chaser."""
    return ARCHETYPES.get(archetype, ARCHETYPES[CHASER])


# =============================================================================
# SPAWN TABLES
# =============================================================================
# Each entry is (min_level, cumulative_roll_threshold, archetype). The
# first entry whose level gate is open and whose threshold exceeds the
# roll wins. The final entry must catch every roll.

SpawnTable = List[Tuple[int, float, str]]

SPAWN_TABLES: Dict[str, SpawnTable] = {
    'classic': [
        (4, 0.15, ARMORED),
        (3, 0.25, SHOOTER),
        (2, 0.35, BLOCKER),
        (1, 0.60, CHASER),
        (1, 1.01, MOTORCYCLE),
    ],
    # Later revision with the Rammer unlocked alongside shooters
    'rammer': [
        (4, 0.12, ARMORED),
        (3, 0.22, SHOOTER),
        (3, 0.32, RAMMER),
        (2, 0.42, BLOCKER),
        (1, 0.68, CHASER),
        (1, 1.01, MOTORCYCLE),
    ],
}


def select_archetype(level: int, roll: float, table: str = 'classic') -> str:
    """Pick an enemy archetype for a level from a roll in [0, 1)."""
    try:
        entries = SPAWN_TABLES[table]
    except KeyError:
        raise ValueError(f"unknown spawn table: {table!r}") from None

    for min_level, threshold, archetype in entries:
        if level >= min_level and roll < threshold:
            return archetype
    return entries[-1][2]
