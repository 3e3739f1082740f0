"""
Particle Bursts
===============
Short-lived cosmetic entities: explosions, collision sparks, smoke.
They carry no CollisionBox, so combat never sees them.
"""

import math
import random
from typing import List, Optional

from .ecs import World
from .components import Position, Velocity, Renderable, Lifetime, ParticleTag
from .engine import (
    NEON_YELLOW, NEON_ORANGE, NEON_RED, GRAY_LIGHT, GRAY_MED, WHITE
)


def spawn_particle(
    world: World,
    x: float, y: float,
    vx: float, vy: float,
    char: str = '.',
    color: int = WHITE,
    lifetime: float = 400.0
) -> int:
    """Spawn one particle. Velocity in px/s, lifetime in ms."""
    entity_id = world.create_entity()
    world.add_component(entity_id, Position(x, y))
    world.add_component(entity_id, Velocity(vx, vy))
    world.add_component(entity_id, Renderable(glyph=char, color=color, layer=8))
    world.add_component(entity_id, Lifetime(lifetime))
    world.add_component(entity_id, ParticleTag())
    return entity_id


def spawn_explosion(
    world: World,
    x: float, y: float,
    scale: float = 1.0,
    colors: Optional[List[int]] = None,
    chars: Optional[List[str]] = None,
    rng: Optional[random.Random] = None
):
    """Radial burst sized by `scale`."""
    rng = rng or random
    if colors is None:
        colors = [NEON_YELLOW, NEON_ORANGE, NEON_RED, WHITE]
    if chars is None:
        chars = ['*', '#', '+', '.', 'x']

    count = int(10 * scale)
    for _ in range(count):
        angle = rng.uniform(0, math.pi * 2)
        speed = rng.uniform(40, 160) * scale
        spawn_particle(
            world, x, y,
            math.cos(angle) * speed, math.sin(angle) * speed,
            char=rng.choice(chars),
            color=rng.choice(colors),
            lifetime=rng.uniform(250, 600)
        )


def spawn_sparks(world: World, x: float, y: float,
                 rng: Optional[random.Random] = None):
    """Five yellow sparks at a side-swipe contact point."""
    rng = rng or random
    for _ in range(5):
        spawn_particle(
            world,
            x + rng.uniform(-10, 10), y + rng.uniform(-10, 10),
            rng.uniform(-100, 100), rng.uniform(-100, 100),
            char='*', color=NEON_YELLOW, lifetime=300
        )


def spawn_smoke(world: World, x: float, y: float, count: int = 8,
                rng: Optional[random.Random] = None):
    """Ring of smoke puffs drifting upward."""
    rng = rng or random
    for i in range(count):
        angle = (i / count) * math.pi * 2
        spawn_particle(
            world,
            x + math.cos(angle) * 20, y + math.sin(angle) * 20,
            math.cos(angle) * 20, -rng.uniform(25, 60),
            char=rng.choice(['o', 'O', '@']),
            color=rng.choice([GRAY_LIGHT, GRAY_MED]),
            lifetime=rng.uniform(600, 800)
        )
