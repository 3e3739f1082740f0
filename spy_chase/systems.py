"""
ECS Systems
===========
Per-tick passes over every entity with the required components:
velocity integration, tweens, lifetimes, spin-outs, plus the overlap
helpers the encounter resolver is built on.

Actors only ever set velocities; positions move here, after every actor
has updated, so all actors in a tick read the previous tick's positions.
"""

import math
from typing import Tuple

from .ecs import World
from .components import (
    Position, Velocity, CollisionBox, Tween, Lifetime, SpinOut
)


# =============================================================================
# PHYSICS
# =============================================================================

def movement_system(world: World, delta: float):
    """Integrate velocity (px/s) over `delta` ms."""
    seconds = delta / 1000.0
    for entity_id, pos, vel in world.query(Position, Velocity):
        pos.x += vel.x * seconds
        pos.y += vel.y * seconds


# =============================================================================
# TWEENS
# =============================================================================

def _ease(name: str, t: float) -> float:
    if name == 'power2':
        # Quadratic ease-out
        return 1.0 - (1.0 - t) * (1.0 - t)
    return t


def tween_system(world: World, delta: float):
    """
    Advance every Tween and write the eased value onto its Position axis.

    Completion callbacks run after the component is removed, so a callback
    may install a fresh Tween on the same entity.
    """
    finished = []

    for entity_id, pos, tween in world.query(Position, Tween):
        tween.elapsed += delta
        t = min(1.0, tween.elapsed / tween.duration) if tween.duration > 0 else 1.0
        eased = _ease(tween.ease, t)

        if tween.returning:
            value = tween.end + (tween.start - tween.end) * eased
        else:
            value = tween.start + (tween.end - tween.start) * eased
        setattr(pos, tween.prop, value)

        if t < 1.0:
            continue
        if tween.yoyo and not tween.returning:
            tween.returning = True
            tween.elapsed = 0.0
            continue
        finished.append((entity_id, tween))

    for entity_id, tween in finished:
        if world.get_component(entity_id, Tween) is tween:
            world.remove_component(entity_id, Tween)
        if tween.on_complete is not None and world.is_alive(entity_id):
            tween.on_complete()


def start_tween(world: World, entity_id: int, prop: str, end: float,
                duration: float, ease: str = 'linear', yoyo: bool = False,
                on_complete=None) -> Tween:
    """Replace any running tween on the entity with a new one from its current value."""
    pos = world.get_component(entity_id, Position)
    start = getattr(pos, prop) if pos else 0.0
    tween = Tween(prop=prop, start=start, end=end, duration=duration,
                  ease=ease, yoyo=yoyo, on_complete=on_complete)
    world.add_component(entity_id, tween)
    return tween


def is_tweening(world: World, entity_id: int) -> bool:
    return world.has_component(entity_id, Tween)


# =============================================================================
# TIMED COMPONENTS
# =============================================================================

def lifetime_system(world: World, delta: float):
    for entity_id, lifetime in world.query(Lifetime):
        lifetime.remaining -= delta
        if lifetime.remaining <= 0:
            world.destroy_entity(entity_id)


def spin_out_system(world: World, delta: float):
    """Count down spin-outs; the finish hook runs only for live entities."""
    done = []
    for entity_id, spin in world.query(SpinOut):
        spin.remaining -= delta
        if spin.remaining <= 0:
            done.append((entity_id, spin))

    for entity_id, spin in done:
        world.remove_component(entity_id, SpinOut)
        if spin.on_finish is not None and world.is_alive(entity_id):
            spin.on_finish()


# =============================================================================
# COLLISION UTILITIES
# =============================================================================

def collision_check(
    pos1: Position, box1: CollisionBox,
    pos2: Position, box2: CollisionBox
) -> bool:
    """AABB overlap for boxes centered on their positions."""
    return (
        abs(pos1.x - pos2.x) * 2 < box1.width + box2.width and
        abs(pos1.y - pos2.y) * 2 < box1.height + box2.height
    )


def entities_overlap(world: World, a: int, b: int) -> bool:
    """Overlap test by entity id; False if either lacks a body."""
    pos_a = world.get_component(a, Position)
    box_a = world.get_component(a, CollisionBox)
    pos_b = world.get_component(b, Position)
    box_b = world.get_component(b, CollisionBox)
    if not (pos_a and box_a and pos_b and box_b):
        return False
    return collision_check(pos_a, box_a, pos_b, box_b)


def direction_to(from_x: float, from_y: float,
                 to_x: float, to_y: float) -> Tuple[float, float]:
    """Unit vector between two points, (0, 0) when they coincide."""
    dx = to_x - from_x
    dy = to_y - from_y
    dist = math.hypot(dx, dy)
    if dist > 0:
        return dx / dist, dy / dist
    return 0.0, 0.0


def distance(pos1: Position, pos2: Position) -> float:
    return math.hypot(pos2.x - pos1.x, pos2.y - pos1.y)


def steer_toward(current: float, target: float, speed: float,
                 dead_zone: float) -> float:
    """Lateral velocity toward target, zero inside the dead zone."""
    dx = target - current
    if abs(dx) > dead_zone:
        return speed if dx > 0 else -speed
    return 0.0


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
