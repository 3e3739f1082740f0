"""
Projectiles
===========
Spawning, ownership and cleanup of every shot in the encounter: player
bullets and missiles, shooter and boss rounds, helicopter bombs.

An owner keeps its shots in a ProjectileGroup. Releasing the group
destroys every member at once, which is how a dead actor avoids leaving
live collision targets behind.
"""

from typing import Iterator, List, Tuple

from .ecs import World
from .components import (
    Position, Velocity, CollisionBox, Renderable, Projectile, ProjectileGroup
)
from .config import GameConfig
from .engine import NEON_YELLOW, NEON_RED, NEON_ORANGE, WHITE
from .systems import direction_to


BULLET = 'bullet'
MISSILE = 'missile'
ENEMY_SHOT = 'enemy_shot'
BOSS_SHOT = 'boss_shot'
BOMB = 'bomb'

PLAYER_KINDS = (BULLET, MISSILE)
HOSTILE_KINDS = (ENEMY_SHOT, BOSS_SHOT)

_VISUALS = {
    BULLET: ('|', WHITE, 6, 12),
    MISSILE: ('^', NEON_ORANGE, 8, 16),
    ENEMY_SHOT: ('o', NEON_YELLOW, 10, 10),
    BOSS_SHOT: ('@', NEON_RED, 12, 12),
    BOMB: ('*', NEON_RED, 12, 12),
}


def spawn_projectile(
    world: World,
    x: float, y: float,
    vx: float, vy: float,
    kind: str = BULLET,
    damage: int = 1,
    owner_id: int = -1
) -> int:
    """Create a projectile and, if the owner has a group, enlist it."""
    glyph, color, w, h = _VISUALS.get(kind, _VISUALS[BULLET])

    eid = world.create_entity()
    world.add_component(eid, Position(x, y))
    world.add_component(eid, Velocity(vx, vy))
    world.add_component(eid, CollisionBox(w, h))
    world.add_component(eid, Renderable(glyph=glyph, color=color, layer=6))
    world.add_component(eid, Projectile(kind=kind, damage=damage, owner_id=owner_id))

    group = world.get_component(owner_id, ProjectileGroup) if owner_id >= 0 else None
    if group is not None:
        group.members.append(eid)
    return eid


def fire_aimed(
    world: World,
    owner_id: int,
    x: float, y: float,
    target_x: float, target_y: float,
    speed: float,
    kind: str = ENEMY_SHOT,
    damage: int = 15
) -> int:
    """Shot from (x, y) toward a point fixed at firing time."""
    dx, dy = direction_to(x, y, target_x, target_y)
    return spawn_projectile(world, x, y, dx * speed, dy * speed,
                            kind=kind, damage=damage, owner_id=owner_id)


def group_members(world: World, owner_id: int) -> List[int]:
    """Live members of an owner's group; dead ids are pruned."""
    group = world.get_component(owner_id, ProjectileGroup)
    if group is None:
        return []
    group.members = [m for m in group.members if world.is_alive(m)]
    return list(group.members)


def release_group(world: World, owner_id: int) -> int:
    """Destroy every projectile the owner still has. Returns the count."""
    group = world.get_component(owner_id, ProjectileGroup)
    if group is None:
        return 0
    released = 0
    for member in group.members:
        if world.is_alive(member):
            world.destroy_entity(member)
            released += 1
    group.members.clear()
    return released


def is_offscreen(pos: Position, config: GameConfig, margin: float = 50.0) -> bool:
    return (
        pos.y > config.height + margin or pos.y < -margin or
        pos.x < -margin or pos.x > config.width + margin
    )


def cull_group(world: World, owner_id: int, config: GameConfig,
               margin: float = 50.0) -> int:
    """Destroy an owner's projectiles that left the playfield."""
    culled = 0
    for member in group_members(world, owner_id):
        pos = world.get_component(member, Position)
        if pos is not None and is_offscreen(pos, config, margin):
            world.destroy_entity(member)
            culled += 1
    return culled


def projectiles_of(world: World, *kinds: str) -> Iterator[Tuple[int, Position, CollisionBox, Projectile]]:
    """Live projectiles of the given kinds, with their bodies."""
    for eid, pos, box, proj in world.query(Position, CollisionBox, Projectile):
        if proj.kind in kinds:
            yield eid, pos, box, proj
