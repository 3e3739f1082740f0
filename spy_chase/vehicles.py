"""
Ground Vehicles
===============
Civilians and every enemy car or bike: creation, per-tick steering,
damage and removal.

Each tick a vehicle's vertical velocity is its road-relative drift,
``road_speed - vehicle.speed``, so faster-than-road enemies climb the
screen from behind and slower traffic slides down toward the player.
The archetype's behavior function then sets the lateral term (and may
retune `vehicle.speed` for the next tick).

Behaviors:
    civilian    hold assigned lane center
    chaser      retarget player x, surge from behind, ease off ahead
    motorcycle  weave to an adjacent lane
    armored     slow retarget, wide dead zone
    shooter     hold lane, fire aimed rounds on a cooldown
    blocker     retarget player x, throttle to stay just ahead
    rammer      snap to the player's lane, surge from behind
"""

from typing import Callable, Dict, Optional

from .archetypes import (
    ArchetypeStats, stats_for,
    CIVILIAN, CHASER, MOTORCYCLE, ARMORED, SHOOTER, BLOCKER, RAMMER
)
from .components import (
    Position, Velocity, CollisionBox, Health, Vehicle, LaneAI, Label,
    Renderable, RangedAttack, ProjectileGroup, SpinOut
)
from .context import GameContext
from .engine import NEON_GREEN, NEON_RED
from .player import add_score
from .projectiles import fire_aimed, cull_group, release_group, ENEMY_SHOT
from .systems import steer_toward


ENEMY_SHOT_DAMAGE = 15
BASE_WIDTH = 36
BASE_HEIGHT = 56


def create_vehicle(ctx: GameContext, archetype: str, x: float, y: float,
                   lane: Optional[int] = None) -> int:
    """Spawn a ground vehicle of the given archetype at (x, y)."""
    stats = stats_for(archetype)
    cfg = ctx.config
    world = ctx.world
    entity_id = world.create_entity()

    points = -cfg.civilian_penalty if archetype == CIVILIAN else stats.points
    speed = cfg.road_speed * stats.speed_factor

    world.add_component(entity_id, Position(x, y))
    world.add_component(entity_id, Velocity(0, cfg.road_speed - speed))
    world.add_component(entity_id, CollisionBox(BASE_WIDTH * stats.scale,
                                                BASE_HEIGHT * stats.scale))
    world.add_component(entity_id, Health(stats.health, stats.health))
    world.add_component(entity_id, Vehicle(
        archetype=archetype,
        points=points,
        speed=speed,
        assigned_lane=lane,
        scale=stats.scale,
    ))
    world.add_component(entity_id, LaneAI(target_x=x))
    world.add_component(entity_id, Label(stats.label, stats.label_color))
    world.add_component(entity_id, Renderable(glyph=stats.glyph, color=stats.color, layer=5))

    if stats.can_shoot:
        world.add_component(entity_id, RangedAttack(
            cooldown=stats.shoot_cooldown,
            projectile_speed=stats.projectile_speed,
        ))
        world.add_component(entity_id, ProjectileGroup())

    return entity_id


# =============================================================================
# UPDATE
# =============================================================================

def update_vehicle(ctx: GameContext, entity_id: int, time: float,
                   delta: float, road_speed: float) -> None:
    world = ctx.world
    if not world.is_alive(entity_id):
        return
    pos = world.get_component(entity_id, Position)
    vel = world.get_component(entity_id, Velocity)
    vehicle = world.get_component(entity_id, Vehicle)
    ai = world.get_component(entity_id, LaneAI)
    if pos is None or vel is None or vehicle is None:
        return

    vel.y = road_speed - vehicle.speed

    if world.has_component(entity_id, SpinOut):
        vel.x = 0.0
    else:
        behavior = BEHAVIORS.get(vehicle.archetype, _chaser_behavior)
        behavior(ctx, entity_id, pos, vel, vehicle, ai, stats_for(vehicle.archetype), delta)

    if world.has_component(entity_id, ProjectileGroup):
        cull_group(world, entity_id, ctx.config)

    cfg = ctx.config
    if pos.y > cfg.height + 100 or pos.y < -100:
        destroy_vehicle(ctx, entity_id)


def _retarget_due(ai: LaneAI, stats: ArchetypeStats, delta: float) -> bool:
    ai.retarget_timer += delta
    if ai.retarget_timer > stats.retarget_interval:
        ai.retarget_timer = 0.0
        return True
    return False


def _civilian_behavior(ctx, entity_id, pos, vel, vehicle, ai, stats, delta):
    if vehicle.assigned_lane is None:
        vel.x = 0.0
        return
    lane_center = ctx.config.lane_grid.lane_x(vehicle.assigned_lane)
    vel.x = steer_toward(pos.x, lane_center, stats.lateral_speed, stats.dead_zone)


def _chaser_behavior(ctx, entity_id, pos, vel, vehicle, ai, stats, delta):
    player = ctx.player_position()
    if player is None:
        vel.x = 0.0
        return

    if _retarget_due(ai, stats, delta):
        ai.target_x = player.x
    vel.x = steer_toward(pos.x, ai.target_x, stats.lateral_speed, stats.dead_zone)

    road = ctx.config.road_speed
    if pos.y > player.y + 100:
        vehicle.speed = road * 1.3
    elif pos.y > player.y:
        vehicle.speed = road * 1.1
    else:
        vehicle.speed = road * 0.7


def _motorcycle_behavior(ctx, entity_id, pos, vel, vehicle, ai, stats, delta):
    grid = ctx.config.lane_grid
    if _retarget_due(ai, stats, delta):
        lane = grid.lane_from_x(pos.x)
        if lane <= 1:
            lane += 1
        elif lane >= grid.lanes - 2:
            lane -= 1
        else:
            lane += -1 if ctx.rng.random() < 0.5 else 1
        ai.target_x = grid.lane_x(grid.clamp(lane))
    vel.x = steer_toward(pos.x, ai.target_x, stats.lateral_speed, stats.dead_zone)


def _armored_behavior(ctx, entity_id, pos, vel, vehicle, ai, stats, delta):
    player = ctx.player_position()
    if player is None:
        vel.x = 0.0
        return
    if _retarget_due(ai, stats, delta):
        ai.target_x = player.x
    vel.x = steer_toward(pos.x, ai.target_x, stats.lateral_speed, stats.dead_zone)


def _shooter_behavior(ctx, entity_id, pos, vel, vehicle, ai, stats, delta):
    vel.x = 0.0
    player = ctx.player_position()
    attack = ctx.world.get_component(entity_id, RangedAttack)
    if player is None or attack is None:
        return

    attack.timer += delta
    if attack.timer >= attack.cooldown:
        attack.timer -= attack.cooldown
        attack.shots_fired += 1
        fire_aimed(ctx.world, entity_id, pos.x, pos.y + 30, player.x, player.y,
                   attack.projectile_speed, kind=ENEMY_SHOT, damage=ENEMY_SHOT_DAMAGE)
        ctx.effects.play('shoot')


def _blocker_behavior(ctx, entity_id, pos, vel, vehicle, ai, stats, delta):
    player = ctx.player_position()
    if player is None:
        vel.x = 0.0
        return
    if _retarget_due(ai, stats, delta):
        ai.target_x = player.x
    vel.x = steer_toward(pos.x, ai.target_x, stats.lateral_speed, stats.dead_zone)

    road = ctx.config.road_speed
    if pos.y > player.y - 150:
        vehicle.speed = road * 0.4
    else:
        vehicle.speed = road * 0.8


def _rammer_behavior(ctx, entity_id, pos, vel, vehicle, ai, stats, delta):
    player = ctx.player_position()
    if player is None:
        vel.x = 0.0
        return
    grid = ctx.config.lane_grid
    if _retarget_due(ai, stats, delta):
        ai.target_x = grid.lane_x(grid.clamp(grid.lane_from_x(player.x)))
    vel.x = steer_toward(pos.x, ai.target_x, stats.lateral_speed, stats.dead_zone)

    road = ctx.config.road_speed
    vehicle.speed = road * (1.35 if pos.y > player.y else 0.9)


BehaviorFn = Callable[..., None]

BEHAVIORS: Dict[str, BehaviorFn] = {
    CIVILIAN: _civilian_behavior,
    CHASER: _chaser_behavior,
    MOTORCYCLE: _motorcycle_behavior,
    ARMORED: _armored_behavior,
    SHOOTER: _shooter_behavior,
    BLOCKER: _blocker_behavior,
    RAMMER: _rammer_behavior,
}


# =============================================================================
# DAMAGE & REMOVAL
# =============================================================================

def take_damage(ctx: GameContext, entity_id: int, amount: int) -> bool:
    """
    Subtract health. Returns True if this hit killed the vehicle, in which
    case its points have been awarded and it has been removed.
    """
    world = ctx.world
    if not world.is_alive(entity_id):
        return False
    health = world.get_component(entity_id, Health)
    if health is None:
        return False

    health.current -= amount
    if health.current <= 0:
        _die(ctx, entity_id)
        return True
    return False


def _die(ctx: GameContext, entity_id: int) -> None:
    world = ctx.world
    pos = world.get_component(entity_id, Position)
    vehicle = world.get_component(entity_id, Vehicle)

    if pos is not None:
        ctx.effects.explosion(pos.x, pos.y, vehicle.scale if vehicle else 1.0)
        if vehicle is not None:
            text = f"+{vehicle.points}" if vehicle.points > 0 else f"{vehicle.points}"
            ctx.effects.floating_text(pos.x, pos.y, text,
                                      NEON_GREEN if vehicle.points > 0 else NEON_RED)
    if vehicle is not None:
        add_score(ctx, vehicle.points)

    destroy_vehicle(ctx, entity_id)


def destroy_vehicle(ctx: GameContext, entity_id: int) -> None:
    """Release owned projectiles and the label, then remove the vehicle."""
    world = ctx.world
    release_group(world, entity_id)
    world.remove_component(entity_id, Label)
    world.destroy_entity(entity_id)


def is_civilian(ctx: GameContext, entity_id: int) -> bool:
    vehicle = ctx.world.get_component(entity_id, Vehicle)
    return vehicle is not None and vehicle.archetype == CIVILIAN
