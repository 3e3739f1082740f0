"""
Helicopter
==========
Airborne enemy confined to a shallow band near the top of the screen.

It flies in from one side, shadows the player horizontally, and drops
bombs aimed at where the player was when the bomb left the skid. A
shadow on the road marks the impact point and grows and darkens as the
bomb falls. The band creeps downward over time; once it passes 40% of
the screen height the helicopter leaves.
"""

from .components import (
    Position, Velocity, CollisionBox, Health, Label, Renderable,
    HelicopterState, ProjectileGroup, Bomb
)
from .context import GameContext
from .engine import NEON_RED, NEON_GREEN, GRAY_MED
from .player import add_score, take_damage as damage_player
from .projectiles import spawn_projectile, group_members, release_group, BOMB
from .systems import start_tween, is_tweening, steer_toward, clamp, distance


HELICOPTER_HEALTH = 5
HELICOPTER_POINTS = 300
BASE_Y = 80.0
BOMB_COOLDOWN = 3000.0
RETARGET_INTERVAL = 2000.0
LATERAL_SPEED = 60.0
DEAD_ZONE = 10.0
HOVER_RATE = 0.005       # px per ms
HOVER_LIMIT = 8.0
DRIFT_RATE = 0.01        # px per ms
ENTRY_DURATION = 1500.0
BOMB_FALL_TIME = 900.0
BLAST_RADIUS = 60.0
BLAST_DAMAGE = 35
SHADOW_DROP = 120.0
SHADOW_COLOR = GRAY_MED


def create_helicopter(ctx: GameContext, x: float) -> int:
    """Spawn a helicopter that flies in from a random side toward x."""
    cfg = ctx.config
    world = ctx.world
    entity_id = world.create_entity()

    start_x = -50.0 if ctx.rng.random() < 0.5 else cfg.width + 50.0
    world.add_component(entity_id, Position(start_x, BASE_Y))
    world.add_component(entity_id, Velocity(0, 0))
    world.add_component(entity_id, CollisionBox(50, 40))
    world.add_component(entity_id, Health(HELICOPTER_HEALTH, HELICOPTER_HEALTH))
    world.add_component(entity_id, Label('HELICOPTER', NEON_RED))
    world.add_component(entity_id, Renderable(glyph='-=H=-', color=NEON_RED, layer=9))
    world.add_component(entity_id, ProjectileGroup())
    world.add_component(entity_id, HelicopterState(
        base_y=BASE_Y,
        target_x=x,
        bomb_cooldown=BOMB_COOLDOWN,
        shadow_x=x,
        shadow_y=BASE_Y + SHADOW_DROP,
    ))

    def _arrived():
        state = world.get_component(entity_id, HelicopterState)
        if state is not None:
            state.entering = False

    start_tween(world, entity_id, 'x', x, ENTRY_DURATION, ease='power2',
                on_complete=_arrived)
    return entity_id


def update_helicopter(ctx: GameContext, entity_id: int, time: float,
                      delta: float, road_speed: float) -> None:
    world = ctx.world
    if not world.is_alive(entity_id):
        return
    pos = world.get_component(entity_id, Position)
    vel = world.get_component(entity_id, Velocity)
    state = world.get_component(entity_id, HelicopterState)
    cfg = ctx.config
    player = ctx.player_position()

    state.move_timer += delta
    state.bomb_timer += delta

    state.hover_offset += delta * HOVER_RATE * state.hover_direction
    if abs(state.hover_offset) > HOVER_LIMIT:
        state.hover_direction *= -1

    if state.move_timer > RETARGET_INTERVAL:
        state.move_timer = 0.0
        if player is not None:
            offset = ctx.rng.randint(-30, 30)
            state.target_x = clamp(player.x + offset,
                                   cfg.road_margin + 50,
                                   cfg.width - cfg.road_margin - 50)

    if is_tweening(world, entity_id):
        vel.x = 0.0
    else:
        vel.x = steer_toward(pos.x, state.target_x, LATERAL_SPEED, DEAD_ZONE)

    pos.y = state.base_y + state.hover_offset
    vel.y = 0.0
    state.base_y += delta * DRIFT_RATE

    state.shadow_x = pos.x
    state.shadow_y = pos.y + SHADOW_DROP

    if state.bomb_timer > state.bomb_cooldown and player is not None:
        state.bomb_timer = 0.0
        drop_bomb(ctx, entity_id, player.x, player.y)

    _update_bombs(ctx, entity_id)

    if state.base_y > cfg.height * 0.4:
        destroy_helicopter(ctx, entity_id)


def drop_bomb(ctx: GameContext, entity_id: int, target_x: float, target_y: float) -> int:
    """Release a bomb that reaches (target_x, target_y) after the fall time."""
    pos = ctx.world.get_component(entity_id, Position)
    start_x, start_y = pos.x, pos.y + 20
    seconds = BOMB_FALL_TIME / 1000.0

    bomb_id = spawn_projectile(
        ctx.world, start_x, start_y,
        (target_x - start_x) / seconds, (target_y - start_y) / seconds,
        kind=BOMB, damage=BLAST_DAMAGE, owner_id=entity_id,
    )
    ctx.world.add_component(bomb_id, Bomb(
        target_x=target_x, target_y=target_y, start_y=start_y,
    ))
    ctx.effects.play('missile')
    return bomb_id


def _update_bombs(ctx: GameContext, entity_id: int) -> None:
    world = ctx.world
    for bomb_id in group_members(world, entity_id):
        bomb = world.get_component(bomb_id, Bomb)
        pos = world.get_component(bomb_id, Position)
        if bomb is None or pos is None:
            continue

        progress = bomb.progress(pos.y)
        bomb.shadow_scale = 0.5 + progress * 0.5
        bomb.shadow_alpha = 0.3 + progress * 0.5

        if pos.y >= bomb.target_y:
            explode_bomb(ctx, bomb_id)


def explode_bomb(ctx: GameContext, bomb_id: int) -> bool:
    """Blast at the bomb's position. Returns True if the player was hit."""
    world = ctx.world
    if not world.is_alive(bomb_id):
        return False
    pos = world.get_component(bomb_id, Position)

    ctx.effects.explosion(pos.x, pos.y, 1.0)
    ctx.effects.play('explosion')

    hit = False
    player = ctx.player_position()
    if player is not None and distance(pos, player) < BLAST_RADIUS:
        if damage_player(ctx, BLAST_DAMAGE):
            ctx.effects.flash_damage()
            hit = True

    world.destroy_entity(bomb_id)
    return hit


def take_damage(ctx: GameContext, entity_id: int, amount: int) -> bool:
    world = ctx.world
    if not world.is_alive(entity_id):
        return False
    health = world.get_component(entity_id, Health)
    health.current -= amount
    if health.current > 0:
        return False

    pos = world.get_component(entity_id, Position)
    ctx.effects.explosion(pos.x, pos.y, 1.5)
    ctx.effects.floating_text(pos.x, pos.y, f"+{HELICOPTER_POINTS}", NEON_GREEN)
    ctx.effects.play('explosion')
    add_score(ctx, HELICOPTER_POINTS)
    destroy_helicopter(ctx, entity_id)
    return True


def destroy_helicopter(ctx: GameContext, entity_id: int) -> None:
    """Drop in-flight bombs, label and shadow with the airframe."""
    world = ctx.world
    release_group(world, entity_id)
    world.remove_component(entity_id, Label)
    world.destroy_entity(entity_id)
