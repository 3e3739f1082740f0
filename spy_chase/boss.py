"""
Boss Encounters
===============
A boss drives onto the top of the screen, then duels the player until
its health runs out.

Phases are gated by remaining health: at 60% it enters phase 2, at 30%
phase 3. The phase only ever rises. Each phase speeds up lateral
tracking (50 + 20*phase px/s) and divides the attack cooldown by the
phase number; from phase 2 an attack may include a ram dash.
"""

from dataclasses import dataclass
from typing import Dict

from loguru import logger

from .components import (
    Position, Velocity, CollisionBox, Health, Label, Renderable,
    BossState, BossPhase, ProjectileGroup
)
from .context import GameContext
from .engine import NEON_RED, NEON_YELLOW, NEON_GREEN, NEON_ORANGE, GRAY_MED
from .events import BOSS_DEFEATED
from .player import add_score
from .projectiles import fire_aimed, cull_group, release_group, BOSS_SHOT
from .systems import start_tween, is_tweening, steer_toward, clamp


ARMORED_TRUCK = 'armored_truck'
WEAPON_VAN = 'weapon_van'
TANK = 'tank'
SUPER_HELICOPTER = 'super_heli'

BOSS_SHOT_DAMAGE = 15
ENTRY_START_Y = -100.0
ENTRY_END_Y = 120.0
ENTRY_DURATION = 2000.0
MIN_Y = 80.0
RETARGET_INTERVAL = 1000.0
DEAD_ZONE = 10.0
RAM_DISTANCE = 80.0
RAM_DURATION = 300.0
RAM_CHANCE = 0.3
DEATH_BLASTS = 5
DEATH_BLAST_SPACING = 200.0


@dataclass(frozen=True)
class BossType:
    name: str
    health: int
    points: int
    speed_factor: float
    damage: int
    scale: float
    can_shoot: bool
    attack_cooldown: float
    glyph: str
    color: int


BOSS_TYPES: Dict[str, BossType] = {
    ARMORED_TRUCK: BossType('ARMORED TRUCK', 12, 500, 0.9, 25, 1.5, False, 2000,
                            '[###]', GRAY_MED),
    WEAPON_VAN: BossType('WEAPON VAN', 10, 750, 0.85, 20, 1.4, True, 1800,
                         '[=V=]', NEON_RED),
    TANK: BossType('BATTLE TANK', 18, 1000, 0.7, 35, 1.8, True, 2500,
                   '<[O]=', NEON_GREEN),
    SUPER_HELICOPTER: BossType('ATTACK CHOPPER', 15, 1500, 0.5, 30, 1.6, True, 1200,
                               '=[H]=', NEON_YELLOW),
}


def create_boss(ctx: GameContext, boss_type: str) -> int:
    """Spawn a boss above the screen center; it tweens down into place."""
    try:
        stats = BOSS_TYPES[boss_type]
    except KeyError:
        raise ValueError(f"unknown boss type: {boss_type!r}") from None

    cfg = ctx.config
    world = ctx.world
    entity_id = world.create_entity()
    x = cfg.width / 2

    world.add_component(entity_id, Position(x, ENTRY_START_Y))
    world.add_component(entity_id, Velocity(0, 0))
    world.add_component(entity_id, CollisionBox(40 * stats.scale, 60 * stats.scale))
    world.add_component(entity_id, Health(stats.health, stats.health))
    world.add_component(entity_id, Label(stats.name, NEON_RED))
    world.add_component(entity_id, Renderable(glyph=stats.glyph, color=stats.color, layer=8))
    world.add_component(entity_id, ProjectileGroup())
    world.add_component(entity_id, BossState(
        boss_type=boss_type,
        name=stats.name,
        damage=stats.damage,
        can_shoot=stats.can_shoot,
        attack_cooldown=stats.attack_cooldown,
        speed=cfg.road_speed * stats.speed_factor,
        target_x=x,
    ))

    def _entered():
        state = world.get_component(entity_id, BossState)
        if state is not None:
            state.entry_complete = True

    start_tween(world, entity_id, 'y', ENTRY_END_Y, ENTRY_DURATION,
                ease='power2', on_complete=_entered)

    ctx.effects.announce('WARNING!', 'BOSS APPROACHING', NEON_RED, 2500)
    ctx.effects.play('missile')
    logger.info("boss spawned: {}", stats.name)
    return entity_id


# =============================================================================
# UPDATE
# =============================================================================

def update_boss(ctx: GameContext, entity_id: int, time: float,
                delta: float, road_speed: float) -> None:
    world = ctx.world
    if not world.is_alive(entity_id):
        return
    state = world.get_component(entity_id, BossState)
    if state is None or not state.entry_complete:
        return

    state.move_timer += delta
    state.attack_timer += delta

    _run_ai(ctx, entity_id, state, road_speed)
    cull_group(world, entity_id, ctx.config)
    update_phase(ctx, entity_id)


def _run_ai(ctx: GameContext, entity_id: int, state: BossState, road_speed: float) -> None:
    world = ctx.world
    player = ctx.player_position()
    if player is None:
        return
    cfg = ctx.config
    pos = world.get_component(entity_id, Position)
    vel = world.get_component(entity_id, Velocity)

    state.ramming = is_tweening(world, entity_id)
    if state.ramming:
        vel.y = 0.0
    else:
        vel.y = road_speed - state.speed
        if pos.y < MIN_Y:
            pos.y = MIN_Y
            vel.y = 0.0
        if pos.y > cfg.height * 0.4:
            pos.y = cfg.height * 0.4

    if state.move_timer > RETARGET_INTERVAL:
        state.move_timer = 0.0
        state.target_x = clamp(player.x + ctx.rng.randint(-30, 30),
                               cfg.road_margin + 40,
                               cfg.width - cfg.road_margin - 40)

    move_speed = 50 + state.phase * 20
    vel.x = steer_toward(pos.x, state.target_x, move_speed, DEAD_ZONE)

    if state.attack_timer > state.attack_cooldown / state.phase:
        state.attack_timer = 0.0
        _attack(ctx, entity_id, state, pos, player)


def _attack(ctx: GameContext, entity_id: int, state: BossState,
            pos: Position, player: Position) -> None:
    if state.can_shoot:
        fire_aimed(ctx.world, entity_id, pos.x, pos.y + 40, player.x, player.y,
                   250 + state.phase * 50, kind=BOSS_SHOT, damage=BOSS_SHOT_DAMAGE)
        ctx.effects.play('shoot')

    if state.phase >= BossPhase.TWO and ctx.rng.random() < RAM_CHANCE:
        state.rams += 1
        start_tween(ctx.world, entity_id, 'y', pos.y + RAM_DISTANCE,
                    RAM_DURATION, ease='power2', yoyo=True)


def update_phase(ctx: GameContext, entity_id: int) -> int:
    """Raise the phase to match remaining health; never lowers it."""
    world = ctx.world
    state = world.get_component(entity_id, BossState)
    health = world.get_component(entity_id, Health)
    if state is None or health is None:
        return BossPhase.ONE

    fraction = health.current / health.maximum
    pos = world.get_component(entity_id, Position)
    if fraction <= 0.3 and state.phase < BossPhase.THREE:
        state.phase = BossPhase.THREE
        ctx.effects.floating_text(pos.x, pos.y - 80, 'ENRAGED!', NEON_YELLOW)
        logger.info("{} enraged", state.name)
    elif fraction <= 0.6 and state.phase < BossPhase.TWO:
        state.phase = BossPhase.TWO
        ctx.effects.floating_text(pos.x, pos.y - 80, 'PHASE 2', NEON_YELLOW)
        logger.info("{} phase 2", state.name)
    return state.phase


# =============================================================================
# DAMAGE & DEATH
# =============================================================================

def take_damage(ctx: GameContext, entity_id: int, amount: int) -> bool:
    """Returns True when this hit defeats the boss."""
    world = ctx.world
    if not world.is_alive(entity_id):
        return False
    health = world.get_component(entity_id, Health)
    health.current -= amount
    ctx.effects.shake(100, 1)
    ctx.effects.play('enemy_hit')

    if health.current <= 0:
        _die(ctx, entity_id)
        return True
    update_phase(ctx, entity_id)
    return False


def _die(ctx: GameContext, entity_id: int) -> None:
    world = ctx.world
    pos = world.get_component(entity_id, Position)
    state = world.get_component(entity_id, BossState)
    stats = BOSS_TYPES[state.boss_type]
    x, y = pos.x, pos.y

    ctx.effects.explosion(x, y, 1.5)
    for i in range(1, DEATH_BLASTS):
        ox = ctx.rng.randint(-30, 30)
        oy = ctx.rng.randint(-30, 30)
        ctx.clock.delayed_call(i * DEATH_BLAST_SPACING,
                               _deferred_blast(ctx, x + ox, y + oy))

    ctx.effects.floating_text(x, y, f"+{stats.points}", NEON_GREEN)
    ctx.effects.announce('BOSS DEFEATED!', f"+{stats.points}", NEON_ORANGE, 2000)
    add_score(ctx, stats.points)

    destroy_boss(ctx, entity_id)
    logger.info("boss defeated: {}", stats.name)
    ctx.events.emit(BOSS_DEFEATED, boss_type=state.boss_type, points=stats.points)


def _deferred_blast(ctx: GameContext, x: float, y: float):
    def _blast():
        if ctx.torn_down:
            return
        ctx.effects.explosion(x, y, 1.5)
        ctx.effects.play('explosion')
    return _blast


def destroy_boss(ctx: GameContext, entity_id: int) -> None:
    world = ctx.world
    release_group(world, entity_id)
    world.remove_component(entity_id, Label)
    world.destroy_entity(entity_id)
