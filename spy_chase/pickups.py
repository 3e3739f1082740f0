"""
Road Hazards & Power-Ups
========================
Things lying on the road that scroll toward the player: oil spills, ice
and potholes that hurt, and pickups that help.

Both directors reschedule themselves with a fresh random delay after
every spawn, through their own TimerGroup.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List

from loguru import logger

from .clock import TimerGroup
from .components import (
    Position, Velocity, CollisionBox, Renderable, Label, Lifetime,
    Hazard, PowerUp, SpinOut, WeaponKind
)
from .context import GameContext
from .engine import (
    NEON_YELLOW, NEON_GREEN, NEON_CYAN, NEON_ORANGE, NEON_MAGENTA,
    GRAY_DARK, GRAY_LIGHT
)
from .player import (
    take_damage, set_invulnerable, add_ammo, add_life, add_score
)


# =============================================================================
# HAZARDS
# =============================================================================

OIL_SPILL = 'oil_spill'
ICE_PATCH = 'ice_patch'
POTHOLE = 'pothole'

SPIN_OUT_DURATION = 500.0


@dataclass(frozen=True)
class HazardStats:
    damage: int
    slow: float
    spin_chance: float
    duration: float     # ms, 0 = permanent
    width: int
    height: int
    glyph: str
    color: int
    warning: str


HAZARD_TYPES: Dict[str, HazardStats] = {
    OIL_SPILL: HazardStats(0, 0.0, 0.7, 10000, 60, 40, '~~~~', GRAY_DARK, 'OIL!'),
    ICE_PATCH: HazardStats(0, 0.5, 0.3, 15000, 80, 50, '::::', NEON_CYAN, 'ICE!'),
    POTHOLE: HazardStats(10, 0.3, 0.1, 0, 30, 30, '(o)', GRAY_LIGHT, 'BUMP!'),
}


def select_hazard(level: int, roll: float) -> str:
    if level >= 4 and roll < 0.3:
        return ICE_PATCH
    if roll < 0.6:
        return OIL_SPILL
    return POTHOLE


def create_hazard(ctx: GameContext, kind: str, x: float, y: float) -> int:
    stats = HAZARD_TYPES[kind]
    world = ctx.world
    eid = world.create_entity()
    world.add_component(eid, Position(x, y))
    world.add_component(eid, Velocity(0, 0))
    world.add_component(eid, CollisionBox(stats.width, stats.height))
    world.add_component(eid, Renderable(glyph=stats.glyph, color=stats.color, layer=1))
    world.add_component(eid, Hazard(kind=kind, damage=stats.damage, slow=stats.slow,
                                    spin_chance=stats.spin_chance))
    if stats.duration > 0:
        world.add_component(eid, Lifetime(stats.duration))
    return eid


def apply_hazard(ctx: GameContext, hazard_id: int) -> bool:
    """Hit the player with a hazard. Each hazard affects the player once."""
    world = ctx.world
    hazard = world.get_component(hazard_id, Hazard)
    state = ctx.player_state()
    if hazard is None or state is None or not world.is_alive(hazard_id):
        return False
    if hazard.triggered or state.invulnerable:
        return False
    hazard.triggered = True

    if hazard.damage > 0 and take_damage(ctx, hazard.damage):
        ctx.effects.flash_damage()
    if hazard.slow > 0:
        state.current_speed *= (1 - hazard.slow)
    if ctx.rng.random() < hazard.spin_chance:
        spin_out_player(ctx)

    ctx.effects.play('hit')
    pos = world.get_component(hazard_id, Position)
    ctx.effects.floating_text(pos.x, pos.y - 30, HAZARD_TYPES[hazard.kind].warning, NEON_YELLOW)
    return True


def spin_out_player(ctx: GameContext) -> None:
    world = ctx.world
    if world.has_component(ctx.player_id, SpinOut):
        return
    world.add_component(ctx.player_id, SpinOut(SPIN_OUT_DURATION))
    vel = world.get_component(ctx.player_id, Velocity)
    if vel is not None:
        vel.x = vel.y = 0.0


class HazardDirector:

    def __init__(self, ctx: GameContext, level_number: Callable[[], int],
                 spawn_rate: float = 8000.0, start_delay: float = 5000.0):
        self.ctx = ctx
        self.level_number = level_number
        self.spawn_rate = spawn_rate
        self.enabled = True
        self.timers = TimerGroup(ctx.clock, owner='hazards')
        self.timers.delayed_call(start_delay, self._schedule_next)

    def _schedule_next(self) -> None:
        if not self.enabled:
            return
        delay = self.ctx.rng.uniform(self.spawn_rate * 0.7, self.spawn_rate * 1.3)
        self.timers.delayed_call(delay, self._spawn_and_reschedule)

    def _spawn_and_reschedule(self) -> None:
        self.spawn_hazard()
        self._schedule_next()

    def spawn_hazard(self) -> int:
        grid = self.ctx.config.lane_grid
        lane = self.ctx.rng.randint(0, grid.lanes - 1)
        kind = select_hazard(self.level_number(), self.ctx.rng.random())
        logger.debug("hazard {} in lane {}", kind, lane)
        return create_hazard(self.ctx, kind, grid.lane_x(lane), -50)

    def hazards(self) -> List[int]:
        return list(self.ctx.world.entities_with(Hazard))

    def update(self, time: float, delta: float, road_speed: float) -> None:
        world = self.ctx.world
        limit = self.ctx.config.height + 100
        for eid, pos, vel, _ in world.query(Position, Velocity, Hazard):
            vel.y = road_speed
            if pos.y > limit:
                world.destroy_entity(eid)

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled

    def destroy(self) -> None:
        self.timers.cancel_all()
        for eid in self.hazards():
            self.ctx.world.destroy_entity(eid)


# =============================================================================
# POWER-UPS
# =============================================================================

WEAPON_REFILL = 'weapon_refill'
SHIELD = 'shield'
SPEED_BOOST = 'speed_boost'
SCORE_BONUS = 'score_bonus'
EXTRA_LIFE = 'extra_life'

SHIELD_DURATION = 5000.0
SCORE_BONUS_POINTS = 500

# (cumulative roll threshold, kind)
POWERUP_TABLE = (
    (0.50, WEAPON_REFILL),
    (0.70, SHIELD),
    (0.85, SPEED_BOOST),
    (0.95, SCORE_BONUS),
    (1.01, EXTRA_LIFE),
)

POWERUP_LABELS = {
    WEAPON_REFILL: ('AMMO', NEON_GREEN),
    SHIELD: ('SHIELD', NEON_CYAN),
    SPEED_BOOST: ('SPEED', NEON_ORANGE),
    EXTRA_LIFE: ('+1 LIFE', NEON_MAGENTA),
    SCORE_BONUS: ('+500', NEON_YELLOW),
}


def select_powerup(roll: float) -> str:
    for threshold, kind in POWERUP_TABLE:
        if roll < threshold:
            return kind
    return POWERUP_TABLE[-1][1]


def create_powerup(ctx: GameContext, kind: str, x: float, y: float) -> int:
    text, color = POWERUP_LABELS[kind]
    world = ctx.world
    eid = world.create_entity()
    world.add_component(eid, Position(x, y))
    world.add_component(eid, Velocity(0, 0))
    world.add_component(eid, CollisionBox(24, 24))
    world.add_component(eid, Renderable(glyph='<*>', color=color, layer=2))
    world.add_component(eid, Label(text, color))
    world.add_component(eid, PowerUp(kind=kind))
    return eid


def collect_powerup(ctx: GameContext, powerup_id: int) -> bool:
    world = ctx.world
    powerup = world.get_component(powerup_id, PowerUp)
    state = ctx.player_state()
    if powerup is None or state is None or not world.is_alive(powerup_id):
        return False

    ctx.effects.play('powerup')
    kind = powerup.kind
    if kind == WEAPON_REFILL:
        add_ammo(ctx, WeaponKind.MISSILE, 3)
        add_ammo(ctx, WeaponKind.OIL_SLICK, 2)
        add_ammo(ctx, WeaponKind.SMOKE_SCREEN, 1)
        text = '+AMMO'
    elif kind == SHIELD:
        set_invulnerable(ctx, SHIELD_DURATION)
        text = 'SHIELD!'
    elif kind == SPEED_BOOST:
        state.current_speed = ctx.config.player_max_speed
        text = 'SPEED!'
    elif kind == EXTRA_LIFE:
        add_life(ctx)
        text = '+1 LIFE!'
    else:
        add_score(ctx, SCORE_BONUS_POINTS)
        text = f"+{SCORE_BONUS_POINTS}!"

    pos = world.get_component(powerup_id, Position)
    ctx.effects.floating_text(pos.x, pos.y, text, POWERUP_LABELS[kind][1])
    world.remove_component(powerup_id, Label)
    world.destroy_entity(powerup_id)
    return True


class PowerUpDirector:

    def __init__(self, ctx: GameContext, start_delay: float = 3000.0,
                 min_delay: float = 5000.0, max_delay: float = 10000.0):
        self.ctx = ctx
        self.min_delay = min_delay
        self.max_delay = max_delay
        self.timers = TimerGroup(ctx.clock, owner='powerups')
        self.timers.delayed_call(start_delay, self._spawn_and_reschedule)

    def _spawn_and_reschedule(self) -> None:
        self.spawn_powerup()
        delay = self.ctx.rng.uniform(self.min_delay, self.max_delay)
        self.timers.delayed_call(delay, self._spawn_and_reschedule)

    def spawn_powerup(self) -> int:
        grid = self.ctx.config.lane_grid
        lane = self.ctx.rng.randint(0, grid.lanes - 1)
        kind = select_powerup(self.ctx.rng.random())
        return create_powerup(self.ctx, kind, grid.lane_x(lane), -30)

    def powerups(self) -> List[int]:
        return list(self.ctx.world.entities_with(PowerUp))

    def update(self, time: float, delta: float, road_speed: float) -> None:
        world = self.ctx.world
        limit = self.ctx.config.height + 50
        for eid, pos, vel, _ in world.query(Position, Velocity, PowerUp):
            vel.y = road_speed
            if pos.y > limit:
                world.remove_component(eid, Label)
                world.destroy_entity(eid)

    def destroy(self) -> None:
        self.timers.cancel_all()
        for eid in self.powerups():
            self.ctx.world.destroy_entity(eid)
