"""
Player Car
==========
The player entity, its weapons and vitals, and terminal input mapping.

AI code only reads the player. Damage, score and ammo change through the
functions here, called by the encounter resolver, pickups and the
weapons van.
"""

from typing import Optional
import math

from loguru import logger

from .context import GameContext
from .components import (
    Position, Velocity, CollisionBox, Renderable, PlayerState, PlayerControls,
    ProjectileGroup, Projectile, Weapon, WeaponKind, OilSlick, Lifetime, SpinOut
)
from .engine import NEON_CYAN, GRAY_DARK, NEON_ORANGE, NEON_RED
from .events import (
    SCORE_UPDATE, HEALTH_UPDATE, LIVES_UPDATE, WEAPON_UPDATE, GAME_OVER
)
from .projectiles import spawn_projectile, PLAYER_KINDS, BULLET, MISSILE


STARTING_AMMO = {
    WeaponKind.MACHINE_GUN: math.inf,
    WeaponKind.MISSILE: 5,
    WeaponKind.OIL_SLICK: 3,
    WeaponKind.SMOKE_SCREEN: 2,
}

HIT_INVULNERABILITY = 1000.0
RESPAWN_INVULNERABILITY = 2000.0
SMOKE_DURATION = 3000.0
OIL_SLICK_LIFETIME = 5000.0
GRASS_DAMAGE = 5
GRASS_DAMAGE_INTERVAL = 500.0

# Speed change per ms while accelerating/braking, and while coasting back
THROTTLE_RATE = 0.12
COAST_RATE = 0.06
GRASS_DRAG_RATE = 0.3
PUSH_DECAY_RATE = 0.5    # px/s shed per ms of knockback


def create_player(ctx: GameContext) -> int:
    """Create the player car near the bottom center and register it on ctx."""
    cfg = ctx.config
    world = ctx.world
    entity_id = world.create_entity()

    world.add_component(entity_id, Position(cfg.width / 2, cfg.height - 100))
    world.add_component(entity_id, Velocity(0, 0))
    world.add_component(entity_id, CollisionBox(36, 60))
    world.add_component(entity_id, Renderable(glyph='/A\\', color=NEON_CYAN, layer=7))
    world.add_component(entity_id, ProjectileGroup())
    world.add_component(entity_id, PlayerState(
        health=cfg.starting_health,
        max_health=cfg.starting_health,
        lives=cfg.starting_lives,
        current_speed=cfg.road_speed,
        weapons={kind: Weapon(ammo=ammo) for kind, ammo in STARTING_AMMO.items()},
    ))

    ctx.player_id = entity_id
    return entity_id


# =============================================================================
# VITALS
# =============================================================================

def set_invulnerable(ctx: GameContext, duration: float) -> None:
    """Start (or restart) the single invulnerability window."""
    state = ctx.player_state()
    if state is None:
        return
    state.invulnerable = True
    if state.invulnerable_timer is not None:
        state.invulnerable_timer.cancel()

    player_id = ctx.player_id

    def _expire():
        if not ctx.owner_alive(player_id):
            return
        live = ctx.world.get_component(player_id, PlayerState)
        live.invulnerable = False
        live.invulnerable_timer = None

    state.invulnerable_timer = ctx.clock.delayed_call(duration, _expire)


def take_damage(ctx: GameContext, amount: int) -> bool:
    """Apply damage unless invulnerable. Returns True if it landed."""
    state = ctx.player_state()
    if state is None or state.invulnerable or state.game_over:
        return False

    state.health -= amount
    ctx.events.emit(HEALTH_UPDATE, health=state.health)
    set_invulnerable(ctx, HIT_INVULNERABILITY)

    if state.health <= 0:
        _lose_life(ctx, state)
    return True


def _lose_life(ctx: GameContext, state: PlayerState) -> None:
    state.lives -= 1
    ctx.events.emit(LIVES_UPDATE, lives=state.lives)

    pos = ctx.player_position()
    if pos is not None:
        ctx.effects.explosion(pos.x, pos.y, 1.5)
    ctx.effects.play('explosion')

    if state.lives <= 0:
        state.game_over = True
        logger.info("player out of lives, final score {}", int(state.score))
        ctx.events.emit(GAME_OVER, score=int(state.score))
        return

    cfg = ctx.config
    state.health = cfg.starting_health
    ctx.events.emit(HEALTH_UPDATE, health=state.health)
    state.push_x = 0.0
    if pos is not None:
        pos.x = cfg.width / 2
        pos.y = cfg.height - 100
    set_invulnerable(ctx, RESPAWN_INVULNERABILITY)


def add_score(ctx: GameContext, points: float) -> None:
    state = ctx.player_state()
    if state is None:
        return
    state.score += points
    ctx.events.emit(SCORE_UPDATE, score=int(state.score))


def heal(ctx: GameContext, amount: int) -> None:
    state = ctx.player_state()
    if state is None:
        return
    state.health = min(state.health + amount, state.max_health)
    ctx.events.emit(HEALTH_UPDATE, health=state.health)


def add_life(ctx: GameContext) -> None:
    state = ctx.player_state()
    if state is None:
        return
    state.lives += 1
    ctx.events.emit(LIVES_UPDATE, lives=state.lives)


def add_ammo(ctx: GameContext, kind: str, amount: int,
             cap: Optional[int] = None) -> None:
    state = ctx.player_state()
    if state is None or kind not in state.weapons:
        return
    weapon = state.weapons[kind]
    weapon.ammo += amount
    if cap is not None:
        weapon.ammo = min(weapon.ammo, cap)
    ctx.events.emit(WEAPON_UPDATE, weapon=kind, ammo=weapon.ammo)


def is_invulnerable(ctx: GameContext) -> bool:
    state = ctx.player_state()
    return state is not None and state.invulnerable


# =============================================================================
# WEAPONS
# =============================================================================

def switch_weapon(ctx: GameContext) -> str:
    state = ctx.player_state()
    if state is None:
        return WeaponKind.MACHINE_GUN
    index = WeaponKind.ORDER.index(state.current_weapon)
    state.current_weapon = WeaponKind.ORDER[(index + 1) % len(WeaponKind.ORDER)]
    ctx.events.emit(WEAPON_UPDATE, weapon=state.current_weapon,
                    ammo=state.weapons[state.current_weapon].ammo)
    return state.current_weapon


def _fire_rate(ctx: GameContext, kind: str) -> float:
    cfg = ctx.config
    if kind == WeaponKind.MACHINE_GUN:
        return cfg.machine_gun_fire_rate
    if kind == WeaponKind.MISSILE:
        return cfg.missile_fire_rate
    return cfg.default_fire_rate


def fire(ctx: GameContext, time: float) -> bool:
    """Fire the current weapon. Cooldown and empty ammo are silent no-ops."""
    state = ctx.player_state()
    pos = ctx.player_position()
    if state is None or pos is None or state.inside_van is not None:
        return False

    kind = state.current_weapon
    weapon = state.weapons[kind]
    if time < weapon.last_fired + _fire_rate(ctx, kind):
        return False
    if weapon.ammo <= 0:
        return False

    weapon.last_fired = time
    if weapon.ammo != math.inf:
        weapon.ammo -= 1
        ctx.events.emit(WEAPON_UPDATE, weapon=kind, ammo=weapon.ammo)

    cfg = ctx.config
    pid = ctx.player_id
    if kind == WeaponKind.MACHINE_GUN:
        spawn_projectile(ctx.world, pos.x, pos.y - 30, 0, -cfg.bullet_speed,
                         kind=BULLET, damage=1, owner_id=pid)
        ctx.effects.play('shoot')
    elif kind == WeaponKind.MISSILE:
        spawn_projectile(ctx.world, pos.x, pos.y - 30, 0, -cfg.missile_speed,
                         kind=MISSILE, damage=3, owner_id=pid)
        ctx.effects.play('missile')
    elif kind == WeaponKind.OIL_SLICK:
        _drop_oil_slick(ctx, pos, state)
    elif kind == WeaponKind.SMOKE_SCREEN:
        _activate_smoke(ctx, pos, state)
    return True


def _drop_oil_slick(ctx: GameContext, pos: Position, state: PlayerState) -> int:
    world = ctx.world
    eid = world.create_entity()
    world.add_component(eid, Position(pos.x, pos.y + 40))
    world.add_component(eid, Velocity(0, state.current_speed))
    world.add_component(eid, CollisionBox(40, 24))
    world.add_component(eid, Renderable(glyph='~~~', color=GRAY_DARK, layer=1))
    world.add_component(eid, OilSlick())
    world.add_component(eid, Lifetime(OIL_SLICK_LIFETIME))

    group = world.get_component(ctx.player_id, ProjectileGroup)
    group.members.append(eid)
    return eid


def _activate_smoke(ctx: GameContext, pos: Position, state: PlayerState) -> None:
    set_invulnerable(ctx, SMOKE_DURATION)
    state.smoke_active = True
    ctx.effects.smoke(pos.x, pos.y)
    ctx.effects.play('powerup')

    player_id = ctx.player_id

    def _clear():
        if ctx.owner_alive(player_id):
            ctx.world.get_component(player_id, PlayerState).smoke_active = False

    ctx.clock.delayed_call(SMOKE_DURATION, _clear)


# =============================================================================
# PER-TICK UPDATE
# =============================================================================

def update_player(ctx: GameContext, time: float, delta: float,
                  controls: Optional[PlayerControls] = None) -> None:
    """Steering, road speed, off-road penalty, firing and distance score."""
    state = ctx.player_state()
    pos = ctx.player_position()
    if state is None or pos is None or state.game_over:
        return

    controls = controls or PlayerControls()
    vel = ctx.world.get_component(ctx.player_id, Velocity)

    _cull_player_shots(ctx)

    if state.inside_van is not None:
        vel.x = vel.y = 0.0
        state.push_x = 0.0
    else:
        _steer(ctx, state, pos, vel, controls, delta)
        if controls.switch_weapon:
            switch_weapon(ctx)
        if controls.firing:
            fire(ctx, time)

    add_score(ctx, ctx.config.distance_points * delta / 1000.0)


def _steer(ctx: GameContext, state: PlayerState, pos: Position, vel: Velocity,
           controls: PlayerControls, delta: float) -> None:
    cfg = ctx.config
    speed = cfg.player_speed

    steer = 0 if ctx.world.has_component(ctx.player_id, SpinOut) else controls.steer
    vel.x = steer * speed + state.push_x
    if state.push_x:
        shed = min(abs(state.push_x), PUSH_DECAY_RATE * delta)
        state.push_x -= math.copysign(shed, state.push_x)

    if controls.throttle > 0:
        vel.y = -speed * 0.5
        state.current_speed = min(state.current_speed + THROTTLE_RATE * delta,
                                  cfg.player_max_speed)
    elif controls.throttle < 0:
        vel.y = speed * 0.5
        state.current_speed = max(state.current_speed - THROTTLE_RATE * delta,
                                  cfg.player_min_speed)
    else:
        vel.y = 0.0
        step = COAST_RATE * delta
        if state.current_speed > cfg.road_speed:
            state.current_speed = max(cfg.road_speed, state.current_speed - step)
        elif state.current_speed < cfg.road_speed:
            state.current_speed = min(cfg.road_speed, state.current_speed + step)

    road_left = cfg.road_left + 10
    road_right = cfg.road_right - 10
    if pos.x < road_left or pos.x > road_right:
        state.on_grass = True
        state.current_speed = max(state.current_speed - GRASS_DRAG_RATE * delta,
                                  cfg.player_min_speed)
        vel.x += 50 if pos.x < road_left else -50

        state.grass_timer += delta
        if state.grass_timer > GRASS_DAMAGE_INTERVAL:
            state.grass_timer = 0.0
            if take_damage(ctx, GRASS_DAMAGE):
                ctx.effects.floating_text(pos.x, pos.y - 30, 'OFF ROAD!', NEON_ORANGE)
    else:
        state.on_grass = False
        state.grass_timer = 0.0

    pos.x = max(10.0, min(cfg.width - 10.0, pos.x))
    pos.y = max(40.0, min(cfg.height - 40.0, pos.y))


def _cull_player_shots(ctx: GameContext) -> None:
    group = ctx.world.get_component(ctx.player_id, ProjectileGroup)
    if group is None:
        return
    for member in list(group.members):
        proj = ctx.world.get_component(member, Projectile)
        if proj is None or proj.kind not in PLAYER_KINDS:
            continue
        pos = ctx.world.get_component(member, Position)
        if pos is not None and pos.y < -20:
            ctx.world.destroy_entity(member)
    group.members = [m for m in group.members if ctx.world.is_alive(m)]


# =============================================================================
# TERMINAL INPUT
# =============================================================================

class InputHandler:
    """
    Maps blessed keystrokes onto PlayerControls.

    Terminals report key presses but not releases, so a press keeps its
    direction "held" for a few frames and is refreshed by key repeat.
    """

    def __init__(self, hold_frames: int = 8):
        self.hold_frames = hold_frames
        self.held: dict = {}
        self._switch = False
        self._quit = False
        self._pause = False

    def process_key(self, key) -> None:
        if not key:
            return
        name = key.name or ''
        char = key.lower() if not key.is_sequence else ''

        if char == 'q' or name == 'KEY_ESCAPE':
            self._quit = True
        elif char == 'p':
            self._pause = True
        elif char in ('w', 'a', 's', 'd', ' '):
            self.held[char] = self.hold_frames
        elif name in ('KEY_UP', 'KEY_DOWN', 'KEY_LEFT', 'KEY_RIGHT'):
            self.held[{'KEY_UP': 'w', 'KEY_DOWN': 's',
                       'KEY_LEFT': 'a', 'KEY_RIGHT': 'd'}[name]] = self.hold_frames
        elif char == 'e' or name == 'KEY_TAB':
            self._switch = True

    def update(self) -> None:
        """Age held keys; call once per frame."""
        for key in list(self.held):
            self.held[key] -= 1
            if self.held[key] <= 0:
                del self.held[key]

    def controls(self) -> PlayerControls:
        steer = (1 if 'd' in self.held else 0) - (1 if 'a' in self.held else 0)
        throttle = (1 if 'w' in self.held else 0) - (1 if 's' in self.held else 0)
        switch = self._switch
        self._switch = False
        return PlayerControls(steer=steer, throttle=throttle,
                              firing=' ' in self.held, switch_weapon=switch)

    def consume_quit(self) -> bool:
        triggered = self._quit
        self._quit = False
        return triggered

    def consume_pause(self) -> bool:
        triggered = self._pause
        self._pause = False
        return triggered


def player_color(ctx: GameContext, time: float) -> int:
    """Blink while invulnerable."""
    state = ctx.player_state()
    if state is not None and state.invulnerable and int(time / 100) % 2:
        return NEON_RED if not state.smoke_active else GRAY_DARK
    return NEON_CYAN
