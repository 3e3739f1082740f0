"""
Weapons Van
===========
Non-combat rendezvous: the van rolls in from the top, opens its rear
door, and re-arms the player who drives into it from behind.

States:
    approaching   drifting down the screen, door open once the entry ends
    pulling_over  player aboard, van slides to the left road edge
    arming        parked (moves with the road) while the arming bar fills
    driving_away  player ejected, van accelerates off the top

The arming grant happens once, when the bar is full, right before the
ejection.
"""

from loguru import logger

from .components import (
    Position, Velocity, CollisionBox, Label, Renderable, VanState, VanStatus,
    PlayerState, WeaponKind
)
from .context import GameContext
from .engine import NEON_GREEN, NEON_YELLOW, NEON_CYAN
from .events import HEALTH_UPDATE
from .player import add_ammo, heal, set_invulnerable
from .systems import start_tween, entities_overlap


ENTRY_START_Y = -100.0
ENTRY_END_Y = 150.0
ENTRY_DURATION = 2000.0
PULL_OVER_DURATION = 800.0
DRIVE_AWAY_Y = -200.0
DRIVE_AWAY_DURATION = 1500.0
EJECT_INVULNERABILITY = 2000.0
ARMING_TIME = 2500.0
PLAYER_LOCK_OFFSET = 30.0
EJECT_OFFSET = 80.0

# kind -> (amount, cap)
AMMO_GRANT = {
    WeaponKind.MISSILE: (5, 10),
    WeaponKind.OIL_SLICK: (3, 6),
    WeaponKind.SMOKE_SCREEN: (2, 4),
}
HEALTH_GRANT = 50


def create_weapons_van(ctx: GameContext, x: float) -> int:
    cfg = ctx.config
    world = ctx.world
    entity_id = world.create_entity()

    world.add_component(entity_id, Position(x, ENTRY_START_Y))
    world.add_component(entity_id, Velocity(0, 0))
    world.add_component(entity_id, CollisionBox(50, 90))
    world.add_component(entity_id, Label('WEAPONS', NEON_GREEN))
    world.add_component(entity_id, Renderable(glyph='[WPN]', color=NEON_GREEN, layer=5))
    world.add_component(entity_id, VanState(
        speed=cfg.road_speed * 0.8,
        pull_over_x=cfg.road_margin + 50,
        max_inside_time=ARMING_TIME,
    ))

    def _opened():
        state = world.get_component(entity_id, VanState)
        if state is not None:
            state.is_open = True

    start_tween(world, entity_id, 'y', ENTRY_END_Y, ENTRY_DURATION,
                ease='power2', on_complete=_opened)

    ctx.effects.announce('WEAPONS VAN APPROACHING!', '', NEON_GREEN, 2500)
    ctx.effects.play('powerup')
    logger.info("weapons van spawned at x={:.0f}", x)
    return entity_id


def update_van(ctx: GameContext, entity_id: int, time: float,
               delta: float, road_speed: float) -> None:
    world = ctx.world
    if not world.is_alive(entity_id):
        return
    state = world.get_component(entity_id, VanState)
    pos = world.get_component(entity_id, Position)
    vel = world.get_component(entity_id, Velocity)

    if state.status == VanStatus.APPROACHING:
        vel.x = 0.0
        vel.y = road_speed - state.speed
    elif state.status == VanStatus.PULLING_OVER:
        vel.y = 0.0
    elif state.status in (VanStatus.STOPPED, VanStatus.ARMING):
        # Parked on the shoulder, so it scrolls with the road
        vel.x = 0.0
        vel.y = road_speed
        if state.player_inside and state.status == VanStatus.ARMING:
            state.inside_timer += delta
            if state.inside_timer >= state.max_inside_time:
                _give_weapons(ctx, entity_id, state)
                eject_player(ctx, entity_id)
                return

    cfg = ctx.config
    if pos.y > cfg.height + 150 or pos.y < DRIVE_AWAY_Y:
        destroy_van(ctx, entity_id)


# =============================================================================
# BOARDING
# =============================================================================

def try_enter_van(ctx: GameContext, entity_id: int) -> bool:
    """Board the van if the player is touching it from behind while open."""
    world = ctx.world
    if not world.is_alive(entity_id):
        return False
    state = world.get_component(entity_id, VanState)
    player_state = ctx.player_state()
    player_pos = ctx.player_position()
    if player_state is None or player_pos is None:
        return False
    if not state.is_open or state.player_inside or state.status != VanStatus.APPROACHING:
        return False
    if player_state.inside_van is not None:
        return False
    if not entities_overlap(world, entity_id, ctx.player_id):
        return False

    van_pos = world.get_component(entity_id, Position)
    if player_pos.y <= van_pos.y + 20:
        return False

    _player_enters(ctx, entity_id, state, player_state)
    return True


def _player_enters(ctx: GameContext, entity_id: int, state: VanState,
                   player_state: PlayerState) -> None:
    world = ctx.world
    state.player_inside = True
    state.is_open = False
    state.inside_timer = 0.0
    state.status = VanStatus.PULLING_OVER

    # Held invulnerable for the whole stay; the ejection grants a fresh window
    player_state.invulnerable = True
    if player_state.invulnerable_timer is not None:
        player_state.invulnerable_timer.cancel()
        player_state.invulnerable_timer = None
    state.stored_player_speed = player_state.current_speed
    player_state.current_speed = ctx.config.road_speed * 0.3
    player_state.inside_van = entity_id

    label = world.get_component(entity_id, Label)
    label.text, label.color = 'PULLING OVER...', NEON_YELLOW
    ctx.effects.play('powerup')
    logger.info("player boarded weapons van {}", entity_id)

    def _pulled_over():
        live = world.get_component(entity_id, VanState)
        if live is None or not ctx.owner_alive(entity_id):
            return
        live.status = VanStatus.STOPPED
        _start_arming(ctx, entity_id, live)

    start_tween(world, entity_id, 'x', state.pull_over_x, PULL_OVER_DURATION,
                ease='power2', on_complete=_pulled_over)


def _start_arming(ctx: GameContext, entity_id: int, state: VanState) -> None:
    state.status = VanStatus.ARMING
    label = ctx.world.get_component(entity_id, Label)
    label.text, label.color = 'ARMING...', NEON_YELLOW
    pos = ctx.world.get_component(entity_id, Position)
    ctx.effects.floating_text(pos.x, pos.y, 'ENTERING VAN', NEON_GREEN)


def lock_player(ctx: GameContext, entity_id: int) -> None:
    """Pin the player just behind the van while aboard."""
    player_state = ctx.player_state()
    player_pos = ctx.player_position()
    if player_state is None or player_state.inside_van != entity_id:
        return
    van_pos = ctx.world.get_component(entity_id, Position)
    if van_pos is None:
        return
    player_pos.x = van_pos.x
    player_pos.y = van_pos.y + PLAYER_LOCK_OFFSET


def _give_weapons(ctx: GameContext, entity_id: int, state: VanState) -> None:
    if state.weapons_given:
        return
    state.weapons_given = True
    for kind, (amount, cap) in AMMO_GRANT.items():
        add_ammo(ctx, kind, amount, cap=cap)
    heal(ctx, HEALTH_GRANT)

    pos = ctx.world.get_component(entity_id, Position)
    ctx.effects.floating_text(pos.x, pos.y - 30, '+MISSILES +OIL +SMOKE', NEON_GREEN)
    ctx.effects.floating_text(pos.x, pos.y - 10, f"+{HEALTH_GRANT} HEALTH", NEON_CYAN)
    label = ctx.world.get_component(entity_id, Label)
    label.text, label.color = 'ARMED!', NEON_GREEN


def eject_player(ctx: GameContext, entity_id: int) -> None:
    world = ctx.world
    state = world.get_component(entity_id, VanState)
    van_pos = world.get_component(entity_id, Position)
    state.player_inside = False
    state.status = VanStatus.DRIVING_AWAY

    player_state = ctx.player_state()
    player_pos = ctx.player_position()
    if player_state is not None:
        player_state.inside_van = None
        player_state.current_speed = state.stored_player_speed or ctx.config.road_speed
        set_invulnerable(ctx, EJECT_INVULNERABILITY)
        player_pos.x = ctx.config.width / 2
        player_pos.y = van_pos.y + EJECT_OFFSET
        ctx.effects.floating_text(player_pos.x, player_pos.y, 'FULLY ARMED!', NEON_GREEN)
        ctx.events.emit(HEALTH_UPDATE, health=player_state.health)
    ctx.effects.play('powerup')

    label = world.get_component(entity_id, Label)
    if label is not None:
        label.text = ''

    def _gone():
        if ctx.owner_alive(entity_id):
            destroy_van(ctx, entity_id)

    start_tween(world, entity_id, 'y', DRIVE_AWAY_Y, DRIVE_AWAY_DURATION,
                ease='power2', on_complete=_gone)
    logger.info("player ejected from weapons van {}", entity_id)


def destroy_van(ctx: GameContext, entity_id: int) -> None:
    """Remove the van, releasing the player if still aboard."""
    world = ctx.world
    state = world.get_component(entity_id, VanState)
    player_state = ctx.player_state()
    if (state is not None and state.player_inside and player_state is not None
            and player_state.inside_van == entity_id):
        player_state.inside_van = None
        player_state.invulnerable = False
        if state.stored_player_speed is not None:
            player_state.current_speed = state.stored_player_speed
    world.remove_component(entity_id, Label)
    world.destroy_entity(entity_id)


def arming_progress(ctx: GameContext, entity_id: int) -> float:
    state = ctx.world.get_component(entity_id, VanState)
    return state.arming_progress if state is not None else 0.0
