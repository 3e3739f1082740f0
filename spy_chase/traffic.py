"""
Traffic Director
================
Populates the road: civilians from ahead, enemy waves from behind, the
occasional helicopter and weapons van.

Spawning is timer-driven and never blocks. A spawn attempt that finds
the vehicle cap reached or no open lane is skipped and retried on the
next tick of its timer. That is the backpressure against overcrowding.

Lane openness is judged near the spawn edge only: a lane is blocked for
a top spawn while any ground vehicle in it is in the top 40% of the
screen, and for a bottom spawn while one is in the bottom 40%.
"""

from typing import List, Optional

from loguru import logger

from .archetypes import select_archetype, CIVILIAN, SPAWN_TABLES
from .clock import TimerGroup, TimerHandle
from .components import Position, Vehicle, HelicopterState, VanState
from .context import GameContext
from .engine import NEON_RED
from .events import WAVE_STARTED
from .helicopter import create_helicopter, update_helicopter, destroy_helicopter
from .vehicles import create_vehicle, update_vehicle, destroy_vehicle
from .weapons_van import create_weapons_van, update_van, destroy_van


CIVILIAN_SPAWN_Y = -60.0
TOP_ZONE = 0.4
BOTTOM_ZONE = 0.6

CIVILIAN_RATE_FLOOR = 3000.0
WAVE_COOLDOWN_FLOOR = 6000.0
WAVE_COOLDOWN_RATE_FLOOR = 5000.0
HELICOPTER_COOLDOWN_FLOOR = 15000.0
MAX_WAVE_CEILING = 4


class TrafficDirector:
    """
    Owns every ground vehicle, helicopter and weapons van it spawns.

    The progression controller tunes it through the setters; the
    resolver reads its actors through the accessors.
    """

    def __init__(self, ctx: GameContext, spawn_table: str = 'classic'):
        if spawn_table not in SPAWN_TABLES:
            raise ValueError(f"unknown spawn table: {spawn_table!r}")
        cfg = ctx.config
        self.ctx = ctx
        self.spawn_table = spawn_table
        self.timers = TimerGroup(ctx.clock, owner='traffic')

        self.level = 1
        self.enemy_spawn_rate = cfg.enemy_spawn_rate
        self.civilian_spawn_rate = cfg.civilian_spawn_rate
        self.max_vehicles = cfg.max_vehicles_on_screen
        self.difficulty_multiplier = 1.0
        self.difficulty_steps = 0

        self.wave_active = False
        self.enemies_in_wave = 0
        self.max_enemies_per_wave = cfg.max_enemies_per_wave
        self.wave_size = 0
        self.wave_cooldown = cfg.wave_cooldown
        self.waves_started = 0

        self.helicopter_enabled = False
        self.helicopter_cooldown = cfg.helicopter_cooldown
        self.helicopter_timer = 0.0
        self.weapons_van_enabled = True
        self.weapons_van_cooldown = cfg.weapons_van_cooldown
        self.weapons_van_timer = 0.0

        self.started = False
        self.destroyed = False

        self._civilian_timer: Optional[TimerHandle] = None
        self._wave_timer: Optional[TimerHandle] = None
        self._wave_enemy_timer: Optional[TimerHandle] = None

        self.timers.delayed_call(cfg.game_start_delay, self._start)

    def _start(self) -> None:
        if self.destroyed:
            return
        self.started = True
        self._civilian_timer = self.timers.add_event(
            self.civilian_spawn_rate, self.try_spawn_civilian, loop=True)
        self._wave_timer = self.timers.add_event(
            self.wave_cooldown, self.start_wave, loop=True)
        logger.info("traffic started")

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    def vehicles(self) -> List[int]:
        return [eid for eid, _ in self.ctx.world.query(Vehicle)]

    def enemies(self) -> List[int]:
        return [eid for eid, v in self.ctx.world.query(Vehicle) if v.archetype != CIVILIAN]

    def helicopters(self) -> List[int]:
        return [eid for eid, _ in self.ctx.world.query(HelicopterState)]

    def weapons_van(self) -> Optional[int]:
        row = self.ctx.world.first(VanState)
        return row[0] if row is not None else None

    def active_vehicle_count(self) -> int:
        return self.ctx.world.count(Vehicle)

    # =========================================================================
    # LANES
    # =========================================================================

    def find_open_lane(self, exclude_player_lane: bool = False,
                       from_bottom: bool = False) -> int:
        """A random lane free near the spawn edge, or -1 if none."""
        cfg = self.ctx.config
        grid = cfg.lane_grid
        occupied = [False] * grid.lanes

        for eid, pos, _ in self.ctx.world.query(Position, Vehicle):
            lane = grid.lane_from_x(pos.x)
            if not grid.contains(lane):
                continue
            if from_bottom:
                if pos.y > cfg.height * BOTTOM_ZONE:
                    occupied[lane] = True
            elif pos.y < cfg.height * TOP_ZONE:
                occupied[lane] = True

        player_lane = -1
        if exclude_player_lane:
            player = self.ctx.player_position()
            if player is not None:
                player_lane = grid.lane_from_x(player.x)

        open_lanes = [i for i in range(grid.lanes) if i != player_lane and not occupied[i]]
        if not open_lanes:
            return -1
        return self.ctx.rng.choice(open_lanes)

    # =========================================================================
    # CIVILIANS
    # =========================================================================

    def try_spawn_civilian(self) -> Optional[int]:
        if not self.started or self.destroyed:
            return None
        if self.active_vehicle_count() >= self.max_vehicles:
            logger.debug("civilian skipped: vehicle cap {}", self.max_vehicles)
            return None
        lane = self.find_open_lane(False)
        if lane == -1:
            logger.debug("civilian skipped: no open lane")
            return None
        return self.spawn_civilian(lane)

    def spawn_civilian(self, lane: int) -> int:
        x = self.ctx.config.lane_grid.lane_x(lane)
        return create_vehicle(self.ctx, CIVILIAN, x, CIVILIAN_SPAWN_Y, lane=lane)

    # =========================================================================
    # WAVES
    # =========================================================================

    def start_wave(self) -> None:
        if not self.started or self.destroyed or self.wave_active:
            return

        self.wave_active = True
        self.enemies_in_wave = 0
        # Cap changes mid-wave apply from the next wave
        self.wave_size = self.max_enemies_per_wave
        self.waves_started += 1
        self.ctx.events.emit(WAVE_STARTED, size=self.wave_size)
        logger.info("wave {} started, up to {} enemies",
                    self.waves_started, self.wave_size)

        self.spawn_wave_enemy()

        # The first enemy may already have ended the wave
        if self.wave_active and self.wave_size > 1:
            self._wave_enemy_timer = self.timers.add_event(
                self.ctx.config.intra_wave_delay, self.spawn_wave_enemy,
                repeat=self.wave_size - 2)

    def spawn_wave_enemy(self) -> Optional[int]:
        if not self.wave_active:
            return None
        if self.active_vehicle_count() >= self.max_vehicles:
            logger.debug("wave cut short: vehicle cap {}", self.max_vehicles)
            self.end_wave()
            return None

        lane = self.find_open_lane(True, True)
        if lane == -1:
            logger.debug("wave cut short: no open lane")
            self.end_wave()
            return None

        eid = self.spawn_enemy(lane)
        self.enemies_in_wave += 1
        if self.enemies_in_wave >= self.wave_size:
            self.end_wave()
        return eid

    def end_wave(self) -> None:
        if self.wave_active:
            logger.info("wave {} ended after {} enemies",
                        self.waves_started, self.enemies_in_wave)
        self.wave_active = False
        if self._wave_enemy_timer is not None:
            self._wave_enemy_timer.cancel()
            self._wave_enemy_timer = None

    def spawn_enemy(self, lane: int) -> int:
        """Spawn a level-appropriate enemy below the screen in `lane`."""
        cfg = self.ctx.config
        archetype = select_archetype(self.level, self.ctx.rng.random(), self.spawn_table)
        x = cfg.lane_grid.lane_x(lane)
        return create_vehicle(self.ctx, archetype, x, cfg.height + 60, lane=lane)

    # =========================================================================
    # AIR & SUPPORT
    # =========================================================================

    def spawn_helicopter(self) -> Optional[int]:
        if self.helicopters():
            return None
        cfg = self.ctx.config
        x = self.ctx.rng.randint(cfg.road_margin + 50, cfg.width - cfg.road_margin - 50)
        eid = create_helicopter(self.ctx, x)
        self.ctx.effects.play('missile')
        self.ctx.effects.announce('WARNING: HELICOPTER!', '', NEON_RED, 2000)
        logger.info("helicopter spawned")
        return eid

    def spawn_weapons_van(self) -> Optional[int]:
        if self.weapons_van() is not None:
            return None
        grid = self.ctx.config.lane_grid
        lane = self.ctx.rng.randrange(grid.lanes)
        return create_weapons_van(self.ctx, grid.lane_x(lane))

    # =========================================================================
    # PER-TICK UPDATE
    # =========================================================================

    def update(self, time: float, delta: float, road_speed: float) -> None:
        if self.destroyed:
            return
        ctx = self.ctx

        for eid in self.vehicles():
            update_vehicle(ctx, eid, time, delta, road_speed)
        for eid in self.helicopters():
            update_helicopter(ctx, eid, time, delta, road_speed)
        van = self.weapons_van()
        if van is not None:
            update_van(ctx, van, time, delta, road_speed)

        if not self.started:
            return

        if self.helicopter_enabled:
            self.helicopter_timer += delta
            if self.helicopter_timer >= self.helicopter_cooldown and not self.helicopters():
                self.helicopter_timer = 0.0
                self.spawn_helicopter()

        if self.weapons_van_enabled:
            self.weapons_van_timer += delta
            if self.weapons_van_timer >= self.weapons_van_cooldown and self.weapons_van() is None:
                self.weapons_van_timer = 0.0
                self.spawn_weapons_van()

    # =========================================================================
    # TUNING
    # =========================================================================

    def set_level(self, level: int) -> None:
        self.level = level

    def set_spawn_rates(self, enemy_rate: float, civilian_rate: float) -> None:
        self.enemy_spawn_rate = enemy_rate
        self.civilian_spawn_rate = civilian_rate
        if self._civilian_timer is not None and self._civilian_timer.active:
            self._civilian_timer.delay = civilian_rate

        self.wave_cooldown = max(WAVE_COOLDOWN_RATE_FLOOR, enemy_rate * 1.5)
        if self._wave_timer is not None and self._wave_timer.active:
            self._wave_timer.delay = self.wave_cooldown

    def set_civilian_spawn_rate(self, rate: float) -> None:
        self.civilian_spawn_rate = rate
        if self._civilian_timer is not None and self._civilian_timer.active:
            self._civilian_timer.delay = rate

    def set_helicopter_enabled(self, enabled: bool) -> None:
        self.helicopter_enabled = enabled

    def set_helicopter_cooldown(self, cooldown: float) -> None:
        self.helicopter_cooldown = cooldown

    def set_weapons_van_cooldown(self, cooldown: float) -> None:
        self.weapons_van_cooldown = cooldown

    def set_max_vehicles(self, count: int) -> None:
        self.max_vehicles = count

    def set_max_enemies_per_wave(self, count: int) -> None:
        self.max_enemies_per_wave = count

    def increase_difficulty(self) -> None:
        """One step harder; every adjustment stops at its floor or ceiling."""
        self.difficulty_multiplier += 0.08
        self.difficulty_steps += 1

        # The wave cooldown only steps down below, never re-derived
        self.set_civilian_spawn_rate(max(CIVILIAN_RATE_FLOOR, self.civilian_spawn_rate * 0.95))

        if self.difficulty_steps % 2 == 0:
            self.max_enemies_per_wave = min(MAX_WAVE_CEILING, self.max_enemies_per_wave + 1)

        self.wave_cooldown = max(WAVE_COOLDOWN_FLOOR, self.wave_cooldown - 300)
        if self._wave_timer is not None and self._wave_timer.active:
            self._wave_timer.delay = self.wave_cooldown

        self.helicopter_cooldown = max(HELICOPTER_COOLDOWN_FLOOR,
                                       self.helicopter_cooldown - 1500)
        logger.info("difficulty x{:.2f}: civilian {:.0f}ms, wave {:.0f}ms, max wave {}",
                    self.difficulty_multiplier, self.civilian_spawn_rate,
                    self.wave_cooldown, self.max_enemies_per_wave)

    # =========================================================================
    # TEARDOWN
    # =========================================================================

    def clear_traffic(self) -> int:
        """Remove every ground vehicle and end any wave. Returns the count."""
        self.end_wave()
        removed = 0
        for eid in self.vehicles():
            destroy_vehicle(self.ctx, eid)
            removed += 1
        if removed:
            logger.info("cleared {} vehicles", removed)
        return removed

    def destroy(self) -> None:
        """Cancel every timer and remove every actor this director owns."""
        self.timers.cancel_all()
        self.end_wave()
        for eid in self.vehicles():
            destroy_vehicle(self.ctx, eid)
        for eid in self.helicopters():
            destroy_helicopter(self.ctx, eid)
        van = self.weapons_van()
        if van is not None:
            destroy_van(self.ctx, van)
        self.destroyed = True
        self.started = False
        logger.info("traffic director destroyed")
