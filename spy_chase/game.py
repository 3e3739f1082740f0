"""
Encounter Session
=================
One run of the game, headless: world, clock, player, directors, resolver
and performance monitor wired together for a mode.

The terminal runner owns one session at a time and feeds it fixed
timesteps; tests drive it the same way with a seeded RNG and the no-op
`Effects`.
"""

import random
from typing import Optional

from loguru import logger

from .clock import GameClock
from .combat import EncounterResolver
from .components import PlayerControls
from .config import GameConfig, DEFAULT_CONFIG
from .context import GameContext
from .ecs import World
from .effects import Effects
from .events import EventChannel, GAME_OVER, GAME_COMPLETE
from .levels import create_progression, CAMPAIGN
from .performance import PerformanceMonitor
from .pickups import HazardDirector, PowerUpDirector
from .player import create_player, update_player
from .systems import movement_system, tween_system, lifetime_system, spin_out_system
from .traffic import TrafficDirector
from . import weapons_van as van_actor


class EncounterSession:
    """
    Per-tick pipeline:

        performance check, clock timers, player, traffic, progression,
        hazards and power-ups, van boarding, movement and tweens, van lock,
        timed components, resolver, dead-entity sweep

    Actors read positions integrated on the previous tick; the resolver
    sees this tick's.
    """

    def __init__(self, config: GameConfig = DEFAULT_CONFIG, mode: str = CAMPAIGN,
                 seed: Optional[int] = None, spawn_table: str = 'classic',
                 effects: Optional[Effects] = None, world: Optional[World] = None):
        world = world if world is not None else World()
        self.ctx = GameContext(
            world=world,
            config=config,
            clock=GameClock(),
            events=EventChannel(),
            effects=effects if effects is not None else Effects(),
            rng=random.Random(seed),
        )
        self.mode = mode
        self.seed = seed
        self.time = 0.0
        self.ticks = 0
        self.game_over = False
        self.complete = False
        self.final_score: Optional[int] = None

        create_player(self.ctx)
        self.traffic = TrafficDirector(self.ctx, spawn_table)
        self.progression = create_progression(mode, self.ctx, self.traffic)
        self.hazards = HazardDirector(self.ctx, lambda: self.progression.level_number)
        self.powerups = PowerUpDirector(self.ctx)
        self.resolver = EncounterResolver(self.ctx, self.traffic, self.progression,
                                          self.hazards, self.powerups)
        self.monitor = PerformanceMonitor(self.traffic, self.progression, self.ctx.events)

        self.ctx.events.on(GAME_OVER, self._on_game_over)
        self.ctx.events.on(GAME_COMPLETE, self._on_complete)
        logger.info("session started: mode={} seed={} spawn_table={}", mode, seed, spawn_table)

    @property
    def world(self) -> World:
        return self.ctx.world

    @property
    def events(self) -> EventChannel:
        return self.ctx.events

    @property
    def running(self) -> bool:
        return not (self.game_over or self.complete or self.ctx.torn_down)

    def player_state(self):
        return self.ctx.player_state()

    def road_speed(self) -> float:
        state = self.ctx.player_state()
        return state.current_speed if state is not None else self.ctx.config.road_speed

    def _on_game_over(self, event: dict) -> None:
        if self.game_over:
            return
        self.game_over = True
        self.final_score = event.get('score')

    def _on_complete(self, event: dict) -> None:
        self.complete = True
        self.final_score = event.get('score')

    # =========================================================================
    # TICK
    # =========================================================================

    def update(self, delta: float, controls: Optional[PlayerControls] = None,
               frame_time: Optional[float] = None) -> None:
        """
        Advance the encounter by `delta` ms.

        `frame_time` is the wall-clock time (ms) the performance monitor
        measures frame rate against; it defaults to simulation time.
        """
        if not self.running:
            return
        ctx = self.ctx
        world = ctx.world

        self.monitor.update(frame_time if frame_time is not None else self.time, delta)

        ctx.clock.advance(delta)
        self.time = ctx.clock.now
        self.ticks += 1
        time = self.time

        update_player(ctx, time, delta, controls)
        road_speed = self.road_speed()

        self.traffic.update(time, delta, road_speed)
        self.progression.update(time, delta)
        self.hazards.update(time, delta, road_speed)
        self.powerups.update(time, delta, road_speed)

        van = self.traffic.weapons_van()
        if van is not None:
            van_actor.try_enter_van(ctx, van)

        movement_system(world, delta)
        tween_system(world, delta)

        van = self.traffic.weapons_van()
        if van is not None:
            van_actor.lock_player(ctx, van)

        spin_out_system(world, delta)
        lifetime_system(world, delta)

        self.resolver.resolve()
        world.process_dead_entities()

    # =========================================================================
    # TEARDOWN
    # =========================================================================

    def teardown(self) -> None:
        """Stop everything; no scheduled callback fires after this."""
        if self.ctx.torn_down:
            return
        ctx = self.ctx
        ctx.torn_down = True
        ctx.events.off(GAME_OVER, self._on_game_over)
        ctx.events.off(GAME_COMPLETE, self._on_complete)

        self.powerups.destroy()
        self.hazards.destroy()
        self.progression.destroy()
        self.traffic.destroy()
        ctx.clock.cancel_all()
        ctx.world.process_dead_entities()
        logger.info("session torn down after {} ticks", self.ticks)
