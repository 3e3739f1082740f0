"""
Progression
===========
Level sequence, boss gating and endless-mode difficulty tiers.

Campaign mode walks a fixed list of levels by score. When the score
reaches the next level's threshold and that level has a boss, regular
traffic is cleared and the boss must be beaten before the level changes.
Endless mode has no levels: a difficulty tier and a road theme are
derived from elapsed play time, and each new tier re-tunes traffic.

Both controllers also own the periodic difficulty bump (every 30 s of
play) and keep updating the boss while a transition is in progress.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Tuple

from loguru import logger

from .boss import (
    create_boss, update_boss, destroy_boss,
    ARMORED_TRUCK, WEAPON_VAN, TANK, SUPER_HELICOPTER
)
from .clock import TimerGroup
from .context import GameContext
from .engine import NEON_ORANGE, NEON_GREEN, WHITE, NEON_YELLOW
from .events import (
    LEVEL_ADVANCED, BOSS_SPAWNED, BOSS_DEFEATED, GAME_COMPLETE,
    TIER_INCREASED, THEME_CHANGED
)
from .projectiles import cull_group
from .traffic import TrafficDirector


CAMPAIGN = 'campaign'
ENDLESS = 'endless'
MODES = (CAMPAIGN, ENDLESS)

BOSS_ADVANCE_DELAY = 2000.0
ANNOUNCEMENT_WINDOW = 3000.0
CAMPAIGN_FINISH_SCORE = 9500
ENDLESS_TIER_INTERVAL = 45000
ENDLESS_THEME_INTERVAL = 60000


class ProgressionState(Enum):
    NORMAL = auto()
    TRANSITIONING = auto()
    BOSS_ACTIVE = auto()
    COMPLETE = auto()


@dataclass(frozen=True)
class Theme:
    name: str
    road: int
    grass: int
    line: int


THEMES: Tuple[Theme, ...] = (
    Theme('highway', 0x333333, 0x2d5a27, 0xffff00),
    Theme('city', 0x444444, 0x1a3d1a, 0xffffff),
    Theme('desert', 0x8b7355, 0xc2b280, 0xffffff),
    Theme('mountain', 0x555555, 0x4a7c4e, 0xffff00),
    Theme('night', 0x1a1a1a, 0x0d1a0d, 0x888888),
)


@dataclass(frozen=True)
class Level:
    id: int
    name: str
    description: str
    theme: Theme
    enemy_spawn_rate: float
    civilian_spawn_rate: float
    max_vehicles: int
    max_enemies_per_wave: int
    helicopter_enabled: bool
    boss_type: Optional[str]
    score_threshold: int


LEVELS: Tuple[Level, ...] = (
    Level(1, 'HIGHWAY', 'Easy Drive', THEMES[0],
          6000, 4500, 3, 2, False, None, 0),
    Level(2, 'CITY STREETS', 'More Traffic', THEMES[1],
          5500, 4000, 4, 2, False, ARMORED_TRUCK, 750),
    Level(3, 'DESERT ROAD', 'Helicopter Incoming', THEMES[2],
          5000, 3800, 4, 3, True, WEAPON_VAN, 2000),
    Level(4, 'MOUNTAIN PASS', 'Enemy Territory', THEMES[3],
          4500, 3500, 5, 3, True, TANK, 4000),
    Level(5, 'NIGHT MISSION', 'Final Challenge', THEMES[4],
          4000, 3000, 5, 4, True, SUPER_HELICOPTER, 6500),
)

ENDLESS_LEVEL = Level(0, 'ENDLESS ARCADE', 'Survive as long as you can!', THEMES[0],
                      5000, 4000, 4, 2, True, None, 0)


# =============================================================================
# ENDLESS TUNING (pure)
# =============================================================================

@dataclass(frozen=True)
class EndlessTuning:
    enemy_spawn_rate: float
    civilian_spawn_rate: float
    max_vehicles: int
    max_enemies_per_wave: int
    helicopter_enabled: bool
    helicopter_cooldown: Optional[float]
    weapons_van_cooldown: float


def endless_tier(elapsed_ms: float) -> int:
    return int(elapsed_ms // ENDLESS_TIER_INTERVAL) + 1


def endless_theme_index(elapsed_ms: float) -> int:
    return int(elapsed_ms // ENDLESS_THEME_INTERVAL) % len(THEMES)


def endless_tuning(tier: int) -> EndlessTuning:
    """Traffic settings for an endless tier; floors and ceilings included."""
    heli = tier >= 2
    return EndlessTuning(
        enemy_spawn_rate=max(3000, 5000 - tier * 300),
        civilian_spawn_rate=max(2500, 4000 - tier * 200),
        max_vehicles=min(6, 4 + tier // 2),
        max_enemies_per_wave=min(4, 2 + tier // 3),
        helicopter_enabled=heli,
        helicopter_cooldown=max(12000, 20000 - tier * 1500) if heli else None,
        weapons_van_cooldown=max(15000, 25000 - tier * 2000),
    )


# =============================================================================
# CONTROLLERS
# =============================================================================

class Progression(ABC):
    """Shared plumbing: timers, difficulty bump, traffic tuning."""

    mode = ''

    def __init__(self, ctx: GameContext, traffic: TrafficDirector):
        self.ctx = ctx
        self.traffic = traffic
        self.timers = TimerGroup(ctx.clock, owner=f'progression:{self.mode}')
        self.state = ProgressionState.NORMAL
        self.boss: Optional[int] = None
        self.theme: Theme = THEMES[0]
        self.destroyed = False

        # Values performance mode restores to
        self.max_vehicles = ctx.config.max_vehicles_on_screen
        self.civilian_spawn_rate = ctx.config.civilian_spawn_rate

        self._difficulty_timer = self.timers.add_event(
            ctx.config.difficulty_interval, self._bump_difficulty, loop=True)

    @property
    @abstractmethod
    def level_number(self) -> int:
        ...

    @property
    @abstractmethod
    def current_level(self) -> Level:
        ...

    @property
    def boss_active(self) -> bool:
        return self.state == ProgressionState.BOSS_ACTIVE

    @abstractmethod
    def update(self, time: float, delta: float) -> None:
        ...

    def _bump_difficulty(self) -> None:
        if self.destroyed or not self.traffic.started:
            return
        self.traffic.increase_difficulty()

    def _apply(self, enemy_rate: float, civilian_rate: float, max_vehicles: int,
               max_wave: int, helicopter_enabled: bool) -> None:
        tm = self.traffic
        tm.set_spawn_rates(enemy_rate, civilian_rate)
        tm.set_helicopter_enabled(helicopter_enabled)
        tm.set_max_vehicles(max_vehicles)
        tm.set_max_enemies_per_wave(max_wave)
        tm.set_level(self.level_number)
        self.max_vehicles = max_vehicles
        self.civilian_spawn_rate = civilian_rate

    def _road_speed(self) -> float:
        state = self.ctx.player_state()
        return state.current_speed if state is not None else self.ctx.config.road_speed

    def destroy(self) -> None:
        self.timers.cancel_all()
        if self.boss is not None and self.ctx.world.is_alive(self.boss):
            destroy_boss(self.ctx, self.boss)
        self.boss = None
        self.destroyed = True


class CampaignProgression(Progression):

    mode = CAMPAIGN

    def __init__(self, ctx: GameContext, traffic: TrafficDirector):
        super().__init__(ctx, traffic)
        self.level_index = 0
        self.levels_advanced = 0
        ctx.events.on(BOSS_DEFEATED, self._on_boss_defeated)
        self._apply_level(LEVELS[0])
        self._announce()

    @property
    def level_number(self) -> int:
        return LEVELS[self.level_index].id

    @property
    def current_level(self) -> Level:
        return LEVELS[self.level_index]

    @property
    def next_level(self) -> Optional[Level]:
        index = self.level_index + 1
        return LEVELS[index] if index < len(LEVELS) else None

    def _apply_level(self, level: Level) -> None:
        self._apply(level.enemy_spawn_rate, level.civilian_spawn_rate,
                    level.max_vehicles, level.max_enemies_per_wave,
                    level.helicopter_enabled)
        self.theme = level.theme

    def _announce(self) -> None:
        level = self.current_level
        self.ctx.effects.announce(f"LEVEL {level.id}: {level.name}",
                                  level.description, WHITE, ANNOUNCEMENT_WINDOW)

    def update(self, time: float, delta: float) -> None:
        if self.destroyed:
            return

        # Boss bookkeeping runs even while transitioning
        if self.boss is not None and self.ctx.world.is_alive(self.boss):
            update_boss(self.ctx, self.boss, time, delta, self._road_speed())
            cull_group(self.ctx.world, self.boss, self.ctx.config)

        if self.state != ProgressionState.NORMAL:
            return

        state = self.ctx.player_state()
        if state is None:
            return
        score = int(state.score)

        upcoming = self.next_level
        if upcoming is None:
            if score >= CAMPAIGN_FINISH_SCORE:
                self.advance_level()
        elif score >= upcoming.score_threshold:
            self.trigger_transition(upcoming)

    def trigger_transition(self, upcoming: Level) -> None:
        if upcoming.boss_type is not None:
            self.spawn_boss(upcoming.boss_type)
        else:
            self.advance_level()

    def spawn_boss(self, boss_type: str) -> int:
        self.state = ProgressionState.BOSS_ACTIVE
        self.traffic.clear_traffic()
        self.boss = create_boss(self.ctx, boss_type)
        self.ctx.events.emit(BOSS_SPAWNED, boss_type=boss_type, level=self.level_number)
        return self.boss

    def _on_boss_defeated(self, event: dict) -> None:
        if self.destroyed or self.state != ProgressionState.BOSS_ACTIVE:
            return
        self.state = ProgressionState.TRANSITIONING
        self.boss = None
        self.timers.delayed_call(BOSS_ADVANCE_DELAY, self.advance_level)

    def advance_level(self) -> None:
        if self.destroyed or self.state == ProgressionState.COMPLETE:
            return

        if self.level_index + 1 >= len(LEVELS):
            self.state = ProgressionState.COMPLETE
            state = self.ctx.player_state()
            score = int(state.score) if state is not None else 0
            self.ctx.effects.announce('CONGRATULATIONS!', 'YOU COMPLETED ALL LEVELS!',
                                      NEON_GREEN, 10 ** 9)
            logger.info("campaign complete, score {}", score)
            self.ctx.events.emit(GAME_COMPLETE, score=score)
            return

        self.level_index += 1
        self.levels_advanced += 1
        self.state = ProgressionState.TRANSITIONING
        level = self.current_level
        self._apply_level(level)
        self._announce()
        logger.info("advanced to level {} ({})", level.id, level.name)
        self.ctx.events.emit(LEVEL_ADVANCED, level=level.id, name=level.name)

        self.timers.delayed_call(ANNOUNCEMENT_WINDOW, self._end_transition)

    def _end_transition(self) -> None:
        if self.state == ProgressionState.TRANSITIONING:
            self.state = ProgressionState.NORMAL

    def destroy(self) -> None:
        self.ctx.events.off(BOSS_DEFEATED, self._on_boss_defeated)
        super().destroy()


class EndlessProgression(Progression):

    mode = ENDLESS

    def __init__(self, ctx: GameContext, traffic: TrafficDirector):
        super().__init__(ctx, traffic)
        self.elapsed = 0.0
        self.tier = 1
        self.theme_cycles = 0
        self.theme_index = 0
        level = ENDLESS_LEVEL
        self._apply(level.enemy_spawn_rate, level.civilian_spawn_rate,
                    level.max_vehicles, level.max_enemies_per_wave,
                    level.helicopter_enabled)
        ctx.effects.announce(level.name, level.description, NEON_ORANGE, ANNOUNCEMENT_WINDOW)

    @property
    def level_number(self) -> int:
        # Archetype gating tops out at the last campaign level
        return min(self.tier, len(LEVELS))

    @property
    def current_level(self) -> Level:
        return ENDLESS_LEVEL

    def update(self, time: float, delta: float) -> None:
        if self.destroyed:
            return
        self.elapsed += delta

        tier = endless_tier(self.elapsed)
        if tier > self.tier:
            self.tier = tier
            self._increase_tier()

        cycles = int(self.elapsed // ENDLESS_THEME_INTERVAL)
        if cycles > self.theme_cycles:
            self.theme_cycles = cycles
            self.theme_index = endless_theme_index(self.elapsed)
            self.theme = THEMES[self.theme_index]
            self.ctx.events.emit(THEME_CHANGED, theme=self.theme.name, index=self.theme_index)

    def _increase_tier(self) -> None:
        tuning = endless_tuning(self.tier)
        self._apply(tuning.enemy_spawn_rate, tuning.civilian_spawn_rate,
                    tuning.max_vehicles, tuning.max_enemies_per_wave,
                    tuning.helicopter_enabled or self.traffic.helicopter_enabled)
        if tuning.helicopter_cooldown is not None:
            self.traffic.set_helicopter_cooldown(tuning.helicopter_cooldown)
        self.traffic.set_weapons_van_cooldown(tuning.weapons_van_cooldown)

        self.ctx.effects.announce(f"DIFFICULTY TIER {self.tier}",
                                  'Enemies getting tougher!', NEON_YELLOW, ANNOUNCEMENT_WINDOW)
        self.ctx.effects.play('powerup')
        logger.info("endless tier {}", self.tier)
        self.ctx.events.emit(TIER_INCREASED, tier=self.tier)


def create_progression(mode: str, ctx: GameContext, traffic: TrafficDirector) -> Progression:
    if mode == CAMPAIGN:
        return CampaignProgression(ctx, traffic)
    if mode == ENDLESS:
        return EndlessProgression(ctx, traffic)
    raise ValueError(f"unknown game mode: {mode!r}")
