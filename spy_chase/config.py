"""
Configuration
=============
Tuning constants for the simulation and launch options for the terminal
runner.

`GameConfig` is a frozen dataclass passed into every manager; tests build
variants with `dataclasses.replace`. `Settings` is read from the
environment (prefix ``SPY_CHASE_``) and an optional ``.env`` file.
"""

from dataclasses import dataclass
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .lanes import LaneGrid


@dataclass(frozen=True)
class GameConfig:
    """Playfield geometry, speeds, spawn rates and scoring. Times in ms."""

    # Playfield (pixels)
    width: int = 480
    height: int = 640

    # Road
    road_speed: float = 200.0
    lanes: int = 5
    lane_width: int = 80
    road_margin: int = 40

    # Player
    player_speed: float = 300.0
    player_max_speed: float = 400.0
    player_min_speed: float = 100.0
    starting_lives: int = 3
    starting_health: int = 100

    # Weapons
    machine_gun_fire_rate: float = 150.0
    missile_fire_rate: float = 500.0
    default_fire_rate: float = 500.0
    bullet_speed: float = 500.0
    missile_speed: float = 350.0

    # Traffic
    enemy_spawn_rate: float = 5000.0
    civilian_spawn_rate: float = 4000.0
    max_vehicles_on_screen: int = 4
    min_spawn_distance: float = 150.0
    game_start_delay: float = 2000.0
    wave_cooldown: float = 8000.0
    max_enemies_per_wave: int = 2
    intra_wave_delay: float = 1500.0
    helicopter_cooldown: float = 20000.0
    weapons_van_cooldown: float = 25000.0

    # Progression
    difficulty_interval: float = 30000.0

    # Scoring
    enemy_kill_points: int = 100
    distance_points: float = 10.0
    civilian_penalty: int = 50

    @property
    def lane_grid(self) -> LaneGrid:
        return LaneGrid(self.lanes, self.lane_width, self.road_margin)

    @property
    def road_left(self) -> float:
        return float(self.road_margin)

    @property
    def road_right(self) -> float:
        return float(self.width - self.road_margin)


DEFAULT_CONFIG = GameConfig()


class Settings(BaseSettings):
    """Launch options for the terminal runner."""

    model_config = SettingsConfigDict(
        env_prefix="SPY_CHASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    mode: str = "campaign"          # campaign | endless
    seed: Optional[int] = None
    fps: int = 60
    log_level: str = "INFO"
    log_file: str = "spy_chase.log"
    spawn_table: str = "classic"    # classic | rammer
