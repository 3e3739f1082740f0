"""
Component Definitions
=====================
Plain dataclasses attached to entities. Behavior lives in the actor
modules and systems, never here.

Units: pixels for positions, pixels per second for velocities,
milliseconds for every timer field.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional


# =============================================================================
# PHYSICS
# =============================================================================

@dataclass
class Position:
    x: float = 0.0
    y: float = 0.0


@dataclass
class Velocity:
    """Pixels per second."""
    x: float = 0.0
    y: float = 0.0


@dataclass
class CollisionBox:
    """Axis-aligned box centered on the entity's Position."""
    width: float = 32.0
    height: float = 32.0


@dataclass
class Tween:
    """
    Drives one Position axis from `start` to `end` over `duration` ms.

    With `yoyo` the value returns to `start` over the same duration before
    completing. `on_complete` runs once, after the final write.
    """
    prop: str = 'y'
    start: float = 0.0
    end: float = 0.0
    duration: float = 1000.0
    ease: str = 'linear'
    yoyo: bool = False
    elapsed: float = 0.0
    returning: bool = False
    on_complete: Optional[Callable[[], None]] = None


# =============================================================================
# RENDERING
# =============================================================================

@dataclass
class Renderable:
    """Glyph drawn centered on the entity. May be several cells wide."""
    glyph: str = '?'
    color: int = 7
    layer: int = 0
    visible: bool = True


@dataclass
class Label:
    """Short tag shown above an actor; released with it."""
    text: str = ''
    color: int = 7


@dataclass
class Lifetime:
    remaining: float = 500.0


@dataclass
class ParticleTag:
    pass


@dataclass
class FloatingText:
    """Text that rises and fades; removed by its Lifetime."""
    text: str = ''
    color: int = 7


# =============================================================================
# ACTORS
# =============================================================================

@dataclass
class Health:
    current: int = 1
    maximum: int = 1

    @property
    def fraction(self) -> float:
        if self.maximum <= 0:
            return 0.0
        return max(0.0, self.current) / self.maximum


@dataclass
class Vehicle:
    """Ground traffic: civilians and every enemy car or bike."""
    archetype: str = 'civilian'
    points: int = 0
    speed: float = 0.0              # road-relative forward speed, px/s
    assigned_lane: Optional[int] = None
    scale: float = 1.0


@dataclass
class LaneAI:
    """Horizontal steering target, re-evaluated on a periodic timer."""
    target_x: float = 0.0
    retarget_timer: float = 0.0


@dataclass
class RangedAttack:
    cooldown: float = 2000.0
    timer: float = 0.0
    projectile_speed: float = 200.0
    shots_fired: int = 0


@dataclass
class ProjectileGroup:
    """Projectiles owned by an actor; released when the actor goes away."""
    members: List[int] = field(default_factory=list)


@dataclass
class Projectile:
    kind: str = 'bullet'    # bullet | missile | enemy_shot | boss_shot | bomb
    damage: int = 1
    owner_id: int = -1


@dataclass
class Bomb:
    """Falling helicopter bomb and its ground shadow telegraph."""
    target_x: float = 0.0
    target_y: float = 0.0
    start_y: float = 0.0
    shadow_scale: float = 0.5
    shadow_alpha: float = 0.3

    def progress(self, y: float) -> float:
        """Fraction of the fall covered at height y, clamped to [0, 1]."""
        total = self.target_y - self.start_y
        if total <= 0:
            return 1.0
        return max(0.0, min(1.0, (y - self.start_y) / total))


@dataclass
class SpinOut:
    """Vehicle or player skidding after an oil slick or hazard."""
    remaining: float = 500.0
    on_finish: Optional[Callable[[], None]] = None


@dataclass
class HelicopterState:
    base_y: float = 80.0
    target_x: float = 0.0
    move_timer: float = 0.0
    bomb_timer: float = 0.0
    bomb_cooldown: float = 3000.0
    hover_offset: float = 0.0
    hover_direction: int = 1
    entering: bool = True
    shadow_x: float = 0.0
    shadow_y: float = 0.0


class BossPhase:
    ONE = 1
    TWO = 2
    THREE = 3


@dataclass
class BossState:
    boss_type: str = 'armored_truck'
    name: str = ''
    damage: int = 25
    can_shoot: bool = False
    attack_cooldown: float = 2000.0
    speed: float = 0.0
    phase: int = BossPhase.ONE
    attack_timer: float = 0.0
    move_timer: float = 0.0
    target_x: float = 0.0
    entry_complete: bool = False
    ramming: bool = False
    rams: int = 0


class VanStatus:
    APPROACHING = 'approaching'
    PULLING_OVER = 'pulling_over'
    STOPPED = 'stopped'
    ARMING = 'arming'
    DRIVING_AWAY = 'driving_away'


@dataclass
class VanState:
    status: str = VanStatus.APPROACHING
    speed: float = 0.0
    pull_over_x: float = 0.0
    is_open: bool = False
    player_inside: bool = False
    inside_timer: float = 0.0
    max_inside_time: float = 2500.0
    weapons_given: bool = False
    stored_player_speed: Optional[float] = None

    @property
    def arming_progress(self) -> float:
        if self.max_inside_time <= 0:
            return 1.0
        return min(1.0, self.inside_timer / self.max_inside_time)


# =============================================================================
# PLAYER
# =============================================================================

class WeaponKind:
    MACHINE_GUN = 'machine_gun'
    MISSILE = 'missile'
    OIL_SLICK = 'oil_slick'
    SMOKE_SCREEN = 'smoke_screen'

    ORDER = ('machine_gun', 'missile', 'oil_slick', 'smoke_screen')


@dataclass
class Weapon:
    ammo: float = 0
    last_fired: float = float('-inf')


@dataclass
class PlayerControls:
    """Intent for one tick, filled by whatever input layer is in use."""
    steer: int = 0          # -1 left, 0 none, 1 right
    throttle: int = 0       # -1 brake, 0 coast, 1 accelerate
    firing: bool = False
    switch_weapon: bool = False


@dataclass
class PlayerState:
    health: int = 100
    max_health: int = 100
    lives: int = 3
    score: float = 0.0
    current_speed: float = 200.0
    invulnerable: bool = False
    invulnerable_timer: Optional[object] = None     # TimerHandle
    inside_van: Optional[int] = None
    weapons: Dict[str, Weapon] = field(default_factory=dict)
    current_weapon: str = WeaponKind.MACHINE_GUN
    smoke_active: bool = False
    on_grass: bool = False
    grass_timer: float = 0.0
    push_x: float = 0.0     # lateral knockback, px/s
    game_over: bool = False


# =============================================================================
# ROAD OBJECTS
# =============================================================================

@dataclass
class Hazard:
    kind: str = 'pothole'
    damage: int = 0
    slow: float = 0.0
    spin_chance: float = 0.0
    triggered: bool = False


@dataclass
class PowerUp:
    kind: str = 'weapon_refill'


@dataclass
class OilSlick:
    """Dropped by the player; spins out any vehicle that drives over it."""
    pass
