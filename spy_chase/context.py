"""
Game Context
============
The shared substrate every manager and actor function receives
explicitly: entity store, clock, config, event channel, effects, RNG and
the player's entity id.
"""

import random
from dataclasses import dataclass, field
from typing import Optional

from .clock import GameClock
from .components import Position, PlayerState
from .config import GameConfig, DEFAULT_CONFIG
from .ecs import World
from .effects import Effects
from .events import EventChannel


@dataclass
class GameContext:
    world: World = field(default_factory=World)
    config: GameConfig = DEFAULT_CONFIG
    clock: GameClock = field(default_factory=GameClock)
    events: EventChannel = field(default_factory=EventChannel)
    effects: Effects = field(default_factory=Effects)
    rng: random.Random = field(default_factory=random.Random)
    player_id: Optional[int] = None
    torn_down: bool = False

    def player_position(self) -> Optional[Position]:
        """The player's Position, or None if there is no live player."""
        if not self.world.is_alive(self.player_id):
            return None
        return self.world.get_component(self.player_id, Position)

    def player_state(self) -> Optional[PlayerState]:
        if not self.world.is_alive(self.player_id):
            return None
        return self.world.get_component(self.player_id, PlayerState)

    def owner_alive(self, entity_id: Optional[int]) -> bool:
        """Guard for deferred callbacks: session still running and owner live."""
        return not self.torn_down and self.world.is_alive(entity_id)
