"""
Audio/Visual Effects
====================
Fire-and-forget presentation hooks called by the encounter core.

`Effects` is the no-op base: the core runs unchanged with it, which is
what the tests and any headless use rely on. `TerminalEffects` turns the
same calls into particles, floating text, screen shake and banner
announcements for the blessed renderer.
"""

import random
from dataclasses import dataclass
from typing import List, Optional

from loguru import logger

from .ecs import World
from .components import Position, Velocity, Renderable, Lifetime, FloatingText
from .engine import WHITE
from .particles import spawn_explosion, spawn_sparks, spawn_smoke


class Effects:
    """Presentation collaborator. Every method is optional to honor."""

    def play(self, sound: str) -> None:
        pass

    def floating_text(self, x: float, y: float, text: str, color: int = WHITE) -> None:
        pass

    def explosion(self, x: float, y: float, scale: float = 1.0) -> None:
        pass

    def sparks(self, x: float, y: float) -> None:
        pass

    def smoke(self, x: float, y: float) -> None:
        pass

    def shake(self, duration: float = 200.0, intensity: int = 1) -> None:
        pass

    def flash_damage(self) -> None:
        pass

    def announce(self, title: str, subtitle: str = '', color: int = WHITE,
                 duration: float = 3000.0) -> None:
        pass


NullEffects = Effects


@dataclass
class Announcement:
    title: str
    subtitle: str
    color: int
    remaining: float


class TerminalEffects(Effects):
    """Effects rendered by the terminal runner."""

    def __init__(self, world: World, rng: Optional[random.Random] = None):
        self.world = world
        self.rng = rng or random.Random()
        self.announcement: Optional[Announcement] = None
        self.flash_remaining: float = 0.0
        self.shake_remaining: float = 0.0
        self.shake_intensity: int = 1
        self.recent_sounds: List[str] = []

    def play(self, sound: str) -> None:
        self.recent_sounds.append(sound)
        del self.recent_sounds[:-8]
        logger.trace("sound {}", sound)

    def floating_text(self, x: float, y: float, text: str, color: int = WHITE) -> None:
        entity_id = self.world.create_entity()
        self.world.add_component(entity_id, Position(x, y))
        self.world.add_component(entity_id, Velocity(0, -60))
        self.world.add_component(entity_id, FloatingText(text, color))
        self.world.add_component(entity_id, Renderable(glyph=text, color=color, layer=9))
        self.world.add_component(entity_id, Lifetime(800))

    def explosion(self, x: float, y: float, scale: float = 1.0) -> None:
        spawn_explosion(self.world, x, y, scale=scale, rng=self.rng)

    def sparks(self, x: float, y: float) -> None:
        spawn_sparks(self.world, x, y, rng=self.rng)

    def smoke(self, x: float, y: float) -> None:
        spawn_smoke(self.world, x, y, rng=self.rng)

    def shake(self, duration: float = 200.0, intensity: int = 1) -> None:
        self.shake_remaining = max(self.shake_remaining, duration)
        self.shake_intensity = max(1, intensity)

    def flash_damage(self) -> None:
        self.flash_remaining = 200.0

    def announce(self, title: str, subtitle: str = '', color: int = WHITE,
                 duration: float = 3000.0) -> None:
        self.announcement = Announcement(title, subtitle, color, duration)

    def tick(self, delta: float) -> None:
        """Age timed overlays. Called once per frame by the runner."""
        self.flash_remaining = max(0.0, self.flash_remaining - delta)
        self.shake_remaining = max(0.0, self.shake_remaining - delta)
        if self.announcement is not None:
            self.announcement.remaining -= delta
            if self.announcement.remaining <= 0:
                self.announcement = None

    @property
    def flashing(self) -> bool:
        return self.flash_remaining > 0

