"""Shared fixtures: a headless encounter context with a seeded RNG."""
from __future__ import annotations

import random

import pytest

from spy_chase.context import GameContext
from spy_chase.player import create_player
from spy_chase.systems import movement_system, tween_system, lifetime_system, spin_out_system


@pytest.fixture
def ctx():
    """Context with a player at the bottom center, no-op effects, seed 1234."""
    context = GameContext(rng=random.Random(1234))
    create_player(context)
    return context


@pytest.fixture
def bare_ctx():
    """Context without a player."""
    return GameContext(rng=random.Random(99))


@pytest.fixture
def physics():
    """Run the integration systems and the end-of-tick sweep once."""
    def _step(context: GameContext, delta: float) -> None:
        movement_system(context.world, delta)
        tween_system(context.world, delta)
        spin_out_system(context.world, delta)
        lifetime_system(context.world, delta)
        context.world.process_dead_entities()
    return _step
