"""Unit tests for spy_chase.lanes and spy_chase.archetypes."""
from __future__ import annotations

import pytest

from spy_chase.archetypes import (
    select_archetype, stats_for, ARCHETYPES, ENEMY_ARCHETYPES, SPAWN_TABLES,
    CIVILIAN, CHASER, MOTORCYCLE, ARMORED, SHOOTER, BLOCKER, RAMMER
)
from spy_chase.components import Position
from spy_chase.config import DEFAULT_CONFIG
from spy_chase.lanes import LaneGrid
from spy_chase.vehicles import create_vehicle

pytestmark = pytest.mark.unit

ROLLS = [i / 100 for i in range(100)]


# ---------------------------------------------------------------------------
# Lane math
# ---------------------------------------------------------------------------

class TestLaneGrid:

    @pytest.mark.parametrize("lane", range(5))
    def test_lane_center_maps_back_to_lane(self, lane):
        grid = LaneGrid(5, 80, 40)
        assert grid.lane_from_x(grid.lane_x(lane)) == lane

    def test_default_geometry(self):
        grid = DEFAULT_CONFIG.lane_grid
        assert grid.lane_x(0) == 80.0
        assert grid.lane_x(2) == 240.0
        assert grid.right == 440.0

    def test_off_road_positions_fall_outside(self):
        grid = LaneGrid(5, 80, 40)
        assert not grid.contains(grid.lane_from_x(10))
        assert not grid.contains(grid.lane_from_x(470))
        assert grid.clamp(-3) == 0
        assert grid.clamp(9) == 4

    @pytest.mark.parametrize("lane", range(5))
    def test_spawned_vehicle_derives_its_lane(self, ctx, lane):
        grid = ctx.config.lane_grid
        eid = create_vehicle(ctx, CIVILIAN, grid.lane_x(lane), -60, lane=lane)
        pos = ctx.world.get_component(eid, Position)
        assert grid.lane_from_x(pos.x) == lane


# ---------------------------------------------------------------------------
# Spawn tables
# ---------------------------------------------------------------------------

class TestSelectArchetype:

    def test_level_one_only_chasers_and_motorcycles(self):
        picks = {select_archetype(1, roll) for roll in ROLLS}
        assert picks == {CHASER, MOTORCYCLE}

    def test_level_gates_open_progressively(self):
        assert BLOCKER not in {select_archetype(1, r) for r in ROLLS}
        assert BLOCKER in {select_archetype(2, r) for r in ROLLS}
        assert SHOOTER in {select_archetype(3, r) for r in ROLLS}
        assert ARMORED in {select_archetype(4, r) for r in ROLLS}

    def test_classic_thresholds(self):
        assert select_archetype(4, 0.10) == ARMORED
        assert select_archetype(4, 0.20) == SHOOTER
        assert select_archetype(4, 0.30) == BLOCKER
        assert select_archetype(4, 0.50) == CHASER
        assert select_archetype(4, 0.99) == MOTORCYCLE

    def test_rammer_only_in_rammer_table(self):
        assert RAMMER not in {select_archetype(5, r, 'classic') for r in ROLLS}
        assert select_archetype(3, 0.30, 'rammer') == RAMMER
        assert RAMMER not in {select_archetype(2, r, 'rammer') for r in ROLLS}

    def test_every_table_catches_every_roll(self):
        for table in SPAWN_TABLES:
            for level in range(1, 6):
                for roll in ROLLS:
                    assert select_archetype(level, roll, table) in ENEMY_ARCHETYPES

    def test_unknown_table_raises(self):
        with pytest.raises(ValueError):
            select_archetype(1, 0.5, 'nope')


class TestStats:

    def test_unknown_archetype_falls_back_to_chaser(self):
        assert stats_for('hovercraft') is ARCHETYPES[CHASER]

    def test_only_shooter_can_shoot(self):
        shooters = [name for name, stats in ARCHETYPES.items() if stats.can_shoot]
        assert shooters == [SHOOTER]
