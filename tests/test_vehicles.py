"""Unit tests for spy_chase.vehicles: drift, steering, firing, damage."""
from __future__ import annotations

import pytest

from spy_chase.archetypes import CIVILIAN, CHASER, MOTORCYCLE, ARMORED, SHOOTER, BLOCKER, RAMMER
from spy_chase.components import (
    Position, Velocity, Health, Vehicle, RangedAttack, SpinOut, PlayerState, Label
)
from spy_chase.projectiles import group_members
from spy_chase.systems import movement_system
from spy_chase.vehicles import (
    create_vehicle, update_vehicle, take_damage, destroy_vehicle, is_civilian
)

pytestmark = pytest.mark.unit

ROAD = 200.0
DT = 20.0


def run(ctx, eid, ms, move=True):
    t = 0.0
    while t < ms:
        t += DT
        update_vehicle(ctx, eid, t, DT, ROAD)
        if move:
            movement_system(ctx.world, DT)


# ---------------------------------------------------------------------------
# Civilians
# ---------------------------------------------------------------------------

class TestCivilian:

    def test_drifts_down_at_road_relative_speed(self, ctx):
        x = ctx.config.lane_grid.lane_x(2)
        eid = create_vehicle(ctx, CIVILIAN, x, -60, lane=2)
        vehicle = ctx.world.get_component(eid, Vehicle)
        assert vehicle.speed == pytest.approx(ROAD * 0.8)

        run(ctx, eid, 1000)
        pos = ctx.world.get_component(eid, Position)
        assert pos.y == pytest.approx(-60 + (ROAD - vehicle.speed) * 1.0)
        assert pos.x == pytest.approx(x)

    def test_corrects_toward_lane_center(self, ctx):
        center = ctx.config.lane_grid.lane_x(2)
        eid = create_vehicle(ctx, CIVILIAN, center + 20, 100, lane=2)
        update_vehicle(ctx, eid, DT, DT, ROAD)
        assert ctx.world.get_component(eid, Velocity).x == -30

        run(ctx, eid, 1000)
        pos = ctx.world.get_component(eid, Position)
        assert pos.x < center + 20
        assert abs(pos.x - center) <= 6

    def test_self_destroys_below_the_viewport(self, ctx):
        eid = create_vehicle(ctx, CIVILIAN, 240, -60, lane=2)
        last_y = None
        for _ in range(2000):
            if not ctx.world.is_alive(eid):
                break
            last_y = ctx.world.get_component(eid, Position).y
            run(ctx, eid, DT)
        assert not ctx.world.is_alive(eid)
        assert last_y > ctx.config.height + 100

    def test_counts_as_civilian(self, ctx):
        eid = create_vehicle(ctx, CIVILIAN, 240, 0, lane=2)
        assert is_civilian(ctx, eid)
        assert ctx.world.get_component(eid, Vehicle).points == -ctx.config.civilian_penalty


# ---------------------------------------------------------------------------
# Enemy behaviors
# ---------------------------------------------------------------------------

class TestEnemyBehaviors:

    def test_shooter_fires_twice_in_five_seconds(self, ctx):
        eid = create_vehicle(ctx, SHOOTER, 240, 300, lane=2)
        run(ctx, eid, 5000, move=False)
        attack = ctx.world.get_component(eid, RangedAttack)
        assert attack.shots_fired == 2
        assert len(group_members(ctx.world, eid)) == 2

    def test_shooter_holds_its_lane(self, ctx):
        eid = create_vehicle(ctx, SHOOTER, 80, 300, lane=0)
        update_vehicle(ctx, eid, DT, DT, ROAD)
        assert ctx.world.get_component(eid, Velocity).x == 0.0

    def test_chaser_surges_from_behind(self, ctx):
        player = ctx.player_position()
        eid = create_vehicle(ctx, CHASER, 80, player.y + 150, lane=0)
        update_vehicle(ctx, eid, DT, DT, ROAD)
        assert ctx.world.get_component(eid, Vehicle).speed == pytest.approx(ROAD * 1.3)

    def test_chaser_eases_off_ahead_of_player(self, ctx):
        player = ctx.player_position()
        eid = create_vehicle(ctx, CHASER, 80, player.y - 200, lane=0)
        update_vehicle(ctx, eid, DT, DT, ROAD)
        assert ctx.world.get_component(eid, Vehicle).speed == pytest.approx(ROAD * 0.7)

    def test_rammer_snaps_to_player_lane(self, ctx):
        player = ctx.player_position()
        eid = create_vehicle(ctx, RAMMER, 80, player.y + 60, lane=0)
        update_vehicle(ctx, eid, 1300, 1300, ROAD)
        grid = ctx.config.lane_grid
        vel = ctx.world.get_component(eid, Velocity)
        assert vel.x == 120
        assert grid.lane_from_x(ctx.world.get_component(eid, Position).x) == 0
        vehicle = ctx.world.get_component(eid, Vehicle)
        assert vehicle.speed == pytest.approx(ROAD * 1.35)

    def test_motorcycle_weaves_off_the_edge_lane(self, ctx):
        grid = ctx.config.lane_grid
        eid = create_vehicle(ctx, MOTORCYCLE, grid.lane_x(0), 300, lane=0)
        update_vehicle(ctx, eid, 1600, 1600, ROAD)
        assert ctx.world.get_component(eid, Velocity).x > 0

    def test_blocker_brakes_near_player(self, ctx):
        player = ctx.player_position()
        eid = create_vehicle(ctx, BLOCKER, player.x, player.y - 40, lane=2)
        update_vehicle(ctx, eid, DT, DT, ROAD)
        assert ctx.world.get_component(eid, Vehicle).speed == pytest.approx(ROAD * 0.4)

    def test_spin_out_freezes_steering(self, ctx):
        eid = create_vehicle(ctx, RAMMER, 80, 600, lane=0)
        ctx.world.add_component(eid, SpinOut(500))
        update_vehicle(ctx, eid, 1300, 1300, ROAD)
        assert ctx.world.get_component(eid, Velocity).x == 0.0

    def test_enemies_stop_steering_without_player(self, bare_ctx):
        eid = create_vehicle(bare_ctx, CHASER, 80, 300, lane=0)
        update_vehicle(bare_ctx, eid, 2500, 2500, ROAD)
        assert bare_ctx.world.get_component(eid, Velocity).x == 0.0


# ---------------------------------------------------------------------------
# Damage
# ---------------------------------------------------------------------------

class TestTakeDamage:

    def test_exact_remaining_health_kills(self, ctx):
        eid = create_vehicle(ctx, CHASER, 240, 300)
        assert take_damage(ctx, eid, 2) is True
        assert not ctx.world.is_alive(eid)
        assert ctx.world.get_component(ctx.player_id, PlayerState).score == 100

    def test_partial_damage_reduces_health_exactly(self, ctx):
        eid = create_vehicle(ctx, ARMORED, 240, 300)
        assert take_damage(ctx, eid, 2) is False
        assert ctx.world.is_alive(eid)
        assert ctx.world.get_component(eid, Health).current == 3

    def test_dead_vehicle_ignores_further_hits(self, ctx):
        eid = create_vehicle(ctx, CHASER, 240, 300)
        take_damage(ctx, eid, 5)
        assert take_damage(ctx, eid, 5) is False
        assert ctx.world.get_component(ctx.player_id, PlayerState).score == 100

    def test_killing_civilian_costs_points(self, ctx):
        eid = create_vehicle(ctx, CIVILIAN, 240, 300, lane=2)
        assert take_damage(ctx, eid, 1) is True
        assert ctx.world.get_component(ctx.player_id, PlayerState).score == -50

    def test_destroy_releases_projectiles_and_label(self, ctx):
        eid = create_vehicle(ctx, SHOOTER, 240, 300, lane=2)
        run(ctx, eid, 2000, move=False)
        shots = group_members(ctx.world, eid)
        assert shots
        destroy_vehicle(ctx, eid)
        assert all(not ctx.world.is_alive(s) for s in shots)
        assert ctx.world.get_component(eid, Label) is None
