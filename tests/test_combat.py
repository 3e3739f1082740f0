"""Unit tests for spy_chase.combat: the per-tick collision rules."""
from __future__ import annotations

import pytest

from spy_chase.archetypes import CIVILIAN, CHASER
from spy_chase.boss import create_boss, ARMORED_TRUCK, BOSS_TYPES
from spy_chase.combat import EncounterResolver
from spy_chase.components import (
    Position, Velocity, Health, SpinOut, WeaponKind, PlayerState
)
from spy_chase.helicopter import create_helicopter
from spy_chase.levels import CampaignProgression
from spy_chase.pickups import HazardDirector, PowerUpDirector, create_hazard, create_powerup, POTHOLE, SHIELD
from spy_chase.player import set_invulnerable, fire, update_player
from spy_chase.projectiles import spawn_projectile, BULLET, MISSILE, ENEMY_SHOT
from spy_chase.systems import spin_out_system
from spy_chase.traffic import TrafficDirector
from spy_chase.vehicles import create_vehicle

pytestmark = pytest.mark.unit

PX, PY = 240, 540


@pytest.fixture
def resolver(ctx):
    traffic = TrafficDirector(ctx)
    progression = CampaignProgression(ctx, traffic)
    hazards = HazardDirector(ctx, lambda: progression.level_number)
    powerups = PowerUpDirector(ctx)
    return EncounterResolver(ctx, traffic, progression, hazards, powerups)


def shoot(ctx, x, y, kind=BULLET, damage=1):
    return spawn_projectile(ctx.world, x, y, 0, -500, kind=kind, damage=damage,
                            owner_id=ctx.player_id)


def health(ctx, eid):
    return ctx.world.get_component(eid, Health).current


def player(ctx) -> PlayerState:
    return ctx.player_state()


# ---------------------------------------------------------------------------
# Player fire
# ---------------------------------------------------------------------------

class TestPlayerShots:

    def test_bullet_damages_vehicle_and_is_spent(self, ctx, resolver):
        enemy = create_vehicle(ctx, CHASER, 240, 300)
        shot = shoot(ctx, 240, 300)
        assert resolver.resolve() == 1
        assert health(ctx, enemy) == 1
        assert not ctx.world.is_alive(shot)

    def test_missile_kills_and_scores(self, ctx, resolver):
        enemy = create_vehicle(ctx, CHASER, 240, 300)
        shoot(ctx, 240, 300, kind=MISSILE, damage=3)
        resolver.resolve()
        assert not ctx.world.is_alive(enemy)
        assert player(ctx).score == 100

    def test_one_shot_hits_one_target(self, ctx, resolver):
        a = create_vehicle(ctx, CHASER, 240, 300)
        b = create_vehicle(ctx, CHASER, 240, 300)
        shoot(ctx, 240, 300)
        resolver.resolve()
        assert health(ctx, a) + health(ctx, b) == 3

    def test_shooting_civilian_costs_points(self, ctx, resolver):
        civilian = create_vehicle(ctx, CIVILIAN, 240, 300, lane=2)
        shoot(ctx, 240, 300)
        resolver.resolve()
        assert not ctx.world.is_alive(civilian)
        assert player(ctx).score == -ctx.config.civilian_penalty

    def test_helicopter_is_a_target(self, ctx, resolver):
        heli = create_helicopter(ctx, 240)
        ctx.world.get_component(heli, Position).x = 240
        shoot(ctx, 240, 80)
        resolver.resolve()
        assert health(ctx, heli) == 4

    def test_boss_is_a_target(self, ctx, resolver):
        boss = create_boss(ctx, ARMORED_TRUCK)
        resolver.progression.boss = boss
        shoot(ctx, 240, -100)
        resolver.resolve()
        assert health(ctx, boss) == BOSS_TYPES[ARMORED_TRUCK].health - 1

    def test_miss_leaves_shot_flying(self, ctx, resolver):
        create_vehicle(ctx, CHASER, 80, 300)
        shot = shoot(ctx, 400, 300)
        assert resolver.resolve() == 0
        assert ctx.world.is_alive(shot)


# ---------------------------------------------------------------------------
# Contact
# ---------------------------------------------------------------------------

class TestPlayerContact:

    def test_civilian_crash(self, ctx, resolver):
        civilian = create_vehicle(ctx, CIVILIAN, PX, PY, lane=2)
        resolver.resolve()
        assert not ctx.world.is_alive(civilian)
        assert player(ctx).health == 70
        assert player(ctx).score == -50

    def test_invulnerable_player_still_costs_civilian(self, ctx, resolver):
        set_invulnerable(ctx, 1000)
        civilian = create_vehicle(ctx, CIVILIAN, PX, PY, lane=2)
        resolver.resolve()
        assert not ctx.world.is_alive(civilian)
        assert player(ctx).health == 100
        assert player(ctx).score == -50

    def test_lateral_ram_pushes_player_away(self, ctx, resolver):
        enemy = create_vehicle(ctx, CHASER, PX - 30, PY)
        resolver.resolve()
        pos = ctx.player_position()
        assert pos.x == PX + 15
        assert ctx.world.get_component(ctx.player_id, Velocity).x == 150
        assert player(ctx).health == 80
        assert health(ctx, enemy) == 1

    def test_ram_knockback_outlasts_next_steering_pass(self, ctx, resolver):
        create_vehicle(ctx, CHASER, PX - 30, PY)
        resolver.resolve()
        vel = ctx.world.get_component(ctx.player_id, Velocity)

        update_player(ctx, 0, 20)
        assert vel.x == 150
        update_player(ctx, 0, 20)
        assert vel.x == 140
        for _ in range(20):
            update_player(ctx, 0, 20)
        assert vel.x == 0
        assert player(ctx).push_x == 0

    def test_ram_from_the_right_pushes_left(self, ctx, resolver):
        create_vehicle(ctx, CHASER, PX + 30, PY)
        resolver.resolve()
        assert ctx.player_position().x == PX - 15

    def test_frontal_crash(self, ctx, resolver):
        enemy = create_vehicle(ctx, CHASER, PX, PY - 40)
        resolver.resolve()
        assert player(ctx).health == 70
        assert not ctx.world.is_alive(enemy)
        assert player(ctx).score == 100

    def test_invulnerable_player_ignores_enemies(self, ctx, resolver):
        set_invulnerable(ctx, 1000)
        enemy = create_vehicle(ctx, CHASER, PX, PY - 40)
        assert resolver.resolve() == 0
        assert health(ctx, enemy) == 2

    def test_game_over_player_is_ignored(self, ctx, resolver):
        player(ctx).game_over = True
        civilian = create_vehicle(ctx, CIVILIAN, PX, PY, lane=2)
        resolver.resolve()
        assert ctx.world.is_alive(civilian)


class TestVehicleContact:

    def test_overlapping_vehicles_separate(self, ctx, resolver):
        a = create_vehicle(ctx, CHASER, 200, 300)
        b = create_vehicle(ctx, CHASER, 210, 300)
        resolver.resolve()
        assert ctx.world.get_component(a, Position).x == 195
        assert ctx.world.get_component(b, Position).x == 215

    def test_oil_slick_spins_then_damages(self, ctx, resolver):
        player(ctx).current_weapon = WeaponKind.OIL_SLICK
        fire(ctx, 0)
        enemy = create_vehicle(ctx, CHASER, PX, PY + 60)
        resolver.resolve()
        assert ctx.world.has_component(enemy, SpinOut)

        spin_out_system(ctx.world, 500)
        assert not ctx.world.has_component(enemy, SpinOut)
        assert health(ctx, enemy) == 1


# ---------------------------------------------------------------------------
# Incoming fire and pickups
# ---------------------------------------------------------------------------

class TestIncoming:

    def test_hostile_shot_hits_player(self, ctx, resolver):
        shot = spawn_projectile(ctx.world, PX, PY, 0, 200, kind=ENEMY_SHOT, damage=15)
        resolver.resolve()
        assert player(ctx).health == 85
        assert not ctx.world.is_alive(shot)

    def test_shot_spent_on_invulnerable_player(self, ctx, resolver):
        set_invulnerable(ctx, 1000)
        shot = spawn_projectile(ctx.world, PX, PY, 0, 200, kind=ENEMY_SHOT, damage=15)
        resolver.resolve()
        assert player(ctx).health == 100
        assert not ctx.world.is_alive(shot)

    def test_boss_body_contact(self, ctx, resolver):
        boss = create_boss(ctx, ARMORED_TRUCK)
        resolver.progression.boss = boss
        pos = ctx.world.get_component(boss, Position)
        pos.x, pos.y = PX, PY
        resolver.resolve()
        assert player(ctx).health == 100 - BOSS_TYPES[ARMORED_TRUCK].damage
        resolver.resolve()
        assert player(ctx).health == 100 - BOSS_TYPES[ARMORED_TRUCK].damage

    def test_hazard_and_powerup_pickup(self, ctx, resolver):
        ctx.rng.random = lambda: 0.99
        hole = create_hazard(ctx, POTHOLE, PX, PY)
        shield = create_powerup(ctx, SHIELD, PX, PY)
        assert resolver.resolve() == 2
        assert player(ctx).health == 90
        assert not ctx.world.is_alive(shield)
        assert ctx.world.is_alive(hole)
