"""Unit tests for spy_chase.helicopter: hover, bombing run, shadows, damage."""
from __future__ import annotations

import pytest

from spy_chase.components import Position, HelicopterState, Bomb, PlayerState
from spy_chase.helicopter import (
    create_helicopter, update_helicopter, take_damage, destroy_helicopter,
    BOMB_COOLDOWN, BLAST_DAMAGE, SHADOW_DROP, HELICOPTER_POINTS
)
from spy_chase.projectiles import group_members

pytestmark = pytest.mark.unit

DT = 20.0


def fly(ctx, eid, ms, physics):
    t = 0.0
    while t < ms:
        t += DT
        update_helicopter(ctx, eid, t, DT, 200)
        physics(ctx, DT)


class TestHelicopter:

    def test_enters_from_a_side_toward_target(self, ctx, physics):
        eid = create_helicopter(ctx, 240)
        start_x = ctx.world.get_component(eid, Position).x
        assert start_x < 0 or start_x > ctx.config.width

        fly(ctx, eid, 1600, physics)
        state = ctx.world.get_component(eid, HelicopterState)
        assert not state.entering
        assert ctx.world.get_component(eid, Position).x == pytest.approx(240, abs=5)

    def test_shadow_tracks_airframe(self, ctx, physics):
        eid = create_helicopter(ctx, 240)
        fly(ctx, eid, 200, physics)
        state = ctx.world.get_component(eid, HelicopterState)
        update_helicopter(ctx, eid, 220, DT, 200)
        pos = ctx.world.get_component(eid, Position)
        assert state.shadow_x == pos.x
        assert state.shadow_y == pytest.approx(pos.y + SHADOW_DROP)

    def test_drops_bomb_after_cooldown(self, ctx):
        eid = create_helicopter(ctx, 240)
        update_helicopter(ctx, eid, 0, BOMB_COOLDOWN + 1, 200)
        bombs = group_members(ctx.world, eid)
        assert len(bombs) == 1
        bomb = ctx.world.get_component(bombs[0], Bomb)
        player = ctx.player_position()
        assert (bomb.target_x, bomb.target_y) == (player.x, player.y)

    def test_bomb_blast_hurts_player_at_target(self, ctx, physics):
        eid = create_helicopter(ctx, 240)
        update_helicopter(ctx, eid, 0, BOMB_COOLDOWN + 1, 200)
        bomb_id = group_members(ctx.world, eid)[0]

        fly(ctx, eid, 1000, physics)
        assert not ctx.world.is_alive(bomb_id)
        state = ctx.world.get_component(ctx.player_id, PlayerState)
        assert state.health == ctx.config.starting_health - BLAST_DAMAGE

    def test_shadow_grows_while_bomb_falls(self, ctx, physics):
        eid = create_helicopter(ctx, 240)
        update_helicopter(ctx, eid, 0, BOMB_COOLDOWN + 1, 200)
        bomb = ctx.world.get_component(group_members(ctx.world, eid)[0], Bomb)
        first = bomb.shadow_scale
        fly(ctx, eid, 400, physics)
        assert bomb.shadow_scale > first

    def test_destroy_takes_bombs_with_it(self, ctx):
        eid = create_helicopter(ctx, 240)
        update_helicopter(ctx, eid, 0, BOMB_COOLDOWN + 1, 200)
        bombs = group_members(ctx.world, eid)
        destroy_helicopter(ctx, eid)
        assert not ctx.world.is_alive(eid)
        assert all(not ctx.world.is_alive(b) for b in bombs)

    def test_leaves_after_drifting_down(self, ctx):
        eid = create_helicopter(ctx, 240)
        ctx.world.get_component(eid, HelicopterState).base_y = ctx.config.height * 0.4 + 1
        update_helicopter(ctx, eid, 0, DT, 200)
        assert not ctx.world.is_alive(eid)

    def test_five_hits_shoot_it_down(self, ctx):
        eid = create_helicopter(ctx, 240)
        for _ in range(4):
            assert take_damage(ctx, eid, 1) is False
        assert take_damage(ctx, eid, 1) is True
        assert not ctx.world.is_alive(eid)
        assert ctx.world.get_component(ctx.player_id, PlayerState).score == HELICOPTER_POINTS
