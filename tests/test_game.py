"""Session-level tests: the full per-tick pipeline, headless."""
from __future__ import annotations

import pytest

from spy_chase.components import Position, PlayerControls
from spy_chase.events import GAME_COMPLETE
from spy_chase.game import EncounterSession
from spy_chase.levels import CampaignProgression, EndlessProgression, ProgressionState
from spy_chase.player import take_damage

pytestmark = pytest.mark.unit

DT = 20.0


def run(session, ticks, controls=None, delta=DT):
    for _ in range(ticks):
        session.update(delta, controls)


def sturdy(session):
    """Enough lives that a long run cannot end early."""
    session.player_state().lives = 999
    return session


class TestSession:

    def test_initial_wiring(self):
        session = EncounterSession(seed=1)
        assert isinstance(session.progression, CampaignProgression)
        assert session.player_state().health == 100
        assert not session.traffic.started
        assert session.running

    def test_unknown_mode_raises(self):
        with pytest.raises(ValueError):
            EncounterSession(mode='arcade', seed=1)

    def test_time_follows_the_clock(self):
        session = sturdy(EncounterSession(seed=2))
        run(session, 500)
        assert session.ticks == 500
        assert session.time == pytest.approx(10000)
        assert session.ctx.clock.now == session.time
        assert session.traffic.started

    def test_long_run_keeps_caps(self):
        session = sturdy(EncounterSession(seed=5))
        for _ in range(3000):
            session.update(DT)
            traffic = session.traffic
            assert traffic.active_vehicle_count() <= traffic.max_vehicles
        assert session.ticks == 3000

    def test_same_seed_same_run(self):
        a = sturdy(EncounterSession(seed=11))
        b = sturdy(EncounterSession(seed=11))
        controls = PlayerControls(steer=1, firing=True)
        run(a, 800, controls)
        run(b, 800, controls)
        assert a.player_state().score == b.player_state().score
        assert a.player_state().health == b.player_state().health
        assert a.world.count(Position) == b.world.count(Position)


class TestEndings:

    def test_game_over_stops_the_session(self):
        session = EncounterSession(seed=3)
        session.player_state().lives = 1
        take_damage(session.ctx, 500)

        assert session.game_over
        assert not session.running
        assert session.final_score == 0
        ticks = session.ticks
        session.update(DT)
        assert session.ticks == ticks

    def test_completion_stops_the_session(self):
        session = EncounterSession(seed=3)
        session.events.emit(GAME_COMPLETE, score=9500)
        assert session.complete
        assert session.final_score == 9500
        session.update(DT)
        assert session.ticks == 0

    def test_teardown_cancels_everything(self):
        session = sturdy(EncounterSession(seed=4))
        run(session, 400)
        session.teardown()

        assert session.ctx.torn_down
        assert session.ctx.clock.pending() == 0
        assert session.traffic.vehicles() == []
        assert session.hazards.hazards() == []
        assert not session.running

        session.ctx.clock.advance(60000)
        assert session.traffic.vehicles() == []
        session.teardown()


class TestPipeline:

    def test_score_threshold_brings_boss(self):
        session = sturdy(EncounterSession(seed=6))
        run(session, 10)
        session.player_state().score = 750
        session.update(DT)
        assert session.progression.state == ProgressionState.BOSS_ACTIVE
        assert session.world.is_alive(session.progression.boss)
        assert session.traffic.vehicles() == []

    def test_player_boards_van_through_session(self):
        session = EncounterSession(seed=8)
        van = session.traffic.spawn_weapons_van()
        run(session, 100)

        van_pos = session.world.get_component(van, Position)
        pos = session.ctx.player_position()
        pos.x, pos.y = van_pos.x, van_pos.y + 40
        session.update(DT)

        assert session.player_state().inside_van == van
        van_pos = session.world.get_component(van, Position)
        assert (pos.x, pos.y) == (van_pos.x, van_pos.y + 30)

    def test_endless_tiers_up_with_time(self):
        session = sturdy(EncounterSession(mode='endless', seed=9))
        assert isinstance(session.progression, EndlessProgression)
        run(session, 451, delta=100)
        assert session.progression.tier == 2
        assert session.traffic.level == 2
