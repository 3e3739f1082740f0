"""Unit tests for spy_chase.levels: campaign gating and endless tiers."""
from __future__ import annotations

from dataclasses import replace

import pytest

from spy_chase.boss import take_damage as damage_boss, ARMORED_TRUCK
from spy_chase.components import BossState
from spy_chase.config import DEFAULT_CONFIG
from spy_chase.events import (
    BOSS_SPAWNED, BOSS_DEFEATED, LEVEL_ADVANCED, GAME_COMPLETE,
    TIER_INCREASED, THEME_CHANGED
)
from spy_chase.levels import (
    Progression, CampaignProgression, EndlessProgression, ProgressionState, create_progression,
    endless_tier, endless_theme_index, endless_tuning,
    LEVELS, THEMES, CAMPAIGN_FINISH_SCORE, BOSS_ADVANCE_DELAY, ANNOUNCEMENT_WINDOW
)
from spy_chase.traffic import TrafficDirector
from spy_chase.vehicles import create_vehicle
from spy_chase.archetypes import CIVILIAN

pytestmark = pytest.mark.unit


@pytest.fixture
def traffic(ctx):
    return TrafficDirector(ctx)


@pytest.fixture
def campaign(ctx, traffic):
    return CampaignProgression(ctx, traffic)


def set_score(ctx, score):
    ctx.player_state().score = score


def beat_boss(ctx, progression):
    damage_boss(ctx, progression.boss, 1000)
    ctx.clock.advance(BOSS_ADVANCE_DELAY + ANNOUNCEMENT_WINDOW)


# ---------------------------------------------------------------------------
# Campaign
# ---------------------------------------------------------------------------

class TestCampaign:

    def test_starts_on_first_level(self, campaign, traffic):
        assert campaign.level_number == 1
        assert campaign.state == ProgressionState.NORMAL
        assert traffic.max_vehicles == 3
        assert not traffic.helicopter_enabled
        assert campaign.civilian_spawn_rate == 4500

    def test_below_threshold_stays_put(self, ctx, campaign):
        set_score(ctx, 749)
        campaign.update(0, 20)
        assert campaign.level_index == 0
        assert campaign.state == ProgressionState.NORMAL

    def test_threshold_spawns_upcoming_levels_boss(self, ctx, campaign, traffic):
        civilian = create_vehicle(ctx, CIVILIAN, 240, 100, lane=2)
        set_score(ctx, 750)
        campaign.update(0, 20)

        assert campaign.boss_active
        assert campaign.state == ProgressionState.BOSS_ACTIVE
        assert ctx.world.get_component(campaign.boss, BossState).boss_type == ARMORED_TRUCK
        assert not ctx.world.is_alive(civilian)
        assert campaign.level_index == 0
        assert ctx.events.count(BOSS_SPAWNED) == 1

    def test_score_checks_suspended_during_boss(self, ctx, campaign):
        set_score(ctx, 750)
        campaign.update(0, 20)
        set_score(ctx, 100000)
        for _ in range(10):
            campaign.update(0, 20)
        assert campaign.level_index == 0
        assert ctx.events.count(BOSS_SPAWNED) == 1

    def test_boss_defeat_advances_after_delay(self, ctx, campaign):
        set_score(ctx, 750)
        campaign.update(0, 20)
        damage_boss(ctx, campaign.boss, 1000)
        assert campaign.state == ProgressionState.TRANSITIONING
        assert campaign.boss is None

        ctx.clock.advance(BOSS_ADVANCE_DELAY - 1)
        assert campaign.level_index == 0
        ctx.clock.advance(1)
        assert campaign.level_index == 1
        assert campaign.levels_advanced == 1
        assert ctx.events.count(LEVEL_ADVANCED) == 1

        ctx.clock.advance(ANNOUNCEMENT_WINDOW)
        assert campaign.state == ProgressionState.NORMAL

    def test_huge_score_advances_exactly_one_level(self, ctx, campaign):
        set_score(ctx, 100000)
        campaign.update(0, 20)
        beat_boss(ctx, campaign)
        assert campaign.level_index == 1

        # Next update gates on the following boss instead of skipping it
        campaign.update(0, 20)
        assert campaign.level_index == 1
        assert campaign.state == ProgressionState.BOSS_ACTIVE

    def test_level_without_boss_advances_directly(self, ctx, campaign):
        campaign.trigger_transition(replace(LEVELS[1], boss_type=None))
        assert campaign.level_index == 1
        assert ctx.events.count(BOSS_SPAWNED) == 0

    def test_full_campaign_to_completion(self, ctx, campaign):
        indexes = []
        for level in LEVELS[1:]:
            set_score(ctx, max(ctx.player_state().score, level.score_threshold))
            campaign.update(0, 20)
            beat_boss(ctx, campaign)
            indexes.append(campaign.level_index)
        assert indexes == [1, 2, 3, 4]

        set_score(ctx, CAMPAIGN_FINISH_SCORE - 1)
        campaign.update(0, 20)
        assert campaign.state == ProgressionState.NORMAL

        set_score(ctx, CAMPAIGN_FINISH_SCORE)
        campaign.update(0, 20)
        assert campaign.state == ProgressionState.COMPLETE
        assert ctx.events.count(GAME_COMPLETE) == 1

        campaign.advance_level()
        campaign.update(0, 20)
        assert campaign.level_index == len(LEVELS) - 1
        assert ctx.events.count(GAME_COMPLETE) == 1

    def test_destroy_detaches_from_events(self, ctx, campaign):
        set_score(ctx, 750)
        campaign.update(0, 20)
        boss = campaign.boss
        campaign.destroy()
        ctx.world.process_dead_entities()

        assert not ctx.world.is_alive(boss)
        ctx.events.emit(BOSS_DEFEATED, boss_type=ARMORED_TRUCK, points=0)
        ctx.clock.advance(BOSS_ADVANCE_DELAY * 2)
        assert campaign.level_index == 0
        assert len(campaign.timers) == 0


class TestDifficultyTimer:

    def test_bumps_every_interval_once_traffic_started(self, ctx, traffic, campaign):
        ctx.clock.advance(ctx.config.difficulty_interval)
        assert traffic.difficulty_steps == 1
        ctx.clock.advance(ctx.config.difficulty_interval)
        assert traffic.difficulty_steps == 2

    def test_no_bump_before_traffic_starts(self, ctx):
        ctx.config = replace(DEFAULT_CONFIG, game_start_delay=40000.0)
        traffic = TrafficDirector(ctx)
        CampaignProgression(ctx, traffic)
        ctx.clock.advance(ctx.config.difficulty_interval)
        assert traffic.difficulty_steps == 0


# ---------------------------------------------------------------------------
# Endless
# ---------------------------------------------------------------------------

class TestEndlessTuning:

    @pytest.mark.parametrize("elapsed, tier", [
        (0, 1), (44999, 1), (45000, 2), (90000, 3),
    ])
    def test_tier_from_elapsed(self, elapsed, tier):
        assert endless_tier(elapsed) == tier

    def test_theme_cycles(self):
        assert endless_theme_index(59999) == 0
        assert endless_theme_index(60000) == 1
        assert endless_theme_index(60000 * len(THEMES)) == 0

    def test_first_tier_values(self):
        tuning = endless_tuning(1)
        assert tuning.enemy_spawn_rate == 4700
        assert tuning.civilian_spawn_rate == 3800
        assert tuning.max_vehicles == 4
        assert not tuning.helicopter_enabled
        assert tuning.helicopter_cooldown is None
        assert tuning.weapons_van_cooldown == 23000

    def test_floors_and_ceilings(self):
        tuning = endless_tuning(40)
        assert tuning.enemy_spawn_rate == 3000
        assert tuning.civilian_spawn_rate == 2500
        assert tuning.max_vehicles == 6
        assert tuning.max_enemies_per_wave == 4
        assert tuning.helicopter_cooldown == 12000
        assert tuning.weapons_van_cooldown == 15000

    def test_pure(self):
        assert endless_tuning(3) == endless_tuning(3)


class TestEndlessProgression:

    def test_tier_up_retunes_traffic(self, ctx, traffic):
        endless = EndlessProgression(ctx, traffic)
        assert traffic.helicopter_enabled
        endless.update(0, 45000)

        assert endless.tier == 2
        assert ctx.events.count(TIER_INCREASED) == 1
        assert traffic.enemy_spawn_rate == 4400
        assert traffic.max_vehicles == 5
        assert traffic.helicopter_cooldown == 17000
        assert traffic.weapons_van_cooldown == 21000
        assert traffic.level == 2

    def test_level_number_capped(self, ctx, traffic):
        endless = EndlessProgression(ctx, traffic)
        endless.update(0, 45000 * 10)
        assert endless.tier == 11
        assert endless.level_number == len(LEVELS)

    def test_theme_rotates_every_minute(self, ctx, traffic):
        endless = EndlessProgression(ctx, traffic)
        endless.update(0, 59000)
        assert endless.theme == THEMES[0]
        endless.update(0, 1000)
        assert endless.theme == THEMES[1]
        assert ctx.events.count(THEME_CHANGED) == 1

    def test_never_spawns_boss(self, ctx, traffic):
        endless = EndlessProgression(ctx, traffic)
        set_score(ctx, 100000)
        for _ in range(50):
            endless.update(0, 1000)
        assert endless.boss is None
        assert ctx.events.count(BOSS_SPAWNED) == 0


class TestCreateProgression:

    def test_modes(self, ctx, traffic):
        assert isinstance(create_progression('campaign', ctx, traffic), CampaignProgression)

    def test_endless(self, ctx, traffic):
        assert isinstance(create_progression('endless', ctx, traffic), EndlessProgression)

    def test_unknown_mode_raises(self, ctx, traffic):
        with pytest.raises(ValueError):
            create_progression('arcade', ctx, traffic)

    def test_base_class_cannot_be_built(self, ctx, traffic):
        pending = ctx.clock.pending()
        with pytest.raises(TypeError):
            Progression(ctx, traffic)
        assert ctx.clock.pending() == pending
