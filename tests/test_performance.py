"""Unit tests for spy_chase.performance."""
from __future__ import annotations

import pytest

from spy_chase.events import PERFORMANCE_MODE
from spy_chase.levels import CampaignProgression
from spy_chase.performance import PerformanceMonitor
from spy_chase.traffic import TrafficDirector

pytestmark = pytest.mark.unit


class Frames:
    """Feeds the monitor a steady frame rate on a hand-advanced clock."""

    def __init__(self, monitor):
        self.monitor = monitor
        self.time = 0

    def run(self, frame_ms, checks):
        for _ in range(checks * (2000 // frame_ms)):
            self.time += frame_ms
            self.monitor.update(self.time, frame_ms)


@pytest.fixture
def setup(ctx):
    traffic = TrafficDirector(ctx)
    progression = CampaignProgression(ctx, traffic)
    monitor = PerformanceMonitor(traffic, progression, ctx.events)
    return traffic, progression, monitor


class TestPerformanceMonitor:

    def test_smooth_frame_rate_changes_nothing(self, ctx, setup):
        traffic, _, monitor = setup
        Frames(monitor).run(16, 5)
        assert not monitor.performance_mode
        assert traffic.max_vehicles == 3

    def test_sustained_low_fps_enables(self, ctx, setup):
        traffic, _, monitor = setup
        frames = Frames(monitor)
        frames.run(100, 2)
        assert not monitor.performance_mode
        frames.run(100, 1)
        assert monitor.performance_mode
        assert traffic.max_vehicles == 2
        assert traffic.civilian_spawn_rate == pytest.approx(4500 * 1.3)
        assert ctx.events.count(PERFORMANCE_MODE) == 1

    def test_recovery_restores_progression_values(self, ctx, setup):
        traffic, progression, monitor = setup
        frames = Frames(monitor)
        frames.run(100, 3)
        frames.run(10, 1)
        assert not monitor.performance_mode
        assert traffic.max_vehicles == progression.max_vehicles == 3
        assert traffic.civilian_spawn_rate == 4500

    def test_vehicle_floor(self, ctx, setup):
        traffic, _, monitor = setup
        traffic.set_max_vehicles(2)
        monitor.enable()
        assert traffic.max_vehicles == 2

    def test_enable_is_not_repeated(self, ctx, setup):
        traffic, _, monitor = setup
        frames = Frames(monitor)
        frames.run(100, 6)
        assert ctx.events.count(PERFORMANCE_MODE) == 1
        assert traffic.max_vehicles == 2
