"""
Performance Monitor
===================
Degrades difficulty gracefully when the frame rate sags.

Every check interval the measured FPS is blended into a running
average. Below the low threshold the traffic director loses one vehicle
slot and civilians come 30% less often; once the average climbs back
above the recovery threshold the progression's current values return.
"""

from loguru import logger

from .events import EventChannel, PERFORMANCE_MODE


CHECK_INTERVAL = 2000.0
LOW_FPS = 30.0
RECOVER_FPS = 45.0
MIN_VEHICLES = 2


class PerformanceMonitor:

    def __init__(self, traffic, progression, events: EventChannel,
                 check_interval: float = CHECK_INTERVAL):
        self.traffic = traffic
        self.progression = progression
        self.events = events
        self.check_interval = check_interval
        self.frame_count = 0
        self.last_check = 0.0
        self.avg_fps = 60.0
        self.performance_mode = False

    def update(self, time: float, delta: float) -> None:
        self.frame_count += 1
        if time - self.last_check < self.check_interval:
            return

        elapsed = (time - self.last_check) / 1000.0
        fps = self.frame_count / elapsed
        self.avg_fps = self.avg_fps * 0.7 + fps * 0.3
        self.frame_count = 0
        self.last_check = time

        if self.avg_fps < LOW_FPS and not self.performance_mode:
            self.enable()
        elif self.avg_fps > RECOVER_FPS and self.performance_mode:
            self.disable()

    def enable(self) -> None:
        self.performance_mode = True
        tm = self.traffic
        tm.set_max_vehicles(max(MIN_VEHICLES, tm.max_vehicles - 1))
        tm.set_civilian_spawn_rate(tm.civilian_spawn_rate * 1.3)
        logger.info("performance mode on (avg {:.1f} fps)", self.avg_fps)
        self.events.emit(PERFORMANCE_MODE, enabled=True, avg_fps=self.avg_fps)

    def disable(self) -> None:
        self.performance_mode = False
        tm = self.traffic
        tm.set_max_vehicles(self.progression.max_vehicles)
        tm.set_civilian_spawn_rate(self.progression.civilian_spawn_rate)
        logger.info("performance mode off (avg {:.1f} fps)", self.avg_fps)
        self.events.emit(PERFORMANCE_MODE, enabled=False, avg_fps=self.avg_fps)
