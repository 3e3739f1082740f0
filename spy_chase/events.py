"""
Event Channel
=============
Synchronous publish/subscribe for encounter events.

Events are plain dicts, ``{'type': name, **data}``. Handlers run inline
during `emit`, inside the tick that raised the event. Every event is also
kept in a bounded history that UI layers drain once per frame.
"""

from collections import deque
from typing import Callable, Deque, Dict, List

from loguru import logger


LEVEL_ADVANCED = 'level_advanced'
BOSS_SPAWNED = 'boss_spawned'
BOSS_DEFEATED = 'boss_defeated'
GAME_COMPLETE = 'game_complete'
GAME_OVER = 'game_over'
TIER_INCREASED = 'tier_increased'
THEME_CHANGED = 'theme_changed'
WAVE_STARTED = 'wave_started'
SCORE_UPDATE = 'score_update'
HEALTH_UPDATE = 'health_update'
LIVES_UPDATE = 'lives_update'
WEAPON_UPDATE = 'weapon_update'
PERFORMANCE_MODE = 'performance_mode'

Handler = Callable[[dict], None]


class EventChannel:

    def __init__(self, history_size: int = 256):
        self._handlers: Dict[str, List[Handler]] = {}
        self._history: Deque[dict] = deque(maxlen=history_size)

    def on(self, event_type: str, handler: Handler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def off(self, event_type: str, handler: Handler) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event_type: str, **data) -> dict:
        event = {'type': event_type}
        event.update(data)
        self._history.append(event)
        # Copy so handlers may unsubscribe themselves
        for handler in list(self._handlers.get(event_type, [])):
            handler(event)
        if event_type not in (SCORE_UPDATE, HEALTH_UPDATE, WEAPON_UPDATE):
            logger.debug("event {} {}", event_type, data)
        return event

    def drain(self) -> List[dict]:
        """Return and forget every event since the last drain."""
        events = list(self._history)
        self._history.clear()
        return events

    def count(self, event_type: str) -> int:
        """Number of undrained events of one type."""
        return sum(1 for e in self._history if e['type'] == event_type)

    def clear(self) -> None:
        self._handlers.clear()
        self._history.clear()
