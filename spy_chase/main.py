#!/usr/bin/env python3
"""
SPY CHASE - Terminal Road Pursuit
=================================
Lane-based chase and shoot down a scrolling road, in your terminal.

Controls:
    WASD / ARROWS   - Steer (A/D), accelerate (W), brake (S)
    SPACE           - Fire current weapon
    E / TAB         - Switch weapon
    P               - Pause
    F               - Toggle FPS display
    Q / ESC         - Quit

Usage:
    python run.py [--mode campaign|endless] [--seed N] [--spawn-table classic|rammer]
"""

import argparse
import sys
import time
from typing import List, Optional

from loguru import logger

try:
    from blessed import Terminal
except ImportError:
    print("ERROR: 'blessed' library required. Install with: pip install blessed")
    sys.exit(1)

from .config import Settings, DEFAULT_CONFIG
from .ecs import World
from .effects import TerminalEffects
from .engine import GameRenderer
from .game import EncounterSession
from .levels import MODES, CAMPAIGN, ENDLESS
from .player import InputHandler
from .render import (
    RoadView, render_session, render_title_screen, render_game_over_screen,
    render_pause
)


# =============================================================================
# CONSTANTS
# =============================================================================

MIN_WIDTH = 80
MIN_HEIGHT = 24

PHASE_TITLE = 'title'
PHASE_PLAYING = 'playing'
PHASE_GAME_OVER = 'game_over'


def configure_logging(settings: Settings) -> None:
    """The terminal belongs to the renderer, so logs go to a file."""
    logger.remove()
    logger.add(settings.log_file, level=settings.log_level.upper(),
               rotation="1 MB", retention=3, enqueue=False)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog='spy-chase', description='Terminal road pursuit.')
    parser.add_argument('--mode', choices=MODES, default=None,
                        help='campaign (5 levels with bosses) or endless')
    parser.add_argument('--seed', type=int, default=None, help='RNG seed')
    parser.add_argument('--spawn-table', choices=('classic', 'rammer'), default=None,
                        help='enemy spawn probability table')
    parser.add_argument('--fps', type=int, default=None, help='target frame rate')
    parser.add_argument('--log-level', default=None, help='loguru level for the log file')
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> Settings:
    """Environment and .env first, then command-line overrides."""
    overrides = {
        'mode': args.mode,
        'seed': args.seed,
        'spawn_table': args.spawn_table,
        'fps': args.fps,
        'log_level': args.log_level,
    }
    return Settings(**{k: v for k, v in overrides.items() if v is not None})


# =============================================================================
# GAME STATE
# =============================================================================

class GameState:
    """Title, play and game-over phases around one EncounterSession."""

    def __init__(self, term: Terminal, settings: Settings):
        self.term = term
        self.settings = settings
        self.renderer = GameRenderer(term, DEFAULT_CONFIG.width, DEFAULT_CONFIG.height)
        self.input_handler = InputHandler()

        self.running = True
        self.phase = PHASE_TITLE
        self.phase_frame = 0
        self.mode = settings.mode
        self.paused = False
        self.show_fps = False
        self.paused_ms = 0.0

        self.session: Optional[EncounterSession] = None
        self.effects: Optional[TerminalEffects] = None
        self.road = RoadView()
        self.best_score = 0
        self.last_score = 0
        self.last_complete = False

    def start_game(self):
        if self.session is not None:
            self.session.teardown()
        world = World()
        self.effects = TerminalEffects(world)
        self.session = EncounterSession(
            config=DEFAULT_CONFIG,
            mode=self.mode,
            seed=self.settings.seed,
            spawn_table=self.settings.spawn_table,
            effects=self.effects,
            world=world,
        )
        self.road = RoadView()
        self.paused = False
        self.paused_ms = 0.0
        self.phase = PHASE_PLAYING
        self.phase_frame = 0

    def _end_game(self):
        session = self.session
        state = session.player_state()
        score = session.final_score
        if score is None:
            score = int(state.score) if state is not None else 0
        self.last_score = score
        self.last_complete = session.complete
        self.best_score = max(self.best_score, score)
        logger.info("run over: mode={} score={} complete={}", self.mode, score, session.complete)
        session.teardown()
        self.phase = PHASE_GAME_OVER
        self.phase_frame = 0

    def update(self, delta_ms: float, wall_ms: float):
        self.phase_frame += 1
        if self.phase != PHASE_PLAYING:
            return
        if self.paused:
            # Keep paused time out of the frame-rate measurement
            self.paused_ms += delta_ms
            return

        self.input_handler.update()
        session = self.session
        session.update(delta_ms, self.input_handler.controls(),
                       frame_time=wall_ms - self.paused_ms)
        self.effects.tick(delta_ms)
        self.road.advance(session.road_speed(), delta_ms)

        if not session.running:
            self._end_game()

    def render(self) -> str:
        renderer = self.renderer
        renderer.begin_frame()
        if self.phase == PHASE_TITLE:
            render_title_screen(renderer, self.phase_frame, self.mode)
        elif self.phase == PHASE_GAME_OVER:
            render_game_over_screen(renderer, self.phase_frame, self.last_score,
                                    self.best_score, self.last_complete)
        else:
            render_session(renderer, self.session, self.road, self.effects, self.show_fps)
            if self.paused:
                render_pause(renderer)
        return renderer.end_frame()

    def handle_input(self):
        """Drain all pending input from the terminal."""
        key = self.term.inkey(timeout=0)
        while key:
            key_str = key.lower() if not key.is_sequence else ''
            if self.phase == PHASE_TITLE:
                if key.name == 'KEY_ENTER' or key_str == ' ':
                    self.start_game()
                    return
                elif key_str == 'm':
                    self.mode = ENDLESS if self.mode == CAMPAIGN else CAMPAIGN
                elif key_str == 'q' or key.name == 'KEY_ESCAPE':
                    self.running = False
                    return
            elif self.phase == PHASE_GAME_OVER:
                if key.name == 'KEY_ENTER' or key_str == 'r':
                    self.start_game()
                    return
                elif key_str == 'q' or key.name == 'KEY_ESCAPE':
                    self.running = False
                    return
            elif key_str == 'f':
                self.show_fps = not self.show_fps
            else:
                self.input_handler.process_key(key)

            key = self.term.inkey(timeout=0)

        if self.phase == PHASE_PLAYING:
            if self.input_handler.consume_quit():
                self.session.teardown()
                self.running = False
            if self.input_handler.consume_pause():
                self.paused = not self.paused


# =============================================================================
# MAIN LOOP
# =============================================================================

def main(argv: Optional[List[str]] = None):
    """Entry point. Sets up terminal and runs the fixed-timestep game loop."""
    settings = load_settings(parse_args(argv))
    configure_logging(settings)

    frame_time = 1.0 / max(1, settings.fps)
    term = Terminal()

    if term.width < MIN_WIDTH or term.height < MIN_HEIGHT:
        print(
            f'Terminal too small: {term.width}x{term.height}. '
            f'Minimum: {MIN_WIDTH}x{MIN_HEIGHT}'
        )
        sys.exit(1)

    logger.info("starting spy-chase: {}", settings.model_dump())

    with term.fullscreen(), term.cbreak(), term.hidden_cursor():
        game = GameState(term, settings)

        start = time.perf_counter()
        last_time = start
        accumulator = 0.0
        fps_timer = 0.0
        fps_frame_count = 0

        print(term.home + term.clear, end='', flush=True)

        while game.running:
            now = time.perf_counter()
            delta = now - last_time
            last_time = now

            # Clamp delta to prevent spiral of death
            delta = min(delta, frame_time * 5)

            accumulator += delta
            fps_timer += delta

            game.handle_input()

            ticks = 0
            while accumulator >= frame_time and ticks < 4:
                game.update(frame_time * 1000.0, (time.perf_counter() - start) * 1000.0)
                accumulator -= frame_time
                ticks += 1
                fps_frame_count += 1

            if (term.width, term.height) != (game.renderer.width, game.renderer.height):
                game.renderer.resize(term.width, term.height)
                print(term.home + term.clear, end='', flush=True)

            output = game.render()
            print(output, end='', flush=True)

            if fps_timer >= 0.5:
                game.renderer.current_fps = fps_frame_count / fps_timer
                fps_frame_count = 0
                fps_timer = 0.0

            elapsed = time.perf_counter() - now
            sleep_time = frame_time - elapsed
            if sleep_time > 0.001:
                time.sleep(sleep_time * 0.9)

        print(term.normal, end='', flush=True)


if __name__ == '__main__':
    main()
