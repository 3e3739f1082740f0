"""
Scene Rendering
===============
Draws an EncounterSession onto the GameRenderer: scrolling road, actors,
labels, bomb shadows, the HUD rows, announcements, and the title and
game-over screens.
"""

import math
from typing import Optional

from .components import (
    Position, Renderable, Label, CollisionBox, Health, BossState, VanState,
    HelicopterState, Bomb, PlayerState, WeaponKind
)
from .effects import TerminalEffects
from .engine import (
    GameRenderer, NEON_CYAN, NEON_MAGENTA, NEON_YELLOW, NEON_GREEN, NEON_RED,
    NEON_ORANGE, GRAY_MED, GRAY_DARK, GRAY_DARKER, WHITE
)
from .game import EncounterSession
from .helicopter import SHADOW_COLOR
from .levels import Theme, ProgressionState, CAMPAIGN
from .player import player_color
from .weapons_van import arming_progress


WEAPON_NAMES = {
    WeaponKind.MACHINE_GUN: 'GUN',
    WeaponKind.MISSILE: 'MSL',
    WeaponKind.OIL_SLICK: 'OIL',
    WeaponKind.SMOKE_SCREEN: 'SMK',
}

TITLE_ART = [
    r" ____  ____  _  _      ___  _   _    _    ____  ____ ",
    r"/ ___||  _ \( \/ )    / __|| | | |  / \  / ___|| ___|",
    r"\___ \| |_) |\  /    | |   | |_| | / _ \ \___ \|  _| ",
    r" ___) |  __/ / /     | |__ |  _  |/ ___ \ ___) | |___",
    r"|____/|_|   /_/       \___||_| |_/_/   \_\____/|_____|",
]


def rgb_to_256(rgb: int) -> int:
    """Nearest xterm 6x6x6 cube color for a 0xRRGGBB value."""
    r = (rgb >> 16) & 0xff
    g = (rgb >> 8) & 0xff
    b = rgb & 0xff
    return 16 + 36 * round(r / 255 * 5) + 6 * round(g / 255 * 5) + round(b / 255 * 5)


class RoadView:
    """Scroll state for the lane markings."""

    DASH = 40.0     # px per dash period

    def __init__(self):
        self.scroll = 0.0

    def advance(self, road_speed: float, delta: float):
        self.scroll = (self.scroll + road_speed * delta / 1000.0) % (self.DASH * 2)

    def draw(self, renderer: GameRenderer, session: EncounterSession, theme: Theme):
        cfg = session.ctx.config
        road = rgb_to_256(theme.road)
        grass = rgb_to_256(theme.grass)
        line = rgb_to_256(theme.line)

        left_col, _ = renderer.to_cell(cfg.road_left, 0)
        right_col, _ = renderer.to_cell(cfg.road_right, 0)
        boundaries = set()
        for i in range(1, cfg.lanes):
            col, _ = renderer.to_cell(cfg.road_margin + i * cfg.lane_width, 0)
            boundaries.add(col)

        px_per_row = cfg.height / renderer.rows
        for row in range(renderer.rows):
            py = row * px_per_row - self.scroll
            dash_on = (py % (self.DASH * 2)) < self.DASH
            for col in range(renderer.origin_x, renderer.origin_x + renderer.cols):
                if col < left_col or col >= right_col:
                    char = '"' if (row + col) % 3 == 0 else ' '
                    renderer.put(col, row, char, GRAY_DARK, grass, with_shake=False)
                elif col == left_col or col == right_col - 1:
                    renderer.put(col, row, '|', WHITE, road, with_shake=False)
                elif col in boundaries and dash_on:
                    renderer.put(col, row, ':', line, road, with_shake=False)
                else:
                    renderer.put(col, row, ' ', GRAY_DARK, road, with_shake=False)


# =============================================================================
# PLAYFIELD
# =============================================================================

def render_actors(renderer: GameRenderer, session: EncounterSession):
    world = session.world
    player_id = session.ctx.player_id

    # Shadows go under everything that flies
    for _, bomb, pos in world.query(Bomb, Position):
        glyph = 'O' if bomb.shadow_scale > 0.75 else 'o'
        renderer.put_at(bomb.target_x, bomb.target_y, glyph, SHADOW_COLOR)
    for _, heli in world.query(HelicopterState):
        renderer.put_at(heli.shadow_x, heli.shadow_y, '(   )', SHADOW_COLOR)

    drawables = sorted(world.query(Position, Renderable), key=lambda row: row[2].layer)
    for entity_id, pos, rend in drawables:
        if not rend.visible:
            continue
        color = rend.color
        if entity_id == player_id:
            color = player_color(session.ctx, session.time)
        renderer.put_at(pos.x, pos.y, rend.glyph, color)

    for entity_id, pos, label in world.query(Position, Label):
        box = world.get_component(entity_id, CollisionBox)
        offset = box.height / 2 + 12 if box is not None else 20
        renderer.put_at(pos.x, pos.y - offset, label.text, label.color)

    for entity_id, pos, van in world.query(Position, VanState):
        if van.player_inside:
            progress = arming_progress(session.ctx, entity_id)
            bar_width = 10
            filled = int(progress * bar_width)
            bar = '#' * filled + '.' * (bar_width - filled)
            renderer.put_at(pos.x, pos.y + 60, f'ARMING [{bar}]', NEON_GREEN)


def render_boss_bar(renderer: GameRenderer, session: EncounterSession):
    boss = session.progression.boss
    world = session.world
    if not world.is_alive(boss):
        return
    state = world.get_component(boss, BossState)
    health = world.get_component(boss, Health)
    if state is None or health is None:
        return

    ratio = max(0.0, health.current / health.maximum)
    if ratio > 0.6:
        color = NEON_GREEN
    elif ratio > 0.3:
        color = NEON_YELLOW
    else:
        color = NEON_RED
    bar_width = 24
    filled = int(ratio * bar_width)
    bar = '|' * filled + '.' * (bar_width - filled)
    renderer.put_centered(0, f'{state.name}  P{state.phase}', NEON_RED)
    renderer.put_centered(1, f'[{bar}]', color)


def render_announcement(renderer: GameRenderer, effects: Optional[TerminalEffects]):
    if effects is None or effects.announcement is None:
        return
    notice = effects.announcement
    y = renderer.rows // 3
    bar = '=' * (max(len(notice.title), len(notice.subtitle)) + 4)
    renderer.put_centered(y - 1, bar, GRAY_DARK)
    renderer.put_centered(y, notice.title, notice.color)
    if notice.subtitle:
        renderer.put_centered(y + 1, notice.subtitle, GRAY_MED)
        y += 1
    renderer.put_centered(y + 1, bar, GRAY_DARK)


def render_damage_flash(renderer: GameRenderer, effects: Optional[TerminalEffects]):
    """Red frame around the playfield while the damage flash lasts."""
    if effects is None or not effects.flashing:
        return
    left = renderer.origin_x
    right = renderer.origin_x + renderer.cols - 1
    for row in range(renderer.rows):
        renderer.put(left, row, '!', NEON_RED, with_shake=False)
        renderer.put(right, row, '!', NEON_RED, with_shake=False)


# =============================================================================
# HUD
# =============================================================================

def render_ui(renderer: GameRenderer, session: EncounterSession, show_fps: bool = False):
    """Render the HUD in the bottom 3 rows."""
    ui_y = renderer.rows
    width = renderer.width
    buf = renderer.buffer

    buf.put_string(0, ui_y, '=' * width, GRAY_DARK)
    buf.put_string(2, ui_y, ' SPY CHASE ', NEON_MAGENTA)

    progression = session.progression
    if progression.mode == CAMPAIGN:
        level = progression.current_level
        status = f' LEVEL {level.id}: {level.name} '
    else:
        status = f' TIER {progression.tier}  {progression.theme.name.upper()} '
    if progression.state == ProgressionState.BOSS_ACTIVE:
        status = ' BOSS FIGHT ' + status
    if session.monitor.performance_mode:
        status = ' PERF ' + status
    buf.put_string(width - len(status) - 1, ui_y, status, NEON_YELLOW)

    state = session.world.get_component(session.ctx.player_id, PlayerState)
    if state is None:
        return

    row1 = ui_y + 1
    bar_width = 20
    filled = max(0, int(state.health / state.max_health * bar_width))
    bar = '|' * filled + '.' * (bar_width - filled)
    color = NEON_CYAN if state.health > state.max_health * 0.3 else NEON_RED
    buf.put_string(2, row1, 'HEALTH:', GRAY_MED)
    buf.put_string(10, row1, f'[{bar}]', color)
    buf.put_string(34, row1, f'LIVES:{state.lives}', NEON_MAGENTA)
    buf.put_string(44, row1, f'SPEED:{int(state.current_speed)}', GRAY_MED)

    score_text = f'SCORE:{int(state.score):>7}'
    buf.put_string(width - len(score_text) - 2, row1, score_text, NEON_YELLOW)

    row2 = ui_y + 2
    x = 2
    for kind in WeaponKind.ORDER:
        weapon = state.weapons.get(kind)
        if weapon is None:
            continue
        ammo = 'inf' if math.isinf(weapon.ammo) else str(int(weapon.ammo))
        text = f'[{WEAPON_NAMES[kind]}:{ammo}]'
        if kind == state.current_weapon:
            color = NEON_GREEN
        elif weapon.ammo > 0:
            color = GRAY_MED
        else:
            color = GRAY_DARK
        buf.put_string(x, row2, text, color)
        x += len(text) + 1

    controls = 'WASD/ARROWS move  SPACE fire  E switch  P pause  Q quit'
    if show_fps:
        controls = f'FPS:{renderer.current_fps:4.0f}  ' + controls
    if x + len(controls) + 2 < width:
        buf.put_string(width - len(controls) - 2, row2, controls, GRAY_DARKER)


def render_session(renderer: GameRenderer, session: EncounterSession, road: RoadView,
                   effects: Optional[TerminalEffects] = None, show_fps: bool = False):
    if effects is not None and effects.shake_remaining > 0:
        renderer.trigger_shake(effects.shake_intensity, frames=1)
    road.draw(renderer, session, session.progression.theme)
    render_actors(renderer, session)
    render_boss_bar(renderer, session)
    render_damage_flash(renderer, effects)
    render_announcement(renderer, effects)
    render_ui(renderer, session, show_fps)


# =============================================================================
# SCREENS
# =============================================================================

def render_title_screen(renderer: GameRenderer, frame: int, mode: str):
    width = renderer.width
    height = renderer.height

    art_y = max(0, height // 2 - 8)
    for i, line in enumerate(TITLE_ART):
        x = width // 2 - len(line) // 2
        color = NEON_CYAN if i % 2 == 0 else NEON_MAGENTA
        renderer.buffer.put_string(max(0, x), art_y + i, line, color)

    sub = 'LANE PURSUIT IN YOUR TERMINAL'
    renderer.buffer.put_string(width // 2 - len(sub) // 2, art_y + len(TITLE_ART) + 1, sub, GRAY_MED)

    if (frame // 30) % 2 == 0:
        prompt = '[ PRESS ENTER TO START ]'
        renderer.buffer.put_string(width // 2 - len(prompt) // 2,
                                   art_y + len(TITLE_ART) + 3, prompt, NEON_GREEN)

    mode_line = f'MODE: {mode.upper()}   [ M ] toggle'
    renderer.buffer.put_string(width // 2 - len(mode_line) // 2,
                               art_y + len(TITLE_ART) + 5, mode_line, NEON_YELLOW)

    controls = [
        'WASD/ARROWS - Steer and throttle',
        'SPACE - Fire     E/TAB - Switch weapon',
        'P - Pause        Q/ESC - Quit',
    ]
    cy = art_y + len(TITLE_ART) + 7
    for i, line in enumerate(controls):
        renderer.buffer.put_string(width // 2 - len(line) // 2, cy + i, line, GRAY_DARK)


def render_game_over_screen(renderer: GameRenderer, frame: int, score: int,
                            best: int, complete: bool):
    width = renderer.width
    y = max(0, renderer.height // 2 - 4)

    title = 'MISSION COMPLETE' if complete else 'GAME OVER'
    color = NEON_GREEN if complete else NEON_RED
    bar = '=' * (len(title) + 8)
    renderer.buffer.put_string(width // 2 - len(bar) // 2, y, bar, GRAY_DARK)
    renderer.buffer.put_string(width // 2 - len(title) // 2, y + 1, title, color)
    renderer.buffer.put_string(width // 2 - len(bar) // 2, y + 2, bar, GRAY_DARK)

    score_line = f'SCORE: {score}'
    renderer.buffer.put_string(width // 2 - len(score_line) // 2, y + 4, score_line, NEON_YELLOW)
    best_line = f'BEST:  {best}'
    best_color = NEON_ORANGE if score >= best and score > 0 else GRAY_MED
    renderer.buffer.put_string(width // 2 - len(best_line) // 2, y + 5, best_line, best_color)

    if (frame // 30) % 2 == 0:
        prompt = '[ ENTER - RETRY    Q - QUIT ]'
        renderer.buffer.put_string(width // 2 - len(prompt) // 2, y + 8, prompt, NEON_GREEN)


def render_pause(renderer: GameRenderer):
    renderer.put_centered(renderer.rows // 2, '[ PAUSED ]', WHITE)
