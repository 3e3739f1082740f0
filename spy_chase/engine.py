"""
Rendering Engine
================
Double-buffered blessed renderer that maps the 480x640 pixel playfield
onto terminal cells.
"""

from dataclasses import dataclass, field
from typing import List, Tuple
import random

try:
    from blessed import Terminal
except ImportError:
    raise ImportError("'blessed' library required. Install with: pip install blessed")


# ANSI 256 color constants
NEON_CYAN = 51
NEON_MAGENTA = 201
NEON_YELLOW = 226
NEON_GREEN = 46
NEON_RED = 196
NEON_ORANGE = 208

GRAY_LIGHT = 252
GRAY_MED = 245
GRAY_DARK = 238
GRAY_DARKER = 235

WHITE = 255

HUD_ROWS = 3

BLANK = (' ', 7, -1)  # char, fg, bg (-1 = terminal default)


class ScreenBuffer:
    """
    Two grids of (char, fg, bg) tuples: `back` is drawn each frame,
    `front` mirrors what the terminal shows. `present` writes only the
    runs of cells that changed, one cursor move and color per run.
    """

    def __init__(self, term: Terminal):
        self.term = term
        self.width = term.width
        self.height = term.height
        self.front: List[List[tuple]] = []
        self.back: List[List[tuple]] = []
        self.resize(term.width, term.height)

    def resize(self, width: int, height: int):
        self.width = width
        self.height = height
        self.front = [[None] * width for _ in range(height)]
        self.back = [[BLANK] * width for _ in range(height)]

    def clear_back(self):
        for y in range(self.height):
            self.back[y] = [BLANK] * self.width

    def put(self, x: int, y: int, char: str, fg_color: int = 7, bg_color: int = -1):
        if 0 <= x < self.width and 0 <= y < self.height:
            self.back[y][x] = (char or ' ', fg_color, bg_color)

    def put_string(self, x: int, y: int, text: str, fg_color: int = 7, bg_color: int = -1):
        if not 0 <= y < self.height:
            return
        row = self.back[y]
        for i, char in enumerate(text, start=x):
            if 0 <= i < self.width:
                row[i] = (char, fg_color, bg_color)

    def _style(self, fg: int, bg: int) -> str:
        style = self.term.normal
        if bg >= 0:
            style += self.term.on_color(bg)
        return style + self.term.color(fg)

    def present(self) -> str:
        out = []
        for y, (back_row, front_row) in enumerate(zip(self.back, self.front)):
            x = 0
            while x < self.width:
                if back_row[x] == front_row[x]:
                    x += 1
                    continue
                # Extend the run while cells differ and share a style
                _, fg, bg = back_row[x]
                start = x
                chars = []
                while (x < self.width and back_row[x] != front_row[x]
                       and back_row[x][1:] == (fg, bg)):
                    chars.append(back_row[x][0])
                    x += 1
                out.append(self.term.move_xy(start, y))
                out.append(self._style(fg, bg))
                out.append(''.join(chars))

        self.front, self.back = self.back, self.front
        return ''.join(out)


@dataclass
class GameRenderer:
    """
    Playfield-to-terminal mapping with screen shake.

    The playfield keeps its pixel aspect: it is scaled to the largest
    size that fits above the HUD rows and centered horizontally.
    """
    term: Terminal
    field_width: int = 480
    field_height: int = 640
    buffer: ScreenBuffer = field(init=False)

    cols: int = field(init=False, default=60)
    rows: int = field(init=False, default=40)
    origin_x: int = field(init=False, default=0)

    shake_x: int = 0
    shake_y: int = 0
    shake_frames: int = 0
    shake_intensity: int = 1

    current_fps: float = 60.0

    def __post_init__(self):
        self.buffer = ScreenBuffer(self.term)
        self._fit()

    def _fit(self):
        # Terminal cells are about twice as tall as wide
        rows = max(10, self.buffer.height - HUD_ROWS)
        cols = int(rows * 2 * self.field_width / self.field_height)
        if cols > self.buffer.width:
            cols = self.buffer.width
            rows = max(10, int(cols * self.field_height / (2 * self.field_width)))
        self.cols = max(10, cols)
        self.rows = rows
        self.origin_x = max(0, (self.buffer.width - self.cols) // 2)

    @property
    def width(self) -> int:
        return self.buffer.width

    @property
    def height(self) -> int:
        return self.buffer.height

    def to_cell(self, px: float, py: float) -> Tuple[int, int]:
        """Playfield pixels to terminal column/row (before shake)."""
        cx = self.origin_x + int(px * self.cols / self.field_width)
        cy = int(py * self.rows / self.field_height)
        return cx, cy

    def trigger_shake(self, intensity: int = 1, frames: int = 6):
        self.shake_intensity = intensity
        self.shake_frames = max(self.shake_frames, frames)

    def _tick_shake(self):
        if self.shake_frames > 0:
            self.shake_x = random.randint(-self.shake_intensity, self.shake_intensity)
            self.shake_y = random.randint(-1, 1) if self.shake_intensity > 1 else 0
            self.shake_frames -= 1
        else:
            self.shake_x = 0
            self.shake_y = 0

    def begin_frame(self):
        self.buffer.clear_back()

    def end_frame(self) -> str:
        self._tick_shake()
        return self.buffer.present()

    def put(self, x: int, y: int, char: str, fg_color: int = 7,
            bg_color: int = -1, with_shake: bool = True):
        if with_shake and y < self.rows:
            x += self.shake_x
            y += self.shake_y
        self.buffer.put(x, y, char, fg_color, bg_color)

    def put_string(self, x: int, y: int, text: str, fg_color: int = 7,
                   with_shake: bool = True):
        if with_shake and y < self.rows:
            x += self.shake_x
            y += self.shake_y
        self.buffer.put_string(x, y, text, fg_color)

    def put_at(self, px: float, py: float, text: str, fg_color: int = 7):
        """Draw text centered on a playfield pixel position."""
        cx, cy = self.to_cell(px, py)
        if 0 <= cy < self.rows:
            self.put_string(cx - len(text) // 2, cy, text, fg_color)

    def put_centered(self, y: int, text: str, fg_color: int = 7):
        x = self.origin_x + (self.cols - len(text)) // 2
        self.put_string(x, y, text, fg_color, with_shake=False)

    def resize(self, width: int, height: int):
        self.buffer.resize(width, height)
        self._fit()
