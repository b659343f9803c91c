from typing import List, Optional
import unicodedata

from wcwidth import wcwidth

from .region import Rect


def printable(text: str) -> str:
    """`text` without control or format characters (ESC, BEL, CR, ...)."""
    return ''.join(c for c in text if unicodedata.category(c)[0] != 'C')


class ScreenBuffer:
    '''
    A character grid drawn into every tick, then written out in one go.
    Colours and styles are blessed attribute names ('cyan', 'bold', ...).

    A wide character fills its own cell and leaves '' in the cell to its
    right; zero-width marks join the cell before them.
    '''
    def __init__(self, w, h):
        self.w, self.h = w, h
        self.chars = [[' '] * w for _ in range(h)]
        self.styles: List[List[Optional[str]]] = [[None] * w for _ in range(h)]
        self.txt_colors: List[List[Optional[str]]] = [[None] * w for _ in range(h)]

    def put(self, x, y, char, style=None, txt_color=None):
        if 0 <= x < self.w and 0 <= y < self.h:
            self.chars[y][x] = char
            self.styles[y][x] = style
            self.txt_colors[y][x] = txt_color

    def puts(self, x, y, text, style=None, txt_color=None, max_w=None) -> int:
        """Writes `text` on one row, clipped to `max_w` cells. Returns cells used."""
        limit = max_w if max_w is not None else self.w - x
        used = 0
        last = None
        for c in printable(text):
            cw = wcwidth(c)
            if cw == 0:
                if last is not None and 0 <= last < self.w and 0 <= y < self.h:
                    self.chars[y][last] += c
                continue
            if cw < 0: continue
            if used + cw > limit: break
            last = x + used
            self.put(last, y, c, style, txt_color)
            if cw == 2:
                self.put(last + 1, y, '', style, txt_color)
            used += cw
        return used

    def clear(self):
        for row in self.chars: row[:] = [' '] * self.w
        for row in self.styles: row[:] = [None] * self.w
        for row in self.txt_colors: row[:] = [None] * self.w

    def rect_line(self, r: Rect, style=None, txt_color=None, title=None, title_style=None, title_color=None):
        x, y, w, h = r
        if w < 2 or h < 2: return
        for col in range(x + 1, x + w - 1):
            self.put(col, y, '─', style, txt_color)
            self.put(col, y + h - 1, '─', style, txt_color)
        for row in range(y + 1, y + h - 1):
            self.put(x, row, '│', style, txt_color)
            self.put(x + w - 1, row, '│', style, txt_color)
        self.put(x, y, '┌', style, txt_color)
        self.put(x + w - 1, y, '┐', style, txt_color)
        self.put(x, y + h - 1, '└', style, txt_color)
        self.put(x + w - 1, y + h - 1, '┘', style, txt_color)
        if title:
            self.puts(x + 1, y, title, title_style, title_color or txt_color, max_w=w - 2)

    def vline(self, r: Rect, char='│', style=None, txt_color=None):
        x, y, _, h = r
        for i in range(h):
            self.put(x, y + i, char, style, txt_color)

    def row_text(self, y) -> str:
        return ''.join(self.chars[y])

    def text(self) -> str:
        return '\n'.join(self.row_text(y) for y in range(self.h))

    def _attr(self, x, y) -> Optional[str]:
        parts = [p for p in (self.txt_colors[y][x], self.styles[y][x]) if p]
        return "_".join(parts) if parts else None

    def flush(self, term):
        out = []
        for y in range(self.h):
            out.append(term.move_yx(y, 0))
            x = 0
            while x < self.w:
                attr = self._attr(x, y)
                end = x + 1
                while end < self.w and self._attr(end, y) == attr:
                    end += 1
                run = ''.join(self.chars[y][x:end])
                styled = getattr(term, attr, None) if attr else None
                out.append(styled(run) if styled else run)
                x = end
        term.stream.write(''.join(out))
        term.stream.flush()
