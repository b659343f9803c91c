from typing import List, Optional, Tuple

Rect = Tuple[int, int, int, int]  # (x, y, w, h)


class Region(tuple):
    """
    A (x,y,w,h) area on the screen. Used for laying out panes.
    Width and height never go negative.
    """
    def __new__(cls, x: int = 0, y: int = 0, w: int = 0, h: int = 0):
        return super().__new__(cls, (int(x), int(y), max(0, int(w)), max(0, int(h))))

    def __repr__(self):
        return f"Region{super().__repr__()}"

    x = property(lambda self: self[0])
    y = property(lambda self: self[1])
    w = property(lambda self: self[2])
    h = property(lambda self: self[3])

    def split_vertical(self, *ratios: float) -> List['Region']:
        """Top-to-bottom split. The last part absorbs rounding leftovers."""
        norm = [r / sum(ratios) for r in ratios]
        regions = []
        accum_y = self[1]
        for i, ratio in enumerate(norm):
            h = int(self[3] * ratio) if i < len(norm) - 1 else self[1] + self[3] - accum_y
            regions.append(Region(self[0], accum_y, self[2], h))
            accum_y += h
        return regions

    def split_horizontal(self, *ratios: float) -> List['Region']:
        """Left-to-right split. The last part absorbs rounding leftovers."""
        norm = [r / sum(ratios) for r in ratios]
        regions = []
        accum_x = self[0]
        for i, ratio in enumerate(norm):
            w = int(self[2] * ratio) if i < len(norm) - 1 else self[0] + self[2] - accum_x
            regions.append(Region(accum_x, self[1], w, self[3]))
            accum_x += w
        return regions

    def take_top(self, h: int) -> Tuple['Region', 'Region']:
        h = min(h, self[3])
        return Region(self[0], self[1], self[2], h), Region(self[0], self[1] + h, self[2], self[3] - h)

    def take_bottom(self, h: int) -> Tuple['Region', 'Region']:
        h = min(h, self[3])
        rest = self[3] - h
        return Region(self[0], self[1], self[2], rest), Region(self[0], self[1] + rest, self[2], h)

    def shrink(self, left: int, top: Optional[int] = None, right: Optional[int] = None, bottom: Optional[int] = None) -> 'Region':
        top = top if top is not None else left
        right = right if right is not None else left
        bottom = bottom if bottom is not None else top
        return Region(
            self[0] + left,
            self[1] + top,
            self[2] - left - right,
            self[3] - top - bottom
        )
