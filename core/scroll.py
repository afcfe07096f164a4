"""Keeps the focused field inside the visible window of its container."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple


@dataclass
class Viewport:
    scroll_top: int = 0
    visible_height: int = 0


@dataclass(frozen=True)
class Row:
    """One rendered row block: a field (keyed by field id) or decoration."""

    key: str
    height: int = 1
    focusable: bool = True
    text: str = ''


def field_extent(rows: Sequence[Row], key: str) -> Optional[Tuple[int, int]]:
    """Return ``(top, bottom)`` of ``key`` from the live row heights, or None.

    Offsets are summed on every call so late inserts and variable-height rows
    never drift from registry order.
    """
    top = 0
    for row in rows:
        height = max(0, int(row.height))
        if row.key == key:
            return top, top + height
        top += height
    return None


class ScrollSynchronizer:
    """Minimal-scroll policy over a ``Viewport``.

    ``rows`` is a callable returning the current rendered rows, so the
    synchronizer always measures the live layout.
    """

    def __init__(self, rows: Callable[[], Sequence[Row]], viewport: Optional[Viewport] = None) -> None:
        self._rows = rows
        self.viewport = viewport or Viewport()
        self.last_key: Optional[str] = None

    def content_height(self) -> int:
        return sum(max(0, r.height) for r in self._rows())

    def sync(self, key: str) -> bool:
        self.last_key = key
        extent = field_extent(list(self._rows()), key)
        if extent is None:
            return False
        top, bottom = extent
        vp = self.viewport
        height = max(vp.visible_height, 0)
        if height == 0:
            return False
        before = vp.scroll_top
        if top < vp.scroll_top:
            vp.scroll_top = top
        elif bottom > vp.scroll_top + height:
            # Taller than the window: align the top instead of the bottom
            vp.scroll_top = top if bottom - top > height else bottom - height
        return vp.scroll_top != before

    def resize(self, visible_height: int) -> bool:
        self.viewport.visible_height = max(0, int(visible_height))
        self.clamp()
        if self.last_key is None:
            return False
        return self.sync(self.last_key)

    def clamp(self) -> None:
        vp = self.viewport
        max_top = max(0, self.content_height() - vp.visible_height)
        vp.scroll_top = min(max(vp.scroll_top, 0), max_top)

    def reset(self) -> None:
        self.viewport.scroll_top = 0
        self.last_key = None

    def visible(self, rows: Optional[Sequence[Row]] = None) -> List[Row]:
        """Rows overlapping the window, for renderers that draw only what shows."""
        vp = self.viewport
        out: List[Row] = []
        top = 0
        for row in (rows if rows is not None else self._rows()):
            bottom = top + row.height
            if bottom > vp.scroll_top and top < vp.scroll_top + vp.visible_height:
                out.append(row)
            top = bottom
        return out
