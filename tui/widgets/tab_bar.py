"""Header, tab bar and status bar."""

from __future__ import annotations

from typing import List, Sequence, Tuple

from rich.text import Text

from textual.widgets import Static

TAB_WIDTH = 20
TAB_PADDING = 2

MODE_HINTS = {
    'tabs': "Enter Open  ←/→ h/l Tabs  ? Help  t Theme  q Quit",
    'content': "Esc Tabs  Tab Next  ↑/↓ j/k Move  ? Help  t Theme  Ctrl+S Save",
}

STATUS_STYLES = {
    "info": "",
    "muted": "dim",
    "warning": "yellow",
    "error": "red",
}


def tab_spans(titles: Sequence[str], x0: int = 0) -> List[Tuple[int, int]]:
    """Column ranges of each tab label, as drawn by ``TabBar``."""
    spans = []
    x = x0 + TAB_PADDING
    for _ in titles:
        spans.append((x, x + TAB_WIDTH))
        x += TAB_WIDTH
    return spans


class TabBar(Static):
    def show(self, titles: Sequence[str], active: int, focused: bool) -> None:
        text = Text(" " * TAB_PADDING)
        for i, title in enumerate(titles):
            label = f" {title} ".center(TAB_WIDTH)
            if i == active:
                style = "bold reverse" if focused else "bold underline"
            else:
                style = "dim"
            text.append(label, style=style)
        self.update(text)


class StatusBar(Static):
    def show(self, mode: str, status: str, level: str, theme: str) -> None:
        text = Text(" " + MODE_HINTS.get(mode, ""), style="dim")
        if status:
            text.append("   ")
            text.append(status, style=STATUS_STYLES.get(level, ""))
        text.append(f"   ● {theme.title()} Mode", style="dim")
        self.update(text)
