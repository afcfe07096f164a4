"""Widget that draws the active panel's rows through its viewport."""

from __future__ import annotations

from typing import List

from rich.text import Text

from textual.widgets import Static

from core.fields import FieldKind, FieldState, FocusableField, ListField
from core.scroll import Row
from data.history import HistoryEntry
from panels.history import HistoryPanel, card_preview, card_subtitle, entry_key

MARKER = "▶ "
BLANK = "  "


def _pad(line: Text, width: int) -> Text:
    if width > 0 and line.cell_len < width:
        line.append(" " * (width - line.cell_len))
    return line


def field_lines(field: FocusableField, width: int) -> List[Text]:
    """Exactly ``field.height`` lines for one field."""
    active = field.state is not FieldState.IDLE
    marker = MARKER if active else BLANK
    label_style = "bold" if active else "dim"
    value_style = "reverse" if field.state is FieldState.CAPTURE else ("bold" if active else "")

    if field.kind is FieldKind.LIST and isinstance(field, ListField) and not field.picker:
        head = Text(marker + field.label, style=label_style)
        lines = [head]
        if not field.options:
            lines.append(Text("    " + field.empty_label, style="dim"))
        for i, opt in enumerate(field.options):
            cursor = "›" if (active and i == field.cursor) else " "
            chosen = "●" if i == field.selected else "○"
            line = Text(f"  {cursor} {chosen} {opt.text}", style="bold" if cursor == "›" else "")
            if opt.hint:
                line.append(f"  {opt.hint}", style="dim")
            lines.append(line)
        return lines[: field.height]

    value = field.display_value()
    if field.kind is FieldKind.LIST:
        value = f"{value.strip()}  ⏎"
    label = Text(marker + field.label, style=label_style)
    gap = max(2, width - label.cell_len - Text(value).cell_len - 1) if width else 2
    label.append(" " * gap)
    label.append(value, style=value_style)
    return [label]


def decoration_lines(row: Row, width: int) -> List[Text]:
    key = row.key
    if key.startswith("divider:"):
        return [Text("─" * max(width, 1), style="dim")]
    if key.startswith("section:"):
        return [Text(row.text, style="bold underline")]
    if key.startswith("devices:error"):
        return [Text("    " + row.text, style="yellow")]
    return [Text(("    " + row.text) if row.text else "", style="dim")]


def card_lines(entry: HistoryEntry, selected: bool, height: int, width: int) -> List[Text]:
    marker = MARKER if selected else BLANK
    style = "bold" if selected else ""
    preview = card_preview(entry)
    text_rows = height - 2
    usable = max(width - len(marker) - 1, 20)
    chunks = [preview[i:i + usable] for i in range(0, len(preview), usable)] or [""]
    chunks = chunks[:text_rows] + [""] * max(0, text_rows - len(chunks))
    lines = [Text((marker if i == 0 else BLANK) + chunk, style=style) for i, chunk in enumerate(chunks)]
    lines.append(Text(BLANK + card_subtitle(entry), style="dim"))
    lines.append(Text(""))
    return lines


def render_panel(panel, width: int) -> List[Text]:
    """Every row of ``panel`` as lines; line count equals the summed row heights."""
    lines: List[Text] = []
    fields = {f.field_id: f for f in panel.registry}
    entries = {}
    if isinstance(panel, HistoryPanel):
        entries = {entry_key(e): e for e in panel.entries}
    for row in panel.rows():
        if row.key in fields:
            out = field_lines(fields[row.key], width)
        elif row.key in entries:
            selected = panel.focused and panel.selected_entry() is entries[row.key]
            out = card_lines(entries[row.key], selected, row.height, width)
        else:
            out = decoration_lines(row, width)
        out = out[: row.height] + [Text("") for _ in range(row.height - len(out))]
        lines.extend(out)
    return lines


class PanelView(Static):
    """Shows the window of panel lines selected by the panel's viewport."""

    def show(self, panel) -> None:
        if panel is None:
            self.update("")
            return
        width = self.size.width
        height = self.size.height
        lines = render_panel(panel, width)
        top = panel.scroll.viewport.scroll_top
        window = lines[top: top + height] if height else lines
        body = Text("\n").join(_pad(line, width) for line in window)
        self.update(body)
