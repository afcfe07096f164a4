"""Overlay box for the open modal session and its nested layers."""

from __future__ import annotations

from typing import List, Optional

from rich.text import Text

from textual.containers import Container
from textual.widgets import Static

from core.modal import ModalKind, ModalSession


def overlay_lines(session: ModalSession) -> List[Text]:
    layer = session.top_layer
    if layer is not None:
        title, lines, hint = layer.title, layer.lines, layer.hint
    else:
        title, lines, hint = session.title, session.lines, session.hint

    out: List[Text] = []
    if title:
        out.append(Text(title, style="bold"))
        out.append(Text(""))

    if layer is None and session.kind is ModalKind.PICKER:
        for i, option in enumerate(session.options):
            current = i == session.draft_index
            out.append(Text(f"{'›' if current else ' '} {option}", style="reverse" if current else ""))
        detail = lines[session.draft_index] if 0 <= session.draft_index < len(lines) else ""
        if detail:
            out.append(Text(""))
            out.append(Text(detail, style="dim"))
    else:
        out.extend(Text(line) for line in lines)

    if hint:
        out.append(Text(""))
        out.append(Text(hint, style="dim italic"))
    return out


class OverlayBox(Static):
    """The bordered box itself; its region is the session's click bounds."""


class Overlay(Container):
    """Full-screen backdrop on the overlay layer; hidden while no modal is open."""

    def compose(self):
        yield OverlayBox(id="overlay_box")

    def show(self, session: Optional[ModalSession]) -> None:
        box = self.query_one(OverlayBox)
        if session is None:
            self.display = False
            box.update("")
            return
        self.display = True
        box.set_class(session.kind is ModalKind.HELP, "-help")
        box.update(Text("\n").join(overlay_lines(session)))

    def record_bounds(self, session: Optional[ModalSession]) -> None:
        if session is None or not self.display:
            return
        region = self.query_one(OverlayBox).region
        if not region.width or not region.height:
            return
        bounds = (region.x, region.y, region.width, region.height)
        session.bounds = bounds
        if session.top_layer is not None:
            session.top_layer.bounds = bounds
