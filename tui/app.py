"""Textual application hosting the onevox settings/history console."""

from __future__ import annotations

from typing import Optional

from rich.text import Text

from textual import events
from textual.app import App, ComposeResult
from textual.widgets import Static

from core.router import CONTENT_MODE, Router
from tui.keymap import from_textual_click, from_textual_key
from tui.utils.clipboard import ClipboardHelper
from tui.widgets.overlay import Overlay
from tui.widgets.panel_view import PanelView
from tui.widgets.tab_bar import StatusBar, TabBar, tab_spans

VERSION = "0.1.0"

TEXTUAL_THEMES = {
    "dark": "textual-dark",
    "light": "textual-light",
}


class OnevoxApp(App, inherit_bindings=False):
    """Thin render surface: every key and click goes to the router, then the view is redrawn."""

    CSS_PATH = "styles/app.tcss"

    ENABLE_COMMAND_PALETTE = False

    BINDINGS = []

    def __init__(self, router: Router, *, status_clear_seconds: float = 3.0, logger=None) -> None:
        super().__init__()
        self.router = router
        self.logger = logger
        self.status_clear_seconds = status_clear_seconds
        self._status_serial_seen = -1
        self._theme_seen: Optional[str] = None
        self._ready = False
        if self.router.clipboard is None:
            self.router.clipboard = ClipboardHelper(primary=self.copy_to_clipboard)
        self.router.add_listener(self.refresh_view)

    # ----- layout --------------------------------------------------
    def compose(self) -> ComposeResult:
        yield Static(id="header")
        yield TabBar(id="tab_bar")
        yield PanelView(id="content")
        yield StatusBar(id="status_bar")
        yield Overlay(id="overlay")

    async def on_mount(self) -> None:
        self.router.start()
        self._ready = True
        self.router.refresh_daemon_status()
        self._log('start', {'tab': self.router.state.active_tab, 'theme': self.router.state.theme})
        self.refresh_view()
        # Widget sizes are only known after the first layout pass
        self.call_after_refresh(self.refresh_view)

    async def on_unmount(self) -> None:
        self._log('stop', {})
        self.router.shutdown()

    # ----- input ---------------------------------------------------
    def on_key(self, event: events.Key) -> None:
        event.prevent_default()
        event.stop()
        self.router.dispatch(from_textual_key(event))
        self.refresh_view()

    def on_click(self, event: events.Click) -> None:
        event.stop()
        self.router.dispatch(from_textual_click(event))
        self.refresh_view()

    def on_resize(self, event: events.Resize) -> None:
        self.call_after_refresh(self.refresh_view)

    # ----- rendering -----------------------------------------------
    def refresh_view(self) -> None:
        state = self.router.state
        if state.quit_requested:
            self.exit()
            return
        if not self._ready:
            return

        self._apply_theme(state.theme)

        header = Text(" ONEVOX", style="bold")
        header.append(f"  v{VERSION}", style="dim")
        if state.daemon_state:
            header.append(f"   daemon: {state.daemon_state}", style="dim")
        self.query_one("#header", Static).update(header)

        tab_bar = self.query_one(TabBar)
        tab_bar.show(self.router.tab_titles, state.active_tab, state.focus_mode != CONTENT_MODE)

        content = self.query_one(PanelView)
        panel = self.router.panel
        if panel is not None and content.size.height:
            if panel.scroll.viewport.visible_height != content.size.height:
                panel.scroll.resize(content.size.height)
        content.show(panel)

        self.query_one(StatusBar).show(state.focus_mode, state.status, state.status_level, state.theme)
        self._schedule_status_clear()

        overlay = self.query_one(Overlay)
        overlay.show(self.router.modals.session)

        layout = self.router.layout
        layout.tab_row = tab_bar.region.y
        layout.tab_spans = tab_spans(self.router.tab_titles, tab_bar.region.x)
        layout.content_top = content.region.y
        layout.content_height = content.region.height
        self.call_after_refresh(self._record_overlay_bounds)

    def _record_overlay_bounds(self) -> None:
        try:
            self.query_one(Overlay).record_bounds(self.router.modals.session)
        except Exception as exc:
            self._log_error('tui.overlay', exc)

    def _apply_theme(self, name: str) -> None:
        if name == self._theme_seen:
            return
        self._theme_seen = name
        try:
            self.theme = TEXTUAL_THEMES.get(name, "textual-dark")
        except Exception as exc:
            self._log_error('tui.theme', exc)

    def _schedule_status_clear(self) -> None:
        state = self.router.state
        serial = state.status_serial
        if serial == self._status_serial_seen:
            return
        self._status_serial_seen = serial
        if state.status and self.status_clear_seconds > 0:
            self.set_timer(self.status_clear_seconds, lambda: self._expire_status(serial))

    def _expire_status(self, serial: int) -> None:
        self.router.clear_status(serial)
        self.refresh_view()

    # ----- logging -------------------------------------------------
    def _log(self, kind: str, data: dict) -> None:
        if self.logger is None:
            return
        try:
            self.logger.log(kind, component='tui.app', aspect='settings', data=data)
        except Exception:
            pass

    def _log_error(self, where: str, exc: BaseException) -> None:
        if self.logger is None:
            return
        try:
            self.logger.error(where, exc)
        except Exception:
            pass
