"""Root controller: owns the app state, the interceptor stack and the active panel.

Dispatch order for every raw event:
  1. interceptor stack (modal overlays, top first)
  2. active panel, when focus is in the content area
  3. global bindings (quit, theme, help, save)
  4. navigation-bar bindings, when focus is on the tab bar

Events arriving while a dispatch is running are queued and delivered after it,
so ordering is strictly first-in first-out.
"""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Sequence, Tuple

from core.errors import InvariantGuard
from core.events import KeyEvent, MouseEvent
from core.inserter import Liveness, schedule
from core.interceptors import InterceptorStack
from core.modal import ModalController, ModalKind

TABS_MODE = 'tabs'
CONTENT_MODE = 'content'

THEMES = ('dark', 'light')


@dataclass
class AppState:
    """The one explicit UI state value, passed by reference to panels."""

    settings: Dict[str, Any] = field(default_factory=dict)
    history: List[Any] = field(default_factory=list)
    config_dirty: bool = False
    active_tab: int = 0
    focus_mode: str = TABS_MODE
    status: str = ''
    status_level: str = 'info'
    status_serial: int = 0
    theme: str = 'dark'
    quit_requested: bool = False
    daemon_state: str = ''


@dataclass(frozen=True)
class FocusSnapshot:
    focus_mode: str
    active_tab: int
    index: int
    key: Optional[str] = None


@dataclass
class ScreenLayout:
    """Screen geometry reported by the render surface for mouse hit-testing."""

    tab_row: int = -1
    tab_spans: List[Tuple[int, int]] = field(default_factory=list)
    content_top: int = 0
    content_height: int = 0


PanelFactory = Callable[['Router'], Any]


class Router:
    def __init__(
        self,
        state: AppState,
        tabs: Sequence[Tuple[str, PanelFactory]],
        *,
        settings_store=None,
        history_store=None,
        bridge=None,
        clipboard=None,
        guard: Optional[InvariantGuard] = None,
        logger=None,
        export_dir: Optional[str] = None,
        help_lines: Sequence[str] = (),
    ) -> None:
        if not tabs:
            raise ValueError('router needs at least one tab')
        self.state = state
        self.tabs = list(tabs)
        self.settings_store = settings_store
        self.history_store = history_store
        self.bridge = bridge
        self.clipboard = clipboard
        self.guard = guard or InvariantGuard()
        self.logger = logger
        self.export_dir = export_dir
        self.help_lines = list(help_lines)

        self.stack = InterceptorStack()
        self.modals = ModalController(
            self.stack,
            snapshot_focus=self.snapshot_focus,
            restore_focus=self.restore_focus,
            guard=self.guard,
            logger=logger,
        )
        self.layout = ScreenLayout()
        self.panel = None
        self._queue: Deque[Any] = deque()
        self._dispatching = False
        self._listeners: List[Callable[[], None]] = []
        self._tasks: set = set()

    # ----- lifecycle -----------------------------------------------------
    @property
    def tab_titles(self) -> List[str]:
        return [title for title, _ in self.tabs]

    def start(self) -> None:
        self.state.active_tab = min(max(self.state.active_tab, 0), len(self.tabs) - 1)
        self._build_panel(self.state.active_tab)

    def shutdown(self) -> None:
        if self.modals.is_open:
            self.modals.close('shutdown')
        if self.panel is not None:
            self.panel.teardown()
            self.panel = None
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

    def add_listener(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def changed(self) -> None:
        """Tell the render surface that state moved outside a dispatch (async results)."""
        for callback in list(self._listeners):
            callback()

    # ----- dispatch ------------------------------------------------------
    def dispatch(self, event: Any) -> bool:
        """Deliver ``event``; returns whether something consumed it.

        A nested call made while a dispatch is in progress queues the event
        behind the current one and returns True. If delivery raises, events
        still queued are dropped with it.
        """
        self._queue.append(event)
        if self._dispatching:
            return True
        self._dispatching = True
        consumed = False
        try:
            while self._queue:
                current = self._queue.popleft()
                result = self._deliver(current)
                if current is event:
                    consumed = result
        finally:
            self._dispatching = False
            self._queue.clear()
        return consumed

    def _deliver(self, event: Any) -> bool:
        self._log_input(event)
        if self.stack.dispatch(event):
            return True
        if isinstance(event, MouseEvent):
            return self._click(event)
        if not isinstance(event, KeyEvent):
            return False
        if self.state.focus_mode == CONTENT_MODE and self.panel is not None:
            if self.panel.handle_key(event):
                return True
        if self._global_key(event):
            return True
        if self.state.focus_mode == TABS_MODE:
            return self._nav_key(event)
        return False

    def _global_key(self, event: KeyEvent) -> bool:
        if event.is_('ctrl+c', 'q'):
            self.request_quit()
            return True
        if event.is_('t'):
            self.toggle_theme()
            return True
        if event.is_('?'):
            self.open_help()
            return True
        if event.is_('ctrl+s'):
            self.save_settings()
            return True
        return False

    def _nav_key(self, event: KeyEvent) -> bool:
        if event.is_('left', 'h'):
            self.switch_tab((self.state.active_tab - 1) % len(self.tabs))
            return True
        if event.is_('right', 'l'):
            self.switch_tab((self.state.active_tab + 1) % len(self.tabs))
            return True
        if event.is_('enter', 'down', 'j'):
            self.enter_content()
            return True
        return False

    def _click(self, event: MouseEvent) -> bool:
        layout = self.layout
        if event.y == layout.tab_row:
            for i, (x0, x1) in enumerate(layout.tab_spans):
                if x0 <= event.x < x1:
                    if i != self.state.active_tab:
                        self.switch_tab(i)
                    break
            self.leave_content()
            return True
        if self.panel is None or event.y < layout.content_top:
            return False
        if layout.content_height and event.y >= layout.content_top + layout.content_height:
            return False
        if self.panel.click(event.y - layout.content_top):
            self.state.focus_mode = CONTENT_MODE
            return True
        return False

    # ----- focus ---------------------------------------------------------
    def switch_tab(self, index: int) -> None:
        if not (0 <= index < len(self.tabs)):
            self.guard.fail('core.router', f'tab {index} out of range', tabs=len(self.tabs))
            return
        self.state.focus_mode = TABS_MODE
        self._build_panel(index)

    def enter_content(self) -> None:
        if self.panel is None:
            return
        self.state.focus_mode = CONTENT_MODE
        self.panel.focus_first()

    def leave_content(self) -> None:
        if self.panel is not None:
            self.panel.blur_all()
        self.state.focus_mode = TABS_MODE

    def snapshot_focus(self) -> FocusSnapshot:
        index, key = (-1, None)
        if self.panel is not None:
            index, key = self.panel.focus_position()
        return FocusSnapshot(self.state.focus_mode, self.state.active_tab, index, key)

    def restore_focus(self, snap: Optional[FocusSnapshot]) -> None:
        if snap is None:
            return
        if snap.active_tab != self.state.active_tab:
            self._build_panel(snap.active_tab)
        self.state.focus_mode = snap.focus_mode
        if self.panel is not None and snap.focus_mode == CONTENT_MODE:
            self.panel.restore_position(snap.index, snap.key)

    def _build_panel(self, index: int) -> None:
        if self.panel is not None:
            self.panel.teardown()
        self.state.active_tab = index
        _, factory = self.tabs[index]
        self.panel = factory(self)
        self.panel.mount()
        self._log_focus('tab', {'tab': index, 'panel': getattr(self.panel, 'panel_id', None)})

    # ----- global actions ------------------------------------------------
    def request_quit(self) -> None:
        self.state.quit_requested = True

    def open_help(self):
        return self.modals.open(
            ModalKind.HELP,
            title='Keyboard Shortcuts',
            lines=self.help_lines,
            hint='Press ? or Esc to close',
        )

    def toggle_theme(self) -> None:
        current = self.state.theme if self.state.theme in THEMES else THEMES[0]
        new = THEMES[(THEMES.index(current) + 1) % len(THEMES)]
        self.state.theme = new
        ui = self.state.settings.get('ui')
        if not isinstance(ui, dict):
            ui = self.state.settings['ui'] = {}
        ui['theme'] = new
        # Unsaved edits ride along with the next explicit save
        if not self.state.config_dirty and self.settings_store is not None:
            result = self.settings_store.save(self.state.settings)
            if not result.ok:
                self.set_status(f'✗ Could not save theme: {result.error}', 'error')
                return
        self.set_status(f'✓ Switched to {new} mode')

    def save_settings(self) -> bool:
        if not self.state.config_dirty:
            self.set_status('Nothing to save', 'muted')
            return False
        if self.settings_store is None:
            return False
        result = self.settings_store.save(self.state.settings)
        if not result.ok:
            self.set_status(f'✗ Failed to save: {result.error}', 'error')
            return False
        self.state.config_dirty = False
        self.set_status('✓ Saved')
        if self.bridge is not None:
            self.schedule(self.bridge.reload_config(), self._on_reloaded)
        return True

    def _on_reloaded(self, result) -> None:
        if getattr(result, 'ok', False):
            self.set_status('✓ Saved and reloaded daemon')
        elif getattr(result, 'value', None) == 'not_running':
            self.set_status('✓ Saved (daemon not running)', 'muted')
        else:
            error = getattr(result, 'error', None) or 'unknown error'
            self.set_status(f'✓ Saved, daemon reload failed: {error}', 'warning')
        self.changed()

    def refresh_daemon_status(self) -> None:
        if self.bridge is not None:
            self.schedule(self.bridge.daemon_status(), self._on_daemon_status)

    def _on_daemon_status(self, result) -> None:
        if getattr(result, 'ok', False) and result.value is not None:
            self.state.daemon_state = result.value.state
        else:
            self.state.daemon_state = 'Unavailable'
        self.changed()

    def mark_dirty(self) -> None:
        self.state.config_dirty = True
        self.set_status('● Unsaved changes (Ctrl+S to save)', 'warning')

    def set_status(self, message: str, level: str = 'info') -> None:
        self.state.status = message
        self.state.status_level = level
        self.state.status_serial += 1

    def clear_status(self, serial: Optional[int] = None) -> None:
        """Clear the status line unless a newer message replaced it."""
        if serial is not None and serial != self.state.status_serial:
            return
        if self.state.config_dirty:
            self.state.status = '● Unsaved changes (Ctrl+S to save)'
            self.state.status_level = 'warning'
        else:
            self.state.status = ''
            self.state.status_level = 'info'

    # ----- async ---------------------------------------------------------
    def schedule(
        self,
        awaitable: Awaitable[Any],
        on_result: Callable[[Any], Any],
        liveness: Optional[Liveness] = None,
    ) -> Optional[asyncio.Task]:
        """Run a collaborator call on the app loop; ``on_result`` runs on a later loop turn."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop (headless use): the call is dropped, panels keep their fallbacks
            close = getattr(awaitable, 'close', None)
            if close is not None:
                close()
            return None
        task = schedule(awaitable, on_result, liveness, loop=loop, logger=self.logger)
        if task is not None:
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        return task

    # ----- logging -------------------------------------------------------
    def _log_input(self, event: Any) -> None:
        if self.logger is None:
            return
        try:
            if isinstance(event, KeyEvent):
                self.logger.input_detail('key', {'key': event.key, 'mode': self.state.focus_mode, 'depth': self.stack.depth})
            elif isinstance(event, MouseEvent):
                self.logger.input_detail('click', {'x': event.x, 'y': event.y, 'depth': self.stack.depth})
        except Exception:
            pass

    def _log_focus(self, kind: str, data: dict) -> None:
        if self.logger is None:
            return
        try:
            self.logger.focus_event(kind, data, component='core.router')
        except Exception:
            pass
