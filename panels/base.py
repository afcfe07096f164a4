"""Shared panel plumbing: registry, scroll sync, liveness and key routing."""

from __future__ import annotations

from typing import List, Optional, Tuple

from core.events import KeyEvent
from core.fields import FocusableField
from core.inserter import Liveness
from core.registry import FocusRegistry
from core.scroll import Row, ScrollSynchronizer


class Panel:
    panel_id = 'panel'
    title = ''

    def __init__(self, router) -> None:
        self.router = router
        self.state = router.state
        self.logger = router.logger
        self.liveness = Liveness()
        self.registry = FocusRegistry(guard=router.guard, logger=router.logger, name=self.panel_id)
        self.scroll = ScrollSynchronizer(self.rows)
        self.registry.add_listener(self._on_focus)

    # ----- lifecycle -----------------------------------------------------
    def mount(self) -> None:
        """Build fields and start any async loads."""

    def teardown(self) -> None:
        self.liveness.teardown()
        self.registry.blur_all()

    @property
    def alive(self) -> bool:
        return self.liveness.alive

    # ----- layout --------------------------------------------------------
    def rows(self) -> List[Row]:
        return [Row(f.field_id, f.height) for f in self.registry]

    def hit_test(self, y: int) -> Optional[str]:
        """Key of the focusable row at viewport line ``y``, or None."""
        target = y + self.scroll.viewport.scroll_top
        top = 0
        for row in self.rows():
            if top <= target < top + row.height:
                return row.key if row.focusable else None
            top += row.height
        return None

    def click(self, y: int) -> bool:
        key = self.hit_test(y)
        if key is None or key not in self.registry:
            return False
        self.registry.focus_id(key)
        return True

    # ----- focus ---------------------------------------------------------
    def _on_focus(self, field: FocusableField) -> None:
        self.scroll.sync(field.field_id)

    def focus_first(self) -> None:
        self.scroll.reset()
        if len(self.registry):
            self.registry.focus_at(0)

    def blur_all(self) -> None:
        self.registry.blur_all()

    def focus_position(self) -> Tuple[int, Optional[str]]:
        current = self.registry.current
        if current is None:
            return -1, None
        return self.registry.current_index, current.field_id

    def restore_position(self, index: int, key: Optional[str]) -> None:
        target = self.registry.index_of(key) if key else -1
        if target < 0:
            target = index
        if not (0 <= target < len(self.registry)):
            return
        current = self.registry.current
        if self.registry.current_index == target and current is not None and current.focused:
            return
        self.registry.focus_at(target)

    # ----- input ---------------------------------------------------------
    def handle_key(self, event: KeyEvent) -> bool:
        current = self.registry.current
        if current is not None and current.capturing and current.activate(event):
            return True
        if event.is_('tab'):
            self.registry.focus_next()
            return True
        if event.is_('shift+tab'):
            self.registry.focus_prev()
            return True
        if event.is_('escape'):
            self.router.leave_content()
            return True
        if current is not None and current.activate(event):
            return True
        return self.handle_panel_key(event, current)

    def handle_panel_key(self, event: KeyEvent, current: Optional[FocusableField]) -> bool:
        if event.is_('down', 'j'):
            self.registry.focus_next()
            return True
        if event.is_('up', 'k'):
            self.registry.focus_prev()
            return True
        return False

    # ----- helpers -------------------------------------------------------
    def status(self, message: str, level: str = 'info') -> None:
        self.router.set_status(message, level)

    def _log(self, kind: str, data: dict) -> None:
        if self.logger is None:
            return
        try:
            self.logger.focus_event(kind, data, component=f'panels.{self.panel_id}')
        except Exception:
            pass
