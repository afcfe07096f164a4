"""Modal overlay controller.

One ``ModalSession`` may be open at a time. Opening snapshots the focus target
and the interceptor depth; closing truncates the interceptor stack back to that
depth (dropping every nested layer the overlay pushed) and restores focus.
Nested overlays inside a session (a detail view over a confirm dialog) live on
the session's own LIFO layer stack.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from core.errors import InvariantGuard
from core.events import KeyEvent, MouseEvent
from core.interceptors import InterceptorStack


class ModalKind(str, Enum):
    HELP = 'help'
    CONFIRM = 'confirm'
    EXPAND = 'expand'
    PICKER = 'picker'
    DETAIL = 'detail'


CLOSE_KEYS: Dict[ModalKind, Tuple[str, ...]] = {
    ModalKind.HELP: ('?', 'escape'),
    ModalKind.CONFIRM: ('escape', 'n', 'N'),
    ModalKind.EXPAND: ('escape', 'enter'),
    ModalKind.PICKER: ('escape',),
    ModalKind.DETAIL: ('escape', 'v', 'enter'),
}

COMMIT_KEYS: Dict[ModalKind, Tuple[str, ...]] = {
    ModalKind.CONFIRM: ('y', 'Y', 'enter'),
    ModalKind.PICKER: ('enter',),
}

# Kinds that claim every key, the interrupt chord included
SWALLOW_ALL = frozenset({ModalKind.HELP})

INTERRUPT_KEYS = ('ctrl+c',)

Bounds = Tuple[int, int, int, int]  # x, y, width, height


def _inside(bounds: Optional[Bounds], event: MouseEvent) -> bool:
    if bounds is None:
        return True
    x, y, w, h = bounds
    return x <= event.x < x + w and y <= event.y < y + h


@dataclass
class OverlayLayer:
    """A nested overlay pushed inside an open session."""

    kind: ModalKind
    depth_before: int
    title: str = ''
    lines: List[str] = field(default_factory=list)
    hint: str = ''
    bounds: Optional[Bounds] = None
    on_close: Optional[Callable[[str], Any]] = None
    handler: Optional[Callable[[Any], bool]] = field(default=None, repr=False)


class ModalSession:
    def __init__(
        self,
        controller: 'ModalController',
        kind: ModalKind,
        depth_before: int,
        prior_focus: Any,
        *,
        title: str = '',
        lines: Sequence[str] = (),
        hint: str = '',
        options: Sequence[str] = (),
        draft_index: int = 0,
        on_commit: Optional[Callable[['ModalSession'], Any]] = None,
        on_close: Optional[Callable[[str], Any]] = None,
        on_key: Optional[Callable[['ModalSession', KeyEvent], bool]] = None,
    ) -> None:
        self.controller = controller
        self.kind = kind
        self.depth_before = depth_before
        self.prior_focus = prior_focus
        self.title = title
        self.lines = list(lines)
        self.hint = hint
        self.options = list(options)
        self.draft_index = min(max(draft_index, 0), max(len(self.options) - 1, 0))
        self.on_commit = on_commit
        self.on_close = on_close
        self.on_key = on_key
        self.bounds: Optional[Bounds] = None
        self.layers: List[OverlayLayer] = []
        self.closed = False

    # ----- nested layers -------------------------------------------------
    @property
    def top_layer(self) -> Optional[OverlayLayer]:
        return self.layers[-1] if self.layers else None

    def open_layer(
        self,
        kind: ModalKind,
        *,
        title: str = '',
        lines: Sequence[str] = (),
        hint: str = '',
        on_close: Optional[Callable[[str], Any]] = None,
    ) -> Optional[OverlayLayer]:
        if self.closed:
            return None
        stack = self.controller.stack
        layer = OverlayLayer(
            kind=kind,
            depth_before=stack.depth,
            title=title,
            lines=list(lines),
            hint=hint,
            on_close=on_close,
        )
        layer.handler = lambda event, _layer=layer: self._intercept_layer(_layer, event)
        self.layers.append(layer)
        stack.push(layer.handler)
        self.controller._log('layer_open', {'kind': kind.value, 'depth': stack.depth})
        return layer

    def close_layer(self, reason: str = 'cancel') -> Optional[OverlayLayer]:
        """Pop the top layer, restoring the depth recorded when it opened. Focus is untouched."""
        if not self.layers:
            return None
        layer = self.layers.pop()
        self.controller.stack.truncate(layer.depth_before)
        self.controller._log('layer_close', {'kind': layer.kind.value, 'reason': reason, 'depth': self.controller.stack.depth})
        if layer.on_close is not None:
            layer.on_close(reason)
        return layer

    # ----- transitions ---------------------------------------------------
    def move_draft(self, delta: int) -> None:
        if not self.options:
            return
        self.draft_index = min(max(self.draft_index + delta, 0), len(self.options) - 1)

    def commit(self) -> None:
        if self.closed:
            return
        if self.on_commit is not None:
            self.on_commit(self)
        self.controller.close('commit')

    def close(self, reason: str = 'cancel') -> bool:
        if self.closed:
            return False
        return self.controller.close(reason)

    # ----- interceptors --------------------------------------------------
    def intercept(self, event: Any) -> bool:
        if self.closed:
            return False
        if isinstance(event, MouseEvent):
            if not _inside(self.bounds, event):
                self.close('outside')
            return True
        if not isinstance(event, KeyEvent):
            return True
        if event.key in INTERRUPT_KEYS and self.kind not in SWALLOW_ALL:
            return False
        if self.on_key is not None and self.on_key(self, event):
            return True
        if event.key in COMMIT_KEYS.get(self.kind, ()):
            self.commit()
            return True
        if event.key in CLOSE_KEYS.get(self.kind, ('escape',)):
            self.close('cancel')
            return True
        if self.kind is ModalKind.PICKER:
            if event.is_('up', 'k'):
                self.move_draft(-1)
            elif event.is_('down', 'j'):
                self.move_draft(1)
        return True

    def _intercept_layer(self, layer: OverlayLayer, event: Any) -> bool:
        if self.closed or layer not in self.layers:
            return False
        if isinstance(event, MouseEvent):
            if not _inside(layer.bounds, event):
                self.close_layer('outside')
            return True
        if not isinstance(event, KeyEvent):
            return True
        if event.key in INTERRUPT_KEYS and layer.kind not in SWALLOW_ALL:
            return False
        if layer is self.top_layer and event.key in CLOSE_KEYS.get(layer.kind, ('escape',)):
            self.close_layer('cancel')
        return True


class ModalController:
    """Owns the single open ``ModalSession``.

    ``snapshot_focus()`` captures the current focus target when a modal opens;
    ``restore_focus(snapshot)`` puts it back on close.
    """

    def __init__(
        self,
        stack: InterceptorStack,
        *,
        snapshot_focus: Optional[Callable[[], Any]] = None,
        restore_focus: Optional[Callable[[Any], Any]] = None,
        guard: Optional[InvariantGuard] = None,
        logger=None,
    ) -> None:
        self.stack = stack
        self.snapshot_focus = snapshot_focus
        self.restore_focus = restore_focus
        self.guard = guard or InvariantGuard()
        self.logger = logger
        self.session: Optional[ModalSession] = None

    @property
    def is_open(self) -> bool:
        return self.session is not None

    @property
    def kind(self) -> Optional[ModalKind]:
        return self.session.kind if self.session is not None else None

    def open(self, kind: ModalKind, **kwargs: Any) -> Optional[ModalSession]:
        if self.session is not None:
            self.guard.fail(
                'core.modal',
                f'cannot open {kind.value} while {self.session.kind.value} is open',
                requested=kind.value,
                open=self.session.kind.value,
            )
            return None
        prior = self.snapshot_focus() if self.snapshot_focus is not None else None
        session = ModalSession(self, kind, self.stack.depth, prior, **kwargs)
        self.session = session
        self.stack.push(session.intercept)
        self._log('open', {'kind': kind.value, 'depth_before': session.depth_before})
        return session

    def close(self, reason: str = 'cancel') -> bool:
        session = self.session
        if session is None:
            return False
        session.closed = True
        self.session = None
        session.layers.clear()
        self.stack.truncate(session.depth_before)
        if self.restore_focus is not None:
            self.restore_focus(session.prior_focus)
        self._log('close', {'kind': session.kind.value, 'reason': reason, 'depth': self.stack.depth})
        if session.on_close is not None:
            session.on_close(reason)
        return True

    def _log(self, kind: str, data: dict) -> None:
        if self.logger is None:
            return
        try:
            self.logger.modal_event(kind, data)
        except Exception:
            pass
