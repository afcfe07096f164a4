"""Focusable field variants: list, stepper, toggle and key-combo recorder.

Every variant implements the same capability set (``focus``, ``blur``,
``activate``) and is dispatched by ``kind``. Field state moves
IDLE -> FOCUSED -> [CAPTURE, recorders only] -> IDLE.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence

from core.events import KeyEvent
from core.keys import format_chord


class FieldKind(str, Enum):
    LIST = 'list'
    STEPPER = 'stepper'
    TOGGLE = 'toggle'
    RECORDER = 'recorder'


class FieldState(str, Enum):
    IDLE = 'idle'
    FOCUSED = 'focused'
    CAPTURE = 'capture'


@dataclass(frozen=True)
class Option:
    """One entry of a list field."""

    value: str
    label: str = ''
    hint: str = ''

    @property
    def text(self) -> str:
        return self.label or self.value


class FocusableField:
    kind: FieldKind

    def __init__(
        self,
        field_id: str,
        label: str,
        *,
        order: int = 0,
        height: int = 1,
        on_change: Optional[Callable[..., Any]] = None,
        description: str = '',
    ) -> None:
        self.field_id = field_id
        self.label = label
        self.order = order
        self._height = max(1, int(height))
        self.on_change = on_change
        self.description = description
        self.state = FieldState.IDLE

    # ----- capability --------------------------------------------------
    def focus(self) -> None:
        self.state = FieldState.FOCUSED

    def blur(self) -> None:
        self.state = FieldState.IDLE

    def activate(self, event: KeyEvent) -> bool:
        return False

    # ----- queries -----------------------------------------------------
    @property
    def height(self) -> int:
        return self._height

    @property
    def focused(self) -> bool:
        return self.state is not FieldState.IDLE

    @property
    def capturing(self) -> bool:
        return self.state is FieldState.CAPTURE

    def display_value(self) -> str:
        return ''

    def _fire(self, *args: Any) -> None:
        if self.on_change is not None:
            self.on_change(*args)

    def __repr__(self) -> str:
        return f'<{type(self).__name__} {self.field_id} {self.state.value}>'


class ListField(FocusableField):
    """Selectable list.

    Inline lists move a cursor with up/down (j/k) and commit on enter. With
    ``picker=True`` the field renders as a single row and enter asks
    ``open_picker(field)`` to show the option picker instead.
    """

    kind = FieldKind.LIST

    def __init__(
        self,
        field_id: str,
        label: str,
        options: Sequence[Option] = (),
        *,
        selected: Optional[str] = None,
        picker: bool = False,
        open_picker: Optional[Callable[['ListField'], bool]] = None,
        empty_label: str = '(none)',
        **kwargs: Any,
    ) -> None:
        super().__init__(field_id, label, **kwargs)
        self.picker = picker
        self.open_picker = open_picker
        self.empty_label = empty_label
        self.options: List[Option] = []
        self.selected = -1
        self.cursor = -1
        self.set_options(options, selected)

    def set_options(self, options: Sequence[Option], selected: Optional[str] = None) -> None:
        keep = selected if selected is not None else self.value
        self.options = list(options)
        self.selected = self._index_of(keep)
        if self.selected < 0 and self.options:
            self.selected = 0
        self.cursor = self.selected

    def _index_of(self, value: Optional[str]) -> int:
        if value is None:
            return -1
        for i, opt in enumerate(self.options):
            if opt.value == value:
                return i
        return -1

    @property
    def value(self) -> Optional[str]:
        if 0 <= self.selected < len(self.options):
            return self.options[self.selected].value
        return None

    @property
    def height(self) -> int:
        if self.picker:
            return 1
        return 1 + max(1, len(self.options))

    def display_value(self) -> str:
        if 0 <= self.selected < len(self.options):
            return self.options[self.selected].text
        return self.empty_label

    def move_cursor(self, delta: int) -> bool:
        if not self.options:
            return False
        target = min(max(self.cursor + delta, 0), len(self.options) - 1)
        if target == self.cursor:
            return False
        self.cursor = target
        return True

    def commit(self, index: int) -> bool:
        """Make ``index`` the selection; fires on_change when it differs."""
        if not (0 <= index < len(self.options)):
            return False
        self.cursor = index
        if index == self.selected:
            return False
        self.selected = index
        self._fire(index, self.options[index])
        return True

    def blur(self) -> None:
        super().blur()
        self.cursor = self.selected

    def activate(self, event: KeyEvent) -> bool:
        if event.is_('enter'):
            if self.picker:
                if self.open_picker is None or not self.options:
                    return False
                return bool(self.open_picker(self))
            self.commit(self.cursor)
            return True
        if self.picker:
            return False
        if event.is_('up', 'k'):
            return self.move_cursor(-1)
        if event.is_('down', 'j'):
            return self.move_cursor(1)
        return False


class StepperField(FocusableField):
    """Bounded ordered value set adjusted one step at a time; no wraparound."""

    kind = FieldKind.STEPPER

    def __init__(
        self,
        field_id: str,
        label: str,
        values: Sequence[str],
        *,
        value: Optional[str] = None,
        unit: str = '',
        **kwargs: Any,
    ) -> None:
        super().__init__(field_id, label, **kwargs)
        if not values:
            raise ValueError(f'stepper {field_id} needs at least one value')
        self.values = list(values)
        self.unit = unit
        self.index = self.values.index(value) if value in self.values else 0

    @property
    def value(self) -> str:
        return self.values[self.index]

    def display_value(self) -> str:
        left = '◀' if self.index > 0 else ' '
        right = '▶' if self.index < len(self.values) - 1 else ' '
        unit = f' {self.unit}' if self.unit else ''
        return f'{left} {self.value}{unit} {right}'

    def step(self, delta: int) -> bool:
        target = min(max(self.index + delta, 0), len(self.values) - 1)
        if target == self.index:
            return False
        self.index = target
        self._fire(self.value, self.index)
        return True

    def activate(self, event: KeyEvent) -> bool:
        if event.is_('left', 'h'):
            self.step(-1)
            return True
        if event.is_('right', 'l'):
            self.step(1)
            return True
        return False


class ToggleField(FocusableField):
    kind = FieldKind.TOGGLE

    def __init__(self, field_id: str, label: str, *, value: bool = False, **kwargs: Any) -> None:
        super().__init__(field_id, label, **kwargs)
        self.value = bool(value)

    def display_value(self) -> str:
        return '[x] on' if self.value else '[ ] off'

    def toggle(self) -> None:
        self.value = not self.value
        self._fire(self.value)

    def activate(self, event: KeyEvent) -> bool:
        if event.is_('space', 'enter') or event.character == ' ':
            self.toggle()
            return True
        return False


class RecorderField(FocusableField):
    """Key-combo recorder.

    Focusing the field enters CAPTURE, where keys are consumed: plain
    escape cancels, a recognized chord is stored and ends capture, anything
    else is swallowed. Tab and shift+tab leave capture unconsumed so focus
    can move on. Enter re-enters capture once it has ended.
    """

    kind = FieldKind.RECORDER

    def __init__(
        self,
        field_id: str,
        label: str,
        *,
        value: str = '',
        meta_label: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(field_id, label, **kwargs)
        self.value = value
        self.meta_label = meta_label

    def focus(self) -> None:
        self.state = FieldState.CAPTURE

    def start_capture(self) -> None:
        self.state = FieldState.CAPTURE

    def cancel_capture(self) -> None:
        if self.state is FieldState.CAPTURE:
            self.state = FieldState.FOCUSED

    def display_value(self) -> str:
        if self.state is FieldState.CAPTURE:
            return '⌨ Recording...'
        if self.state is FieldState.FOCUSED:
            return 'Press Enter to record'
        return self.value or '(not set)'

    def activate(self, event: KeyEvent) -> bool:
        if self.state is FieldState.CAPTURE:
            if event.is_('escape'):
                self.cancel_capture()
                return True
            if event.is_('tab', 'shift+tab'):
                self.cancel_capture()
                return False
            chord = format_chord(event, meta_label=self.meta_label)
            if chord:
                self.value = chord
                self.state = FieldState.FOCUSED
                self._fire(chord)
            return True
        if self.state is FieldState.FOCUSED and event.is_('enter'):
            self.start_capture()
            return True
        return False
