"""Ordered focus registry for one panel's fields."""

from __future__ import annotations

from typing import Callable, Iterator, List, Optional

from core.errors import InvariantGuard
from core.fields import FieldState, FocusableField

FocusListener = Callable[[FocusableField], None]


class FocusRegistry:
    """Fields in presentation order plus ``current_index`` (-1 = none focused).

    At most one field is non-IDLE, and it is ``fields[current_index]``.
    """

    def __init__(
        self,
        fields: Optional[List[FocusableField]] = None,
        *,
        guard: Optional[InvariantGuard] = None,
        logger=None,
        name: str = 'registry',
    ) -> None:
        self.fields: List[FocusableField] = list(fields or [])
        self.current_index = -1
        self.guard = guard or InvariantGuard()
        self.logger = logger
        self.name = name
        self._listeners: List[FocusListener] = []

    # ----- navigation --------------------------------------------------
    def focus_next(self) -> Optional[FocusableField]:
        if not self.fields:
            return None
        if self.current_index < 0:
            return self.focus_at(0)
        return self.focus_at((self.current_index + 1) % len(self.fields))

    def focus_prev(self) -> Optional[FocusableField]:
        if not self.fields:
            return None
        if self.current_index < 0:
            return self.focus_at(len(self.fields) - 1)
        return self.focus_at((self.current_index - 1) % len(self.fields))

    def focus_at(self, index: int) -> Optional[FocusableField]:
        if not self.fields:
            return None
        if not (0 <= index < len(self.fields)):
            self.guard.fail(
                'core.registry',
                f'focus index {index} out of range',
                registry=self.name,
                size=len(self.fields),
            )
            return None
        current = self.current
        if current is not None:
            current.blur()
        self.current_index = index
        target = self.fields[index]
        target.focus()
        self._log('focus', {'registry': self.name, 'index': index, 'field': target.field_id})
        for listener in list(self._listeners):
            listener(target)
        return target

    def focus_id(self, field_id: str) -> Optional[FocusableField]:
        index = self.index_of(field_id)
        if index < 0:
            return None
        return self.focus_at(index)

    def blur_all(self) -> None:
        for f in self.fields:
            if f.state is not FieldState.IDLE:
                f.blur()
        self.current_index = -1

    # ----- queries -----------------------------------------------------
    @property
    def current(self) -> Optional[FocusableField]:
        if 0 <= self.current_index < len(self.fields):
            return self.fields[self.current_index]
        return None

    def index_of(self, field_id: str) -> int:
        for i, f in enumerate(self.fields):
            if f.field_id == field_id:
                return i
        return -1

    def get(self, field_id: str) -> Optional[FocusableField]:
        index = self.index_of(field_id)
        return self.fields[index] if index >= 0 else None

    def ids(self) -> List[str]:
        return [f.field_id for f in self.fields]

    def __len__(self) -> int:
        return len(self.fields)

    def __iter__(self) -> Iterator[FocusableField]:
        return iter(list(self.fields))

    def __contains__(self, field_id: object) -> bool:
        return isinstance(field_id, str) and self.index_of(field_id) >= 0

    # ----- mutation ----------------------------------------------------
    def insert(self, index: int, field: FocusableField) -> int:
        """Splice ``field`` at ``index`` (clamped) and return the index used.

        Does not touch ``current_index``; the async inserter owns that shift.
        """
        index = min(max(index, 0), len(self.fields))
        self.fields.insert(index, field)
        return index

    def add_listener(self, listener: FocusListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: FocusListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def check_invariant(self) -> bool:
        active = [i for i, f in enumerate(self.fields) if f.state is not FieldState.IDLE]
        if not active:
            return True
        return active == [self.current_index]

    def _log(self, kind: str, data: dict) -> None:
        if self.logger is None:
            return
        try:
            self.logger.focus_event(kind, data)
        except Exception:
            pass
