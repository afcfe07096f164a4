"""Raw input events as seen by the routing core."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

MODIFIERS = ('ctrl', 'shift', 'alt', 'meta', 'super')


@dataclass(frozen=True)
class KeyEvent:
    """Keyboard event using Textual-style key names (``ctrl+shift+a``, ``escape``)."""

    key: str
    character: Optional[str] = None
    _parts: Tuple[str, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        raw = self.key or ''
        if raw == '+' or raw.endswith('++'):
            parts = tuple(p for p in raw[:-1].split('+') if p) + ('+',)
        else:
            parts = tuple(p for p in raw.split('+') if p)
        object.__setattr__(self, '_parts', parts)

    @property
    def modifiers(self) -> Tuple[str, ...]:
        return tuple(p for p in self._parts[:-1] if p in MODIFIERS)

    @property
    def base(self) -> str:
        """Key name without modifiers."""
        return self._parts[-1] if self._parts else ''

    @property
    def ctrl(self) -> bool:
        return 'ctrl' in self.modifiers

    @property
    def shift(self) -> bool:
        return 'shift' in self.modifiers

    @property
    def alt(self) -> bool:
        return 'alt' in self.modifiers

    @property
    def meta(self) -> bool:
        return 'meta' in self.modifiers or 'super' in self.modifiers

    @property
    def plain(self) -> bool:
        return not self.modifiers

    def is_(self, *names: str) -> bool:
        """True when the full key name matches any of ``names``."""
        return self.key in names


@dataclass(frozen=True)
class MouseEvent:
    """Mouse press in screen cell coordinates."""

    x: int
    y: int
    button: int = 1


INTERRUPT = KeyEvent('ctrl+c')
